"""
Hazard Report Data Model

This module defines the SQLAlchemy ORM model for crowd-submitted hazard
reports together with their closed enumerations.

Model: HazardReport
- Stores the reported location as plain latitude/longitude columns
- Tracks hazard category and a derived severity
- Holds the trust state (score, status, confirmation/rejection counters)
- Carries store-assigned timestamps; expires_at bounds query visibility

Only the trust fields (trust_score, status, disputed, counters) change after
creation, and only through the hazard trust scorer.

Author: RainSafe Project
License: AGPL-3.0
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Float, Boolean, String, DateTime, Enum
from app.db.base import Base
from app.models.route import Coordinate


def utc_now() -> datetime:
    """Naive UTC timestamp, the representation stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class HazardCategory(str, enum.Enum):
    WATERLOGGING = "Waterlogging"
    ACCIDENT = "Accident"
    ROAD_BLOCK = "RoadBlock"

    @classmethod
    def parse(cls, value: str) -> "HazardCategory":
        """Accept "Road Block", "road_block", "roadblock" and similar spellings."""
        normalized = value.replace(" ", "").replace("_", "").replace("-", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown hazard category: {value}")

    @property
    def weather_linked(self) -> bool:
        return self is HazardCategory.WATERLOGGING

    @property
    def severity(self) -> int:
        # Accident outranks road blocks, which outrank waterlogging
        return {
            HazardCategory.ACCIDENT: 3,
            HazardCategory.ROAD_BLOCK: 2,
            HazardCategory.WATERLOGGING: 1,
        }[self]


class HazardStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def terminal(self) -> bool:
        return self in (HazardStatus.REJECTED, HazardStatus.EXPIRED)


class HazardReport(Base):
    """
    SQLAlchemy ORM model for crowd-sourced hazard reports.

    Attributes:
        id (int): Store-assigned identifier, primary key
        latitude (float): WGS84 latitude of the hazard
        longitude (float): WGS84 longitude of the hazard
        category (HazardCategory): Waterlogging, Accident or RoadBlock
        severity (int): 1 (waterlogging) to 3 (accident)
        status (HazardStatus): pending, verified, rejected or expired
        disputed (bool): Rejected by a peer but still above the low-trust threshold
        trust_score (float): Confidence in [0, 1] that the report is genuine
        confirmation_count (int): Peer confirmations received
        rejection_count (int): Peer rejections received
        created_at (datetime): Store-assigned creation time (naive UTC)
        expires_at (datetime): created_at + TTL; invisible to queries afterwards
        updated_at (datetime): Last trust update
    """

    __tablename__ = "hazard_reports"

    id = Column(Integer, primary_key=True, index=True)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    category = Column(Enum(HazardCategory, native_enum=False, length=20), nullable=False)
    severity = Column(Integer, default=0)

    # Trust state
    status = Column(
        Enum(HazardStatus, native_enum=False, length=10),
        default=HazardStatus.PENDING,
        nullable=False,
        index=True,
    )
    disputed = Column(Boolean, default=False)
    trust_score = Column(Float, default=0.5)
    confirmation_count = Column(Integer, default=0)
    rejection_count = Column(Integer, default=0)

    # Store-assigned timestamps
    created_at = Column(DateTime, default=utc_now, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    @property
    def location(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now > self.expires_at

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "category": self.category.value if self.category else None,
            "severity": self.severity,
            "status": self.status.value if self.status else None,
            "disputed": bool(self.disputed),
            "trust_score": round(self.trust_score or 0.0, 4),
            "confirmation_count": self.confirmation_count or 0,
            "rejection_count": self.rejection_count or 0,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    def __repr__(self):
        return (
            f"<HazardReport(id={self.id}, category={self.category}, "
            f"status={self.status}, trust={self.trust_score})>"
        )
