"""
@file schemas.py
@brief Request bodies for the RainSafe API

@author RainSafe Project
@date 2026-10-19
@license AGPL-3.0
"""

from typing import Optional

from pydantic import BaseModel, Field

from app.models.route import Coordinate


class LocationIn(BaseModel):
    """A point given either as coordinates or as a place name to geocode."""

    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)
    query: Optional[str] = Field(default=None, max_length=200)

    def coordinate(self) -> Optional[Coordinate]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(self.latitude, self.longitude)


class SafeRouteRequest(BaseModel):
    origin: LocationIn
    destination: LocationIn
    # Requests sharing a session supersede each other
    session: str = Field(default="default", max_length=64)


class HazardReportIn(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    category: str = Field(min_length=1, max_length=32, examples=["Waterlogging", "Accident", "RoadBlock"])
