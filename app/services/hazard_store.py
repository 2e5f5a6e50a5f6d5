"""
@file hazard_store.py
@brief Persistent store for hazard reports (SQLAlchemy)

@details
Implements the logical operations the hazard engine needs:
- create: insert a report; the store assigns id, created_at and expires_at
- get / query: fetch by id, or filter by status, expiry and bounding box
- update: write the mutable trust fields of one report
- transition: atomic read-modify-write of one report's trust fields
- expire_stale: mark reports past their TTL as expired
- subscribe: live stream of matching reports (polling)

Every database failure is logged and re-raised as HazardStoreError so the
API can tell the user without corrupting in-memory state.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0

@see models.hazard for the table definition
"""

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import HazardNotFoundError, HazardStoreError
from app.models.hazard import HazardCategory, HazardReport, HazardStatus, utc_now
from app.services.hazard_trust import expirable_statuses

logger = logging.getLogger(__name__)

## @brief Fields a caller may change after creation
MUTABLE_FIELDS = frozenset({
    "trust_score",
    "status",
    "disputed",
    "confirmation_count",
    "rejection_count",
})

DEFAULT_QUERY_LIMIT = 50


class HazardStore:
    """
    @brief Hazard report persistence over a SQLAlchemy session factory
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None, ttl_hours: Optional[float] = None):
        if session_factory is None:
            from app.db.database import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory
        self.ttl = timedelta(hours=ttl_hours if ttl_hours is not None else settings.hazard_ttl_hours)

    @contextmanager
    def _session(self, operation: str):
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Hazard store {operation} failed: {e}")
            raise HazardStoreError(f"{operation} failed") from e
        finally:
            session.close()

    def create(
        self,
        latitude: float,
        longitude: float,
        category: HazardCategory,
        trust_score: float,
    ) -> HazardReport:
        """
        @brief Insert a new pending report

        @return The stored report with its assigned id and timestamps
        """
        created_at = utc_now()
        report = HazardReport(
            latitude=latitude,
            longitude=longitude,
            category=category,
            severity=category.severity,
            status=HazardStatus.PENDING,
            disputed=False,
            trust_score=trust_score,
            confirmation_count=0,
            rejection_count=0,
            created_at=created_at,
            expires_at=created_at + self.ttl,
            updated_at=created_at,
        )
        with self._session("create") as session:
            session.add(report)
            session.commit()
            session.refresh(report)
        logger.info(f"Hazard reported: {category.value} at {latitude:.5f},{longitude:.5f} (id={report.id})")
        return report

    def get(self, report_id: int) -> Optional[HazardReport]:
        with self._session("get") as session:
            return session.get(HazardReport, report_id)

    def query(
        self,
        statuses: Optional[Iterable[HazardStatus]] = None,
        expires_after: Optional[datetime] = None,
        bbox: Optional[Dict[str, float]] = None,
        min_trust: Optional[float] = None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> List[HazardReport]:
        """
        @brief Filtered reports, soonest-expiring first

        @param statuses Keep only these statuses (all when None)
        @param expires_after Keep only reports expiring after this instant
        @param bbox Optional {min_lat, max_lat, min_lon, max_lon} prefilter
        @param min_trust Keep only reports with trust_score >= min_trust; applied
               before the limit
        @param limit Maximum number of rows
        """
        stmt = select(HazardReport)
        if statuses is not None:
            stmt = stmt.where(HazardReport.status.in_(list(statuses)))
        if expires_after is not None:
            stmt = stmt.where(HazardReport.expires_at > expires_after)
        if bbox is not None:
            stmt = stmt.where(
                HazardReport.latitude.between(bbox["min_lat"], bbox["max_lat"]),
                HazardReport.longitude.between(bbox["min_lon"], bbox["max_lon"]),
            )
        if min_trust is not None:
            stmt = stmt.where(HazardReport.trust_score >= min_trust)
        stmt = stmt.order_by(HazardReport.expires_at.asc(), HazardReport.id.asc()).limit(limit)

        with self._session("query") as session:
            return list(session.scalars(stmt).all())

    def update(self, report_id: int, fields: Dict[str, object]) -> bool:
        """
        @brief Write trust fields of one report

        @return False when the report does not exist
        @throws ValueError when a non-mutable field is given
        """
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        with self._session("update") as session:
            result = session.execute(
                update(HazardReport)
                .where(HazardReport.id == report_id)
                .values(**fields, updated_at=utc_now())
            )
            session.commit()
            return (result.rowcount or 0) > 0

    def transition(self, report_id: int, mutate: Callable[[HazardReport], Dict[str, object]]) -> HazardReport:
        """
        @brief Atomically recompute and store one report's trust fields

        @details
        The row is read with a FOR UPDATE lock (where the backend supports it),
        `mutate` returns the new field values, and they are committed in the
        same transaction. Exceptions raised by `mutate` roll back untouched.

        @throws HazardNotFoundError if the id is unknown
        """
        with self._session("transition") as session:
            report = session.scalars(
                select(HazardReport).where(HazardReport.id == report_id).with_for_update()
            ).first()
            if report is None:
                raise HazardNotFoundError(f"no hazard report with id {report_id}")

            try:
                fields = mutate(report)
            except Exception:
                session.rollback()
                raise

            unknown = set(fields) - MUTABLE_FIELDS
            if unknown:
                session.rollback()
                raise ValueError(f"Fields not updatable: {sorted(unknown)}")
            for name, value in fields.items():
                setattr(report, name, value)
            report.updated_at = utc_now()
            session.commit()
            session.refresh(report)
            return report

    def expire_stale(self, now: Optional[datetime] = None) -> int:
        """
        @brief Mark live reports past their expiry as expired

        @return Number of reports expired
        """
        now = now or utc_now()
        with self._session("expire") as session:
            result = session.execute(
                update(HazardReport)
                .where(HazardReport.expires_at < now)
                .where(HazardReport.status.in_(list(expirable_statuses())))
                .values(status=HazardStatus.EXPIRED, updated_at=now)
            )
            session.commit()
            return result.rowcount or 0

    async def subscribe(
        self,
        statuses: Optional[Iterable[HazardStatus]] = None,
        bbox: Optional[Dict[str, float]] = None,
        min_trust: Optional[float] = None,
        poll_interval: float = 5.0,
    ) -> AsyncIterator[List[HazardReport]]:
        """
        @brief Live stream of matching, unexpired reports

        @details
        Polls the table every poll_interval seconds and yields the full
        matching list whenever it differs from the previous one (first
        result is always yielded). Store errors are logged and the stream
        keeps polling.
        """
        statuses = list(statuses) if statuses is not None else None
        previous = None
        while True:
            try:
                reports = await asyncio.to_thread(
                    self.query, statuses=statuses, expires_after=utc_now(), bbox=bbox, min_trust=min_trust
                )
            except HazardStoreError as e:
                logger.warning(f"Hazard subscription poll failed: {e}")
            else:
                fingerprint = [
                    (r.id, r.status, r.trust_score, r.confirmation_count, r.rejection_count)
                    for r in reports
                ]
                if fingerprint != previous:
                    previous = fingerprint
                    yield reports
            await asyncio.sleep(poll_interval)
