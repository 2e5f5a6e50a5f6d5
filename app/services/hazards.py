"""
@file hazards.py
@brief Hazard report workflow: submit, confirm, reject, look up nearby

@details
Glues the trust scorer to the store. Scoring happens before anything is
written, and store writes are the last step, so a failed write surfaces as
HazardStoreError with the trust model untouched.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import logging
from typing import AsyncIterator, List, Optional

from app.core.config import settings
from app.models.hazard import HazardCategory, HazardReport, utc_now
from app.models.route import Coordinate
from app.services.hazard_query import VISIBLE_STATUSES, nearby
from app.services.hazard_store import HazardStore
from app.services.hazard_trust import HazardTrustScorer, TrustState
from app.utils.geo import bounding_box

logger = logging.getLogger(__name__)


class HazardService:
    """
    @brief Crowd-sourced hazard reporting with trust verification
    """

    def __init__(self, store: HazardStore, scorer: HazardTrustScorer):
        self.store = store
        self.scorer = scorer

    async def submit(self, location: Coordinate, category: HazardCategory) -> HazardReport:
        """
        @brief Score a new report (sensor cross-check) and store it as pending
        @throws HazardStoreError if the write fails
        """
        score = await self.scorer.initial_score(category, location)
        return self.store.create(location.latitude, location.longitude, category, score)

    def confirm(self, report_id: int) -> HazardReport:
        """
        @throws HazardNotFoundError, InvalidTransitionError, HazardStoreError
        """
        report = self.store.transition(
            report_id, lambda r: self.scorer.confirm(TrustState.of(r)).as_fields()
        )
        logger.info(
            f"Hazard {report_id} confirmed ({report.confirmation_count}x): "
            f"status={report.status.value} trust={report.trust_score}"
        )
        return report

    def reject(self, report_id: int) -> HazardReport:
        """
        @throws HazardNotFoundError, InvalidTransitionError, HazardStoreError
        """
        report = self.store.transition(
            report_id, lambda r: self.scorer.reject(TrustState.of(r)).as_fields()
        )
        logger.info(
            f"Hazard {report_id} rejected: status={report.status.value} "
            f"trust={report.trust_score} disputed={report.disputed}"
        )
        return report

    def nearby(
        self,
        center: Coordinate,
        radius_km: float = 5.0,
        min_trust: Optional[float] = None,
    ) -> List[HazardReport]:
        """
        @brief Visible reports around center, soonest-expiring first
        """
        if min_trust is None:
            min_trust = settings.trust.min_query_trust
        now = utc_now()
        candidates = self.store.query(
            statuses=VISIBLE_STATUSES,
            expires_after=now,
            bbox=bounding_box(center, radius_km),
            min_trust=min_trust,
        )
        return nearby(candidates, center, radius_km, min_trust=min_trust, now=now)

    async def watch(
        self,
        center: Coordinate,
        radius_km: float = 5.0,
        min_trust: Optional[float] = None,
        poll_interval: float = 5.0,
    ) -> AsyncIterator[List[HazardReport]]:
        """
        @brief Live variant of nearby(), one list per store change
        """
        if min_trust is None:
            min_trust = settings.trust.min_query_trust
        async for reports in self.store.subscribe(
            statuses=VISIBLE_STATUSES,
            bbox=bounding_box(center, radius_km),
            min_trust=min_trust,
            poll_interval=poll_interval,
        ):
            yield nearby(reports, center, radius_km, min_trust=min_trust)
