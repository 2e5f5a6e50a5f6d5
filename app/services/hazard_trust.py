"""
@file hazard_trust.py
@brief Trust scoring and status state machine for crowd hazard reports

@details
A deliberately simple reputation model: no per-user identity or history,
only the report's own events count.

**Initial score:**
- Accident / RoadBlock: fixed moderate base (0.6)
- Waterlogging: sensor cross-check against current weather at the spot
  - no precipitation and a non-rain weather code -> suspicious (0.2)
  - confirmed precipitation -> weather-validated (0.75)
  - anything in between, or the forecast provider is down -> neutral (0.5)

**State table:**

| from     | event   | to                  |
|----------|---------|---------------------|
| pending  | confirm | pending, verified   |
| verified | confirm | verified            |
| pending  | reject  | pending, rejected   |
| verified | reject  | verified, rejected  |
| pending  | expire  | expired             |
| verified | expire  | expired             |

Rejected and expired are terminal. A reject that leaves the score at or
above the low-trust threshold keeps the status and sets `disputed`.

All constants come from TrustPolicy.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import enum
import logging
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Optional, Tuple

from app.core.config import TrustPolicy, settings
from app.core.exceptions import InvalidTransitionError, UnavailableError
from app.models.hazard import HazardCategory, HazardReport, HazardStatus
from app.models.route import Coordinate
from app.services.forecast import CurrentConditions, ForecastClient
from app.services.risk_classifier import is_hazardous_code

logger = logging.getLogger(__name__)


class TrustEvent(str, enum.Enum):
    CONFIRM = "confirm"
    REJECT = "reject"
    EXPIRE = "expire"


## @brief Allowed (status, event) -> resulting statuses
TRANSITIONS: Dict[Tuple[HazardStatus, TrustEvent], FrozenSet[HazardStatus]] = {
    (HazardStatus.PENDING, TrustEvent.CONFIRM): frozenset({HazardStatus.PENDING, HazardStatus.VERIFIED}),
    (HazardStatus.VERIFIED, TrustEvent.CONFIRM): frozenset({HazardStatus.VERIFIED}),
    (HazardStatus.PENDING, TrustEvent.REJECT): frozenset({HazardStatus.PENDING, HazardStatus.REJECTED}),
    (HazardStatus.VERIFIED, TrustEvent.REJECT): frozenset({HazardStatus.VERIFIED, HazardStatus.REJECTED}),
    (HazardStatus.PENDING, TrustEvent.EXPIRE): frozenset({HazardStatus.EXPIRED}),
    (HazardStatus.VERIFIED, TrustEvent.EXPIRE): frozenset({HazardStatus.EXPIRED}),
}


def expirable_statuses() -> FrozenSet[HazardStatus]:
    """Statuses a time-to-live sweep may move to expired."""
    return frozenset(s for (s, e) in TRANSITIONS if e is TrustEvent.EXPIRE)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class TrustState:
    trust_score: float
    status: HazardStatus = HazardStatus.PENDING
    confirmation_count: int = 0
    rejection_count: int = 0
    disputed: bool = False

    @classmethod
    def of(cls, report: HazardReport) -> "TrustState":
        return cls(
            trust_score=report.trust_score if report.trust_score is not None else 0.0,
            status=report.status or HazardStatus.PENDING,
            confirmation_count=report.confirmation_count or 0,
            rejection_count=report.rejection_count or 0,
            disputed=bool(report.disputed),
        )

    def as_fields(self) -> dict:
        return {
            "trust_score": self.trust_score,
            "status": self.status,
            "confirmation_count": self.confirmation_count,
            "rejection_count": self.rejection_count,
            "disputed": self.disputed,
        }


class HazardTrustScorer:
    """
    @brief Computes initial trust and applies peer events

    @details
    The event methods are pure: they return a new TrustState and never touch
    the store, so a failed store write leaves nothing half-applied.
    """

    def __init__(self, policy: Optional[TrustPolicy] = None, forecast: Optional[ForecastClient] = None):
        self.policy = policy or settings.trust
        self.forecast = forecast

    # ------------------------------------------------------------------
    # Initial score
    # ------------------------------------------------------------------

    def score_from_conditions(self, conditions: CurrentConditions) -> float:
        """
        @brief Sensor cross-check for weather-linked reports
        """
        rain_code = is_hazardous_code(conditions.weather_code)
        precipitation = conditions.precipitation_mm

        if precipitation <= 0.0 and not rain_code:
            return self.policy.suspicious_score
        if precipitation >= self.policy.confirmed_rain_mm or (precipitation > 0.0 and rain_code):
            return self.policy.validated_score
        return self.policy.neutral_score

    async def initial_score(self, category: HazardCategory, location: Coordinate) -> float:
        """
        @brief Trust score for a freshly submitted report
        @details Forecast failures fall back to the neutral score.
        """
        if not category.weather_linked:
            return self.policy.non_weather_base
        if self.forecast is None:
            return self.policy.neutral_score

        try:
            conditions = await self.forecast.current_conditions(location)
        except UnavailableError as e:
            logger.warning(f"Sensor cross-check unavailable, using neutral trust: {e}")
            return self.policy.neutral_score

        score = self.score_from_conditions(conditions)
        logger.info(
            f"Sensor cross-check for {category.value}: code={conditions.weather_code} "
            f"precip={conditions.precipitation_mm}mm -> trust {score}"
        )
        return score

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @staticmethod
    def _check(state: TrustState, event: TrustEvent, target: HazardStatus) -> None:
        allowed = TRANSITIONS.get((state.status, event))
        if allowed is None or target not in allowed:
            raise InvalidTransitionError(
                f"cannot {event.value} a report in status '{state.status.value}'"
            )

    def confirm(self, state: TrustState) -> TrustState:
        count = state.confirmation_count + 1
        score = round(clamp(state.trust_score + self.policy.confirm_increment), 4)
        target = state.status
        if count >= self.policy.verify_confirmations:
            target = HazardStatus.VERIFIED

        self._check(state, TrustEvent.CONFIRM, target)
        return replace(state, trust_score=score, confirmation_count=count, status=target)

    def reject(self, state: TrustState) -> TrustState:
        score = round(clamp(state.trust_score - self.policy.reject_decrement), 4)
        if score < self.policy.reject_threshold:
            target, disputed = HazardStatus.REJECTED, state.disputed
        else:
            target, disputed = state.status, True

        self._check(state, TrustEvent.REJECT, target)
        return replace(
            state,
            trust_score=score,
            rejection_count=state.rejection_count + 1,
            status=target,
            disputed=disputed,
        )

