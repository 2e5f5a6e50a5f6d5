"""
@file hazard_query.py
@brief Nearby, trustworthy, unexpired hazard reports

@author RainSafe Project
@date 2026-10-19
@license AGPL-3.0
"""

from datetime import datetime
from typing import Iterable, List, Optional

from app.core.config import settings
from app.models.hazard import HazardReport, HazardStatus, utc_now
from app.models.route import Coordinate
from app.utils.geo import haversine_km

## @brief Statuses a query may surface
VISIBLE_STATUSES = (HazardStatus.PENDING, HazardStatus.VERIFIED)


def nearby(
    reports: Iterable[HazardReport],
    center: Coordinate,
    radius_km: float,
    min_trust: Optional[float] = None,
    now: Optional[datetime] = None,
) -> List[HazardReport]:
    """
    @brief Filter reports around a point

    @details
    Keeps reports that are not expired (by time, whatever their stored
    status), not rejected, within radius_km great-circle distance of center
    and with trust_score >= min_trust. Ordered soonest-to-expire first, then
    nearest first.

    @param min_trust Defaults to the trust policy's query minimum (0.4)
    @param now Naive UTC instant; defaults to the current time
    """
    if min_trust is None:
        min_trust = settings.trust.min_query_trust
    now = now or utc_now()

    selected = []
    for report in reports:
        if report.is_expired(now) or report.status not in VISIBLE_STATUSES:
            continue
        if (report.trust_score or 0.0) < min_trust:
            continue
        distance = haversine_km(center, report.location)
        if distance > radius_km:
            continue
        selected.append((report.expires_at, distance, report))

    selected.sort(key=lambda item: (item[0], item[1]))
    return [report for _, _, report in selected]
