"""
Great-circle helpers on WGS84 coordinates.

Author: RainSafe Project
License: AGPL-3.0
"""

import math
from typing import Dict

from app.models.route import Coordinate

EARTH_RADIUS_KM = 6371.0088


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlmb = math.radians(b.longitude - a.longitude)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, s)))


def bounding_box(center: Coordinate, radius_km: float) -> Dict[str, float]:
    """
    Lat/lon box enclosing a circle of radius_km around center.

    Used as a coarse store-side prefilter; the exact cut is haversine_km.
    """
    dlat = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(center.latitude))
    if cos_lat < 1e-6:
        dlon = 180.0
    else:
        dlon = min(180.0, math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)))
    return {
        "min_lat": max(-90.0, center.latitude - dlat),
        "max_lat": min(90.0, center.latitude + dlat),
        "min_lon": center.longitude - dlon,
        "max_lon": center.longitude + dlon,
    }
