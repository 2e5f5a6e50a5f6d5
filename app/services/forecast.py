"""
@file forecast.py
@brief Point-in-time weather lookups against the Open-Meteo forecast API

@details
ForecastClient answers two questions:
- fetch(): what will the weather be at this point at this (future) time?
  Hourly series lookup, memoized per (rounded point, hour) in a ForecastCache.
- current_conditions(): what is it doing there right now? Used by the
  hazard trust scorer for its sensor cross-check.

Every failure (network, timeout, non-200 status, unreadable payload) is
raised as UnavailableError; callers decide whether it is fatal.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0

@see services.route_risk for the checkpoint loop that consumes fetch()
@see services.hazard_trust for the sensor cross-check
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from app.core.cache import ForecastCache
from app.core.config import settings
from app.core.exceptions import UnavailableError
from app.models.route import Coordinate, WeatherSample

logger = logging.getLogger(__name__)

PROVIDER = "forecast"


@dataclass(frozen=True)
class CurrentConditions:
    weather_code: int
    precipitation_mm: float
    temperature_c: float


def resolve_hour_index(times: List[Any], target_local: datetime) -> int:
    """
    @brief Index of the first series entry in the same hour as target_local

    @details
    Entries are ISO timestamps ("2026-10-19T14:00"); matching is a prefix
    comparison at hour granularity. When no entry matches (target beyond the
    forecast horizon or before its start) index 0 is returned.
    """
    prefix = target_local.strftime("%Y-%m-%dT%H")
    for i, stamp in enumerate(times):
        if str(stamp).startswith(prefix):
            return i
    return 0


def _series_value(series: Any, index: int, default: float) -> float:
    if isinstance(series, list) and 0 <= index < len(series) and series[index] is not None:
        return series[index]
    return default


def _to_provider_local(target_time: datetime, utc_offset_seconds: int) -> datetime:
    # Series timestamps are in the location's local time (timezone=auto)
    if target_time.tzinfo is None:
        return target_time
    utc = target_time.astimezone(timezone.utc).replace(tzinfo=None)
    return utc + timedelta(seconds=utc_offset_seconds)


class ForecastClient:
    """
    @brief Cached async client for hourly forecasts

    @details
    The cache is checked before any network activity; a hit never reaches
    the provider, which is the main rate-limiting safeguard when several
    routes share checkpoints.
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        cache: Optional[ForecastCache] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        request_delay: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.open_meteo_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.forecast_timeout_s
        self.request_delay = (
            request_delay if request_delay is not None else settings.forecast_request_delay_s
        )
        self.cache = cache if cache is not None else ForecastCache()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            headers={
                "User-Agent": settings.user_agent,
                "Accept-Language": "en-US,en;q=0.9",
                "Accept": "application/json",
            }
        )

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _get_json(self, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/v1/forecast"
        try:
            resp = await self._http.get(url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise UnavailableError(PROVIDER, f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UnavailableError(PROVIDER, str(e)) from e

        if resp.status_code != 200:
            raise UnavailableError(PROVIDER, f"HTTP {resp.status_code}")
        try:
            payload = resp.json()
        except ValueError as e:
            raise UnavailableError(PROVIDER, "unreadable JSON payload") from e
        if not isinstance(payload, dict):
            raise UnavailableError(PROVIDER, "unexpected payload shape")
        return payload

    async def fetch(self, point: Coordinate, target_time: datetime) -> WeatherSample:
        """
        @brief Forecast at point for the hour containing target_time

        @param point Checkpoint coordinate
        @param target_time Projected arrival time (timezone-aware preferred)
        @return WeatherSample with observed_at set to target_time and the
                location's UTC offset, so its clock reads in local time
        @throws UnavailableError on any provider failure
        """
        key = ForecastCache.key(point, target_time)
        cached = self.cache.get(key)
        if cached is not None:
            return cached.at(target_time)

        if self.request_delay > 0:
            await asyncio.sleep(self.request_delay)

        payload = await self._get_json({
            "latitude": point.latitude,
            "longitude": point.longitude,
            "hourly": "weathercode,temperature_2m",
            "timezone": "auto",
        })

        hourly = payload.get("hourly")
        times = hourly.get("time") if isinstance(hourly, dict) else None
        if not isinstance(times, list) or not times:
            raise UnavailableError(PROVIDER, "response has no hourly series")

        try:
            offset = int(payload.get("utc_offset_seconds") or 0)
        except (TypeError, ValueError) as e:
            raise UnavailableError(PROVIDER, "unreadable utc_offset_seconds") from e
        target_local = _to_provider_local(target_time, offset)
        index = resolve_hour_index(times, target_local)
        if index == 0 and not str(times[0]).startswith(target_local.strftime("%Y-%m-%dT%H")):
            logger.warning(
                f"No forecast hour matches {target_local:%Y-%m-%dT%H}:00 at "
                f"{point.latitude:.2f},{point.longitude:.2f}; using first entry {times[0]}"
            )

        codes = hourly.get("weathercode", hourly.get("weather_code"))
        try:
            sample = WeatherSample(
                weather_code=int(_series_value(codes, index, 0)),
                temperature_c=float(_series_value(hourly.get("temperature_2m"), index, 0.0)),
                observed_at=target_time,
                utc_offset_s=offset,
            )
        except (TypeError, ValueError) as e:
            raise UnavailableError(PROVIDER, f"unreadable series value: {e}") from e

        # Keyed by the request, not the matched entry
        self.cache.put(key, sample)
        return sample

    async def current_conditions(self, point: Coordinate) -> CurrentConditions:
        """
        @brief Live observation-grade conditions at a point (uncached)
        @throws UnavailableError on any provider failure
        """
        payload = await self._get_json({
            "latitude": point.latitude,
            "longitude": point.longitude,
            "current": "weather_code,precipitation,temperature_2m",
            "timezone": "auto",
        })
        current = payload.get("current")
        if not isinstance(current, dict):
            raise UnavailableError(PROVIDER, "response has no current block")
        try:
            return CurrentConditions(
                weather_code=int(current.get("weather_code", current.get("weathercode")) or 0),
                precipitation_mm=float(current.get("precipitation") or 0.0),
                temperature_c=float(current.get("temperature_2m") or 0.0),
            )
        except (TypeError, ValueError) as e:
            raise UnavailableError(PROVIDER, f"unreadable current value: {e}") from e
