"""
@file geocoding.py
@brief Free-text place resolution against a Nominatim server

@details
Provides:
- geocode(): best coordinate for a place name, with fallbacks
  (exact query, query + default country, shorter comma-suffixes)
- suggest(): ranked display-name candidates for autocomplete
- Input validation rejecting weather words and placeholder strings
- A process-wide rate limiter keeping consecutive provider calls at least
  GEOCODING_MIN_INTERVAL_MS apart (Nominatim usage policy)

Both result caches are owned by the client instance.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Tuple

import httpx

from app.core.cache import MemoryCache
from app.core.config import settings
from app.core.exceptions import InvalidLocationError, NotFoundError, UnavailableError
from app.models.route import Coordinate

logger = logging.getLogger(__name__)

PROVIDER = "geocoding"

## @brief Inputs that are never place names
INVALID_TERMS = frozenset({
    "rain",
    "sunny",
    "cloudy",
    "weather",
    "null",
    "undefined",
    "unknown location",
})

MIN_SUGGEST_LENGTH = 3


@dataclass(frozen=True)
class GeocodingResult:
    coordinate: Coordinate
    display_name: str

    @classmethod
    def from_nominatim_json(cls, data: Any) -> "GeocodingResult":
        if not isinstance(data, dict):
            raise ValueError("result entry is not an object")
        lat = float(data.get("lat"))
        lon = float(data.get("lon"))
        return cls(Coordinate(lat, lon), str(data.get("display_name") or "Unknown Location"))

    def to_dict(self) -> dict:
        return {
            "display_name": self.display_name,
            "latitude": self.coordinate.latitude,
            "longitude": self.coordinate.longitude,
        }


def is_valid_location(text: Optional[str]) -> bool:
    if text is None or not text.strip():
        return False
    return text.strip().lower() not in INVALID_TERMS


class RateLimiter:
    """
    @brief Minimum-gap limiter around a single shared "last call" timestamp

    @details
    The wait blocks the caller (async sleep) but never the event loop.
    Concurrent callers queue on the lock, so calls leave one gap apart.
    """

    def __init__(
        self,
        min_interval_ms: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.min_interval = min_interval_ms / 1000.0
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.min_interval:
                    await self._sleep(self.min_interval - elapsed)
            self._last_call = self._clock()


class GeocodingClient:
    """
    @brief Async Nominatim client with caching and rate limiting
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        rate_limiter: Optional[RateLimiter] = None,
        country: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.nominatim_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.geocoding_timeout_s
        self.country = country if country is not None else settings.geocoder_country
        self.rate_limiter = rate_limiter or RateLimiter(settings.geocoding_min_interval_ms)
        self.coordinate_cache: MemoryCache[str, Coordinate] = MemoryCache()
        self.suggestion_cache: MemoryCache[Tuple[str, int], List[GeocodingResult]] = MemoryCache()
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

    async def _search(self, query: str, limit: int) -> List[GeocodingResult]:
        await self.rate_limiter.acquire()
        params = {
            "q": query,
            "format": "json",
            "limit": limit,
            "addressdetails": 1,
            "accept-language": "en",
        }
        try:
            resp = await self._http.get(f"{self.base_url}/search", params=params, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise UnavailableError(PROVIDER, f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UnavailableError(PROVIDER, str(e)) from e

        if resp.status_code != 200:
            raise UnavailableError(PROVIDER, f"HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise UnavailableError(PROVIDER, "unreadable JSON payload") from e
        if not isinstance(data, list):
            raise UnavailableError(PROVIDER, "unexpected payload shape")

        results = []
        for item in data:
            try:
                results.append(GeocodingResult.from_nominatim_json(item))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable geocoding result for '{query}': {e}")
        return results

    async def _lookup(self, query: str) -> Optional[Coordinate]:
        cached = self.coordinate_cache.get(query)
        if cached is not None:
            return cached
        results = await self._search(query, limit=1)
        if not results:
            return None
        self.coordinate_cache.put(query, results[0].coordinate)
        return results[0].coordinate

    def _candidate_queries(self, name: str) -> List[str]:
        queries = [name]
        if self.country and self.country.lower() not in name.lower():
            queries.append(f"{name}, {self.country}")
        if "," in name:
            parts = [p.strip() for p in name.split(",")]
            for i in range(1, len(parts)):
                suffix = ", ".join(parts[i:])
                if suffix and suffix not in queries:
                    queries.append(suffix)
        return queries

    async def geocode(self, name: str) -> Coordinate:
        """
        @brief Resolve a place name to its best-match coordinate

        @throws InvalidLocationError for empty input or weather words
        @throws NotFoundError when no fallback query matches
        @throws UnavailableError on provider failure
        """
        if not is_valid_location(name):
            raise InvalidLocationError(f"'{name}' is not a place name")
        name = name.strip()

        for query in self._candidate_queries(name):
            coordinate = await self._lookup(query)
            if coordinate is not None:
                if query != name:
                    logger.info(f"Geocoded '{name}' via fallback query '{query}'")
                return coordinate

        raise NotFoundError(PROVIDER, f"no match for '{name}'")

    async def suggest(self, query: str, limit: int = 5) -> List[GeocodingResult]:
        """
        @brief Autocomplete candidates, best first
        @details Queries shorter than three characters return no suggestions.
        """
        query = (query or "").strip()
        if len(query) < MIN_SUGGEST_LENGTH or not is_valid_location(query):
            return []

        key = (query, limit)
        cached = self.suggestion_cache.get(key)
        if cached is not None:
            return cached

        results = await self._search(query, limit=limit)
        self.suggestion_cache.put(key, results)
        return results
