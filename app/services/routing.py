"""
@file routing.py
@brief Driving routes with alternatives from an OSRM server

@details
Returns the provider's candidate routes parsed into RouteCandidate objects.

**Outcome contract:**
- Empty list: the provider answered but found no road route (a valid answer)
- UnavailableError: connection failure, timeout or non-success status
- MalformedResponseError: the provider answered with something that has no
  usable geometry; this is a hard failure because such a route cannot be
  evaluated or ranked

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import logging
from typing import List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import MalformedResponseError, UnavailableError
from app.models.route import Coordinate, RouteCandidate

logger = logging.getLogger(__name__)

PROVIDER = "routing"

# OSRM codes meaning "answered, but no route between these points"
NO_ROUTE_CODES = {"NoRoute", "NoSegment"}


class RoutingClient:
    """
    @brief Async OSRM client
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.osrm_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.routing_timeout_s
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            headers={"User-Agent": settings.user_agent, "Accept": "application/json"}
        )

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        alternatives: bool = True,
        steps: bool = True,
    ) -> List[RouteCandidate]:
        """
        @brief Request candidate routes between two points

        @param origin Start coordinate
        @param destination End coordinate
        @param alternatives Ask for alternative routes besides the fastest
        @param steps Include turn-by-turn steps
        @return Candidate routes in provider order; empty when unreachable
        """
        url = (
            f"{self.base_url}/route/v1/driving/"
            f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        )
        params = {
            "overview": "full",
            "geometries": "geojson",
            "alternatives": str(alternatives).lower(),
            "steps": str(steps).lower(),
        }

        try:
            resp = await self._http.get(url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise UnavailableError(PROVIDER, f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UnavailableError(PROVIDER, str(e)) from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        # OSRM answers 400 with code=NoRoute when points are not connected by road
        if isinstance(payload, dict) and payload.get("code") in NO_ROUTE_CODES:
            logger.info(f"Routing provider found no route: {payload.get('message', '')}")
            return []

        if resp.status_code != 200:
            raise UnavailableError(PROVIDER, f"HTTP {resp.status_code}")
        if not isinstance(payload, dict):
            raise MalformedResponseError(PROVIDER, "response is not a JSON object")

        raw_routes = payload.get("routes")
        if raw_routes is None:
            raw_routes = []
        if not isinstance(raw_routes, list):
            raise MalformedResponseError(PROVIDER, "'routes' is not a list")

        candidates = []
        for raw in raw_routes:
            if not isinstance(raw, dict):
                raise MalformedResponseError(PROVIDER, "route entry is not an object")
            try:
                candidate = RouteCandidate.from_osrm_json(raw)
            except (TypeError, ValueError) as e:
                raise MalformedResponseError(PROVIDER, str(e)) from e
            if len(candidate.points) < 2:
                raise MalformedResponseError(PROVIDER, "route geometry has fewer than 2 points")
            candidates.append(candidate)

        logger.info(f"Routing provider returned {len(candidates)} candidate route(s)")
        return candidates
