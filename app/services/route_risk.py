"""
@file route_risk.py
@brief Weather-risk evaluation and ranking of candidate routes

@details
Provides business logic for safe route selection:
- RouteRiskEvaluator: samples a route into checkpoints, projects the arrival
  time at each one from the route's own duration, looks up the forecast for
  that place and hour, and flags hazardous weather
- rank_routes: safety first, then duration
- SafeRouteService: routing provider -> concurrent evaluation -> ranking,
  with per-session request generations so superseded results are discarded

**Availability over completeness:** a checkpoint whose forecast fails is
skipped; the route is still evaluated from the checkpoints that succeeded
and is never discarded because one forecast call failed.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0

@see services.forecast for the cached forecast lookups
@see services.route_sampler for checkpoint selection
@see services.risk_classifier for weather-code bands
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from app.core.config import settings
from app.core.exceptions import RouteUnreachableError, StaleRequestError, UnavailableError
from app.models.route import (
    AnalyzedRoute,
    Coordinate,
    RiskLevel,
    RouteCandidate,
    WeatherAlert,
)
from app.services.forecast import ForecastClient
from app.services.risk_classifier import describe_weather_code, is_hazardous_code
from app.services.route_sampler import sample_route_points
from app.services.routing import RoutingClient

logger = logging.getLogger(__name__)


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class RouteRiskEvaluator:
    """
    @brief Annotates one RouteCandidate with its weather risk

    @details
    For checkpoint i of n, progress = i / (n - 1) (0 when n == 1) and the
    arrival time is now + duration * progress. Checkpoints are processed in
    order, one forecast request at a time.
    """

    def __init__(
        self,
        forecast: ForecastClient,
        checkpoints: Optional[int] = None,
        clock: Callable[[], datetime] = utc_clock,
    ):
        self.forecast = forecast
        self.checkpoints = checkpoints or settings.route_checkpoints
        self.clock = clock

    async def evaluate(self, route: RouteCandidate) -> AnalyzedRoute:
        """
        @brief Evaluate one route

        @param route Candidate from the routing provider
        @return New AnalyzedRoute; the candidate itself is never modified

        @complexity O(checkpoints) forecast lookups, mostly cache hits when
                    alternatives share road
        """
        points = sample_route_points(route.points, self.checkpoints)
        n = len(points)
        now = self.clock()

        alerts: List[WeatherAlert] = []
        unknown = 0

        for i, point in enumerate(points):
            progress = i / (n - 1) if n > 1 else 0.0
            arrival = now + timedelta(seconds=route.duration_s * progress)

            try:
                sample = await self.forecast.fetch(point, arrival)
            except UnavailableError as e:
                unknown += 1
                logger.warning(f"Forecast unavailable for checkpoint {i}/{n}, skipping: {e}")
                continue

            if is_hazardous_code(sample.weather_code):
                alerts.append(
                    WeatherAlert(
                        point=point,
                        sample=sample.at(arrival),
                        description=describe_weather_code(sample.weather_code),
                    )
                )

        hazardous = bool(alerts)
        return AnalyzedRoute(
            route=route,
            is_hazardous=hazardous,
            risk_level=RiskLevel.HIGH if hazardous else RiskLevel.SAFE,
            alerts=tuple(alerts),
            unknown_checkpoints=unknown,
        )


def rank_routes(routes: List[AnalyzedRoute]) -> List[AnalyzedRoute]:
    """
    @brief Order routes by (safety, duration)

    @details
    Safe routes come before any other class; within a class, shorter
    duration first. A small time saving never outranks a safer class.
    sorted() is stable, so equal routes keep the provider's order.
    """
    return sorted(
        routes,
        key=lambda r: (r.risk_level is not RiskLevel.SAFE, r.duration_s),
    )


class RequestTracker:
    """
    @brief Per-session generation counter for route requests

    @details
    Each new request in a session bumps the generation. A result is only
    delivered if its generation is still the latest when it completes;
    earlier in-flight work is allowed to finish and is then ignored.
    """

    def __init__(self):
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def begin(self, session: str) -> int:
        with self._lock:
            generation = self._generations.get(session, 0) + 1
            self._generations[session] = generation
            return generation

    def is_current(self, session: str, generation: int) -> bool:
        with self._lock:
            return self._generations.get(session) == generation


class SafeRouteService:
    """
    @brief Ranked, weather-analyzed routes between two points
    """

    def __init__(
        self,
        routing: RoutingClient,
        evaluator: RouteRiskEvaluator,
        tracker: Optional[RequestTracker] = None,
    ):
        self.routing = routing
        self.evaluator = evaluator
        self.tracker = tracker or RequestTracker()

    async def safe_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        session: str = "default",
    ) -> List[AnalyzedRoute]:
        """
        @brief Fetch alternatives, evaluate them concurrently and rank them

        @return Ranked AnalyzedRoutes, safest and fastest first

        @throws RouteUnreachableError when the provider finds no road route
        @throws UnavailableError / MalformedResponseError from the routing provider
        @throws StaleRequestError when a newer request in the same session
                started before this one finished
        """
        generation = self.tracker.begin(session)
        logger.info(
            f"Route request #{generation} for session '{session}': "
            f"{origin.latitude:.4f},{origin.longitude:.4f} -> "
            f"{destination.latitude:.4f},{destination.longitude:.4f}"
        )

        candidates = await self.routing.routes(origin, destination)
        if not candidates:
            raise RouteUnreachableError(
                "routing",
                "The destination appears to be unreachable by road.",
            )

        analyzed = await asyncio.gather(*(self.evaluator.evaluate(c) for c in candidates))
        ranked = rank_routes(list(analyzed))

        if not self.tracker.is_current(session, generation):
            logger.info(f"Discarding stale route result #{generation} for session '{session}'")
            raise StaleRequestError(f"request #{generation} superseded")

        hazardous = sum(1 for r in ranked if r.is_hazardous)
        logger.info(f"Evaluated {len(ranked)} route(s), {hazardous} with weather hazards")
        return ranked
