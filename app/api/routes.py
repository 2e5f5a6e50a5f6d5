"""
@file routes.py
@brief FastAPI API endpoint definitions for the RainSafe backend

@details
Provides RESTful endpoints for:
- Place search (geocoding and autocomplete suggestions)
- Weather-ranked safe routes between two points
- Crowd-sourced hazard reports (submit, confirm, reject, nearby, live stream)

Services are created once at startup and stored on app.state; endpoints
receive them through dependencies so tests can override them.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0

@see services.route_risk for route evaluation and ranking
@see services.hazards for the hazard workflow
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from app.api.schemas import HazardReportIn, LocationIn, SafeRouteRequest
from app.core.cache import cache_response
from app.core.exceptions import InvalidLocationError
from app.models.hazard import HazardCategory
from app.models.route import Coordinate
from app.services.geocoding import GeocodingClient
from app.services.hazards import HazardService
from app.services.route_risk import SafeRouteService

## @brief FastAPI router instance for API endpoints
router = APIRouter()

## @brief Module-level logger for request/response debugging
logger = logging.getLogger(__name__)


def get_geocoder(request: Request) -> GeocodingClient:
    return request.app.state.geocoder


def get_route_service(request: Request) -> SafeRouteService:
    return request.app.state.route_service


def get_hazard_service(request: Request) -> HazardService:
    return request.app.state.hazard_service


async def _resolve(location: LocationIn, geocoder: GeocodingClient) -> Coordinate:
    coordinate = location.coordinate()
    if coordinate is not None:
        return coordinate
    if location.query:
        return await geocoder.geocode(location.query)
    raise InvalidLocationError("either latitude/longitude or query is required")


# --------------------------------------------------------------------------
# Geocoding
# --------------------------------------------------------------------------

@router.get("/geocode", tags=["Geocoding"])
async def geocode(q: str = Query(..., max_length=200), service: GeocodingClient = Depends(get_geocoder)):
    """
    @brief Resolve a place name to coordinates

    @throws 422 for empty input or weather words ("rain", "sunny", ...)
    @throws 404 when nothing matches
    @throws 503 when the geocoding provider is unavailable
    """
    coordinate = await service.geocode(q)
    return {"query": q, "latitude": coordinate.latitude, "longitude": coordinate.longitude}


@router.get("/geocode/suggest", tags=["Geocoding"])
@cache_response(ttl=86400, key_prefix="api:suggest")
async def suggest(q: str = Query("", max_length=200), service: GeocodingClient = Depends(get_geocoder)):
    """
    @brief Autocomplete suggestions for a partial place name
    @details Cached in Redis for 24 hours. Queries under 3 characters return [].
    """
    results = await service.suggest(q)
    return {"query": q, "suggestions": [r.to_dict() for r in results]}


# --------------------------------------------------------------------------
# Routes
# --------------------------------------------------------------------------

@router.post("/routes/safe", tags=["Routes"])
async def safe_routes(
    body: SafeRouteRequest,
    geocoder: GeocodingClient = Depends(get_geocoder),
    service: SafeRouteService = Depends(get_route_service),
):
    """
    @brief Weather-analyzed route alternatives, safest then fastest first

    @details
    **Algorithm:**
    1. Resolve origin/destination (coordinates or geocoded place names)
    2. Fetch route alternatives from the routing provider
    3. Evaluate each route concurrently: 8 checkpoints, forecast at the
       projected arrival hour, hazardous weather codes raise the risk
    4. Rank by (Safe first, duration)

    @throws 404 destination unreachable by road
    @throws 409 superseded by a newer request in the same session
    @throws 502 routing provider returned an unusable response
    @throws 503 provider unavailable (retryable)
    """
    origin = await _resolve(body.origin, geocoder)
    destination = await _resolve(body.destination, geocoder)

    ranked = await service.safe_routes(origin, destination, session=body.session)
    best = ranked[0]
    return {
        "count": len(ranked),
        "status": "Rain Detected" if best.is_hazardous else "Route Clear",
        "routes": [r.to_dict() for r in ranked],
    }


# --------------------------------------------------------------------------
# Hazards
# --------------------------------------------------------------------------

@router.post("/hazards", status_code=201, tags=["Hazards"])
async def report_hazard(body: HazardReportIn, service: HazardService = Depends(get_hazard_service)):
    """
    @brief Submit a crowd hazard report

    @details
    Weather-linked categories (Waterlogging) are cross-checked against the
    current weather at the location to set the initial trust score.
    """
    try:
        category = HazardCategory.parse(body.category)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    report = await service.submit(Coordinate(body.latitude, body.longitude), category)
    return report.to_dict()


@router.post("/hazards/{report_id}/confirm", tags=["Hazards"])
def confirm_hazard(report_id: int, service: HazardService = Depends(get_hazard_service)):
    """
    @brief Peer confirmation: raises trust, verifies after enough confirmations
    """
    return service.confirm(report_id).to_dict()


@router.post("/hazards/{report_id}/reject", tags=["Hazards"])
def reject_hazard(report_id: int, service: HazardService = Depends(get_hazard_service)):
    """
    @brief Peer rejection: lowers trust, rejects below the low-trust threshold
    """
    return service.reject(report_id).to_dict()


@router.get("/hazards/nearby", tags=["Hazards"])
def nearby_hazards(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    radius_km: float = Query(5.0, gt=0.0, le=500.0),
    min_trust: float = Query(None, ge=0.0, le=1.0),
    service: HazardService = Depends(get_hazard_service),
):
    """
    @brief Active, trusted hazard reports around a point, soonest-expiring first
    """
    reports = service.nearby(Coordinate(lat, lon), radius_km=radius_km, min_trust=min_trust)
    return {"count": len(reports), "hazards": [r.to_dict() for r in reports]}


@router.get("/hazards/stream", tags=["Hazards"])
async def stream_hazards(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    radius_km: float = Query(5.0, gt=0.0, le=500.0),
    service: HazardService = Depends(get_hazard_service),
):
    """
    @brief Server-sent events stream of nearby hazards, one event per change
    """
    async def events():
        async for reports in service.watch(Coordinate(lat, lon), radius_km=radius_km):
            payload = json.dumps([r.to_dict() for r in reports])
            yield f"data: {payload}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")
