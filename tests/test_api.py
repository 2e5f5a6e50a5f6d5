"""
API Endpoint Tests

Tests for the FastAPI endpoints of the RainSafe backend.
Covers request/response handling, error mapping and validation. Services
are replaced through dependency overrides; no provider is contacted.

Test Classes:
- TestRootEndpoint: GET / documentation page
- TestGeocodeEndpoints: GET /geocode and /geocode/suggest
- TestSafeRoutesEndpoint: POST /routes/safe
- TestHazardEndpoints: hazard submission, verification and lookup
- TestHealthEndpoints: health, readiness and liveness probes

Author: RainSafe Project
License: AGPL-3.0
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.api.routes import get_geocoder, get_hazard_service, get_route_service
from app.core.cache import cache
from app.core.exceptions import (
    HazardNotFoundError,
    HazardStoreError,
    InvalidLocationError,
    InvalidTransitionError,
    NotFoundError,
    RouteUnreachableError,
    StaleRequestError,
    UnavailableError,
)
from app.core.health import HealthStatus
from app.main import app
from app.models.hazard import HazardCategory, HazardReport, HazardStatus
from app.models.route import (
    AnalyzedRoute,
    Coordinate,
    RiskLevel,
    RouteCandidate,
    WeatherAlert,
    WeatherSample,
)
from app.services.geocoding import GeocodingResult

client = TestClient(app)

ORIGIN = {"latitude": 19.076, "longitude": 72.8777}
DESTINATION = {"latitude": 18.5204, "longitude": 73.8567}


def sample_report(**overrides):
    fields = dict(
        id=7,
        latitude=19.0176,
        longitude=72.8562,
        category=HazardCategory.WATERLOGGING,
        severity=1,
        status=HazardStatus.PENDING,
        disputed=False,
        trust_score=0.75,
        confirmation_count=0,
        rejection_count=0,
        created_at=datetime(2026, 10, 19, 8, 0),
        expires_at=datetime(2026, 10, 20, 8, 0),
    )
    fields.update(overrides)
    return HazardReport(**fields)


def analyzed_route(duration, hazardous):
    route = RouteCandidate(
        points=(Coordinate(19.076, 72.8777), Coordinate(18.5204, 73.8567)),
        distance_m=150000.0,
        duration_s=duration,
    )
    alerts = ()
    if hazardous:
        alerts = (WeatherAlert(
            point=route.points[1],
            sample=WeatherSample(61, 24.0, datetime(2026, 10, 19, 9, 5, tzinfo=timezone.utc)),
            description="Rain",
        ),)
    return AnalyzedRoute(
        route=route,
        is_hazardous=hazardous,
        risk_level=RiskLevel.HIGH if hazardous else RiskLevel.SAFE,
        alerts=alerts,
    )


@pytest.fixture
def geocoder():
    mock = MagicMock()
    mock.geocode = AsyncMock(return_value=Coordinate(18.5204, 73.8567))
    mock.suggest = AsyncMock(return_value=[])
    app.dependency_overrides[get_geocoder] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_geocoder, None)


@pytest.fixture
def route_service():
    mock = MagicMock()
    mock.safe_routes = AsyncMock(return_value=[analyzed_route(1000, False)])
    app.dependency_overrides[get_route_service] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_route_service, None)


@pytest.fixture
def hazard_service():
    mock = MagicMock()
    mock.submit = AsyncMock(return_value=sample_report())
    app.dependency_overrides[get_hazard_service] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_hazard_service, None)


@pytest.fixture(autouse=True)
def no_redis():
    """Run every request with the response cache missing."""
    with patch.object(cache, "get", AsyncMock(return_value=None)), \
         patch.object(cache, "set", AsyncMock(return_value=None)):
        yield


class TestRootEndpoint:
    """Test GET / documentation endpoint."""

    def test_root_returns_html(self):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "RainSafe API" in response.text

    def test_root_documents_endpoints(self):
        response = client.get("/")
        assert "/routes/safe" in response.text
        assert "/hazards/nearby" in response.text


class TestGeocodeEndpoints:
    """Test place search endpoints."""

    def test_geocode_success(self, geocoder):
        response = client.get("/geocode", params={"q": "Pune"})

        assert response.status_code == 200
        assert response.json() == {"query": "Pune", "latitude": 18.5204, "longitude": 73.8567}
        geocoder.geocode.assert_awaited_once_with("Pune")

    def test_geocode_invalid_location(self, geocoder):
        geocoder.geocode.side_effect = InvalidLocationError("'rain' is not a place name")
        response = client.get("/geocode", params={"q": "rain"})

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "InvalidLocationError"
        assert data["message"] == "Please enter a valid location name"
        assert data["retryable"] is False

    def test_geocode_not_found(self, geocoder):
        geocoder.geocode.side_effect = NotFoundError("geocoding", "no match for 'Atlantis'")
        response = client.get("/geocode", params={"q": "Atlantis"})
        assert response.status_code == 404

    def test_geocode_provider_down_is_retryable(self, geocoder):
        geocoder.geocode.side_effect = UnavailableError("geocoding", "HTTP 503")
        response = client.get("/geocode", params={"q": "Pune"})

        assert response.status_code == 503
        assert response.json()["retryable"] is True

    def test_geocode_requires_query(self, geocoder):
        response = client.get("/geocode")
        assert response.status_code == 422
        assert response.json()["error"] == "Validation error"

    def test_suggest(self, geocoder):
        geocoder.suggest.return_value = [
            GeocodingResult(Coordinate(18.5204, 73.8567), "Pune, Maharashtra, India")
        ]
        response = client.get("/geocode/suggest", params={"q": "Pun"})

        assert response.status_code == 200
        data = response.json()
        assert data["suggestions"][0]["display_name"] == "Pune, Maharashtra, India"
        cache.set.assert_awaited_once()

    def test_suggest_served_from_cache(self, geocoder):
        cache.get.return_value = {"query": "Pun", "suggestions": []}
        response = client.get("/geocode/suggest", params={"q": "Pun"})

        assert response.status_code == 200
        geocoder.suggest.assert_not_awaited()


class TestSafeRoutesEndpoint:
    """Test POST /routes/safe."""

    def test_clear_route(self, geocoder, route_service):
        response = client.post("/routes/safe", json={"origin": ORIGIN, "destination": DESTINATION})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Route Clear"
        assert data["count"] == 1
        assert data["routes"][0]["risk_level"] == "Safe"
        assert data["routes"][0]["risk_color"] == "Green"
        geocoder.geocode.assert_not_awaited()

    def test_rain_detected_when_best_route_hazardous(self, geocoder, route_service):
        route_service.safe_routes.return_value = [analyzed_route(900, True)]
        response = client.post("/routes/safe", json={"origin": ORIGIN, "destination": DESTINATION})

        data = response.json()
        assert data["status"] == "Rain Detected"
        alert = data["routes"][0]["alerts"][0]
        assert alert["description"] == "Rain"
        assert alert["time"] == "9:05"
        assert alert["arrival"] == "2026-10-19T09:05:00+00:00"
        assert data["routes"][0]["risk_color"] == "Red"

    def test_place_names_are_geocoded(self, geocoder, route_service):
        response = client.post(
            "/routes/safe",
            json={"origin": ORIGIN, "destination": {"query": "Pune"}, "session": "driver-1"},
        )

        assert response.status_code == 200
        geocoder.geocode.assert_awaited_once_with("Pune")
        route_service.safe_routes.assert_awaited_once_with(
            Coordinate(19.076, 72.8777), Coordinate(18.5204, 73.8567), session="driver-1"
        )

    def test_missing_location(self, geocoder, route_service):
        response = client.post("/routes/safe", json={"origin": ORIGIN, "destination": {}})
        assert response.status_code == 422

    def test_out_of_range_coordinates(self, geocoder, route_service):
        response = client.post(
            "/routes/safe",
            json={"origin": {"latitude": 123.0, "longitude": 0.0}, "destination": DESTINATION},
        )
        assert response.status_code == 422

    def test_unreachable(self, geocoder, route_service):
        route_service.safe_routes.side_effect = RouteUnreachableError("routing", "no road route")
        response = client.post("/routes/safe", json={"origin": ORIGIN, "destination": DESTINATION})

        assert response.status_code == 404
        assert response.json()["message"] == "Destination unreachable by road"

    def test_stale_request(self, geocoder, route_service):
        route_service.safe_routes.side_effect = StaleRequestError("request #1 superseded")
        response = client.post("/routes/safe", json={"origin": ORIGIN, "destination": DESTINATION})
        assert response.status_code == 409


class TestHazardEndpoints:
    """Test hazard endpoints."""

    def test_report_hazard(self, hazard_service):
        response = client.post(
            "/hazards", json={"latitude": 19.0176, "longitude": 72.8562, "category": "Waterlogging"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 7
        assert data["status"] == "pending"
        assert data["trust_score"] == 0.75
        hazard_service.submit.assert_awaited_once_with(
            Coordinate(19.0176, 72.8562), HazardCategory.WATERLOGGING
        )

    def test_report_accepts_spaced_category(self, hazard_service):
        response = client.post(
            "/hazards", json={"latitude": 19.0, "longitude": 72.8, "category": "Road Block"}
        )
        assert response.status_code == 201
        assert hazard_service.submit.await_args.args[1] is HazardCategory.ROAD_BLOCK

    def test_report_unknown_category(self, hazard_service):
        response = client.post(
            "/hazards", json={"latitude": 19.0, "longitude": 72.8, "category": "Pothole"}
        )
        assert response.status_code == 422
        hazard_service.submit.assert_not_awaited()

    def test_report_store_down(self, hazard_service):
        hazard_service.submit.side_effect = HazardStoreError("create failed")
        response = client.post(
            "/hazards", json={"latitude": 19.0, "longitude": 72.8, "category": "Accident"}
        )

        assert response.status_code == 503
        assert response.json()["retryable"] is True

    def test_confirm(self, hazard_service):
        hazard_service.confirm.return_value = sample_report(
            status=HazardStatus.VERIFIED, trust_score=1.0, confirmation_count=3
        )
        response = client.post("/hazards/7/confirm")

        assert response.status_code == 200
        assert response.json()["status"] == "verified"
        hazard_service.confirm.assert_called_once_with(7)

    def test_confirm_unknown(self, hazard_service):
        hazard_service.confirm.side_effect = HazardNotFoundError("no hazard report with id 9")
        assert client.post("/hazards/9/confirm").status_code == 404

    def test_reject_terminal(self, hazard_service):
        hazard_service.reject.side_effect = InvalidTransitionError("cannot reject a report in status 'rejected'")
        assert client.post("/hazards/7/reject").status_code == 409

    def test_nearby(self, hazard_service):
        hazard_service.nearby.return_value = [sample_report()]
        response = client.get("/hazards/nearby", params={"lat": 19.0, "lon": 72.85, "radius_km": 3})

        assert response.status_code == 200
        assert response.json()["count"] == 1
        hazard_service.nearby.assert_called_once_with(
            Coordinate(19.0, 72.85), radius_km=3.0, min_trust=None
        )

    def test_nearby_validates_coordinates(self, hazard_service):
        response = client.get("/hazards/nearby", params={"lat": 95, "lon": 72.85})
        assert response.status_code == 422


class TestHealthEndpoints:
    """Test health probes."""

    def test_liveness(self):
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["alive"] is True

    @patch("app.api.endpoints.health.get_system_health")
    def test_degraded_still_serves(self, mock_health):
        mock_health.return_value = {"status": HealthStatus.DEGRADED, "components": {}, "message": "x"}

        assert client.get("/health").status_code == 200
        assert client.get("/health/ready").status_code == 503

    @patch("app.api.endpoints.health.get_system_health")
    def test_ready_when_healthy(self, mock_health):
        mock_health.return_value = {"status": HealthStatus.HEALTHY, "components": {}, "message": "ok"}

        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True
