"""
Test Configuration and Shared Fixtures

This module provides shared pytest fixtures and configuration for the test suite.
Includes an in-memory hazard store, provider HTTP mocks and sample routes.

Fixtures:
- test_engine: SQLite in-memory engine with the schema created
- session_factory / hazard_store: hazard store bound to test_engine
- fixed_now: deterministic clock for route evaluation
- make_route: factory for RouteCandidate objects
- mock_http: builds an httpx.AsyncClient backed by a request handler

Author: RainSafe Project
License: AGPL-3.0
"""

import os

# Must be set before app modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_OUTPUT", "stdout")

import logging
from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
import app.models.hazard  # noqa: F401
from app.models.route import Coordinate, RouteCandidate
from app.services.hazard_store import HazardStore

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


# Mark test categories for selective running
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (slower)")
    config.addinivalue_line("markers", "slow: Slow-running tests")
    config.addinivalue_line("markers", "database: Tests using the hazard store database")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "providers: Provider client tests")
    config.addinivalue_line("markers", "hazards: Hazard trust engine tests")
    config.addinivalue_line("markers", "seed: Database initialization tests")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        path = str(item.fspath)
        if "test_api" in path:
            item.add_marker(pytest.mark.api)
        elif any(name in path for name in ("test_forecast", "test_routing", "test_geocoding")):
            item.add_marker(pytest.mark.providers)
        elif "test_hazard" in path:
            item.add_marker(pytest.mark.hazards)
        elif "test_seed" in path:
            item.add_marker(pytest.mark.seed)

        # Mark as unit if no database marker
        if "database" not in item.keywords:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def test_engine():
    """SQLite in-memory engine shared across threads, schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def hazard_store(session_factory):
    """Hazard store over the in-memory database with a 24 h TTL."""
    return HazardStore(session_factory, ttl_hours=24)


@pytest.fixture
def fixed_now():
    return datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_route():
    """
    Factory for RouteCandidate objects.

    Returns:
        callable(n_points, duration_s, distance_m=10000.0, lat0=19.0) -> RouteCandidate
        with points spaced 0.01 degrees apart in latitude.
    """
    def _make(n_points: int, duration_s: float, distance_m: float = 10000.0, lat0: float = 19.0):
        points = tuple(Coordinate(lat0 + i * 0.01, 72.8) for i in range(n_points))
        return RouteCandidate(points=points, distance_m=distance_m, duration_s=duration_s)
    return _make


@pytest.fixture
def mock_http():
    """
    Build an httpx.AsyncClient whose requests are answered by `handler`.

    The handler receives an httpx.Request and returns an httpx.Response
    (or raises an httpx exception to simulate network failures).
    """
    def _build(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _build
