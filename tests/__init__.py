"""
Test Suite for RainSafe Backend

This package contains unit tests, integration tests, and fixtures for the
RainSafe weather-aware routing and hazard reporting service.

Test Categories:
- test_route_sampler / test_risk_classifier: pure route-risk helpers
- test_forecast / test_routing / test_geocoding: provider clients (mocked HTTP)
- test_route_risk: route evaluation, ranking and stale-request handling
- test_hazard_trust / test_hazard_store / test_hazard_query / test_hazards:
  hazard trust engine and persistence
- test_api: FastAPI endpoints
- conftest.py: Shared fixtures and test configuration

Running Tests:
    pytest              # Run all tests
    pytest -v           # Verbose output
    pytest tests/test_route_risk.py -v  # Run specific test file
    pytest --cov        # With coverage report

Author: RainSafe Project
License: AGPL-3.0
"""
