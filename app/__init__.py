"""
@file __init__.py
@brief RainSafe backend application package initialization

@details
Package defining the FastAPI application and supporting modules for
weather-aware route planning and crowd-sourced hazard reporting.

**Package Structure:**
- api/: FastAPI route handlers, request schemas and health endpoints
- core/: Configuration, logging, caching, errors and middleware
- models/: Route value types and the hazard report ORM model
- services/: Provider clients and the route-risk and hazard-trust engines
- db/: Database configuration, session management, and initialization
- utils/: Great-circle geometry helpers

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0

@see main for FastAPI application setup
@see api.routes for endpoint documentation
@see services.route_risk for the route risk engine
"""
