"""
@file main.py
@brief FastAPI application factory and root endpoint.
@details
Initializes the RainSafe FastAPI application with:
- Logging configuration
- Hazard store initialization
- Provider clients and engines (created once, shared via app.state)
- Middleware setup (CORS, request logging)
- Router registration (API, Health)

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import HTMLResponse

# Internal modules
from app.core.logging import setup_logging
from app.core import exceptions
from app.core import docs
from app.core.middleware import RequestLoggingMiddleware
from app.core.cache import cache
from app.api import routes
from app.api.endpoints import health
from app.db.seed import initialize_database
from app.services.forecast import ForecastClient
from app.services.geocoding import GeocodingClient
from app.services.hazard_store import HazardStore
from app.services.hazard_trust import HazardTrustScorer
from app.services.hazards import HazardService
from app.services.route_risk import RouteRiskEvaluator, SafeRouteService
from app.services.routing import RoutingClient

# Configure logging
logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    @brief Application lifecycle manager
    @details
    Handles startup and shutdown events:
    - Hazard store initialization (failure leaves routing available)
    - Redis connection
    - Provider clients and services
    """
    # Startup
    logger.info("=" * 60)
    logger.info("Starting RainSafe API...")
    logger.info("=" * 60)

    try:
        logger.info("Initializing database...")
        if initialize_database():
            logger.info("✓ Database initialization completed")
        else:
            logger.warning("⚠ Database initialization encountered issues")
    except Exception as e:
        logger.error(f"✗ Database initialization failed: {e}", exc_info=True)

    await cache.connect()

    forecast = ForecastClient()
    routing = RoutingClient()
    geocoder = GeocodingClient()

    app.state.geocoder = geocoder
    app.state.route_service = SafeRouteService(routing, RouteRiskEvaluator(forecast))
    app.state.hazard_service = HazardService(HazardStore(), HazardTrustScorer(forecast=forecast))
    logger.info("✓ Provider clients ready")

    yield

    # Shutdown
    await forecast.close()
    await routing.close()
    await geocoder.close()
    await cache.close()
    logger.info("RainSafe API shutdown completed")


## @brief FastAPI application instance
app = FastAPI(
    title="RainSafe API - Weather-Aware Routing",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url=None
)

# --------------------------------------------------------------------------
# Middleware
# --------------------------------------------------------------------------

# Production Note: Restrict allow_origins in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


# --------------------------------------------------------------------------
# Routers
# --------------------------------------------------------------------------

app.include_router(health.router)
app.include_router(routes.router)


# --------------------------------------------------------------------------
# Exception Handlers
# --------------------------------------------------------------------------

app.add_exception_handler(exceptions.RainSafeError, exceptions.rainsafe_exception_handler)
app.add_exception_handler(HTTPException, exceptions.http_exception_handler)
app.add_exception_handler(RequestValidationError, exceptions.validation_exception_handler)
app.add_exception_handler(Exception, exceptions.general_exception_handler)


@app.get("/", response_class=HTMLResponse)
def read_root():
    """
    @brief Serve root documentation page
    """
    return docs.get_root_documentation()
