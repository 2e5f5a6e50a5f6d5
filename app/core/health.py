"""
@file health.py
@brief System health checks and status monitoring

@details
Provides health checks for:
- Hazard store database connectivity
- Redis response cache connectivity

Route evaluation only needs the external providers, so a database outage
degrades the service (hazard features off) rather than taking it down.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import logging
from typing import Dict, Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.cache import cache

logger = logging.getLogger(__name__)


class HealthStatus:
    """Health status indicator for system components"""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


async def check_database() -> Dict[str, Any]:
    """
    @brief Check hazard store connectivity with `SELECT 1`
    """
    from app.db.database import engine

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {
            "status": HealthStatus.HEALTHY,
            "message": "Hazard store database is healthy",
            "component": "database"
        }
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": HealthStatus.UNHEALTHY,
            "message": "Hazard store database is unavailable",
            "component": "database",
            "error": str(e)
        }


async def check_cache() -> Dict[str, Any]:
    """
    @brief Check Redis cache connectivity
    @details Redis is optional; failures only degrade the service.
    """
    if not cache.client:
        return {
            "status": HealthStatus.DEGRADED,
            "message": "Redis cache is not connected (responses are not cached)",
            "component": "cache"
        }
    try:
        await cache.client.ping()
        return {
            "status": HealthStatus.HEALTHY,
            "message": "Redis cache is healthy",
            "component": "cache"
        }
    except Exception as e:
        logger.warning(f"Cache health check failed: {e}")
        return {
            "status": HealthStatus.DEGRADED,
            "message": "Redis cache is unavailable (running in degraded mode)",
            "component": "cache",
            "error": str(e)
        }


async def get_system_health() -> Dict[str, Any]:
    """
    @brief Overall status from component checks
    @details
    - HEALTHY: all components operational
    - DEGRADED: any component down; routes still served
    """
    db_status = await check_database()
    cache_status = await check_cache()

    if all(c["status"] == HealthStatus.HEALTHY for c in (db_status, cache_status)):
        overall_status = HealthStatus.HEALTHY
    else:
        overall_status = HealthStatus.DEGRADED

    return {
        "status": overall_status,
        "components": {
            "database": db_status,
            "cache": cache_status
        },
        "message": get_status_message(overall_status)
    }


def get_status_message(status: str) -> str:
    """Get human-readable status message"""
    messages = {
        HealthStatus.HEALTHY: "System is operational",
        HealthStatus.DEGRADED: "System is running with reduced functionality (hazard reports or caching unavailable)",
        HealthStatus.UNHEALTHY: "System is in maintenance mode"
    }
    return messages.get(status, "Unknown status")
