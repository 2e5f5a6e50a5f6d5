"""
@file health.py
@brief Health check API endpoints
@details
Endpoints for monitoring system status, readiness and liveness.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from app.core.health import get_system_health, HealthStatus

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """
    @brief Component health summary
    @details Returns 200 while routes can be served, 503 otherwise.
    """
    health = await get_system_health()
    status_code = 503 if health["status"] == HealthStatus.UNHEALTHY else 200
    return JSONResponse(status_code=status_code, content=health)


@router.get("/health/ready")
async def readiness_check():
    """
    @brief Readiness probe
    @details 200 only if every component, hazard store included, is up.
    """
    health = await get_system_health()

    if health["status"] == HealthStatus.HEALTHY:
        return {"ready": True, "status": "System is ready"}
    return JSONResponse(
        status_code=503,
        content={
            "ready": False,
            "status": "System is not ready",
            "reason": health["message"]
        }
    )


@router.get("/health/live")
async def liveness_check():
    """
    @brief Liveness probe
    """
    return {"alive": True, "status": "Application is running"}
