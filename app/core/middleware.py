"""
@file middleware.py
@brief Request logging and last-resort database error handling

@details
Logs every request with its status and latency, and turns database errors
that escape a handler into a 503 maintenance response.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import DatabaseError, OperationalError

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    @brief Access log plus database-outage fallback
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except (OperationalError, DatabaseError) as e:
            logger.error(f"Database error handling {request.method} {request.url.path}: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "error": "Service unavailable",
                    "message": "Database connection failed. Hazard reports are temporarily unavailable.",
                    "status": "unavailable"
                }
            )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
        return response
