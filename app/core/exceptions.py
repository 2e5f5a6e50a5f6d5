"""
@file exceptions.py
@brief Domain error taxonomy and centralized exception handlers
@details
Defines the errors raised by provider clients, engines and the hazard store,
and provides consistent JSON error responses for them, for HTTP exceptions,
validation errors and unexpected server errors.

**Taxonomy:**
- UnavailableError: network failure, timeout or non-success status
- NotFoundError: geocoding/routing yielded zero results
- MalformedResponseError: provider answered with something unparseable

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import logging
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi import Request

logger = logging.getLogger(__name__)


class RainSafeError(Exception):
    """Base class for all service errors."""

    status_code = 500
    message = "Request failed"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class ProviderError(RainSafeError):
    """An external provider (routing, forecast, geocoding) failed."""

    def __init__(self, provider: str, detail: str = ""):
        super().__init__(f"{provider}: {detail}" if detail else provider)
        self.provider = provider


class UnavailableError(ProviderError):
    status_code = 503
    message = "Service temporarily unavailable. Please try again."


class NotFoundError(ProviderError):
    status_code = 404
    message = "No results found"


class MalformedResponseError(ProviderError):
    status_code = 502
    message = "Upstream provider returned an unreadable response"


class RouteUnreachableError(NotFoundError):
    message = "Destination unreachable by road"


class HazardStoreError(RainSafeError):
    status_code = 503
    message = "Hazard store is unavailable"


class HazardNotFoundError(RainSafeError):
    status_code = 404
    message = "Hazard report not found"


class InvalidTransitionError(RainSafeError):
    status_code = 409
    message = "Transition not allowed"


class StaleRequestError(RainSafeError):
    status_code = 409
    message = "Request superseded by a newer one"


class InvalidLocationError(RainSafeError):
    status_code = 422
    message = "Please enter a valid location name"


async def rainsafe_exception_handler(request: Request, exc: RainSafeError):
    """
    @brief Translate domain errors into the common error envelope
    @details
    Unavailable errors are marked retryable so clients can offer a retry.
    """
    if exc.status_code >= 500:
        logger.warning(f"{type(exc).__name__} handling {request.url.path}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "status_code": exc.status_code,
            "message": exc.message,
            "detail": exc.detail,
            "retryable": isinstance(exc, (UnavailableError, HazardStoreError)),
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    @brief Custom HTTP exception handler
    @details Provides consistent error responses across the API.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": str(exc.detail),
            "status_code": exc.status_code,
            "message": f"Request failed with HTTP {exc.status_code}"
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    @brief Custom validation error handler
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "details": exc.errors(),
            "message": "Request validation failed. Check parameters and try again."
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    @brief Catch-all exception handler
    @details
    Logs full error for debugging while returning safe message to client.
    """
    logger.exception(f"Unexpected error handling {request.url}: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later.",
            "status": "error"
        }
    )
