"""Standardized error handling for the API.

Business-rule failures of the booking engine (full slot, phase limit,
cancellation cutoff, ...) are not errors: they come back as
``{"success": false, "message": ..., "reason": ...}`` bodies. This module
covers everything else:

1. Exception classes for request and infrastructure errors
2. Exception handlers for FastAPI
3. The standard error response model

Usage:
    from forum.errors import NotFoundError

    if not event:
        raise NotFoundError(detail="Event not found", resource_type="event", resource_id=event_id)
"""

import logging
from typing import Any

import psycopg
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from psycopg_pool import PoolTimeout
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class NotFoundError(APIError):
    """Resource not found error (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class BadRequestError(APIError):
    """Invalid input rejected before any mutation (400)."""

    status_code = 400
    error = "bad_request"
    detail = "Invalid request"


class UnauthorizedError(APIError):
    """Missing or wrong admin token (401)."""

    status_code = 401
    error = "unauthorized"
    detail = "Authentication required"


class ConflictError(APIError):
    """Request conflicts with existing state (409)."""

    status_code = 409
    error = "conflict"
    detail = "Resource already exists"


class TooManyRequestsError(APIError):
    """Booking attempt rate limit exceeded (429)."""

    status_code = 429
    error = "too_many_requests"
    detail = "Too many attempts, slow down"


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


class DatabaseError(APIError):
    """Database error (500)."""

    status_code = 500
    error = "database_error"
    detail = "Database operation failed"


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    logger.warning(
        "API error: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def database_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Connection-level failures surface as a retryable 503."""
    logger.error("Database unavailable: %s (path=%s)", exc, request.url.path)
    return JSONResponse(
        status_code=503,
        content=ServiceUnavailableError(
            detail="Database temporarily unavailable, please retry"
        ).to_response().model_dump(exclude_none=True),
    )


async def database_error_handler(request: Request, exc: psycopg.Error) -> JSONResponse:
    """Any other driver error is an internal database failure."""
    logger.exception("Database error: %s (path=%s)", exc, request.url.path)
    return JSONResponse(
        status_code=500,
        content=DatabaseError().to_response().model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(psycopg.OperationalError, database_unavailable_handler)
    app.add_exception_handler(PoolTimeout, database_unavailable_handler)
    app.add_exception_handler(psycopg.Error, database_error_handler)
