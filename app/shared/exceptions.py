"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BadRequestException(AppException):
    """Raised when input is well-formed but semantically invalid."""

    status_code = 400
    code = "bad_request"


class UnauthorizedException(AppException):
    """Raised when the caller has no valid session."""

    status_code = 401
    code = "unauthorized"


class InvalidLinkTokenException(AppException):
    """Raised for any parent link token that cannot be redeemed.

    Unknown, expired, reused, wrong-purpose and wrong-lesson tokens all
    produce the same response.
    """

    status_code = 401
    code = "invalid_token"

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class ForbiddenException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class TransitionConflictException(AppException):
    """Raised when a lesson is missing, foreign or in the wrong state."""

    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Lesson not found or action not allowed") -> None:
        super().__init__(message)


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class RateLimitException(AppException):
    """Raised when caller exceeded the request budget."""

    status_code = 429
    code = "rate_limited"


class ServiceUnavailableException(AppException):
    """Raised when a backing service is unreachable."""

    status_code = 503
    code = "service_unavailable"


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
        headers=getattr(exc, "headers", None),
    )


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "Invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid input"


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed input as 400."""
    return JSONResponse(
        status_code=400,
        content={"error": {"code": "invalid_input", "message": _format_validation_errors(exc)}},
    )


async def database_unavailable_handler(_: Request, exc: Exception) -> JSONResponse:
    """Map datastore connectivity failures to 503."""
    logger.error("Database unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content={"error": {"code": "service_unavailable", "message": "Service temporarily unavailable"}},
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OperationalError, database_unavailable_handler)
    app.add_exception_handler(InterfaceError, database_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
