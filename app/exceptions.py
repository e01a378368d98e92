"""
Exception taxonomy and the handlers that turn it into the JSON envelope.

Every error response has the shape {"success": false, "message": "..."}.
Messages are generic on purpose: raw driver/JWT errors are logged, never returned.
"""

import logging
from enum import Enum

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class SplitItError(Exception):
    """Base exception; carries the HTTP status and the client-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(SplitItError):
    """Missing or invalid request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request body"


class AuthFailure(str, Enum):
    MISSING_TOKEN = "missing-token"
    INVALID_TOKEN = "invalid-token"
    SERVICE_UNAVAILABLE = "service-unavailable"


_AUTH_RESPONSES = {
    AuthFailure.MISSING_TOKEN: (status.HTTP_401_UNAUTHORIZED, "No token provided"),
    AuthFailure.INVALID_TOKEN: (status.HTTP_401_UNAUTHORIZED, "Invalid or expired token"),
    # 500, not 401: a server without a verifier is misconfigured, the client did nothing wrong
    AuthFailure.SERVICE_UNAVAILABLE: (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Firebase authentication not initialized",
    ),
}


class AuthError(SplitItError):
    """Bearer token missing/invalid, or the identity verifier is not configured."""

    def __init__(self, reason: AuthFailure):
        self.reason = reason
        self.status_code, message = _AUTH_RESPONSES[reason]
        super().__init__(message)


class NotFoundError(SplitItError):
    """Resource absent, or owned by someone else (the two are indistinguishable)."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class StoreError(SplitItError):
    """Database I/O failure or timeout."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UnknownRouteError(SplitItError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Route not found"


class RateLimitError(SplitItError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests from this IP, please try again later."


def error_response(exc: SplitItError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def split_it_exception_handler(request: Request, exc: SplitItError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body parsing failures (malformed JSON, wrong field types) are plain 400s."""
    logger.info("Rejected body for %s %s: %s", request.method, request.url.path, exc.errors())
    return error_response(ValidationError())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing-level errors raised by Starlette (unknown path, wrong method)."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_response(UnknownRouteError())
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return error_response(SplitItError())
