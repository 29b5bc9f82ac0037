"""
Exception handlers for FastAPI application.

Every error leaves the API in the same envelope:

    {"error": {"code", "message", "details"}, "meta": {"request_id"}}

This module provides:
- Custom application exception handler (AppException)
- Pydantic validation error handler (RequestValidationError, returned as 400)
- Routing errors handler (404/405 raised by Starlette)
- General unhandled exception handler (Exception)
- Rate limit exceeded handler (RateLimitExceeded)
"""

import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.core.config import settings
from src.exceptions import AppException

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message, "details": details},
            "meta": {"request_id": _request_id(request)},
        },
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert domain exceptions to their declared status code."""
    logger.warning(
        f"Application exception: {exc.error_code} - {exc.message} "
        f"(request_id={_request_id(request)})"
    )
    return error_response(
        request, exc.status_code, exc.error_code, exc.message, exc.details
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Rejected input is a 400 like every other client error; each failing
    field is listed in ``details``.
    """
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Validation error on {len(errors)} field(s): "
        f"{[error['field'] for error in errors]} (request_id={_request_id(request)})"
    )

    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        errors,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap routing errors (unknown path, wrong method) in the envelope."""
    codes = {
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    }
    return error_response(
        request,
        exc.status_code,
        codes.get(exc.status_code, "HTTP_ERROR"),
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    The traceback is logged; the client only sees the exception text when
    DEBUG is on.
    """
    logger.error(
        f"Unexpected error: {exc} (request_id={_request_id(request)})",
        exc_info=True,
    )

    message = (
        str(exc) if settings.debug else "An unexpected error occurred. Please contact support."
    )
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message, {}
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with the limit that was hit."""
    client = request.client.host if request.client else "unknown"
    limit = getattr(exc, "detail", None)
    logger.warning(
        f"Rate limit exceeded: {client} {request.url.path} limit={limit} "
        f"(request_id={_request_id(request)})"
    )

    return error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMIT_EXCEEDED",
        "Rate limit exceeded. Please try again later.",
        {"limit": str(limit)} if limit else None,
    )
