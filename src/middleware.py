"""
HTTP middleware.

This module provides:
- RequestIDMiddleware: per-request correlation id (request.state, logs, X-Request-ID)
- SecurityHeadersMiddleware: browser hardening headers, no-store on auth responses
- RequestLoggingMiddleware: one access log line per request
"""

import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.core.logging import request_id_ctx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Inbound ids are only trusted if they look like an opaque token
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assign a correlation id to every request.

    A well-formed X-Request-ID sent by a proxy is reused; anything else is
    replaced by a fresh UUID4. The id is exposed as ``request.state.request_id``
    (error envelopes, audit entries), bound to the logging context, and echoed
    in the X-Request-ID response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _REQUEST_ID_PATTERN.match(incoming) else str(uuid.uuid4())

        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Responses under ``no_store_prefix`` carry bearer tokens (and, in
    development, verification codes) and are marked uncacheable.
    """

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        # Swagger UI needs the CDN and inline scripts
        "Content-Security-Policy": "; ".join(
            [
                "default-src 'self'",
                "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
                "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
                "img-src 'self' data: https://fastapi.tiangolo.com",
                "frame-ancestors 'none'",
                "form-action 'self'",
            ]
        ),
    }

    def __init__(
        self,
        app: ASGIApp,
        enable_hsts: bool = False,
        no_store_prefix: str = "/api/auth",
    ):
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.no_store_prefix = no_store_prefix

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers.update(self.HEADERS)

        if request.url.path.startswith(self.no_store_prefix):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"

        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request once it has been answered.

    2xx/3xx log at INFO, 4xx at WARNING, 5xx and unhandled exceptions at
    ERROR. Health checks log at DEBUG so they do not flood the access log.
    The request id is added by the logging filter.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        method = request.method
        path = request.url.path
        client = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"{method} {path} raised after {time.perf_counter() - started:.3f}s "
                f"client={client}"
            )
            raise

        duration = time.perf_counter() - started
        status_code = response.status_code
        message = f"{method} {path} {status_code} {duration:.3f}s client={client}"

        if path.startswith("/health"):
            level = logging.DEBUG
        elif status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(level, message)

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response
