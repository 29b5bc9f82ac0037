"""
FastAPI application entry point.

Route layout:
    /                       service banner
    /health, /health/ready  liveness and readiness checks
    /api/auth/...           registration, verification, login, password reset
    /api/v1/users/...       profile and user/permission management
    /api/v1/audit-logs/...  audit trail

Run with ``uvicorn src.main:app``.
"""

import logging

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.routes import audit_logs, auth, health, root, users
from src.core.config import settings
from src.core.handlers import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    rate_limit_handler,
    validation_exception_handler,
)
from src.core.lifespan import lifespan
from src.core.logging import setup_logging
from src.core.rate_limit import limiter
from src.exceptions import AppException
from src.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)

setup_logging()
logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def register_middleware(app: FastAPI) -> None:
    """
    Install middleware. The last one added is the outermost.

    Resulting order for a request: CORS -> security headers -> request id
    -> request logging -> routes, so every log line and error envelope
    already has the request id.
    """
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


def build_api_router() -> APIRouter:
    v1_router = APIRouter(prefix="/v1")
    v1_router.include_router(users.router)
    v1_router.include_router(audit_logs.router)

    api_router = APIRouter(prefix="/api")
    api_router.include_router(auth.router)
    api_router.include_router(v1_router)
    return api_router


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description=settings.description,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    application.state.limiter = limiter

    register_exception_handlers(application)
    register_middleware(application)

    application.include_router(root.router)
    application.include_router(health.router)
    application.include_router(build_api_router())

    logger.info(f"{settings.app_name} {settings.version} created ({settings.environment})")
    return application


app = create_app()
