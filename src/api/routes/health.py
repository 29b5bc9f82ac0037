"""
Health Check Endpoints
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from redis.asyncio import from_url as redis_from_url
from redis.exceptions import RedisError

from src.core.config import settings
from src.core.database import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


async def check_rate_limit_storage() -> str:
    """
    Ping the rate limiter's Redis storage.

    Returns:
        "ok", "ko", or "skipped" when the limiter does not use Redis
    """
    uri = settings.rate_limit_storage
    if not uri.startswith(("redis://", "rediss://")):
        return "skipped"

    client = redis_from_url(uri)
    try:
        await client.ping()
        return "ok"
    except (RedisError, OSError) as e:
        logger.error(f"Redis health check failed: {e}")
        return "ko"
    finally:
        await client.aclose()


@router.get("")
async def health_check() -> dict[str, str]:
    """
    Basic health check endpoint.

    Returns:
        Basic application information and status
    """
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
    }


@router.get("/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """
    Readiness check endpoint.

    Verifies database connectivity, the rate limiter's storage and the
    email provider.

    Returns:
        Detailed readiness status
    """
    sessionmaker = getattr(request.app.state, "sessionmaker", None)
    db_healthy = await check_database_connection(sessionmaker)

    provider = getattr(request.app.state, "email_provider", None)
    email_healthy = provider is not None and await provider.health_check()

    checks = {
        "database": "ok" if db_healthy else "ko",
        "redis": await check_rate_limit_storage(),
        "email": "ok" if email_healthy else "ko",
    }

    return {
        "status": "ready" if "ko" not in checks.values() else "degraded",
        "app": settings.app_name,
        "version": settings.version,
        "checks": checks,
    }
