"""
Shared slowapi limiter.

Keyed by client address. Storage is Redis unless RATE_LIMIT_STORAGE_URI
overrides it (``memory://`` for local runs and tests). Per-route limits
are applied with ``@limiter.limit(...)`` on the auth endpoints.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from src.core.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)
