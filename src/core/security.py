"""
Credential primitives.

- Argon2id password hashing (cost parameters from settings)
- Password strength rules
- HS256 access tokens, the only session credential (no refresh flow)
- SHA-256 digests for one-time codes, compared in constant time
"""

import hashlib
import hmac
import logging
import re
import secrets
import uuid
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from jose import JWTError, jwt

from src.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE_ACCESS = "access"

_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"\d")

pwd_hasher = PasswordHasher(
    time_cost=settings.argon2_time_cost,
    memory_cost=settings.argon2_memory_cost,
    parallelism=settings.argon2_parallelism,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """Return an encoded ``$argon2id$...`` hash with its own random salt."""
    return pwd_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return pwd_hasher.verify(hashed_password, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """
    Hash of a random throwaway password, built with the live cost parameters.

    Verifying against it costs as much as a real check, so a login for an
    unknown email takes as long as one with a wrong password.
    """
    return pwd_hasher.hash(secrets.token_urlsafe(32))


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """
    Check ``password`` against the password policy.

    The policy is a minimum length (PASSWORD_MIN_LENGTH), at least one
    letter and at least one digit. Returns ``(True, None)`` or ``(False,
    reason)`` for the first rule that fails.

    Example:
        >>> validate_password_strength("password")
        (False, 'Password must contain at least one digit')
    """
    if len(password) < settings.password_min_length:
        return (
            False,
            f"Password must be at least {settings.password_min_length} characters long",
        )
    if not _LETTER.search(password):
        return False, "Password must contain at least one letter"
    if not _DIGIT.search(password):
        return False, "Password must contain at least one digit"
    return True, None


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Sign an access token carrying ``data`` (which must include ``sub``).

    Adds ``exp``, ``iat``, ``type`` and a random ``jti``. Lifetime is
    ACCESS_TOKEN_EXPIRE_MINUTES unless ``expires_delta`` is given.
    """
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        **data,
        "exp": issued_at + lifetime,
        "iat": issued_at,
        "type": TOKEN_TYPE_ACCESS,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Verify the signature and expiry of ``token`` and return its claims.

    Raises:
        JWTError: bad signature, malformed token, or ExpiredSignatureError
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise


def verify_token_type(token_data: dict[str, Any], expected_type: str) -> bool:
    return token_data.get("type") == expected_type


def hash_otp(otp: str) -> str:
    """SHA-256 hex digest of a one-time code. Codes are never stored in clear."""
    return hashlib.sha256(otp.encode()).hexdigest()


def verify_otp_hash(otp: str, otp_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(otp), otp_hash)
