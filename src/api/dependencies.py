"""
FastAPI dependencies for authentication and authorization.

This module provides:
- Current user extraction from JWT, with permissions resolved
- Active user verification
- Capability-based access control
- Email provider and service construction
"""

import logging
from typing import Annotated, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database import get_db
from src.core.security import TOKEN_TYPE_ACCESS, decode_token, verify_token_type
from src.exceptions import InactiveAccountError, InvalidTokenError, TokenExpiredError
from src.models.enums import Capability
from src.models.user import User
from src.repositories.user_repository import UserRepository
from src.services import (
    AuditService,
    AuthService,
    Authorizer,
    EmailProvider,
    NotificationService,
    PermissionService,
    UserService,
    create_email_provider,
)

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI - this adds the padlock icon
security = HTTPBearer(
    scheme_name="Bearer",
    description="Enter your JWT access token",
    auto_error=False,
)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to extract and validate current user from JWT access token.

    This dependency:
    1. Extracts Bearer token from Authorization header
    2. Decodes and validates JWT
    3. Verifies token is an access token
    4. Retrieves user from database
    5. Resolves (lazily creating) the user's permission row

    Every route using this dependency checks the token; no path is exempt.

    Args:
        credentials: HTTP Bearer credentials from security scheme
        db: Database session

    Returns:
        User instance of authenticated user, with ``user.permissions`` loaded

    Raises:
        InvalidTokenError (401): If token is missing, invalid, or user not found
        TokenExpiredError (401): If token has expired
    """
    if not credentials:
        logger.warning("Authentication failed: missing Bearer token")
        raise InvalidTokenError("Missing authentication credentials")

    try:
        token_data = decode_token(credentials.credentials)
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError as e:
        logger.warning(f"Authentication failed: invalid JWT - {e}")
        raise InvalidTokenError("Invalid or expired token")

    if not verify_token_type(token_data, TOKEN_TYPE_ACCESS):
        logger.warning("Authentication failed: wrong token type")
        raise InvalidTokenError("Invalid token type")

    try:
        user_id = int(token_data.get("sub", ""))
    except (TypeError, ValueError):
        logger.warning(f"Authentication failed: invalid subject - {token_data.get('sub')}")
        raise InvalidTokenError("Invalid token payload")

    async with db.begin():
        user = await UserRepository(db).get_by_id(user_id)
        if user is None:
            logger.warning(f"Authentication failed: user not found - {user_id}")
            raise InvalidTokenError("User not found")
        await PermissionService(db).resolve(user)

    return user


async def require_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Dependency to ensure the user is verified and active.

    Suspended, inactive and unverified accounts are rejected even while
    they still hold an unexpired token.

    Raises:
        InactiveAccountError (403): If the account may not act
    """
    if not current_user.can_log_in:
        logger.warning(
            f"Access denied: user {current_user.id} is "
            f"{current_user.account_status.value} (verified={current_user.email_verified})"
        )
        raise InactiveAccountError()

    return current_user


def require_capability(capability: Capability) -> Callable:
    """
    Build a dependency that requires ``capability``.

    Usage:
        @router.get("/users")
        async def list_users(
            current_user: User = Depends(require_capability(Capability.manage_users)),
        ):
            ...
    """

    async def dependency(current_user: User = Depends(require_active_user)) -> User:
        Authorizer.require(current_user, capability)
        return current_user

    return dependency


# ============================================================================
# Service Dependencies
# ============================================================================


def get_email_provider(request: Request) -> EmailProvider:
    """
    Dependency returning the application's email provider.

    The provider is created in the lifespan and stored on app.state.
    """
    provider = getattr(request.app.state, "email_provider", None)
    if provider is None:
        provider = create_email_provider(settings)
        request.app.state.email_provider = provider
    return provider


def get_notification_service(
    provider: EmailProvider = Depends(get_email_provider),
) -> NotificationService:
    """Dependency to get NotificationService instance."""
    return NotificationService(provider)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> AuthService:
    """
    Dependency to get AuthService instance.

    Codes are echoed in responses only when EXPOSE_OTP_IN_RESPONSE is set.
    """
    return AuthService(
        db,
        notifier,
        expose_otp_in_response=settings.expose_otp_in_response,
    )


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency to get UserService instance."""
    return UserService(db)


def get_permission_service(db: AsyncSession = Depends(get_db)) -> PermissionService:
    """Dependency to get PermissionService instance."""
    return PermissionService(db)


def get_audit_service(db: AsyncSession = Depends(get_db)) -> AuditService:
    """Dependency to get AuditService instance."""
    return AuditService(db)


# Convenience type aliases for common dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
ActiveUser = Annotated[User, Depends(require_active_user)]
UserManager = Annotated[User, Depends(require_capability(Capability.manage_users))]
PermissionManager = Annotated[
    User, Depends(require_capability(Capability.manage_permissions))
]
AuditViewer = Annotated[User, Depends(require_capability(Capability.view_audit_logs))]
