"""
Pydantic schemas for API request/response validation.

This package provides all Pydantic models used for:
- Request validation
- Response serialization
- API documentation
"""

from src.schemas.audit import AuditLogFilterParams, AuditLogResponse
from src.schemas.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    ResendOTPRequest,
    ResetPasswordRequest,
    SentResponse,
    SuccessMessageResponse,
    VerifyOTPRequest,
)
from src.schemas.common import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    SearchResult,
)
from src.schemas.permission import PermissionSetResponse, PermissionUpdate
from src.schemas.user import (
    UserAdminUpdate,
    UserFilterParams,
    UserListItem,
    UserPasswordChange,
    UserProfileResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    # Audit
    "AuditLogFilterParams",
    "AuditLogResponse",
    # Auth
    "AuthResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "RegisterResponse",
    "ResendOTPRequest",
    "ResetPasswordRequest",
    "SentResponse",
    "SuccessMessageResponse",
    "VerifyOTPRequest",
    # Common
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "SearchResult",
    # Permission
    "PermissionSetResponse",
    "PermissionUpdate",
    # User
    "UserAdminUpdate",
    "UserFilterParams",
    "UserListItem",
    "UserPasswordChange",
    "UserProfileResponse",
    "UserResponse",
    "UserUpdate",
]
