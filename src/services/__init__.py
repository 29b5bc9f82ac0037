"""
Business logic services.

This module exports all service classes for business logic operations.
"""

from src.services.audit_service import AuditService, RequestContext
from src.services.auth_service import AuthService
from src.services.email_service import (
    ConsoleEmailProvider,
    EmailProvider,
    NotificationService,
    SMTPEmailProvider,
    create_email_provider,
)
from src.services.otp_cleanup import OTPCleanupTask
from src.services.otp_service import OTPService
from src.services.permission_service import Authorizer, PermissionService
from src.services.user_service import UserService

__all__ = [
    "AuditService",
    "AuthService",
    "Authorizer",
    "ConsoleEmailProvider",
    "EmailProvider",
    "NotificationService",
    "OTPCleanupTask",
    "OTPService",
    "PermissionService",
    "RequestContext",
    "SMTPEmailProvider",
    "UserService",
    "create_email_provider",
]
