"""
Database models for the Cryptography Resource Manager auth service.

This module exports all SQLAlchemy models and the declarative base.
Import models from this module to ensure proper initialization.
"""

from src.models.audit_log import AuditLog
from src.models.base import Base
from src.models.bootstrap import BootstrapState
from src.models.enums import (
    AccountStatus,
    AuditAction,
    AuditStatus,
    Capability,
    UserRole,
)
from src.models.mixins import TimestampMixin
from src.models.otp import OTPRecord
from src.models.user import User, UserPermission

__all__ = [
    # Base
    "Base",
    # Mixins
    "TimestampMixin",
    # User models
    "User",
    "UserPermission",
    "UserRole",
    "AccountStatus",
    "Capability",
    # OTP models
    "OTPRecord",
    # Bootstrap
    "BootstrapState",
    # Audit models
    "AuditLog",
    "AuditAction",
    "AuditStatus",
]
