"""
Database repositories for the Cryptography Resource Manager auth service.

This module exports all repository classes for database operations.
"""

from src.repositories.audit_repository import AuditLogQuery, AuditLogRepository
from src.repositories.base import BaseRepository
from src.repositories.otp_repository import OTPRepository
from src.repositories.permission_repository import PermissionRepository
from src.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PermissionRepository",
    "OTPRepository",
    "AuditLogRepository",
    "AuditLogQuery",
]
