"""
Enums for user accounts, permissions and audit logging.

This module defines:
- UserRole: Coarse role assigned to every account (regular, authorised, admin)
- AccountStatus: Lifecycle state of an account (active, inactive, suspended)
- Capability: Fine-grained permission flags stored per user
- AuditAction: Kinds of security-relevant events recorded in the audit log
- AuditStatus: Outcome of an audited action

Role and status values are persisted as their lowercase string values.
"""

import enum


class UserRole(str, enum.Enum):
    """
    Coarse role of a user account.

    Values:
        regular: Default role for self-registered users
        authorised: Trusted contributor; capabilities still come from the
            per-user permission row
        admin: Passes every capability check regardless of stored flags
    """

    regular = "regular"
    authorised = "authorised"
    admin = "admin"


class AccountStatus(str, enum.Enum):
    """
    Lifecycle state of a user account.

    Values:
        active: May log in (once the email is verified)
        inactive: Registered but not yet verified, or disabled by an admin
        suspended: Locked after repeated failed password attempts
    """

    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class Capability(str, enum.Enum):
    """
    Fine-grained capabilities.

    Each value is the name of a boolean column on UserPermission.
    """

    access_dashboard = "access_dashboard"
    manage_users = "manage_users"
    manage_content = "manage_content"
    update_content = "update_content"
    view_analytics = "view_analytics"
    create_events = "create_events"
    edit_events = "edit_events"
    delete_events = "delete_events"
    create_resources = "create_resources"
    edit_resources = "edit_resources"
    delete_resources = "delete_resources"
    view_audit_logs = "view_audit_logs"
    manage_permissions = "manage_permissions"
    export_data = "export_data"


class AuditAction(str, enum.Enum):
    """
    Enumeration of audit log action types.

    These actions are logged for security monitoring.
    """

    # Authentication actions
    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"
    ACCOUNT_SUSPENDED = "ACCOUNT_SUSPENDED"

    # Registration and verification
    REGISTER = "REGISTER"
    EMAIL_VERIFIED = "EMAIL_VERIFIED"
    OTP_RESENT = "OTP_RESENT"

    # Password management
    PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
    PASSWORD_RESET = "PASSWORD_RESET"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"

    # Profile and authorization
    PROFILE_UPDATE = "PROFILE_UPDATE"
    PERMISSION_CHANGE = "PERMISSION_CHANGE"

    # Account administration
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    ADMIN_BOOTSTRAP = "ADMIN_BOOTSTRAP"


class AuditStatus(str, enum.Enum):
    """Status of the audited action."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
