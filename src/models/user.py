"""
User and UserPermission models.

This module defines:
- User: Account with credentials, role, verification and lockout state
- UserPermission: One row per user holding boolean capability flags

Architecture:
- The role is a coarse override: admins pass every capability check
- Everyone else is authorized by the flags on their UserPermission row
- The permission row is created together with the user, or lazily on first
  resolution if it is missing
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base
from src.models.enums import AccountStatus, Capability, UserRole
from src.models.mixins import TimestampMixin


def _enum_values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


# =============================================================================
# User Model
# =============================================================================


class User(Base, TimestampMixin):
    """
    User model for authentication and profile management.

    Attributes:
        id: Integer primary key
        email: Unique email address (compared case-sensitively)
        name: Given name
        surname: Optional family name
        password_hash: Argon2id hashed password
        role: Coarse role (regular, authorised, admin)
        email_verified: Set once the registration OTP is verified
        account_status: active, inactive or suspended
        login_attempts: Consecutive failed password attempts
        last_login: Timestamp of last successful login
        last_password_change: Timestamp of last password change or reset
        permissions: The user's capability row (loaded with the user)

    Lifecycle:
        Created inactive and unverified. Verification activates the account.
        Reaching the failed-attempt limit suspends it. A user manager can
        reinstate, re-role or delete the account; the auth workflow itself
        never deletes users.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    surname: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role_enum", values_callable=_enum_values),
        nullable=False,
        default=UserRole.regular,
        index=True,
    )

    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    account_status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, name="account_status_enum", values_callable=_enum_values),
        nullable=False,
        default=AccountStatus.inactive,
        index=True,
    )

    login_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    last_password_change: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    permissions: Mapped[Optional["UserPermission"]] = relationship(
        back_populates="user",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        """True if the role overrides all capability checks."""
        return self.role == UserRole.admin

    @property
    def can_log_in(self) -> bool:
        """True if the account is verified and active."""
        return self.email_verified and self.account_status == AccountStatus.active

    def __repr__(self) -> str:
        """String representation of User."""
        return f"User(id={self.id}, email={self.email}, role={self.role})"


# =============================================================================
# UserPermission Model
# =============================================================================


class UserPermission(Base, TimestampMixin):
    """
    Per-user capability flags.

    Column names match Capability values, so a capability can be read with
    ``getattr(permission, capability.value)``. All flags default to False.
    """

    __tablename__ = "user_permissions"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    access_dashboard: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    manage_users: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    manage_content: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    update_content: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    view_analytics: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    create_events: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edit_events: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    delete_events: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    create_resources: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edit_resources: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    delete_resources: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    view_audit_logs: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    manage_permissions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    export_data: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped["User"] = relationship(back_populates="permissions")

    def __init__(self, **kwargs) -> None:
        # Column defaults only apply at flush.
        for capability in Capability:
            kwargs.setdefault(capability.value, False)
        super().__init__(**kwargs)

    def has(self, capability: Capability) -> bool:
        """Return the stored flag for ``capability``."""
        return bool(getattr(self, capability.value))

    def snapshot(self) -> dict[str, bool]:
        """All flags as a plain dict (used for audit before/after values)."""
        return {capability.value: self.has(capability) for capability in Capability}

    def __repr__(self) -> str:
        """String representation of UserPermission."""
        granted = [name for name, value in self.snapshot().items() if value]
        return f"UserPermission(user_id={self.user_id}, granted={granted})"
