"""
AuditLog model: the append-only security trail.

One row per security-relevant event: logins and failed logins, suspensions,
registration, verification, code re-issue, password resets and changes,
profile edits and permission changes. Rows are never updated or deleted by
the application.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base
from src.models.enums import AuditAction, AuditStatus
from src.models.mixins import utcnow

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base):
    """
    A recorded event.

    ``user_id`` is the actor, NULL when no account could be resolved (a
    login attempt for an unknown email). ``entity_type``/``entity_id`` name
    what was acted on, which differs from the actor for permission changes.
    ``old_values``/``new_values`` hold before/after snapshots of changed
    fields; client IP, user agent and request id come from the request.
    """

    __tablename__ = "audit_logs"

    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, name="audit_action_enum"), index=True
    )
    entity_type: Mapped[str] = mapped_column(String(50))
    entity_id: Mapped[Optional[int]] = mapped_column(Integer)

    old_values: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    new_values: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    description: Mapped[Optional[str]] = mapped_column(Text)

    ip_address: Mapped[Optional[str]] = mapped_column(String(45))  # fits IPv6
    user_agent: Mapped[Optional[str]] = mapped_column(String(500))
    request_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)

    status: Mapped[AuditStatus] = mapped_column(
        Enum(AuditStatus, name="audit_status_enum"),
        default=AuditStatus.SUCCESS,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    extra_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )

    __table_args__ = (
        Index("ix_audit_logs_user_date", "user_id", "created_at"),
        Index("ix_audit_logs_action_date", "action", "created_at"),
        Index(
            "ix_audit_logs_failures",
            "created_at",
            postgresql_where=text("status = 'FAILURE'"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"AuditLog(id={self.id}, user_id={self.user_id}, action={self.action}, "
            f"status={self.status})"
        )
