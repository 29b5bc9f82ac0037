"""
Audit log schemas: the response shape and the list filters.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import AuditAction, AuditStatus


class AuditLogResponse(BaseModel):
    """One audit entry as returned by the audit log endpoints."""

    id: int
    user_id: int | None = Field(default=None, description="Acting user, if known")
    action: AuditAction
    entity_type: str = Field(description="Kind of entity acted on")
    entity_id: int | None = None
    old_values: dict[str, Any] | None = Field(
        default=None, description="Changed fields before the action"
    )
    new_values: dict[str, Any] | None = Field(
        default=None, description="Changed fields after the action"
    )
    description: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = Field(default=None, description="X-Request-ID of the request")
    status: AuditStatus
    error_message: str | None = None
    extra_metadata: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1042,
                "user_id": 7,
                "action": "PERMISSION_CHANGE",
                "entity_type": "user_permission",
                "entity_id": 12,
                "old_values": {"view_audit_logs": False},
                "new_values": {"view_audit_logs": True},
                "description": "Permissions updated for user 12",
                "ip_address": "192.168.1.100",
                "user_agent": "Mozilla/5.0",
                "request_id": "5f0c6c1e-8a5e-4f4e-9d3e-0b6f1d2c3a4b",
                "status": "SUCCESS",
                "error_message": None,
                "extra_metadata": None,
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class AuditLogFilterParams(BaseModel):
    """
    Query parameters for the audit log lists.

    ``user_id`` is ignored by the caller's own-log endpoint.
    """

    user_id: int | None = Field(default=None, description="Acting user")
    action: AuditAction | None = Field(default=None, description="Action type")
    status: AuditStatus | None = Field(default=None, description="SUCCESS or FAILURE")
    start_date: datetime | None = Field(
        default=None, description="Created at or after (ISO 8601)"
    )
    end_date: datetime | None = Field(
        default=None, description="Created at or before (ISO 8601)"
    )
