"""
Permission Pydantic schemas for API request/response handling.

Field names match the Capability enum values and UserPermission columns.
"""

from pydantic import BaseModel, ConfigDict

from src.models.enums import Capability


class PermissionSetResponse(BaseModel):
    """
    Stored capability flags of a user.

    Admins pass every check regardless of these values.
    """

    access_dashboard: bool = False
    manage_users: bool = False
    manage_content: bool = False
    update_content: bool = False
    view_analytics: bool = False
    create_events: bool = False
    edit_events: bool = False
    delete_events: bool = False
    create_resources: bool = False
    edit_resources: bool = False
    delete_resources: bool = False
    view_audit_logs: bool = False
    manage_permissions: bool = False
    export_data: bool = False

    model_config = ConfigDict(from_attributes=True)


class PermissionUpdate(BaseModel):
    """
    Partial update of capability flags.

    Omitted flags keep their stored value. Unknown flags are rejected.
    """

    access_dashboard: bool | None = None
    manage_users: bool | None = None
    manage_content: bool | None = None
    update_content: bool | None = None
    view_analytics: bool | None = None
    create_events: bool | None = None
    edit_events: bool | None = None
    delete_events: bool | None = None
    create_resources: bool | None = None
    edit_resources: bool | None = None
    delete_resources: bool | None = None
    view_audit_logs: bool | None = None
    manage_permissions: bool | None = None
    export_data: bool | None = None

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "access_dashboard": True,
                "view_audit_logs": True,
            }
        },
    )

    def changes(self) -> dict[Capability, bool]:
        """Flags that were provided, keyed by capability."""
        return {
            Capability(name): value
            for name, value in self.model_dump(exclude_none=True).items()
        }
