"""
User schemas: profile reads and edits, password change, list filters.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.security import validate_password_strength
from src.models.enums import AccountStatus, UserRole
from src.schemas.permission import PermissionSetResponse


def check_password_strength(value: str) -> str:
    """Reusable field validator body: raise ValueError for a weak password."""
    is_valid, error_message = validate_password_strength(value)
    if not is_valid:
        raise ValueError(error_message)
    return value


class UserUpdate(BaseModel):
    """Partial profile update. Omitted or blank fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    surname: str | None = Field(default=None, max_length=100)

    @field_validator("name", "surname")
    @classmethod
    def strip_whitespace(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class UserPasswordChange(BaseModel):
    current_password: str = Field(description="Current password, re-checked before the change")
    new_password: str = Field(description="At least 8 characters with letters and digits")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return check_password_strength(value)


class UserListItem(BaseModel):
    """Summary row for GET /users."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    surname: str | None = None
    role: UserRole
    account_status: AccountStatus
    created_at: datetime


class UserResponse(UserListItem):
    email_verified: bool = Field(description="Whether the email address is verified")
    last_login: datetime | None = Field(default=None, description="Last successful login")


class UserProfileResponse(UserResponse):
    """User details together with the stored permission flags."""

    permissions: PermissionSetResponse


class UserFilterParams(BaseModel):
    search: str | None = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="Case-insensitive match on email, name or surname",
    )
    account_status: AccountStatus | None = None


class UserAdminUpdate(UserUpdate):
    """
    Changes a user manager may make to another account.

    Omitted fields are left unchanged. Unknown fields are rejected.
    """

    role: UserRole | None = None
    account_status: AccountStatus | None = None

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"role": "authorised", "account_status": "active"}},
    )

    def changes(self) -> dict[str, object]:
        """Fields that were provided, with enum members kept as members."""
        return {
            field: getattr(self, field)
            for field in self.model_fields_set
            if getattr(self, field) is not None
        }
