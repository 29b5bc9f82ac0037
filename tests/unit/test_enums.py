"""
Unit tests for enum models.

Tests the user and permission enums to ensure:
- Correct values are defined
- Every capability has a matching permission column
- Model helpers built on the enums work correctly
"""

from src.models.enums import AccountStatus, Capability, UserRole
from src.models.user import User, UserPermission
from src.schemas.permission import PermissionSetResponse


class TestUserRole:
    """Test cases for UserRole enum."""

    def test_user_role_values(self):
        assert UserRole.regular.value == "regular"
        assert UserRole.authorised.value == "authorised"
        assert UserRole.admin.value == "admin"

    def test_user_role_from_string(self):
        assert UserRole("admin") == UserRole.admin


class TestAccountStatus:
    """Test cases for AccountStatus enum."""

    def test_account_status_count(self):
        assert {status.value for status in AccountStatus} == {
            "active",
            "inactive",
            "suspended",
        }


class TestCapability:
    """Test cases for Capability enum."""

    def test_capability_count(self):
        assert len(Capability) == 14

    def test_every_capability_is_a_permission_column(self):
        columns = set(UserPermission.__table__.columns.keys())

        for capability in Capability:
            assert capability.value in columns

    def test_every_capability_is_in_response_schema(self):
        assert set(PermissionSetResponse.model_fields) == {c.value for c in Capability}


class TestUserPermission:
    """Test cases for the permission model helpers."""

    def test_new_permission_defaults_to_false(self):
        permission = UserPermission()

        assert not any(permission.snapshot().values())

    def test_has(self):
        permission = UserPermission(view_audit_logs=True)

        assert permission.has(Capability.view_audit_logs) is True
        assert permission.has(Capability.export_data) is False


class TestUserFlags:
    """Test cases for User properties."""

    def test_can_log_in_requires_verified_and_active(self):
        user = User(email_verified=True, account_status=AccountStatus.active)
        assert user.can_log_in is True

        user.email_verified = False
        assert user.can_log_in is False

        user.email_verified = True
        user.account_status = AccountStatus.suspended
        assert user.can_log_in is False

    def test_is_admin(self):
        assert User(role=UserRole.admin).is_admin is True
        assert User(role=UserRole.authorised).is_admin is False
