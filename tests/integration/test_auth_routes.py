"""
Integration tests for authentication routes.

Tests cover:
- User registration
- Email verification with a one-time code
- Code resend
- User login and suspension
- Password reset
- Error cases and validation
"""

import pytest
from httpx import AsyncClient

from src.core.config import settings
from src.models.enums import AccountStatus
from src.models.user import User

PASSWORD = "pw123456"


async def _register(client: AsyncClient, email: str = "newuser@example.com"):
    return await client.post(
        "/api/auth/register",
        json={"email": email, "name": "New", "surname": "User", "password": PASSWORD},
    )


def _wrong(code: str) -> str:
    return "100000" if code != "100000" else "100001"


# ============================================================================
# Registration Tests
# ============================================================================
class TestRegistration:
    """Test user registration endpoint."""

    @pytest.mark.asyncio
    async def test_register_success(self, async_client: AsyncClient, email_provider):
        response = await _register(async_client)

        assert response.status_code == 201
        data = response.json()

        assert data["email"] == "newuser@example.com"
        assert isinstance(data["user_id"], int)
        assert "verification code" in data["message"]
        assert "otp" not in data
        assert len(email_provider.sent) == 1

    @pytest.mark.asyncio
    async def test_register_exposes_code_when_enabled(
        self, async_client: AsyncClient, email_provider, monkeypatch
    ):
        monkeypatch.setattr(settings, "expose_otp_in_response", True)

        response = await _register(async_client)

        assert response.status_code == 201
        assert response.json()["otp"] == email_provider.last_code("newuser@example.com")

    @pytest.mark.asyncio
    async def test_register_duplicate_email(
        self, async_client: AsyncClient, test_user: User
    ):
        response = await _register(async_client, email="testuser@example.com")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "DUPLICATE_EMAIL"
        assert data["meta"]["request_id"]

    @pytest.mark.asyncio
    async def test_register_weak_password(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/register",
            json={"email": "newuser@example.com", "name": "New", "password": "password"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "VALIDATION_ERROR"
        assert "digit" in str(data["error"]["details"])

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "name": "New", "password": PASSWORD},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_register_missing_name(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/register",
            json={"email": "newuser@example.com", "password": PASSWORD},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_register_email_failure(self, async_client: AsyncClient, email_provider):
        email_provider.fail = True

        response = await _register(async_client)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "REGISTRATION_FAILED"

        # Nothing was kept, so the same email can register once mail works again
        email_provider.fail = False
        assert (await _register(async_client)).status_code == 201


# ============================================================================
# Verification Tests
# ============================================================================
class TestVerifyOTP:
    """Test email verification endpoint."""

    @pytest.mark.asyncio
    async def test_verify_returns_session(self, async_client: AsyncClient, email_provider):
        await _register(async_client)
        code = email_provider.last_code("newuser@example.com")

        response = await async_client.post(
            "/api/auth/verify-otp",
            json={"email": "newuser@example.com", "otp": code},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.access_token_expire_minutes * 60
        assert data["access_token"]
        assert data["user"]["email_verified"] is True
        assert data["user"]["account_status"] == "active"
        assert data["permissions"]["manage_users"] is False

        me = await async_client.get(
            "/api/v1/users/me",
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_verify_wrong_code(self, async_client: AsyncClient, email_provider):
        await _register(async_client)
        code = email_provider.last_code("newuser@example.com")

        response = await async_client.post(
            "/api/auth/verify-otp",
            json={"email": "newuser@example.com", "otp": _wrong(code)},
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid or expired OTP"

    @pytest.mark.asyncio
    async def test_verify_locked_after_max_attempts(
        self, async_client: AsyncClient, email_provider
    ):
        await _register(async_client)
        code = email_provider.last_code("newuser@example.com")

        for _ in range(settings.otp_max_attempts):
            await async_client.post(
                "/api/auth/verify-otp",
                json={"email": "newuser@example.com", "otp": _wrong(code)},
            )

        response = await async_client.post(
            "/api/auth/verify-otp",
            json={"email": "newuser@example.com", "otp": code},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_verify_rejects_non_numeric_code(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/verify-otp",
            json={"email": "newuser@example.com", "otp": "abc123"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# ============================================================================
# Resend Tests
# ============================================================================
class TestResendOTP:
    """Test code resend endpoint."""

    @pytest.mark.asyncio
    async def test_resend_success(self, async_client: AsyncClient, email_provider):
        await _register(async_client)

        response = await async_client.post(
            "/api/auth/resend-otp", json={"email": "newuser@example.com"}
        )

        assert response.status_code == 200
        assert response.json()["sent"] is True
        assert "otp" not in response.json()
        assert len(email_provider.sent) == 2

    @pytest.mark.asyncio
    async def test_resend_unknown_email(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/resend-otp", json={"email": "nobody@example.com"}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_resend_already_verified(
        self, async_client: AsyncClient, test_user: User
    ):
        response = await async_client.post(
            "/api/auth/resend-otp", json={"email": "testuser@example.com"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ALREADY_VERIFIED"


# ============================================================================
# Login Tests
# ============================================================================
class TestLogin:
    """Test user login endpoint."""

    @pytest.mark.asyncio
    async def test_login_success(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == test_user.id
        assert data["user"]["last_login"] is not None
        assert "password_hash" not in data["user"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": "wrongpass1"},
        )

        assert response.status_code == 401
        data = response.json()
        assert data["error"]["code"] == "INVALID_CREDENTIALS"
        assert data["error"]["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_unknown_email_matches_wrong_password(
        self, async_client: AsyncClient
    ):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_unverified(self, async_client: AsyncClient):
        await _register(async_client)

        response = await async_client.post(
            "/api/auth/login",
            json={"email": "newuser@example.com", "password": PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "EMAIL_NOT_VERIFIED"

    @pytest.mark.asyncio
    async def test_login_suspends_after_repeated_failures(
        self, async_client: AsyncClient, test_user: User
    ):
        for _ in range(settings.max_login_attempts):
            response = await async_client.post(
                "/api/auth/login",
                json={"email": "testuser@example.com", "password": "wrongpass1"},
            )
            assert response.status_code == 401
            assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

        response = await async_client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ACCOUNT_SUSPENDED"

    @pytest.mark.asyncio
    async def test_login_inactive(self, async_client: AsyncClient, make_user):
        await make_user("idle@example.com", account_status=AccountStatus.inactive)

        response = await async_client.post(
            "/api/auth/login",
            json={"email": "idle@example.com", "password": PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ACCOUNT_INACTIVE"


# ============================================================================
# Password Reset Tests
# ============================================================================
class TestPasswordReset:
    """Test forgot-password and reset-password endpoints."""

    @pytest.mark.asyncio
    async def test_forgot_password_same_response_for_unknown_email(
        self, async_client: AsyncClient, test_user: User
    ):
        known = await async_client.post(
            "/api/auth/forgot-password", json={"email": "testuser@example.com"}
        )
        unknown = await async_client.post(
            "/api/auth/forgot-password", json={"email": "nobody@example.com"}
        )

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    @pytest.mark.asyncio
    async def test_forgot_password_never_exposes_code(
        self, async_client: AsyncClient, test_user: User, monkeypatch
    ):
        monkeypatch.setattr(settings, "expose_otp_in_response", True)

        response = await async_client.post(
            "/api/auth/forgot-password", json={"email": "testuser@example.com"}
        )

        assert "otp" not in response.json()

    @pytest.mark.asyncio
    async def test_reset_password_flow(
        self, async_client: AsyncClient, test_user: User, email_provider
    ):
        await async_client.post(
            "/api/auth/forgot-password", json={"email": "testuser@example.com"}
        )
        code = email_provider.last_code("testuser@example.com")

        response = await async_client.post(
            "/api/auth/reset-password",
            json={"email": "testuser@example.com", "otp": code, "password": "newpass99"},
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "access_token" not in response.json()

        old = await async_client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": PASSWORD},
        )
        new = await async_client.post(
            "/api/auth/login",
            json={"email": "testuser@example.com", "password": "newpass99"},
        )
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_reset_password_wrong_code(
        self, async_client: AsyncClient, test_user: User, email_provider
    ):
        await async_client.post(
            "/api/auth/forgot-password", json={"email": "testuser@example.com"}
        )
        code = email_provider.last_code("testuser@example.com")

        response = await async_client.post(
            "/api/auth/reset-password",
            json={"email": "testuser@example.com", "otp": _wrong(code), "password": "newpass99"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_OR_EXPIRED_OTP"

    @pytest.mark.asyncio
    async def test_reset_password_weak_password(
        self, async_client: AsyncClient, test_user: User
    ):
        response = await async_client.post(
            "/api/auth/reset-password",
            json={"email": "testuser@example.com", "otp": "123456", "password": "short"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
