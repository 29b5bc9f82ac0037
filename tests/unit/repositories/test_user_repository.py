"""
Unit tests for UserRepository.
"""

import pytest

from src.models.enums import AccountStatus, UserRole
from src.repositories.user_repository import UserRepository


class TestUserRepository:
    """Test user-specific queries."""

    @pytest.mark.asyncio
    async def test_get_by_email_is_case_sensitive(self, db_session, make_user):
        await make_user("ada@example.com")

        async with db_session.begin():
            repo = UserRepository(db_session)
            assert await repo.get_by_email("ada@example.com") is not None
            assert await repo.get_by_email("ADA@example.com") is None

    @pytest.mark.asyncio
    async def test_email_exists(self, db_session, make_user):
        await make_user("ada@example.com")

        async with db_session.begin():
            repo = UserRepository(db_session)
            assert await repo.email_exists("ada@example.com") is True
            assert await repo.email_exists("bob@example.com") is False

    @pytest.mark.asyncio
    async def test_admin_exists(self, db_session, make_user):
        await make_user("ada@example.com")

        async with db_session.begin():
            assert await UserRepository(db_session).admin_exists() is False

        await make_user("root@example.com", role=UserRole.admin)

        async with db_session.begin():
            assert await UserRepository(db_session).admin_exists() is True

    @pytest.mark.asyncio
    async def test_increment_login_attempts_returns_new_value(self, db_session, make_user):
        created = await make_user("ada@example.com")

        async with db_session.begin():
            repo = UserRepository(db_session)
            assert await repo.increment_login_attempts(created.id) == 1
            assert await repo.increment_login_attempts(created.id) == 2

    @pytest.mark.asyncio
    async def test_record_successful_login_resets_counter(self, db_session, make_user):
        created = await make_user("ada@example.com")

        async with db_session.begin():
            repo = UserRepository(db_session)
            await repo.increment_login_attempts(created.id)
            user = await repo.get_by_id(created.id)
            await repo.record_successful_login(user)

        assert user.login_attempts == 0
        assert user.last_login is not None

    @pytest.mark.asyncio
    async def test_mark_email_verified_activates(self, db_session, make_user):
        created = await make_user(
            "ada@example.com",
            email_verified=False,
            account_status=AccountStatus.inactive,
        )

        async with db_session.begin():
            repo = UserRepository(db_session)
            user = await repo.get_by_id(created.id)
            await repo.mark_email_verified(user)

        assert user.email_verified is True
        assert user.account_status == AccountStatus.active
        assert user.can_log_in is True

    @pytest.mark.asyncio
    async def test_count_filtered(self, db_session, make_user):
        await make_user("ada@example.com", name="Ada")
        await make_user("bob@example.com", name="Bob", account_status=AccountStatus.inactive)

        async with db_session.begin():
            repo = UserRepository(db_session)
            assert await repo.count_filtered() == 2
            assert await repo.count_filtered(status=AccountStatus.inactive) == 1
            assert await repo.count_filtered(search="ada") == 1
