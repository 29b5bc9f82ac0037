"""
Tests for the startup admin bootstrap hook.
"""

from unittest.mock import patch

import pytest
from sqlalchemy import select

from src.core.lifespan import bootstrap_admin
from src.models.enums import UserRole
from src.models.user import User


def _bootstrap_settings(mock_settings, password):
    mock_settings.bootstrap_admin_email = "root@example.com"
    mock_settings.bootstrap_admin_password = password
    mock_settings.bootstrap_admin_name = "Root"


async def _users(session_factory) -> list[User]:
    async with session_factory() as session:
        return list((await session.execute(select(User))).scalars().all())


class TestBootstrapAdmin:
    @pytest.mark.asyncio
    async def test_creates_admin_from_settings(self, session_factory):
        with patch("src.core.lifespan.settings") as mock_settings:
            _bootstrap_settings(mock_settings, "bootstrap123")
            await bootstrap_admin(session_factory)
            await bootstrap_admin(session_factory)

        users = await _users(session_factory)
        assert [(user.email, user.role) for user in users] == [
            ("root@example.com", UserRole.admin)
        ]

    @pytest.mark.asyncio
    async def test_rejected_configuration_does_not_stop_startup(self, session_factory):
        with patch("src.core.lifespan.settings") as mock_settings:
            _bootstrap_settings(mock_settings, "weak")
            await bootstrap_admin(session_factory)

        assert await _users(session_factory) == []
