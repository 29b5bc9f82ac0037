"""
Permission repository for per-user capability rows.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.user import UserPermission
from src.repositories.base import BaseRepository


class PermissionRepository(BaseRepository[UserPermission]):
    """
    Repository for UserPermission model operations.

    Each user owns at most one row (unique user_id).
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize PermissionRepository.

        Args:
            session: Async database session
        """
        super().__init__(UserPermission, session)

    async def get_by_user_id(self, user_id: int) -> UserPermission | None:
        """
        Get the permission row for a user.

        Args:
            user_id: ID of the user

        Returns:
            UserPermission instance or None if the user has no row yet
        """
        result = await self.session.execute(
            select(UserPermission).where(UserPermission.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_default(self, user_id: int) -> UserPermission:
        """
        Insert an all-false permission row for a user.

        Args:
            user_id: ID of the user

        Returns:
            Persisted UserPermission instance
        """
        return await self.add(UserPermission(user_id=user_id))
