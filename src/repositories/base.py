"""
Base repository shared by all table-specific repositories.

Repositories never commit. Services open the transaction with
``async with session.begin():`` and repositories only flush, so several
repository calls commit or roll back together.
"""

from typing import Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Primary-key access and flushing for one model.

    Usage:
        class OTPRepository(BaseRepository[OTPRecord]):
            def __init__(self, session: AsyncSession):
                super().__init__(OTPRecord, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    async def add(self, instance: ModelType) -> ModelType:
        """Insert ``instance`` and flush so its id and defaults are populated."""
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def get_by_id(self, id: int, for_update: bool = False) -> ModelType | None:
        """
        Load a row by primary key.

        Args:
            id: Primary key
            for_update: Take a row lock (SELECT ... FOR UPDATE) for the rest
                of the transaction

        Returns:
            Model instance or None if not found
        """
        return await self.session.get(self.model, id, with_for_update=for_update or None)

    async def update(self, instance: ModelType) -> ModelType:
        """
        Flush attribute changes already applied to ``instance``.

        Example:
            user.name = "Ada"
            await user_repo.update(user)
        """
        await self.session.flush()
        return instance

    async def delete(self, instance: ModelType) -> None:
        """Delete ``instance`` (and its ORM-cascaded children) and flush."""
        await self.session.delete(instance)
        await self.session.flush()
