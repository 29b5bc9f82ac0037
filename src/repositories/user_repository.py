"""
User repository for user-specific database operations.

This module provides database operations for the User model,
including authentication lookups, lockout counters and listing.
"""

from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.enums import AccountStatus, UserRole
from src.models.mixins import utcnow
from src.models.user import User
from src.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """
    Repository for User model operations.

    Extends BaseRepository with user-specific queries:
    - Email lookups (for authentication)
    - Atomic failed-login counter updates
    - Verification, status and password updates
    - Filtered listing for user management

    The user's permission row is loaded together with the user
    (selectin relationship), so callers can read ``user.permissions``
    without further queries.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserRepository.

        Args:
            session: Async database session
        """
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email address (exact, case-sensitive match).

        Args:
            email: Email address to search for

        Returns:
            User instance or None if not found

        Example:
            user = await user_repo.get_by_email("john@example.com")
            if user is None:
                raise InvalidCredentialsError()
        """
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        """
        Check if an email address is already registered.

        Args:
            email: Email address to check

        Returns:
            True if a user with this email exists
        """
        result = await self.session.execute(
            select(func.count()).select_from(User).where(User.email == email)
        )
        return result.scalar_one() > 0

    async def admin_exists(self) -> bool:
        """True if at least one user holds the admin role."""
        result = await self.session.execute(
            select(func.count()).select_from(User).where(User.role == UserRole.admin)
        )
        return result.scalar_one() > 0

    async def increment_login_attempts(self, user_id: int) -> int:
        """
        Atomically add one to the failed-login counter.

        Uses ``login_attempts = login_attempts + 1`` in SQL so concurrent
        failures are never lost to a read-modify-write race.

        Args:
            user_id: ID of the user

        Returns:
            The counter value after the increment
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(login_attempts=User.login_attempts + 1)
            .returning(User.login_attempts)
        )
        return result.scalar_one()

    async def record_successful_login(self, user: User) -> User:
        """
        Reset the failed-login counter and stamp the login time.

        Args:
            user: User who just authenticated

        Returns:
            Updated user
        """
        user.login_attempts = 0
        user.last_login = utcnow()
        return await self.update(user)

    async def set_account_status(self, user: User, status: AccountStatus) -> User:
        """
        Change the account status of a user.

        Args:
            user: User to update
            status: New status

        Returns:
            Updated user
        """
        user.account_status = status
        return await self.update(user)

    async def mark_email_verified(self, user: User) -> User:
        """
        Mark the user's email as verified and activate the account.

        Args:
            user: User who proved control of their email

        Returns:
            Updated user
        """
        user.email_verified = True
        user.account_status = AccountStatus.active
        return await self.update(user)

    async def set_password_hash(
        self,
        user: User,
        password_hash: str,
        changed_at: datetime | None = None,
    ) -> User:
        """
        Store a new password hash and stamp the change time.

        Args:
            user: User to update
            password_hash: Argon2id hash of the new password
            changed_at: Time of change (defaults to now)

        Returns:
            Updated user
        """
        user.password_hash = password_hash
        user.last_password_change = changed_at or utcnow()
        return await self.update(user)

    def _apply_filters(self, query, search: str | None, status: AccountStatus | None):
        if search:
            search_pattern = f"%{search}%"
            query = query.where(
                or_(
                    User.email.ilike(search_pattern),
                    User.name.ilike(search_pattern),
                    User.surname.ilike(search_pattern),
                )
            )
        if status is not None:
            query = query.where(User.account_status == status)
        return query

    async def filter_users(
        self,
        search: str | None = None,
        status: AccountStatus | None = None,
        offset: int = 0,
        limit: int = 100,
    ) -> list[User]:
        """
        Filter users with optional search and status, newest first.

        Args:
            search: Search term for email, name or surname
            status: Filter by account status
            offset: Number of records to skip (pagination)
            limit: Maximum number of records to return

        Returns:
            List of User instances matching the criteria
        """
        query = self._apply_filters(select(User), search, status)
        query = query.order_by(User.created_at.desc(), User.id.desc())
        query = query.offset(offset).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_filtered(
        self,
        search: str | None = None,
        status: AccountStatus | None = None,
    ) -> int:
        """
        Count users matching filter criteria.

        Used for pagination metadata in the user list.

        Args:
            search: Search term for email, name or surname
            status: Filter by account status

        Returns:
            Total count of users matching criteria
        """
        query = self._apply_filters(select(func.count()).select_from(User), search, status)
        result = await self.session.execute(query)
        return result.scalar_one()
