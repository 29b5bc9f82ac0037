"""
User management service for profile management and user lookup.

This module provides:
- Get own profile with permissions
- Update own profile (audited)
- List users with pagination and filters
- Get user by ID
- Change or delete another user's account (audited)
- One-time creation of the first administrator
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.security import hash_password, validate_password_strength
from src.exceptions import (
    DuplicateEmailError,
    InsufficientPermissionsError,
    NotFoundError,
    ValidationError,
)
from src.models.bootstrap import BootstrapState
from src.models.enums import AccountStatus, AuditAction, UserRole
from src.models.user import User, UserPermission
from src.repositories.otp_repository import OTPRepository
from src.repositories.user_repository import UserRepository
from src.schemas.common import SearchResult
from src.services.audit_service import AuditService, RequestContext
from src.services.permission_service import PermissionService

logger = logging.getLogger(__name__)


class UserService:
    """
    Service class for user management operations.

    This service handles:
    - Profile retrieval and updates for the authenticated user
    - User listing and lookup for user managers
    - Role and status changes, and deletion, by user managers
    - The one-time admin bootstrap run at startup

    Capability checks happen in the API dependencies before these
    methods are called.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize UserService with database session.

        Args:
            session: Async database session
        """
        self.session = session
        self.user_repo = UserRepository(session)
        self.otp_repo = OTPRepository(session)
        self.permission_service = PermissionService(session)
        self.audit_service = AuditService(session)

    async def get_profile(self, user: User) -> User:
        """
        Return the user with their permission row resolved.

        Args:
            user: Authenticated user

        Returns:
            The same user, with ``user.permissions`` loaded
        """
        if user.permissions is None:
            async with self.session.begin():
                await self.permission_service.resolve(user)
        return user

    async def update_profile(
        self,
        user: User,
        name: str | None = None,
        surname: str | None = None,
        context: RequestContext | None = None,
    ) -> User:
        """
        Update the caller's name and/or surname.

        Fields left as None are unchanged. Changes are audit-logged with
        before/after values.

        Args:
            user: Authenticated user
            name: New given name
            surname: New family name
            context: Request context for the audit entry

        Returns:
            Updated user
        """
        updates = {
            field: value
            for field, value in (("name", name), ("surname", surname))
            if value is not None and getattr(user, field) != value
        }
        if not updates:
            return user

        old_values = {field: getattr(user, field) for field in updates}

        async with self.session.begin():
            for field, value in updates.items():
                setattr(user, field, value)
            await self.user_repo.update(user)

        logger.info(f"User {user.id} updated profile fields: {sorted(updates)}")

        await self.audit_service.record(
            user_id=user.id,
            action=AuditAction.PROFILE_UPDATE,
            entity_type="user",
            entity_id=user.id,
            description="User updated their profile",
            old_values=old_values,
            new_values=updates,
            context=context,
        )

        return user

    async def list_users(
        self,
        search: str | None = None,
        status: AccountStatus | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> SearchResult[User]:
        """
        List users with optional search and status filter, newest first.

        Args:
            search: Search term for email, name or surname
            status: Filter by account status
            offset: Number of records to skip
            limit: Page size

        Returns:
            SearchResult with the page of users and the total count
        """
        async with self.session.begin():
            users = await self.user_repo.filter_users(
                search=search, status=status, offset=offset, limit=limit
            )
            total = await self.user_repo.count_filtered(search=search, status=status)

        return SearchResult[User](items=users, total=total)

    async def get_user(self, user_id: int) -> User:
        """
        Get a user by ID.

        Args:
            user_id: ID of the user

        Returns:
            User instance

        Raises:
            NotFoundError: If the user does not exist
        """
        async with self.session.begin():
            user = await self.user_repo.get_by_id(user_id)

        if user is None:
            logger.warning(f"User {user_id} not found")
            raise NotFoundError("User")

        return user

    # -------------------------------------------------------------------------
    # Account administration
    # -------------------------------------------------------------------------

    @staticmethod
    def _admin_snapshot(user: User) -> dict[str, Any]:
        return {
            "name": user.name,
            "surname": user.surname,
            "role": user.role.value,
            "account_status": user.account_status.value,
        }

    @staticmethod
    def _check_can_administer(actor: User, target: User, new_role: UserRole | None) -> None:
        """
        Only administrators may touch admin accounts or hand out the admin role.

        Raises:
            InsufficientPermissionsError: If ``actor`` may not change ``target``
        """
        if actor.is_admin:
            return
        if target.is_admin or new_role == UserRole.admin:
            logger.warning(f"User {actor.id} tried to administer admin-level account {target.id}")
            raise InsufficientPermissionsError("Only administrators can manage admin accounts")

    async def update_user(
        self,
        user_id: int,
        changes: dict[str, Any],
        actor: User,
        context: RequestContext | None = None,
    ) -> User:
        """
        Change another user's name, role or account status.

        Fields missing from ``changes`` keep their stored value. Moving an
        account to ``active`` clears its failed-login counter, so a user
        suspended by the lockout can sign in again once reinstated. The
        change is audit-logged with before/after snapshots.

        Args:
            user_id: ID of the user to change
            changes: Subset of name, surname, role and account_status
            actor: User making the change
            context: Request context for the audit entry

        Returns:
            The updated user

        Raises:
            NotFoundError: If the user does not exist
            InsufficientPermissionsError: If the actor changes their own role
                or status, or a non-admin touches an admin account
        """
        if user_id == actor.id and ({"role", "account_status"} & changes.keys()):
            raise InsufficientPermissionsError("You cannot change your own role or account status")

        async with self.session.begin():
            user = await self.user_repo.get_by_id(user_id, for_update=True)
            if user is None:
                raise NotFoundError("User")
            self._check_can_administer(actor, user, changes.get("role"))

            old_values = self._admin_snapshot(user)
            updates = {
                field: value for field, value in changes.items() if getattr(user, field) != value
            }
            if not updates:
                return user

            for field, value in updates.items():
                setattr(user, field, value)
            if updates.get("account_status") == AccountStatus.active:
                user.login_attempts = 0
            await self.user_repo.update(user)

            new_values = self._admin_snapshot(user)

        logger.info(f"User {user_id} updated by user {actor.id}: {sorted(updates)}")

        await self.audit_service.record(
            user_id=actor.id,
            action=AuditAction.USER_UPDATE,
            entity_type="user",
            entity_id=user_id,
            description=f"Account of user {user_id} updated",
            old_values=old_values,
            new_values=new_values,
            context=context,
        )

        return user

    async def delete_user(
        self,
        user_id: int,
        actor: User,
        context: RequestContext | None = None,
    ) -> None:
        """
        Permanently delete another user together with their permission row
        and any pending one-time code.

        Audit entries that name the user are kept.

        Raises:
            NotFoundError: If the user does not exist
            InsufficientPermissionsError: If the actor deletes themselves, or
                a non-admin deletes an admin
        """
        if user_id == actor.id:
            raise InsufficientPermissionsError("You cannot delete your own account")

        async with self.session.begin():
            user = await self.user_repo.get_by_id(user_id, for_update=True)
            if user is None:
                raise NotFoundError("User")
            self._check_can_administer(actor, user, None)

            old_values = {"email": user.email, **self._admin_snapshot(user)}
            await self.otp_repo.delete_by_email(user.email)
            await self.user_repo.delete(user)

        logger.info(f"User {user_id} ({old_values['email']}) deleted by user {actor.id}")

        await self.audit_service.record(
            user_id=actor.id,
            action=AuditAction.USER_DELETE,
            entity_type="user",
            entity_id=user_id,
            description=f"User {user_id} deleted",
            old_values=old_values,
            context=context,
        )

    async def bootstrap_first_admin(
        self,
        email: str,
        password: str,
        name: str = "Administrator",
    ) -> User | None:
        """
        Create the first administrator, once.

        Does nothing when the bootstrap already ran or an admin already
        exists. The account is created verified and active, so it can log in
        straight away without an emailed code.

        Args:
            email: Administrator email
            password: Administrator password, stored as an Argon2 hash
            name: Display name

        Returns:
            The created administrator, or None if the bootstrap was skipped

        Raises:
            ValidationError: If ``password`` fails the password policy
            DuplicateEmailError: If a non-admin account already uses ``email``
        """
        is_valid, reason = validate_password_strength(password)
        if not is_valid:
            raise ValidationError(f"Bootstrap admin password rejected: {reason}")

        try:
            async with self.session.begin():
                result = await self.session.execute(select(BootstrapState).limit(1))
                if result.scalar_one_or_none() is not None:
                    logger.info("Admin bootstrap already completed, skipping")
                    return None
                if await self.user_repo.admin_exists():
                    logger.info("An administrator already exists, skipping admin bootstrap")
                    return None
                if await self.user_repo.email_exists(email):
                    logger.error(f"Admin bootstrap email {email} belongs to an existing user")
                    raise DuplicateEmailError()

                admin = await self.user_repo.add(
                    User(
                        email=email,
                        name=name,
                        password_hash=hash_password(password),
                        role=UserRole.admin,
                        email_verified=True,
                        account_status=AccountStatus.active,
                        login_attempts=0,
                        permissions=UserPermission(),
                    )
                )
                self.session.add(BootstrapState(completed=True, admin_user_id=admin.id))
                await self.session.flush()
        except IntegrityError:
            logger.info("Admin bootstrap completed by another process, skipping")
            return None

        logger.info(f"Bootstrapped first administrator {admin.id} ({admin.email})")

        await self.audit_service.record(
            user_id=None,
            action=AuditAction.ADMIN_BOOTSTRAP,
            entity_type="user",
            entity_id=admin.id,
            description="First administrator created from startup configuration",
            new_values={"email": admin.email, "name": admin.name, "role": admin.role.value},
            extra_metadata={"bootstrap": True},
        )

        return admin
