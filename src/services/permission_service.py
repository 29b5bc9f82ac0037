"""
Permission resolution and capability checks.

This module provides:
- PermissionService: loads (lazily creating) a user's permission row and
  applies audited permission changes
- Authorizer: the single capability gate used by every protected route

Permission model:
    - Role ``admin`` passes every capability check
    - Everyone else is authorized by the boolean flags on their
      UserPermission row; a missing row means every flag is False

Usage:
    permissions = await PermissionService(session).resolve(user)
    Authorizer.require(user, Capability.manage_users)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import InsufficientPermissionsError, NotFoundError
from src.models.enums import AuditAction, Capability
from src.models.user import User, UserPermission
from src.repositories.permission_repository import PermissionRepository
from src.repositories.user_repository import UserRepository
from src.services.audit_service import AuditService, RequestContext

logger = logging.getLogger(__name__)


class PermissionService:
    """
    Service for reading and changing per-user permission rows.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize permission service.

        Args:
            session: Async database session
        """
        self.session = session
        self.permission_repo = PermissionRepository(session)
        self.user_repo = UserRepository(session)
        self.audit_service = AuditService(session)

    async def resolve(self, user: User) -> UserPermission:
        """
        Return the user's permission row, creating an all-false one if missing.

        Runs inside the caller's transaction. The row is attached to
        ``user.permissions`` so later checks need no further queries.

        Args:
            user: User whose permissions are needed

        Returns:
            The user's UserPermission row
        """
        if user.permissions is not None:
            return user.permissions

        permission = await self.permission_repo.get_by_user_id(user.id)
        if permission is None:
            logger.info(f"Creating default permissions for user {user.id}")
            permission = await self.permission_repo.create_default(user.id)

        user.permissions = permission
        return permission

    async def get_for_user(self, user_id: int) -> UserPermission:
        """
        Get the permission row of another user.

        Args:
            user_id: ID of the user

        Returns:
            The user's UserPermission row

        Raises:
            NotFoundError: If the user does not exist
        """
        async with self.session.begin():
            user = await self.user_repo.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User")
            return await self.resolve(user)

    async def update_permissions(
        self,
        user_id: int,
        changes: dict[Capability, bool],
        actor: User,
        context: RequestContext | None = None,
    ) -> UserPermission:
        """
        Apply a partial update to a user's capability flags.

        Capabilities missing from ``changes`` keep their stored value.
        The change is audit-logged with before/after snapshots.

        Args:
            user_id: ID of the user whose permissions change
            changes: Capability flags to set
            actor: User making the change
            context: Request context for the audit entry

        Returns:
            The updated UserPermission row

        Raises:
            NotFoundError: If the user does not exist
        """
        async with self.session.begin():
            user = await self.user_repo.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User")

            permission = await self.resolve(user)
            old_values = permission.snapshot()

            for capability, granted in changes.items():
                setattr(permission, capability.value, granted)
            await self.permission_repo.update(permission)

            new_values = permission.snapshot()

        changed = {capability.value: granted for capability, granted in changes.items()}
        logger.info(f"Permissions of user {user_id} updated by user {actor.id}: {changed}")

        await self.audit_service.record(
            user_id=actor.id,
            action=AuditAction.PERMISSION_CHANGE,
            entity_type="user_permission",
            entity_id=user_id,
            description=f"Permissions updated for user {user_id}",
            old_values=old_values,
            new_values=new_values,
            context=context,
        )

        return permission


class Authorizer:
    """
    Capability gate.

    Every protected operation asks ``can``/``require`` with the acting user
    and the capability it needs. The user's permission row must already be
    resolved (``user.permissions``); the API dependencies take care of that.
    """

    @staticmethod
    def can(user: User, capability: Capability) -> bool:
        """
        Check whether ``user`` holds ``capability``.

        Args:
            user: Acting user, with permissions resolved
            capability: Capability being exercised

        Returns:
            True for admins, otherwise the stored flag
        """
        if user.is_admin:
            return True
        if user.permissions is None:
            return False
        return user.permissions.has(capability)

    @staticmethod
    def require(user: User, capability: Capability) -> None:
        """
        Raise unless ``user`` holds ``capability``.

        Raises:
            InsufficientPermissionsError: If the check fails
        """
        if not Authorizer.can(user, capability):
            logger.warning(f"Permission {capability.value} denied for user {user.id}")
            raise InsufficientPermissionsError(f"Permission {capability.value} denied")
