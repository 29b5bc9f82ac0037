"""
Audit service for security event logging.

This module provides:
- Best-effort audit entry creation for authentication and account events
- Request context capture (client IP, user agent, request id)
- Paginated, filtered audit log retrieval
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.models.audit_log import AuditLog
from src.models.enums import AuditAction, AuditStatus
from src.repositories.audit_repository import AuditLogQuery, AuditLogRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Client details copied onto every audit entry written for a request."""

    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent"),
            request_id=getattr(request.state, "request_id", None),
        )


class AuditService:
    """
    Service class for audit logging operations.

    Entries are written in their own transaction, after the state change
    they describe has committed. A failed write is logged and dropped so
    it can never undo or block the operation being audited.

    All audit logs are immutable - they cannot be modified or deleted after creation.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize AuditService.

        Args:
            session: Async database session
        """
        self.session = session
        self.audit_repo = AuditLogRepository(session)

    async def record(
        self,
        user_id: int | None,
        action: AuditAction,
        entity_type: str,
        entity_id: int | None = None,
        description: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        context: RequestContext | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        error_message: str | None = None,
        extra_metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Write one audit entry.

        Must be called outside any open transaction on the session.

        Args:
            user_id: User who performed the action (None when unknown)
            action: Type of action performed
            entity_type: Type of entity affected (e.g., "user", "user_permission")
            entity_id: ID of affected entity
            description: Human-readable description
            old_values: Values before the action
            new_values: Values after the action
            context: Client IP, user agent and request id
            status: Outcome of the action
            error_message: Reason if status is FAILURE
            extra_metadata: Additional context stored as JSON

        Example:
            await audit_service.record(
                user_id=user.id,
                action=AuditAction.PROFILE_UPDATE,
                entity_type="user",
                entity_id=user.id,
                old_values={"name": "Ada"},
                new_values={"name": "Augusta"},
                context=RequestContext.from_request(request),
            )
        """
        if not settings.audit_log_enabled:
            return

        context = context or RequestContext()
        entry = AuditLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            old_values=old_values,
            new_values=new_values,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            request_id=context.request_id,
            status=status,
            error_message=error_message,
            extra_metadata=extra_metadata,
        )

        try:
            async with self.session.begin():
                await self.audit_repo.add(entry)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to write audit log: action={action.value} user={user_id}: {e}",
                exc_info=True,
            )
            return

        logger.debug(
            f"Audit log created: user={user_id}, action={action.value}, "
            f"entity={entity_type}:{entity_id}, status={status.value}"
        )

    async def list_logs(
        self,
        user_id: int | None = None,
        action: AuditAction | None = None,
        status: AuditStatus | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[AuditLog], int]:
        """
        Get a page of audit logs with filtering, newest first.

        Args:
            user_id: Filter by actor
            action: Filter by action type
            status: Filter by outcome
            start_date: Only logs created at or after this time
            end_date: Only logs created at or before this time
            offset: Number of records to skip
            limit: Page size

        Returns:
            Tuple of (logs on this page, total matching count)
        """
        query = AuditLogQuery(
            user_id=user_id,
            action=action,
            status=status,
            start_date=start_date,
            end_date=end_date,
        )
        async with self.session.begin():
            logs = await self.audit_repo.search(query, offset=offset, limit=limit)
            total = await self.audit_repo.count(query)

        return logs, total
