"""
AuditLog repository.

The audit trail is append-only: entries can be inserted and read, never
updated or deleted, so this repository does not extend BaseRepository.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit_log import AuditLog
from src.models.enums import AuditAction, AuditStatus


@dataclass(frozen=True)
class AuditLogQuery:
    """
    Filters for audit log retrieval. Unset fields do not filter.

    ``start_date`` and ``end_date`` are inclusive bounds on created_at.
    """

    user_id: int | None = None
    action: AuditAction | None = None
    entity_type: str | None = None
    status: AuditStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def apply(self, statement: Select[Any]) -> Select[Any]:
        conditions = []
        if self.user_id is not None:
            conditions.append(AuditLog.user_id == self.user_id)
        if self.action is not None:
            conditions.append(AuditLog.action == self.action)
        if self.entity_type is not None:
            conditions.append(AuditLog.entity_type == self.entity_type)
        if self.status is not None:
            conditions.append(AuditLog.status == self.status)
        if self.start_date is not None:
            conditions.append(AuditLog.created_at >= self.start_date)
        if self.end_date is not None:
            conditions.append(AuditLog.created_at <= self.end_date)
        return statement.where(*conditions) if conditions else statement


class AuditLogRepository:
    """Insert and query audit entries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, entry: AuditLog) -> AuditLog:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def search(
        self,
        query: AuditLogQuery,
        offset: int = 0,
        limit: int = 100,
    ) -> list[AuditLog]:
        """
        Return one page of matching entries, newest first.

        Example:
            failures = await audit_repo.search(
                AuditLogQuery(action=AuditAction.LOGIN_FAILED), limit=50
            )
        """
        statement = (
            query.apply(select(AuditLog))
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count(self, query: AuditLogQuery) -> int:
        """Count entries matching ``query`` (pagination total)."""
        result = await self.session.execute(
            query.apply(select(func.count()).select_from(AuditLog))
        )
        return result.scalar_one()
