"""
OTP repository for one-time code records.

This module provides database operations for the OTPRecord model.
Records are keyed by email; there is at most one per address.

Writes are single statements so concurrent requests for the same email
never race between a read and the write that depends on it.
"""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.mixins import utcnow
from src.models.otp import OTPRecord
from src.repositories.base import BaseRepository

# INSERT ... ON CONFLICT constructs per backend
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class OTPRepository(BaseRepository[OTPRecord]):
    """
    Repository for OTPRecord model operations.

    Operations:
    - Upsert the code for an email (resets attempts)
    - Row-locked lookup for verification
    - Capped atomic attempt counter increment
    - Deletion by email and bulk deletion of expired rows
    """

    def __init__(self, session: AsyncSession):
        super().__init__(OTPRecord, session)

    async def get_by_email(
        self,
        email: str,
        for_update: bool = False,
    ) -> OTPRecord | None:
        """
        Get the OTP record for an email, refreshed from the database.

        Args:
            email: Email address the code was issued for
            for_update: Lock the row (SELECT ... FOR UPDATE) until the
                enclosing transaction ends

        Returns:
            OTPRecord instance or None if no code is outstanding
        """
        query = (
            select(OTPRecord)
            .where(OTPRecord.email == email)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def upsert(self, email: str, otp_hash: str, expires_at: datetime) -> None:
        """
        Create or overwrite the OTP record for an email.

        Runs as one ``INSERT ... ON CONFLICT (email) DO UPDATE``. Overwriting
        invalidates any previous code immediately and resets the attempt
        counter to zero.

        Args:
            email: Email address the code is issued for
            otp_hash: SHA-256 hex digest of the new code
            expires_at: Expiry instant of the new code
        """
        insert = _UPSERT_INSERTS[self.session.get_bind().dialect.name]
        statement = insert(OTPRecord).values(
            email=email,
            otp_hash=otp_hash,
            expires_at=expires_at,
            attempts=0,
            created_at=utcnow(),
        )
        statement = statement.on_conflict_do_update(
            index_elements=["email"],
            set_={
                "otp_hash": statement.excluded.otp_hash,
                "expires_at": statement.excluded.expires_at,
                "attempts": 0,
                "created_at": statement.excluded.created_at,
            },
        )
        await self.session.execute(statement)

    async def increment_attempts(self, email: str, max_attempts: int) -> int | None:
        """
        Count one attempt unless the record has already reached ``max_attempts``.

        A single ``UPDATE ... WHERE attempts < :max RETURNING attempts``, so the
        cap holds even when concurrent verifications read the same row.

        Returns:
            The new counter value, or None when the cap was already reached
            (or the record is gone)
        """
        result = await self.session.execute(
            update(OTPRecord)
            .where(OTPRecord.email == email, OTPRecord.attempts < max_attempts)
            .values(attempts=OTPRecord.attempts + 1)
            .returning(OTPRecord.attempts)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def delete_by_email(self, email: str) -> None:
        await self.session.execute(delete(OTPRecord).where(OTPRecord.email == email))

    async def delete_expired(self, now: datetime | None = None) -> int:
        """
        Delete all records whose expiry is in the past.

        Attempt counts are ignored; expired rows are removed regardless.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            Number of records deleted
        """
        result = await self.session.execute(
            delete(OTPRecord)
            .where(OTPRecord.expires_at < (now or utcnow()))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
