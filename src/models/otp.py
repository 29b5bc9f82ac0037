"""
OTPRecord model for one-time verification codes.

One record per email address. Issuing a new code for an email overwrites the
previous record, so at most one code is valid at a time. Codes are stored as
SHA-256 hex digests, never in plain text.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base
from src.models.mixins import as_utc, utcnow


class OTPRecord(Base):
    """
    Active one-time password for an email address.

    Attributes:
        id: Integer primary key
        email: Address the code was issued for (unique)
        otp_hash: SHA-256 hex digest of the code
        expires_at: Instant after which the code is refused
        attempts: Verification attempts made against this code
        created_at: When the code was (re)issued

    Lifecycle:
        Created or overwritten on registration, resend and password reset
        requests. Deleted on successful verification. Expired rows are
        removed by the periodic cleanup sweep.
    """

    __tablename__ = "otp_codes"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    otp_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once ``now`` is past ``expires_at``."""
        return (now or utcnow()) > as_utc(self.expires_at)

    def __repr__(self) -> str:
        """String representation of OTPRecord."""
        return (
            f"OTPRecord(email={self.email}, expires_at={self.expires_at}, "
            f"attempts={self.attempts})"
        )
