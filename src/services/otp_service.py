"""
OTP service for issuing and verifying one-time passcodes.

This module provides:
- Cryptographically random numeric code generation
- Hashed storage with expiry (one active code per email)
- Verification with expiry, attempt cap and single use
- Sweeping of expired codes

OTPService never opens transactions itself: every method runs inside the
caller's ``async with session.begin():`` scope, so a verification and the
state change it unlocks commit together.
"""

import logging
import secrets
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.security import hash_otp, verify_otp_hash
from src.models.mixins import utcnow
from src.repositories.otp_repository import OTPRepository

logger = logging.getLogger(__name__)


class OTPService:
    """
    Service class for one-time passcode operations.

    Codes are stored as SHA-256 digests keyed by email. Storing a new code
    for an email replaces the old one and resets its attempt counter.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize OTPService.

        Args:
            session: Async database session
        """
        self.session = session
        self.otp_repo = OTPRepository(session)

    @staticmethod
    def generate(length: int | None = None) -> str:
        """
        Generate a numeric code of ``length`` digits.

        Drawn uniformly from [10^(n-1), 10^n - 1] with the ``secrets`` module,
        so the first digit is never zero.

        Args:
            length: Number of digits (defaults to settings.otp_length)

        Returns:
            The code as a string
        """
        n = length or settings.otp_length
        low = 10 ** (n - 1)
        high = 10**n - 1
        return str(low + secrets.randbelow(high - low + 1))

    async def store(self, email: str, otp: str, ttl_minutes: int | None = None) -> None:
        """
        Store the hash of ``otp`` for ``email``, replacing any previous code.

        Args:
            email: Address the code is issued for
            otp: Plaintext code (only its hash is persisted)
            ttl_minutes: Lifetime in minutes (defaults to settings.otp_expire_minutes)
        """
        ttl = ttl_minutes or settings.otp_expire_minutes
        expires_at = utcnow() + timedelta(minutes=ttl)
        await self.otp_repo.upsert(email, hash_otp(otp), expires_at)
        logger.debug(f"OTP stored for {email}, expires at {expires_at.isoformat()}")

    async def verify(self, email: str, otp: str) -> bool:
        """
        Check a submitted code and consume it on success.

        Steps, in order:
        1. Lock the record; no record fails
        2. Expired records fail without counting an attempt
        3. One conditional UPDATE counts the attempt; a record already at
           the cap is left alone and fails
        4. Hashes are compared in constant time; a mismatch fails
        5. A match deletes the record

        The increment in step 3 is part of the caller's transaction, so the
        caller must commit even when this returns False.

        Args:
            email: Address the code was issued for
            otp: Code submitted by the user

        Returns:
            True if the code matched and has been consumed
        """
        record = await self.otp_repo.get_by_email(email, for_update=True)
        if record is None:
            logger.info(f"OTP verification failed for {email}: no active code")
            return False

        if record.is_expired():
            logger.info(f"OTP verification failed for {email}: code expired")
            return False

        attempts = await self.otp_repo.increment_attempts(email, settings.otp_max_attempts)
        if attempts is None:
            logger.warning(f"OTP verification refused for {email}: attempt limit reached")
            return False

        if not verify_otp_hash(otp, record.otp_hash):
            logger.info(f"OTP verification failed for {email}: code mismatch")
            return False

        await self.otp_repo.delete_by_email(email)
        logger.info(f"OTP verified for {email}")
        return True

    async def cleanup_expired(self) -> int:
        """
        Delete every code whose expiry has passed.

        Returns:
            Number of records removed
        """
        deleted = await self.otp_repo.delete_expired()
        if deleted:
            logger.info(f"Removed {deleted} expired OTP record(s)")
        return deleted
