"""
Periodic sweep of expired OTP records.

The task is owned by the application lifespan: started on startup when
``otp_cleanup_enabled`` is set and cancelled on shutdown.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.services.otp_service import OTPService

logger = logging.getLogger(__name__)


class OTPCleanupTask:
    """
    Background task deleting expired OTP records on a fixed interval.

    Each sweep uses its own session and transaction. A failed sweep is
    logged and the loop carries on with the next interval.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        interval_seconds: float,
    ):
        """
        Initialize the cleanup task.

        Args:
            sessionmaker: Factory for sessions used by each sweep
            interval_seconds: Delay between sweeps
        """
        self._sessionmaker = sessionmaker
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            logger.warning("OTP cleanup task already running")
            return

        logger.info(f"Starting OTP cleanup task (interval={self._interval}s)")
        self._task = asyncio.create_task(self._run(), name="otp-cleanup")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"OTP cleanup task ended with an error: {e}", exc_info=True)
        self._task = None
        logger.info("OTP cleanup task stopped")

    async def run_once(self) -> int:
        """
        Run a single sweep.

        Returns:
            Number of expired records deleted
        """
        async with self._sessionmaker() as session:
            async with session.begin():
                return await OTPService(session).cleanup_expired()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"OTP cleanup sweep failed: {e}", exc_info=True)
