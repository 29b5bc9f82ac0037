import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.config import settings
from src.core.database import (
    close_database_connection,
    create_database_engine,
    create_session_factory,
    create_tables,
)
from src.exceptions import AppException
from src.services.email_service import create_email_provider
from src.services.otp_cleanup import OTPCleanupTask
from src.services.user_service import UserService

logger = logging.getLogger(__name__)


async def bootstrap_admin(sessionmaker: async_sessionmaker[AsyncSession]) -> None:
    """
    Create the first administrator from BOOTSTRAP_ADMIN_* settings.

    A rejected configuration is logged and startup continues.
    """
    async with sessionmaker() as session:
        try:
            await UserService(session).bootstrap_first_admin(
                email=settings.bootstrap_admin_email,
                password=settings.bootstrap_admin_password,
                name=settings.bootstrap_admin_name,
            )
        except AppException as e:
            logger.error(f"Admin bootstrap failed: {e.message}")


# ============================================================================
# Lifespan Context Manager
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Database engine creation and storage in app.state
    - Session factory creation
    - One-time admin bootstrap when BOOTSTRAP_ADMIN_* is configured
    - Email provider creation
    - Expired OTP cleanup task (started here, cancelled on shutdown)
    - Resource cleanup on shutdown
    """
    logger.info(f"Starting {settings.app_name} v{settings.version}")
    logger.info(f"Environment: {settings.environment}")

    # Create database engine
    engine = create_database_engine()

    if settings.database_auto_create:
        await create_tables(engine)

    # Create sessionmaker and store in app state
    app.state.sessionmaker = create_session_factory(engine)
    logger.info("Sessionmaker created successfully")

    if settings.bootstrap_admin_email and settings.bootstrap_admin_password:
        await bootstrap_admin(app.state.sessionmaker)

    app.state.email_provider = create_email_provider(settings)

    cleanup_task: OTPCleanupTask | None = None
    if settings.otp_cleanup_enabled:
        cleanup_task = OTPCleanupTask(
            app.state.sessionmaker,
            interval_seconds=settings.otp_cleanup_interval_seconds,
        )
        cleanup_task.start()
    app.state.otp_cleanup_task = cleanup_task

    try:
        yield
    finally:
        # Cleanup on shutdown
        logger.info("Shutting down application")
        if cleanup_task is not None:
            await cleanup_task.stop()
        await close_database_connection(engine)
        app.state.sessionmaker = None
