"""
Async engine, session factory and the request session dependency.

Services scope their writes with ``async with session.begin():``; an
exception inside the block rolls the transaction back. The engine and the
factory are created in the lifespan and kept on ``app.state``.
"""

import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from src.core.config import settings
from src.models.base import Base

logger = logging.getLogger(__name__)


def create_database_engine(database_url: str | None = None) -> AsyncEngine:
    """Pooled asyncpg engine for ``database_url`` (DATABASE_URL by default)."""
    engine = create_async_engine(
        database_url or settings.database_url_str,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=settings.db_pool_recycle,
        pool_timeout=settings.db_pool_timeout,
        poolclass=AsyncAdaptedQueuePool,
        connect_args={
            "server_settings": {
                "application_name": f"{settings.app_name} ({settings.environment})",
            },
        },
    )
    logger.info(
        f"Database engine ready (pool_size={settings.db_pool_size}, "
        f"max_overflow={settings.db_max_overflow})"
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # ORM objects stay readable after their transaction commits
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one session per request.

    Closing the session at the end of the request rolls back anything a
    handler left uncommitted.
    """
    sessionmaker: async_sessionmaker[AsyncSession] = request.app.state.sessionmaker
    async with sessionmaker() as session:
        yield session


async def check_database_connection(
    sessionmaker: async_sessionmaker[AsyncSession] | None,
) -> bool:
    """``SELECT 1`` through a fresh session. False before startup or on error."""
    if sessionmaker is None:
        return False
    try:
        async with sessionmaker() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


async def close_database_connection(engine: AsyncEngine) -> None:
    try:
        await engine.dispose()
    except SQLAlchemyError as e:
        logger.error(f"Error disposing database engine: {e}")
        return
    logger.info("Database engine disposed")
