import asyncio
import logging
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from smarthive.core.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def async_url(database_url: str) -> str:
    # Ensure we use asyncpg for async operations
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


@lru_cache
def get_engine() -> AsyncEngine:
    return create_async_engine(async_url(get_settings().database_url))


@lru_cache
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request."""
    async with get_sessionmaker()() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models(engine: AsyncEngine, attempts: int = 10) -> None:
    """Create tables, retrying until the database is ready."""
    # Register every mapped class on Base.metadata
    from smarthive import models  # noqa: F401

    for attempt in range(attempts):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database ready, tables created")
            return
        except Exception as e:
            logger.warning(f"Waiting for DB ({attempt + 1}/{attempts}): {e}")
            await asyncio.sleep(1)
    raise RuntimeError(f"Could not connect to the database after {attempts} attempts")
