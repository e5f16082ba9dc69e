"""
Database engine, session factory and declarative base.
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from tenacity import AsyncRetrying, stop_after_delay, wait_fixed

from config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.database_url, pool_pre_ping=True)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db():
    """FastAPI dependency yielding one session per request."""
    async with async_session_maker() as session:
        yield session


async def wait_for_database(timeout_seconds: Optional[int] = None) -> None:
    """Block until the database answers a trivial query, or re-raise the last error."""
    timeout = settings.DB_CONNECT_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
    logger.debug("Awaiting database connection (timeout=%ss)...", timeout)
    async for attempt in AsyncRetrying(
        stop=stop_after_delay(max(timeout, 0)),
        wait=wait_fixed(0.5),
        reraise=True,
    ):
        with attempt:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))


async def create_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
