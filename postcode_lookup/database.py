"""Async database engine and session management.

Uses SQLAlchemy 2.0 async; asyncpg in production, aiosqlite in tests.
Graceful degradation: if the database is unavailable at startup the app still
serves upstream data, and store calls fail per request.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Database:
    """Owns one engine and its session factory for the app lifetime."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs: dict = {"echo": echo}
        if url.startswith("sqlite"):
            # in-memory SQLite must share one connection across sessions
            engine_kwargs.update(
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            engine_kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)

        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init(self) -> bool:
        """Create tables if they don't exist. Returns True on success."""
        from postcode_lookup.models import Base

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialized successfully")
            return True
        except Exception as e:
            logger.warning("Database unavailable — continuing without persistence: %s", str(e)[:200])
            return False

    async def close(self) -> None:
        """Dispose engine connections on shutdown."""
        await self.engine.dispose()
        logger.info("Database connections closed")
