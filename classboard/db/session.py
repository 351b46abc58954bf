"""
Async SQLAlchemy store handle (asyncpg / aiosqlite drivers).

A ``Database`` owns the engine and session factory. The app factory creates
one, the lifespan opens it with ``connect()`` and closes it with
``dispose()``.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from classboard.db.base import Base

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, url: str, **engine_kwargs) -> None:
        engine_args = {
            "echo": False,
            "pool_pre_ping": True,
        }
        if "postgresql" in url:
            engine_args.update(
                {
                    "pool_size": 20,
                    "max_overflow": 10,
                    "pool_recycle": 300,
                }
            )
        engine_args.update(engine_kwargs)

        self.url = url
        self.engine = create_async_engine(url, **engine_args)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def connect(self) -> None:
        """Verify connectivity and create missing tables. Raises on failure."""
        async with self.engine.begin() as conn:
            await conn.execute(select(1))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connected and tables initialised")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")
