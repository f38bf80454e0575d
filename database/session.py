"""
Async SQLAlchemy engine and session factory.

A ``Database`` is built once at process startup (see ``main.create_app``),
stored on ``app.state`` and disposed at shutdown. Stores receive sessions
from it rather than importing a module-level engine.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import Settings
from database.models import Base
from utils.errors import StorageError

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine (connection pool) and hands out sessions."""

    def __init__(self, url: str, *, echo: bool = False, pooled: bool = False):
        engine_kwargs = {"echo": echo}
        if pooled:
            engine_kwargs.update(pool_size=10, max_overflow=20, pool_recycle=3600)
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.database_echo,
            pooled=not settings.is_sqlite,
        )

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """One session per request: commit on success, roll back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception("Database error, transaction rolled back")
                raise StorageError() from exc
            except Exception:
                await session.rollback()
                raise
