"""Database engine and session management.

The engine is owned by a ``Database`` object that is constructed during
application startup and disposed on shutdown. Request handlers reach it
through the ``get_db`` dependency rather than a module-level global.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class DatabaseNotConfiguredError(RuntimeError):
    """Raised when the database is used without a configured URL."""


class Database:
    """Owns the async engine and session factory for one process."""

    def __init__(self, url: str, echo: bool = False):
        if not url:
            raise DatabaseNotConfiguredError(
                "DATABASE_URL environment variable is required. "
                "Set it in your .env file or environment."
            )
        self.url = url
        kwargs: dict = {"echo": echo}
        if url.startswith("sqlite"):
            # In-memory SQLite must share one connection across sessions
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        else:
            kwargs["pool_pre_ping"] = True
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create all tables (used for SQLite and tests; Postgres uses Alembic)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session bound to the application's database.

    Commits when the request handler succeeds and rolls back on error.
    """
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        raise DatabaseNotConfiguredError("Database has not been initialised")

    async with database.session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
