"""Database configuration and connection management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from doctor_registry.models import metadata

logger = structlog.get_logger(__name__)


def to_async_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to its asyncpg form."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Created by the application lifespan and stored on ``app.state.database``.
    """

    def __init__(self, url: str, *, echo: bool = False, application_name: str | None = None):
        self.url = to_async_url(url)
        self.echo = echo
        self.application_name = application_name
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and session factory."""
        if self._engine is not None:
            return

        if self.is_sqlite:
            self._engine = create_async_engine(self.url, echo=self.echo)
        else:
            connect_args = {}
            if self.application_name:
                connect_args["server_settings"] = {"application_name": self.application_name}
            self._engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_pre_ping=True,
                pool_size=10,
                max_overflow=20,
                pool_recycle=3600,
                connect_args=connect_args,
            )

        self._sessionmaker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def disconnect(self) -> None:
        """Dispose of pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that is rolled back if the caller fails."""
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        async with self._sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create the doctors table and its unique constraints if missing."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def check_connection(self) -> bool:
        """Check if database connection is healthy."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("database_check_failed", error=str(e))
            return False


def get_database(request: Request) -> Database:
    """Dependency returning the application's database context."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with get_database(request).session() as session:
        yield session
