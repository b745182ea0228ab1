"""
Database Connection Management

Async SQLAlchemy 2.0 engine and session factory wrapped in an explicit
``Database`` handle. The handle is created once at startup and passed to
whoever needs a session; nothing in the core reaches for a module global.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from retail_admin.config.settings import DatabaseSettings
from retail_admin.database.models import Base

logger = structlog.get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Store handle owning one engine and its session factory.

    Example:
        database = Database("sqlite+aiosqlite:///./retail.db")
        async with database.session() as session:
            product = await ProductLifecycle(session).get(1)
    """

    def __init__(self, url: str, echo: bool = False, **engine_options: Any):
        self.url = url
        engine_config: Dict[str, Any] = {
            "echo": echo,
            "pool_pre_ping": True,  # Verify connections before use
        }
        engine_config.update(engine_options)

        self.engine: AsyncEngine = create_async_engine(url, **engine_config)

        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        """Build a handle from DatabaseSettings, pooling only for server databases."""
        options: Dict[str, Any] = {}
        if not settings.is_sqlite:
            options.update(
                pool_size=settings.pool_size,
                max_overflow=settings.max_overflow,
                pool_timeout=settings.pool_timeout,
            )
        return cls(settings.async_url, echo=settings.echo, **options)

    async def create_all(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", dialect=self.engine.dialect.name)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def verify(self) -> None:
        """Run a trivial query, raising if the database is unreachable."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection established", dialect=self.engine.dialect.name)
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database connection pool closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Unit of work.

        Yields a session, commits once when the block exits normally and
        rolls everything back when it raises.

        Yields:
            AsyncSession: Database session
        """
        logger.debug("Creating new database session")
        session = self._session_factory()
        try:
            yield session
            await session.commit()
            logger.debug("Database session committed successfully")
        except Exception as e:
            logger.warning(
                "Database session error, rolling back",
                error=str(e),
                error_type=type(e).__name__,
            )
            await session.rollback()
            raise
        finally:
            await session.close()

    async def check_health(self) -> dict:
        """
        Check database health status.

        Returns:
            dict: Health status with latency information
        """
        try:
            start = time.perf_counter()
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "latency_ms": round(latency_ms, 2),
                "dialect": self.engine.dialect.name,
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
            }


async def init_database(settings: DatabaseSettings) -> Database:
    """
    Create and verify a Database handle.

    Creates the schema first when ``settings.create_tables`` is set.
    """
    database = Database.from_settings(settings)
    await database.verify()
    if settings.create_tables:
        await database.create_all()
    return database
