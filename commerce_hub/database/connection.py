"""
Database Connection Management

Async SQLAlchemy 2.0 engine and session factory for one datastore. Each
datastore gets its own explicitly constructed `Database`, created once at
process start and closed at shutdown.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from sqlalchemy import MetaData, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

logger = structlog.get_logger(__name__)


class Database:
    """
    Connection pool and session factory for a single datastore.

    Example:
        db = Database(settings.database.async_url, name="commerce")
        await db.connect(CommerceBase.metadata)
        async with db.session() as session:
            await session.execute(query)
    """

    def __init__(self, url: str, *, name: str = "database", echo: bool = False):
        self.url = url
        self.name = name
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    async def connect(self, metadata: Optional[MetaData] = None) -> AsyncEngine:
        """
        Create the engine, verify connectivity and optionally create tables.

        Args:
            metadata: When given, missing tables from this metadata are created

        Returns:
            AsyncEngine: The initialized database engine
        """
        if self._engine is not None:
            logger.warning("Database already initialized", database=self.name)
            return self._engine

        # asyncpg and aiosqlite manage their own connections; no SQLAlchemy pooling
        self._engine = create_async_engine(
            self.url,
            echo=self.echo,
            pool_pre_ping=True,
            poolclass=NullPool,
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        try:
            async with self._engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                if metadata is not None:
                    await conn.run_sync(metadata.create_all)
        except Exception as e:
            logger.error("Failed to connect to database", database=self.name, error=str(e))
            await self.close()
            raise

        logger.info(
            "Database connection established",
            database=self.name,
            host=make_url(self.url).host,
        )
        return self._engine

    async def close(self) -> None:
        """Dispose of the engine and all its connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection pool closed", database=self.name)

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError(f"Database {self.name!r} not initialized. Call connect() first.")
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a session that commits on success and rolls back on error.

        Yields:
            AsyncSession: Database session
        """
        if self._session_factory is None:
            raise RuntimeError(f"Database {self.name!r} not initialized. Call connect() first.")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.debug(
                "Database session error, rolling back",
                database=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            await session.rollback()
            raise
        finally:
            await session.close()

    async def check_health(self) -> Dict[str, Any]:
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
            return {"status": "healthy", "latency_ms": round(latency_ms, 2)}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}
