"""Database connection management with SQLAlchemy."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from cockroach_ops.models.config import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages the SQLAlchemy async engine and connection pool.

    Creating the engine does not open a network connection, so neither
    construction nor :meth:`initialize` fails when the database is down.
    The first query is where connectivity errors surface.
    """

    def __init__(self, config: DatabaseConfig):
        """
        Initialize database connection.

        Args:
            config: Database configuration with server and pool settings
        """
        self.config = config
        self.engine: Optional[AsyncEngine] = None

    async def initialize(self) -> None:
        """Create the async engine if it does not exist yet."""
        if self.engine is not None:
            return  # Already initialized

        self.engine = create_async_engine(
            self.config.url,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_pre_ping=True,  # Verify connections before using
            echo=self.config.echo_sql,
        )
        logger.info(f"Created engine for {self.config.safe_url}")

    async def dispose(self) -> None:
        """Dispose of the connection pool and cleanup resources."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    async def _get_engine(self) -> AsyncEngine:
        if self.engine is None:
            await self.initialize()
        assert self.engine is not None
        return self.engine

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Get a connection from the pool as an async context manager.

        Work is not committed; use :meth:`begin` for statements that write.

        Yields:
            AsyncConnection for executing queries
        """
        engine = await self._get_engine()
        async with engine.connect() as conn:
            yield conn

    @asynccontextmanager
    async def begin(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Get a connection inside a transaction.

        The transaction commits when the block exits normally and rolls
        back if it raises.

        Yields:
            AsyncConnection with an open transaction
        """
        engine = await self._get_engine()
        async with engine.begin() as conn:
            yield conn

    @property
    def dialect(self) -> str:
        """Get database dialect name."""
        return self.config.dialect

    @property
    def driver(self) -> str:
        """Get database driver name."""
        return self.config.driver

    @property
    def database_name(self) -> str:
        """Name of the database this connection targets."""
        return self.config.database

    @property
    def is_initialized(self) -> bool:
        """Check if engine is initialized."""
        return self.engine is not None

    async def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            async with self.get_connection() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Connectivity check failed", exc_info=True)
            return False

    async def get_version(self) -> str:
        """
        Get database version string.

        Returns:
            Database version string
        """
        async with self.get_connection() as conn:
            result = await conn.execute(text("SELECT version()"))
            row = result.fetchone()
            return str(row[0]) if row else "Unknown"

    async def list_databases(self) -> list[str]:
        """
        List the databases on the server.

        Returns:
            Database names
        """
        async with self.get_connection() as conn:
            result = await conn.execute(text("SELECT datname FROM pg_database"))
            return [str(row[0]) for row in result.fetchall()]

    async def __aenter__(self) -> "DatabaseConnection":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.dispose()
