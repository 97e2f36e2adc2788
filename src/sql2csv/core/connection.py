"""Database connection management with SQLAlchemy."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from sql2csv.exceptions import DatabaseConnectionError
from sql2csv.models.config import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Manages the SQLAlchemy async engine for one SQLite database."""

    def __init__(self, config: DatabaseConfig):
        """
        Initialize database connection.

        Args:
            config: Database configuration with connection URL and timeouts
        """
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self._dialect = config.dialect
        self._driver = config.driver

    async def initialize(self) -> None:
        """Create the async engine."""
        if self.engine is not None:
            return  # Already initialized

        # Every operation opens and closes its own connection; nothing is pooled
        self.engine = create_async_engine(
            self.config.url,
            poolclass=NullPool,
            echo=self.config.echo_sql,
        )

    async def dispose(self) -> None:
        """Dispose of the engine and cleanup resources."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Open a connection as an async context manager.

        The connection is closed on every exit path.

        Yields:
            AsyncConnection for executing queries

        Raises:
            RuntimeError: If engine not initialized
            DatabaseConnectionError: If the database cannot be opened
        """
        if self.engine is None:
            raise RuntimeError(
                "DatabaseConnection not initialized. Call initialize() first."
            )

        path = self.config.database_path
        if path is not None and not Path(path).is_file():
            raise DatabaseConnectionError(f"Database file not found: {path}")

        try:
            conn = await self.engine.connect()
        except (DBAPIError, OSError) as e:
            raise DatabaseConnectionError(
                f"Cannot open database {self.config.database_name}: {e}"
            ) from e

        try:
            try:
                # Reads the header, so a non-SQLite file fails here
                await conn.execute(text("PRAGMA schema_version"))
                if self.config.read_only:
                    await self._set_readonly(conn)
            except DBAPIError as e:
                raise DatabaseConnectionError(
                    f"Cannot open database {self.config.database_name}: {e.orig}"
                ) from e

            yield conn
        finally:
            await conn.close()

    async def _set_readonly(self, conn: AsyncConnection) -> None:
        """Set connection to read-only mode."""
        if self._dialect == "sqlite":
            await conn.execute(text("PRAGMA query_only = ON"))

    @property
    def dialect(self) -> str:
        """Get database dialect name."""
        return self._dialect

    @property
    def driver(self) -> str:
        """Get database driver name."""
        return self._driver

    @property
    def database_name(self) -> str:
        """Logical database name."""
        return self.config.database_name

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
        except (DatabaseConnectionError, DBAPIError) as e:
            logger.debug(f"Connection test failed for {self.database_name}: {e}")
            return False

    async def get_version(self) -> str:
        """
        Get database version string.

        Returns:
            Database version string
        """
        async with self.get_connection() as conn:
            result = await conn.execute(text("SELECT sqlite_version()"))
            row = result.fetchone()
            return str(row[0]) if row else "Unknown"

    async def __aenter__(self) -> "DatabaseConnection":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.dispose()
