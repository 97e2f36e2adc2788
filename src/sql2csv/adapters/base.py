"""Base adapter abstract class for engine-specific SQL."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncResult

from sql2csv.models.table import ColumnInfo


class BaseAdapter(ABC):
    """
    Schema provider interface.

    Everything engine-specific (catalog queries, identifier quoting, the
    implicit row identity) lives behind this class so the exporter, analyzer
    and query builder stay engine-neutral.
    """

    #: Namespace reported for tables of this engine
    default_schema: str = "main"

    #: Character length function used by text statistics
    length_function: str = "LENGTH"

    def __init__(self, statement_timeout: Optional[float] = None):
        """
        Initialize the adapter.

        Args:
            statement_timeout: Per-query timeout in seconds (None for no limit)
        """
        self.statement_timeout = statement_timeout

    @abstractmethod
    async def list_table_names(self, conn: AsyncConnection) -> list[str]:
        """
        List user tables, excluding engine-internal ones, sorted by name.

        Args:
            conn: Database connection

        Returns:
            Table names in ascending order
        """
        ...

    @abstractmethod
    async def get_columns(
        self, conn: AsyncConnection, table_name: str
    ) -> list[ColumnInfo]:
        """
        Describe the columns of a table.

        Args:
            conn: Database connection
            table_name: Table name

        Returns:
            Columns in declaration order, empty for an unknown table
        """
        ...

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name for interpolation into SQL."""
        ...

    @property
    @abstractmethod
    def row_identity(self) -> str:
        """Expression giving a stable per-row order when no key is known."""
        ...

    async def count_rows(self, conn: AsyncConnection, table_name: str) -> int:
        """Count rows with COUNT(*)."""
        result = await self.execute(
            conn, f"SELECT COUNT(*) FROM {self.quote_identifier(table_name)}"
        )
        return int(result.scalar() or 0)

    async def stream_table(self, conn: AsyncConnection, table_name: str) -> AsyncResult:
        """
        Open a streaming cursor over every row of a table.

        Args:
            conn: Database connection
            table_name: Table name

        Returns:
            Async result yielding rows lazily
        """
        statement = text(f"SELECT * FROM {self.quote_identifier(table_name)}")
        return await self._with_timeout(conn.stream(statement))

    async def execute(
        self,
        conn: AsyncConnection,
        sql: str,
        params: Optional[dict[str, Any]] = None,
    ) -> CursorResult:
        """Execute a statement under the configured per-query timeout."""
        return await self._with_timeout(conn.execute(text(sql), params or {}))

    async def _with_timeout(self, awaitable):
        if self.statement_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.statement_timeout)

