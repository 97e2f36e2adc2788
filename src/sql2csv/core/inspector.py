"""Schema introspection: tables, columns and row counts."""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional, Union

from sql2csv.core.connection import DatabaseConnection
from sql2csv.exceptions import OperationCancelledError
from sql2csv.models.table import TableInfo

if TYPE_CHECKING:
    from sql2csv.adapters.base import BaseAdapter
    from sql2csv.core.report import ReportFormat
    from sql2csv.models.table import ColumnInfo

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """Database structure lookup through the adapter's catalog queries."""

    def __init__(self, connection: DatabaseConnection, adapter: "BaseAdapter"):
        """
        Initialize schema introspector.

        Args:
            connection: Database connection manager
            adapter: Database-specific adapter for catalog queries
        """
        self.connection = connection
        self.adapter = adapter

    async def list_tables(self) -> list[str]:
        """
        List user tables.

        Returns:
            Table names in ascending order, empty for an empty database
        """
        async with self.connection.get_connection() as conn:
            names = await self.adapter.list_table_names(conn)

        logger.debug(f"Found {len(names)} tables in {self.connection.database_name}")
        return names

    async def list_columns(self, table_name: str) -> list["ColumnInfo"]:
        """
        List the columns of a table.

        Args:
            table_name: Table name

        Returns:
            Columns in declaration order, empty if the table does not exist
        """
        async with self.connection.get_connection() as conn:
            return await self.adapter.get_columns(conn, table_name)

    async def get_tables(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> list[TableInfo]:
        """
        Describe every user table including its row count.

        Issues one column query and one COUNT(*) per table.

        Args:
            cancel_event: Checked between tables

        Returns:
            Table descriptions in table-name order

        Raises:
            OperationCancelledError: If cancel_event is set between tables
        """
        tables: list[TableInfo] = []

        async with self.connection.get_connection() as conn:
            for name in await self.adapter.list_table_names(conn):
                if cancel_event is not None and cancel_event.is_set():
                    raise OperationCancelledError(
                        "Table introspection cancelled", partial=tables
                    )
                tables.append(await self._describe(conn, name))

        logger.debug(
            f"Retrieved information for {len(tables)} tables "
            f"in {self.connection.database_name}"
        )
        return tables

    async def get_table(self, table_name: str) -> Optional[TableInfo]:
        """
        Describe a single table.

        Args:
            table_name: Table name, matched case-insensitively

        Returns:
            Table description, or None if the table does not exist
        """
        async with self.connection.get_connection() as conn:
            names = await self.adapter.list_table_names(conn)
            resolved = resolve_table_name(table_name, names)
            if resolved is None:
                return None
            return await self._describe(conn, resolved)

    async def generate_report(
        self, report_format: Union["ReportFormat", str, None] = None
    ) -> str:
        """
        Render the database schema as text, Markdown or JSON.

        Args:
            report_format: Output format; unrecognized values fall back to text

        Returns:
            Rendered report
        """
        from sql2csv.core.report import ReportGenerator

        tables = await self.get_tables()
        return ReportGenerator().render(tables, report_format)

    async def _describe(self, conn, table_name: str) -> TableInfo:
        columns = await self.adapter.get_columns(conn, table_name)
        row_count = await self.adapter.count_rows(conn, table_name)
        return TableInfo(
            name=table_name,
            schema=self.adapter.default_schema,
            columns=columns,
            row_count=row_count,
        )


def resolve_table_name(requested: str, available: list[str]) -> Optional[str]:
    """Find a table by exact name, then case-insensitively."""
    if requested in available:
        return requested
    lowered = requested.lower()
    for name in available:
        if name.lower() == lowered:
            return name
    return None
