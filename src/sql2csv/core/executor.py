"""Paged, searchable table data for the table view."""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy.exc import SQLAlchemyError

from sql2csv.core.connection import DatabaseConnection
from sql2csv.core.query_builder import TableQueryBuilder, validate_table
from sql2csv.models.query import TableDataPage, TableDataRequest
from sql2csv.utils import convert_rows_to_json_safe

if TYPE_CHECKING:
    from sql2csv.adapters.base import BaseAdapter

logger = logging.getLogger(__name__)


class TableDataService:
    """Runs search/sort/paging requests against whole tables."""

    def __init__(self, connection: DatabaseConnection, adapter: "BaseAdapter"):
        """
        Initialize table data service.

        Args:
            connection: Database connection manager
            adapter: Database-specific adapter
        """
        self.connection = connection
        self.adapter = adapter

    async def get_table_data(
        self, table_name: str, request: Optional[TableDataRequest] = None
    ) -> TableDataPage:
        """
        Fetch one page of a table.

        Args:
            table_name: Table name, checked against the database's tables
            request: Search, sort and paging parameters

        Returns:
            Page envelope; query failures are reported in its error field

        Raises:
            InvalidIdentifierError: If the table does not exist
        """
        request = request or TableDataRequest()

        async with self.connection.get_connection() as conn:
            table_name = validate_table(
                table_name, await self.adapter.list_table_names(conn)
            )
            columns = await self.adapter.get_columns(conn, table_name)
            query = TableQueryBuilder(table_name, columns, self.adapter).build(
                search=request.search,
                order=request.order,
                start=request.start,
                length=request.length,
            )

            try:
                total = await self.adapter.execute(conn, query.count_sql)
                records_total = int(total.scalar() or 0)

                filtered = await self.adapter.execute(
                    conn, query.filtered_count_sql, query.filter_params
                )
                records_filtered = int(filtered.scalar() or 0)

                result = await self.adapter.execute(conn, query.data_sql, query.params)
                rows = [dict(row) for row in result.mappings()]
            except (SQLAlchemyError, asyncio.TimeoutError) as e:
                logger.error(f"Error loading data for table {table_name}: {e}")
                return TableDataPage(draw=request.draw, error=str(e) or type(e).__name__)

        return TableDataPage(
            draw=request.draw,
            records_total=records_total,
            records_filtered=records_filtered,
            data=convert_rows_to_json_safe(rows),
        )
