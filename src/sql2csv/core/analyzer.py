"""Column statistics and data-quality analysis."""

import asyncio
import logging
import math
import time
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from sql2csv.core.connection import DatabaseConnection
from sql2csv.core.inspector import resolve_table_name
from sql2csv.exceptions import (
    InvalidIdentifierError,
    OperationCancelledError,
    UnknownIdentifierError,
)
from sql2csv.models.statistics import (
    DEFAULT_QUALITY_WEIGHTS,
    NULL_DISPLAY,
    ColumnAnalysis,
    DateTimeStats,
    NumericStats,
    QualityWeights,
    TableAnalysis,
    TextStats,
    ValueFrequency,
)
from sql2csv.models.table import ColumnInfo
from sql2csv.models.types import TypeCategory, parse_datetime
from sql2csv.utils.serialization import blob_to_text

if TYPE_CHECKING:
    from sql2csv.adapters.base import BaseAdapter

logger = logging.getLogger(__name__)

# Failures that degrade a statistic to None instead of failing the column
_DEGRADABLE = (SQLAlchemyError, asyncio.TimeoutError, TypeError, ValueError)


class ColumnStatisticsAnalyzer:
    """
    Per-column descriptive statistics.

    Each column costs a handful of sequential queries (row count, NULL count,
    distinct count, top values, plus one or two type-specific aggregates).
    Nothing is batched, so very wide or very large tables are slow.
    """

    def __init__(
        self,
        connection: DatabaseConnection,
        adapter: "BaseAdapter",
        weights: QualityWeights = DEFAULT_QUALITY_WEIGHTS,
        top_n: int = 10,
    ):
        """
        Initialize statistics analyzer.

        Args:
            connection: Database connection manager
            adapter: Database-specific adapter for quoting and execution
            weights: Weights of the data-quality score
            top_n: Number of most frequent values to report
        """
        self.connection = connection
        self.adapter = adapter
        self.weights = weights
        self.top_n = top_n

    async def analyze_column(
        self,
        table_name: str,
        column: Union[str, ColumnInfo],
        total_rows: Optional[int] = None,
    ) -> ColumnAnalysis:
        """
        Analyze a single column.

        Args:
            table_name: Table name (case-insensitive)
            column: Column name (case-insensitive) or a column description
            total_rows: Known row count, counted when omitted

        Returns:
            Column analysis

        Raises:
            InvalidIdentifierError: If the table does not exist
            UnknownIdentifierError: If the column does not exist
        """
        async with self.connection.get_connection() as conn:
            table_name, columns = await self._resolve_table(conn, table_name)
            if isinstance(column, str):
                column = _find_column(columns, column, table_name)
            return await self._analyze(conn, table_name, column, total_rows)

    async def analyze_table(
        self, table_name: str, cancel_event: Optional[asyncio.Event] = None
    ) -> TableAnalysis:
        """
        Analyze every column of a table.

        Args:
            table_name: Table name (case-insensitive)
            cancel_event: Checked between columns

        Returns:
            Table analysis; database failures are reported in error_message

        Raises:
            InvalidIdentifierError: If the table does not exist
            OperationCancelledError: If cancel_event is set between columns
        """
        database_name = self.connection.database_name
        start_time = time.perf_counter()
        analyses: list[ColumnAnalysis] = []
        row_count = 0

        logger.info(f"Analyzing table {database_name}.{table_name}")

        try:
            async with self.connection.get_connection() as conn:
                table_name, columns = await self._resolve_table(conn, table_name)
                row_count = await self.adapter.count_rows(conn, table_name)

                for column in columns:
                    if cancel_event is not None and cancel_event.is_set():
                        raise OperationCancelledError(
                            f"Analysis of {table_name} cancelled",
                            partial=TableAnalysis(
                                database_name=database_name,
                                table_name=table_name,
                                row_count=row_count,
                                columns=analyses,
                                duration=_elapsed(start_time),
                                success=False,
                                error_message="Analysis cancelled",
                                cancelled=True,
                            ),
                        )
                    analyses.append(
                        await self._analyze(conn, table_name, column, row_count)
                    )
        except (SQLAlchemyError, asyncio.TimeoutError) as e:
            logger.error(f"Error analyzing table {table_name}: {e}", exc_info=True)
            return TableAnalysis(
                database_name=database_name,
                table_name=table_name,
                row_count=row_count,
                columns=analyses,
                duration=_elapsed(start_time),
                success=False,
                error_message=str(e) or type(e).__name__,
            )

        analysis = TableAnalysis(
            database_name=database_name,
            table_name=table_name,
            row_count=row_count,
            columns=analyses,
            duration=_elapsed(start_time),
        )
        logger.info(
            f"Analyzed {analysis.total_columns} columns of {table_name} "
            f"(quality {analysis.data_quality_score:.2f})"
        )
        return analysis

    def quality_score(self, total: int, null_count: int, unique_count: int) -> float:
        """
        Weighted completeness/uniqueness heuristic, clamped to [0, 1].

        A table without rows scores 0.0.
        """
        if total <= 0:
            return 0.0
        completeness = 1 - null_count / total
        uniqueness = min(1.0, unique_count / total)
        score = (
            self.weights.completeness * completeness
            + self.weights.uniqueness * uniqueness
        )
        return min(1.0, max(0.0, score))

    async def _resolve_table(
        self, conn: AsyncConnection, table_name: str
    ) -> tuple[str, list[ColumnInfo]]:
        names = await self.adapter.list_table_names(conn)
        resolved = resolve_table_name(table_name, names)
        if resolved is None:
            raise InvalidIdentifierError(table_name, kind="table")
        return resolved, await self.adapter.get_columns(conn, resolved)

    async def _analyze(
        self,
        conn: AsyncConnection,
        table_name: str,
        column: ColumnInfo,
        total_rows: Optional[int],
    ) -> ColumnAnalysis:
        quote = self.adapter.quote_identifier
        table = quote(table_name)
        col = quote(column.name)

        if total_rows is None:
            total_rows = await self.adapter.count_rows(conn, table_name)

        null_count = await self._scalar(
            conn, f"SELECT COUNT(*) FROM {table} WHERE {col} IS NULL"
        )
        unique_count = await self._scalar(
            conn, f"SELECT COUNT(DISTINCT {col}) FROM {table}"
        )
        top_values = await self._top_values(conn, table, col, total_rows)

        category = column.category
        non_null = total_rows - null_count
        stats: Optional[Union[NumericStats, TextStats, DateTimeStats]] = None
        if category is TypeCategory.NUMERIC:
            stats = await self._numeric_stats(conn, table, col, non_null)
        elif category is TypeCategory.TEXT:
            stats = await self._text_stats(conn, table, col)
        elif category is TypeCategory.DATETIME:
            stats = await self._datetime_stats(conn, table, col)

        return ColumnAnalysis(
            name=column.name,
            data_type=column.data_type,
            nullable=column.nullable,
            primary_key=column.primary_key,
            default=column.default,
            total_count=total_rows,
            null_count=null_count,
            unique_count=unique_count,
            stats=stats,
            top_values=top_values,
            data_quality_score=self.quality_score(
                total_rows, null_count, unique_count
            ),
        )

    async def _scalar(
        self, conn: AsyncConnection, sql: str, params: Optional[dict] = None
    ) -> int:
        result = await self.adapter.execute(conn, sql, params)
        return int(result.scalar() or 0)

    async def _top_values(
        self, conn: AsyncConnection, table: str, col: str, total_rows: int
    ) -> list[ValueFrequency]:
        # Ties are broken by value ascending; NULL sorts first in SQLite
        result = await self.adapter.execute(
            conn,
            f"SELECT {col} AS value, COUNT(*) AS frequency FROM {table} "
            f"GROUP BY {col} ORDER BY frequency DESC, value ASC LIMIT :limit",
            {"limit": self.top_n},
        )
        return [
            ValueFrequency(
                value=_display(row.value),
                count=row.frequency,
                percentage=(
                    round(row.frequency / total_rows * 100, 2) if total_rows else 0.0
                ),
            )
            for row in result
        ]

    async def _numeric_stats(
        self, conn: AsyncConnection, table: str, col: str, non_null: int
    ) -> NumericStats:
        try:
            result = await self.adapter.execute(
                conn,
                f"SELECT MIN({col}), MAX({col}), AVG({col}), AVG({col} * {col}) "
                f"FROM {table} WHERE {col} IS NOT NULL",
            )
            min_value, max_value, mean, mean_square = result.one()
        except _DEGRADABLE as e:
            logger.warning(f"Numeric statistics unavailable for {col}: {e}")
            return NumericStats()

        mean = _to_float(mean)
        mean_square = _to_float(mean_square)
        stddev = None
        if mean is not None and mean_square is not None:
            stddev = math.sqrt(max(mean_square - mean * mean, 0.0))

        return NumericStats(
            min_value=_to_float(min_value),
            max_value=_to_float(max_value),
            mean_value=mean,
            median_value=await self._median(conn, table, col, non_null),
            stddev_value=stddev,
        )

    async def _median(
        self, conn: AsyncConnection, table: str, col: str, non_null: int
    ) -> Optional[float]:
        """Middle non-NULL value; the upper-middle one for even counts."""
        if non_null <= 0:
            return None
        try:
            result = await self.adapter.execute(
                conn,
                f"SELECT {col} FROM {table} WHERE {col} IS NOT NULL "
                f"ORDER BY {col} LIMIT 1 OFFSET :offset",
                {"offset": non_null // 2},
            )
            return _to_float(result.scalar())
        except _DEGRADABLE as e:
            logger.warning(f"Median unavailable for {col}: {e}")
            return None

    async def _text_stats(
        self, conn: AsyncConnection, table: str, col: str
    ) -> TextStats:
        length = f"{self.adapter.length_function}({col})"
        try:
            result = await self.adapter.execute(
                conn,
                f"SELECT MIN({length}), MAX({length}), AVG({length}) "
                f"FROM {table} WHERE {col} IS NOT NULL",
            )
            min_length, max_length, avg_length = result.one()
        except _DEGRADABLE as e:
            logger.warning(f"Text statistics unavailable for {col}: {e}")
            return TextStats()

        return TextStats(
            min_length=int(min_length) if min_length is not None else None,
            max_length=int(max_length) if max_length is not None else None,
            avg_length=_to_float(avg_length),
        )

    async def _datetime_stats(
        self, conn: AsyncConnection, table: str, col: str
    ) -> DateTimeStats:
        try:
            result = await self.adapter.execute(
                conn,
                f"SELECT MIN({col}), MAX({col}) FROM {table} "
                f"WHERE {col} IS NOT NULL",
            )
            min_date, max_date = result.one()
        except _DEGRADABLE as e:
            logger.warning(f"Date statistics unavailable for {col}: {e}")
            return DateTimeStats()

        return DateTimeStats(
            min_date=parse_datetime(min_date),
            max_date=parse_datetime(max_date),
        )


def _find_column(columns: list[ColumnInfo], name: str, table_name: str) -> ColumnInfo:
    for column in columns:
        if column.name == name:
            return column
    lowered = name.lower()
    for column in columns:
        if column.name.lower() == lowered:
            return column
    raise UnknownIdentifierError(name, table=table_name)


def _display(value: Any) -> str:
    if value is None:
        return NULL_DISPLAY
    if isinstance(value, (bytes, bytearray, memoryview)):
        return blob_to_text(bytes(value))
    return str(value)


def _to_float(value: Any) -> Optional[float]:
    """Numeric aggregate as float; text stored in a numeric column gives None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _elapsed(start_time: float) -> timedelta:
    return timedelta(seconds=time.perf_counter() - start_time)
