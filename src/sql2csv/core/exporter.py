"""Table-to-CSV export orchestration."""

import asyncio
import logging
import os
import time
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncConnection

from sql2csv.core.connection import DatabaseConnection
from sql2csv.core.serializer import CsvSerializer
from sql2csv.exceptions import OperationCancelledError
from sql2csv.models.config import DatabaseConfig, ExportConfig
from sql2csv.models.export import ExportResult, ExportSummary

if TYPE_CHECKING:
    from sql2csv.adapters.base import BaseAdapter

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def parse_table_filter(value: Optional[str]) -> Optional[list[str]]:
    """
    Split a comma/semicolon separated table list.

    Args:
        value: e.g. ``"users; orders,items"``

    Returns:
        Table names, or None when no filter was given
    """
    if value is None:
        return None
    names = [part.strip() for part in value.replace(";", ",").split(",")]
    names = [name for name in names if name]
    return names or None


def resolve_tables(
    available: Sequence[str], requested: Optional[Iterable[str]]
) -> tuple[list[str], list[str]]:
    """
    Intersect the available tables with a requested subset, ignoring case.

    Args:
        available: Table names in the database, in export order
        requested: Requested names, or None for all tables

    Returns:
        (tables to export in database order, requested names not found)
    """
    if requested is None:
        return list(available), []

    requested = list(requested)
    wanted = {name.lower() for name in requested}
    known = {name.lower() for name in available}

    resolved = [name for name in available if name.lower() in wanted]
    unknown = []
    for name in requested:
        if name.lower() not in known and name not in unknown:
            unknown.append(name)
    return resolved, unknown


class TableExporter:
    """Exports the tables of one database to CSV files, one table at a time."""

    def __init__(
        self,
        connection: DatabaseConnection,
        adapter: "BaseAdapter",
        options: Optional[ExportConfig] = None,
    ):
        """
        Initialize table exporter.

        Args:
            connection: Database connection manager
            adapter: Database-specific adapter for catalog and row queries
            options: Default export options
        """
        self.connection = connection
        self.adapter = adapter
        self.options = options or ExportConfig()

    def output_path_for(self, output_dir: PathLike, table_name: str) -> Path:
        """File the given table is exported to."""
        return Path(output_dir) / f"{table_name}{self.options.file_suffix}"

    async def export_database(
        self,
        output_dir: PathLike,
        tables: Optional[Iterable[str]] = None,
        delimiter: Optional[str] = None,
        include_headers: Optional[bool] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> list[ExportResult]:
        """
        Export every (or every requested) table to ``{table}_extract.csv``.

        A failing table is recorded and the remaining tables still run.

        Args:
            output_dir: Directory for the CSV files (created when needed)
            tables: Case-insensitive subset of tables to export
            delimiter: Delimiter override
            include_headers: Header row override
            cancel_event: Checked before each table

        Returns:
            One result per exported table, in table-name order

        Raises:
            DatabaseConnectionError: If the database cannot be opened
            OperationCancelledError: If cancel_event is set between tables
        """
        options = self.options.with_overrides(delimiter, include_headers)
        database_name = self.connection.database_name
        logger.info(f"Starting export for database: {database_name}")

        results: list[ExportResult] = []

        async with self.connection.get_connection() as conn:
            available = await self.adapter.list_table_names(conn)
            selected, unknown = resolve_tables(available, tables)

            if unknown:
                logger.warning(
                    f"The following requested tables were not found in "
                    f"{database_name}: {', '.join(unknown)}"
                )
            if not selected:
                logger.warning(f"No tables to export for database {database_name}")
                return []
            if tables is not None:
                logger.info(f"Filtered tables: {len(selected)}/{len(available)}")

            Path(output_dir).mkdir(parents=True, exist_ok=True)

            for index, table_name in enumerate(selected):
                if cancel_event is not None and cancel_event.is_set():
                    results.extend(
                        self._cancelled_result(name, output_dir)
                        for name in selected[index:]
                    )
                    logger.warning(
                        f"Export of {database_name} cancelled, "
                        f"{len(selected) - index} tables skipped"
                    )
                    raise OperationCancelledError(
                        f"Export of {database_name} cancelled", partial=results
                    )

                output_path = self.output_path_for(output_dir, table_name)
                results.append(
                    await self._export_table(conn, table_name, output_path, options)
                )

        failed = sum(1 for r in results if not r.success)
        logger.info(
            f"Completed export for database: {database_name} "
            f"({len(results) - failed} succeeded, {failed} failed)"
        )
        return results

    async def export_table(
        self,
        table_name: str,
        output_path: PathLike,
        delimiter: Optional[str] = None,
        include_headers: Optional[bool] = None,
    ) -> ExportResult:
        """
        Export a single table to the given file.

        Args:
            table_name: Table name
            output_path: CSV file path (parent directories are created)
            delimiter: Delimiter override
            include_headers: Header row override

        Returns:
            Export result; failures are reported, not raised
        """
        options = self.options.with_overrides(delimiter, include_headers)
        async with self.connection.get_connection() as conn:
            return await self._export_table(conn, table_name, Path(output_path), options)

    async def _export_table(
        self,
        conn: AsyncConnection,
        table_name: str,
        output_path: Path,
        options: ExportConfig,
    ) -> ExportResult:
        logger.debug(f"Exporting table {table_name} to {output_path}")

        start_time = time.perf_counter()
        write_path = (
            output_path.with_name(f".{output_path.name}.partial")
            if options.atomic_writes
            else output_path
        )
        row_count = 0

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)

            columns = await self.adapter.get_columns(conn, table_name)
            if not columns:
                raise LookupError(f"Table {table_name!r} does not exist")

            serializer = CsvSerializer(columns, options)
            rows = await self.adapter.stream_table(conn, table_name)
            try:
                with open(
                    write_path, "w", encoding=options.encoding, newline=""
                ) as sink:
                    row_count = await serializer.write_table(rows, sink)
            finally:
                await rows.close()

            if write_path != output_path:
                os.replace(write_path, output_path)

        except Exception as e:
            logger.error(
                f"Error exporting table {table_name} to {output_path}: {e}",
                exc_info=True,
            )
            if write_path != output_path:
                write_path.unlink(missing_ok=True)
            return ExportResult(
                database_name=self.connection.database_name,
                table_name=table_name,
                output_path=str(output_path),
                row_count=row_count,
                duration=timedelta(seconds=time.perf_counter() - start_time),
                success=False,
                error_message=str(e) or type(e).__name__,
            )
        except asyncio.CancelledError:
            if write_path != output_path:
                write_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Exported table {table_name} with {row_count} rows")
        return ExportResult(
            database_name=self.connection.database_name,
            table_name=table_name,
            output_path=str(output_path),
            row_count=row_count,
            duration=timedelta(seconds=time.perf_counter() - start_time),
            success=True,
        )

    def _cancelled_result(self, table_name: str, output_dir: PathLike) -> ExportResult:
        return ExportResult(
            database_name=self.connection.database_name,
            table_name=table_name,
            output_path=str(self.output_path_for(output_dir, table_name)),
            success=False,
            error_message="Export cancelled",
            cancelled=True,
        )


async def export_databases(
    configs: Sequence[DatabaseConfig],
    output_dir: PathLike,
    tables: Optional[Iterable[str]] = None,
    options: Optional[ExportConfig] = None,
    delimiter: Optional[str] = None,
    include_headers: Optional[bool] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> list[ExportResult]:
    """
    Export several databases, each into ``output_dir/<database name>``.

    Args:
        configs: Databases to export
        output_dir: Root output directory
        tables: Case-insensitive table subset applied to every database
        options: Export options
        delimiter: Delimiter override
        include_headers: Header row override
        cancel_event: Checked between databases and tables

    Returns:
        All table results, database by database
    """
    from sql2csv.adapters import create_adapter

    table_filter = list(tables) if tables is not None else None
    results: list[ExportResult] = []

    for config in configs:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError("Export cancelled", partial=results)

        async with DatabaseConnection(config) as connection:
            exporter = TableExporter(connection, create_adapter(config), options)
            try:
                results.extend(
                    await exporter.export_database(
                        Path(output_dir) / config.database_name,
                        tables=table_filter,
                        delimiter=delimiter,
                        include_headers=include_headers,
                        cancel_event=cancel_event,
                    )
                )
            except OperationCancelledError as e:
                results.extend(e.partial or [])
                raise OperationCancelledError("Export cancelled", partial=results)

    return results


def summarize(results: Sequence[ExportResult]) -> ExportSummary:
    """
    Total up a batch of export results and log the outcome.

    Args:
        results: Results from one or more databases

    Returns:
        Export summary
    """
    summary = ExportSummary.from_results(list(results))
    logger.info(
        f"Export completed: {summary.successful}/{summary.total_tables} tables, "
        f"{summary.total_rows} rows in {summary.total_duration.total_seconds():.2f}s"
    )
    for result in results:
        if not result.success and not result.cancelled:
            logger.warning(
                f"Failed: {result.database_name}.{result.table_name}: "
                f"{result.error_message}"
            )
    return summary
