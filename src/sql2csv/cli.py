"""Command-line interface: export, schema, discover and analyze."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from sql2csv import __version__
from sql2csv.adapters import create_adapter
from sql2csv.core import (
    ColumnStatisticsAnalyzer,
    DatabaseConnection,
    ReportFormat,
    ReportGenerator,
    SchemaIntrospector,
    discover_databases,
    export_databases,
    parse_table_filter,
    summarize,
)
from sql2csv.core.exporter import resolve_tables
from sql2csv.exceptions import (
    InvalidIdentifierError,
    OperationCancelledError,
    Sql2CsvError,
)
from sql2csv.models.config import DatabaseConfig, Settings
from sql2csv.models.statistics import ColumnAnalysis

logger = logging.getLogger(__name__)

REPORT_EXTENSIONS = {
    ReportFormat.TEXT: "txt",
    ReportFormat.MARKDOWN: "md",
    ReportFormat.JSON: "json",
}


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Create the argument parser with defaults taken from settings."""
    parser = argparse.ArgumentParser(
        prog="sql2csv",
        description="Export SQLite databases to CSV, report schemas and profile columns",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_path(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--path",
            default=settings.data_path,
            help="Directory containing *.db files, or a single database file "
            "(default: %(default)s)",
        )

    def add_table_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--tables",
            help="Comma or semicolon separated tables (case-insensitive)",
        )
        sub.add_argument(
            "--delimiter",
            help="Field delimiter, '\\t' or 'tab' for tab (default: ',')",
        )
        sub.add_argument(
            "--headers",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Write a header row (default: yes)",
        )

    export = subparsers.add_parser("export", help="Export tables to CSV files")
    add_path(export)
    export.add_argument(
        "--output",
        default=settings.output_path,
        help="Output directory (default: %(default)s)",
    )
    add_table_options(export)

    schema = subparsers.add_parser("schema", help="Print schema reports")
    add_path(schema)
    schema.add_argument("--output", help="Write one report file per database here")
    schema.add_argument(
        "--format",
        default="text",
        help="Report format: text, markdown or json (default: %(default)s)",
    )
    add_table_options(schema)

    discover = subparsers.add_parser("discover", help="List database files")
    add_path(discover)

    analyze = subparsers.add_parser("analyze", help="Profile the columns of a table")
    add_path(analyze)
    analyze.add_argument("--table", required=True, help="Table name")
    analyze.add_argument("--column", help="Analyze only this column")

    return parser


async def run_export(args: argparse.Namespace, settings: Settings) -> int:
    databases = _discover(args.path, settings)
    if not databases:
        print(f"No databases found in '{args.path}'.", file=sys.stderr)
        return 1

    try:
        results = await export_databases(
            databases,
            args.output,
            tables=parse_table_filter(args.tables),
            options=settings.export,
            delimiter=args.delimiter,
            include_headers=args.headers,
        )
    except OperationCancelledError as e:
        results = e.partial or []
        print("Export cancelled.", file=sys.stderr)

    summary = summarize(results)
    for result in results:
        status = "OK" if result.success else f"FAILED ({result.error_message})"
        print(
            f"{result.database_name}.{result.table_name}: {result.row_count} rows "
            f"-> {result.output_path} [{status}]"
        )
    print(
        f"Exported {summary.successful}/{summary.total_tables} tables, "
        f"{summary.total_rows} rows in {summary.total_duration.total_seconds():.2f}s"
    )
    return 0 if summary.all_succeeded else 1


async def run_schema(args: argparse.Namespace, settings: Settings) -> int:
    databases = _discover(args.path, settings)
    if not databases:
        print(f"No databases found in '{args.path}'.", file=sys.stderr)
        return 1

    report_format = ReportFormat.parse(args.format)
    requested = parse_table_filter(args.tables)
    generator = ReportGenerator()

    for config in databases:
        async with DatabaseConnection(config) as connection:
            tables = await SchemaIntrospector(
                connection, create_adapter(config)
            ).get_tables()

        if requested is not None:
            selected, unknown = resolve_tables([t.name for t in tables], requested)
            if unknown:
                logger.warning(f"Tables not found in {config.database_name}: {unknown}")
            tables = [t for t in tables if t.name in selected]

        report = generator.render(tables, report_format)
        if args.output:
            output_dir = Path(args.output)
            output_dir.mkdir(parents=True, exist_ok=True)
            path = output_dir / (
                f"{config.database_name}_schema.{REPORT_EXTENSIONS[report_format]}"
            )
            path.write_text(report, encoding=settings.export.encoding)
            print(f"Schema report for {config.database_name} written to {path}")
        else:
            print(f"\n=== Schema Report for {config.database_name} ===")
            print(report)

    return 0


def run_discover(args: argparse.Namespace, settings: Settings) -> int:
    databases = _discover(args.path, settings)
    print(f"Discovered {len(databases)} database(s) in '{args.path}'.")
    for config in databases:
        print(f" - {config.database_name}")
    return 0


async def run_analyze(args: argparse.Namespace, settings: Settings) -> int:
    databases = _discover(args.path, settings)
    if not databases:
        print(f"No databases found in '{args.path}'.", file=sys.stderr)
        return 1

    analyzed = 0
    failed = False
    for config in databases:
        async with DatabaseConnection(config) as connection:
            analyzer = ColumnStatisticsAnalyzer(connection, create_adapter(config))
            try:
                if args.column:
                    columns = [await analyzer.analyze_column(args.table, args.column)]
                else:
                    analysis = await analyzer.analyze_table(args.table)
                    if not analysis.success:
                        print(
                            f"{config.database_name}.{args.table}: "
                            f"{analysis.error_message}",
                            file=sys.stderr,
                        )
                        failed = True
                        continue
                    columns = analysis.columns
            except InvalidIdentifierError as e:
                logger.warning(f"Skipping {config.database_name}: {e}")
                continue

        analyzed += 1
        print(f"\n=== {config.database_name}.{args.table} ===")
        for column in columns:
            print(format_column_analysis(column))

    if analyzed == 0 and not failed:
        target = f"{args.table}.{args.column}" if args.column else args.table
        print(f"Error: {target} not found in any database.", file=sys.stderr)
        return 1
    return 1 if failed else 0


def format_column_analysis(column: ColumnAnalysis) -> str:
    """Human-readable summary of one column analysis."""
    lines = [
        f"{column.name} ({column.data_type})",
        f"  rows: {column.total_count}  nulls: {column.null_count} "
        f"({column.null_percentage}%)  distinct: {column.unique_count}",
        f"  quality: {column.data_quality_score:.2f} ({column.quality_label})",
    ]

    numeric = column.numeric_stats
    if numeric is not None:
        lines.append(
            f"  min: {numeric.min_value}  max: {numeric.max_value}  "
            f"mean: {numeric.mean_value}  median: {numeric.median_value}  "
            f"stddev: {numeric.stddev_value}"
        )
    text_stats = column.text_stats
    if text_stats is not None:
        lines.append(
            f"  length min: {text_stats.min_length}  max: {text_stats.max_length}  "
            f"avg: {text_stats.avg_length}"
        )
    dates = column.datetime_stats
    if dates is not None:
        lines.append(f"  earliest: {dates.min_date}  latest: {dates.max_date}")

    if column.top_values:
        lines.append("  top values:")
        for value in column.top_values:
            lines.append(
                f"    {value.display_value}: {value.count} ({value.percentage}%)"
            )
    return "\n".join(lines)


def _discover(path: str, settings: Settings) -> list[DatabaseConfig]:
    return discover_databases(path, statement_timeout=settings.timeout)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the command line.

    Returns:
        Process exit code: 0 on success, 1 on any failure, 130 when interrupted
    """
    settings = Settings.from_env()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "export":
            return asyncio.run(run_export(args, settings))
        if args.command == "schema":
            return asyncio.run(run_schema(args, settings))
        if args.command == "analyze":
            return asyncio.run(run_analyze(args, settings))
        return run_discover(args, settings)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130
    except (Sql2CsvError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
