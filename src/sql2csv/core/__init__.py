"""Core export, introspection and analysis components."""

from .analyzer import ColumnStatisticsAnalyzer
from .connection import DatabaseConnection
from .discovery import discover_databases
from .executor import TableDataService
from .exporter import TableExporter, export_databases, parse_table_filter, summarize
from .inspector import SchemaIntrospector
from .query_builder import TableQueryBuilder, validate_table
from .report import ReportFormat, ReportGenerator
from .serializer import CsvSerializer

__all__ = [
    "ColumnStatisticsAnalyzer",
    "CsvSerializer",
    "DatabaseConnection",
    "ReportFormat",
    "ReportGenerator",
    "SchemaIntrospector",
    "TableDataService",
    "TableExporter",
    "TableQueryBuilder",
    "discover_databases",
    "export_databases",
    "parse_table_filter",
    "summarize",
    "validate_table",
]
