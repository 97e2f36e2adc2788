"""
sql2csv - SQLite to CSV export, schema reports and column analysis

Exports every table of a SQLite database to its own CSV file, renders the
schema as text, Markdown or JSON, and profiles columns with descriptive
statistics. Available as a command-line tool and as an MCP server.
"""

__version__ = "1.0.0"

from .exceptions import (
    DatabaseConnectionError,
    InvalidIdentifierError,
    OperationCancelledError,
    Sql2CsvError,
    UnknownIdentifierError,
)
from .models.config import DatabaseConfig, ExportConfig, Settings
from .models.export import ExportResult, ExportSummary
from .models.statistics import ColumnAnalysis, TableAnalysis, ValueFrequency
from .models.table import ColumnInfo, TableInfo
from .models.types import TypeCategory, classify_type

__all__ = [
    "DatabaseConnectionError",
    "InvalidIdentifierError",
    "OperationCancelledError",
    "Sql2CsvError",
    "UnknownIdentifierError",
    "DatabaseConfig",
    "ExportConfig",
    "Settings",
    "ExportResult",
    "ExportSummary",
    "ColumnAnalysis",
    "TableAnalysis",
    "ValueFrequency",
    "ColumnInfo",
    "TableInfo",
    "TypeCategory",
    "classify_type",
]
