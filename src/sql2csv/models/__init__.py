"""Pydantic models for database metadata and results."""

from .config import DatabaseConfig, ExportConfig, Settings
from .export import ExportResult, ExportSummary
from .query import BuiltQuery, SortOrder, TableDataPage, TableDataRequest
from .statistics import (
    ColumnAnalysis,
    DateTimeStats,
    NumericStats,
    QualityWeights,
    TableAnalysis,
    TextStats,
    ValueFrequency,
)
from .table import ColumnInfo, TableInfo
from .types import TypeCategory, classify_type

__all__ = [
    "DatabaseConfig",
    "ExportConfig",
    "Settings",
    "ExportResult",
    "ExportSummary",
    "BuiltQuery",
    "SortOrder",
    "TableDataPage",
    "TableDataRequest",
    "ColumnAnalysis",
    "DateTimeStats",
    "NumericStats",
    "QualityWeights",
    "TableAnalysis",
    "TextStats",
    "ValueFrequency",
    "ColumnInfo",
    "TableInfo",
    "TypeCategory",
    "classify_type",
]
