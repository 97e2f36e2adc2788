"""Schema report rendering in text, Markdown and JSON."""

import logging
from enum import Enum
from typing import Any, Optional, Union

from sql2csv.models.table import ColumnInfo, TableInfo
from sql2csv.utils.serialization import dumps

logger = logging.getLogger(__name__)


class ReportFormat(str, Enum):
    """Supported schema report formats."""

    TEXT = "text"
    MARKDOWN = "markdown"
    JSON = "json"

    @classmethod
    def parse(cls, value: Union["ReportFormat", str, None]) -> "ReportFormat":
        """
        Resolve a format name.

        None, empty and unrecognized values fall back to text.

        Args:
            value: Format name (case-insensitive) or ReportFormat

        Returns:
            Report format
        """
        if isinstance(value, ReportFormat):
            return value
        if not value:
            return cls.TEXT

        normalized = value.strip().lower()
        if normalized == "md":
            return cls.MARKDOWN
        try:
            return cls(normalized)
        except ValueError:
            logger.warning(f"Unknown report format {value!r}, using text")
            return cls.TEXT


class ReportGenerator:
    """Render table descriptions as a schema report."""

    RULE_WIDTH = 50

    def render(
        self,
        tables: list[TableInfo],
        report_format: Union[ReportFormat, str, None] = None,
    ) -> str:
        """
        Render tables in the requested format.

        Args:
            tables: Table descriptions from the introspector
            report_format: Output format (defaults to text)

        Returns:
            Rendered report
        """
        fmt = ReportFormat.parse(report_format)
        if fmt is ReportFormat.MARKDOWN:
            return self.render_markdown(tables)
        if fmt is ReportFormat.JSON:
            return self.render_json(tables)
        return self.render_text(tables)

    def render_text(self, tables: list[TableInfo]) -> str:
        lines: list[str] = []
        for table in tables:
            lines.append(f"Table: {table.name} ({table.row_count} rows)")
            lines.append("-" * self.RULE_WIDTH)
            for column in table.columns:
                nullable = "NULL" if column.nullable else "NOT NULL"
                primary_key = " PRIMARY KEY" if column.primary_key else ""
                default = f" DEFAULT {column.default}" if column.default else ""
                lines.append(
                    f"  {column.name} ({column.data_type}) "
                    f"{nullable}{primary_key}{default}"
                )
            lines.append("")
        return "\n".join(lines) + ("\n" if lines else "")

    def render_markdown(self, tables: list[TableInfo]) -> str:
        lines = ["# Database Schema Report", ""]
        for table in tables:
            lines.append(f"## Table: {table.name}")
            lines.append("")
            lines.append(f"Rows: {table.row_count}")
            lines.append("")
            lines.append("| Column | Type | Nullable | PK | Default |")
            lines.append("|--------|------|----------|----|---------|")
            for column in table.columns:
                lines.append(
                    "| {name} | {type} | {nullable} | {pk} | {default} |".format(
                        name=_md_cell(column.name),
                        type=_md_cell(column.data_type),
                        nullable="YES" if column.nullable else "NO",
                        pk="YES" if column.primary_key else "",
                        default=_md_cell(column.default or ""),
                    )
                )
            lines.append("")
        return "\n".join(lines)

    def render_json(self, tables: list[TableInfo]) -> str:
        return dumps([_table_to_dict(t) for t in tables], indent=True)


def _column_to_dict(column: ColumnInfo) -> dict[str, Any]:
    return {
        "name": column.name,
        "type": column.data_type,
        "nullable": column.nullable,
        "primaryKey": column.primary_key,
        "default": column.default,
    }


def _table_to_dict(table: TableInfo) -> dict[str, Any]:
    return {
        "table": table.name,
        "columns": [_column_to_dict(c) for c in table.columns],
    }


def _md_cell(value: Optional[str]) -> str:
    """Escape pipes so a value cannot break the table layout."""
    return (value or "").replace("|", "\\|").replace("\n", " ")
