"""CSV serialization with type-aware quoting."""

import csv
from datetime import time
from decimal import Decimal
from typing import Any, AsyncIterable, Optional, Sequence, TextIO

from sql2csv.models.config import ExportConfig
from sql2csv.models.table import ColumnInfo
from sql2csv.models.types import TypeCategory, parse_datetime
from sql2csv.utils.serialization import blob_to_text


def format_datetime(value: Any) -> str:
    """
    Render a date-time value for CSV output.

    Midnight values use the date-only form ``YYYY-MM-DD``, anything else the
    full ``YYYY-MM-DD HH:MM:SS`` form. Unparseable values are returned as text.
    """
    parsed = parse_datetime(value)
    if parsed is None:
        return str(value)
    if parsed.time() == time() and parsed.tzinfo is None:
        return parsed.date().isoformat()
    return parsed.isoformat(sep=" ")


class CsvSerializer:
    """
    Writes table rows as CSV.

    Quoting is decided by the column's declared type and the value itself:
    numbers in numeric columns are written bare, everything else is quoted
    with embedded quotes doubled. NULL is written as ``""``, the same as an
    empty string.
    """

    def __init__(
        self,
        columns: Sequence[ColumnInfo] = (),
        options: Optional[ExportConfig] = None,
    ):
        """
        Initialize the serializer.

        Args:
            columns: Column descriptions used to look up declared types
            options: Delimiter, header and line terminator settings
        """
        self.options = options or ExportConfig()
        self._categories = {c.name: c.category for c in columns}
        self._categories_lower = {c.name.lower(): c.category for c in columns}

    def category_for(self, column_name: str) -> TypeCategory:
        """Type category of a result column (OTHER when undeclared)."""
        category = self._categories.get(column_name)
        if category is None:
            category = self._categories_lower.get(column_name.lower())
        return category or TypeCategory.OTHER

    def format_value(self, value: Any, category: TypeCategory) -> Any:
        """
        Prepare one value for the CSV writer.

        Returns a number for bare output or a string for quoted output.
        """
        if value is None:
            return ""

        if category is TypeCategory.NUMERIC and _is_number(value):
            return value

        if isinstance(value, (bytes, bytearray, memoryview)):
            return blob_to_text(bytes(value))

        if category is TypeCategory.DATETIME:
            return format_datetime(value)

        return str(value)

    def create_writer(self, sink: TextIO):
        """Create a csv writer configured with these options."""
        return csv.writer(
            sink,
            delimiter=self.options.delimiter,
            quotechar='"',
            doublequote=True,
            quoting=csv.QUOTE_NONNUMERIC,
            lineterminator=self.options.line_terminator,
        )

    def format_row(
        self, row: Sequence[Any], categories: Sequence[TypeCategory]
    ) -> list[Any]:
        return [self.format_value(v, c) for v, c in zip(row, categories)]

    async def write_table(
        self,
        rows: AsyncIterable[Sequence[Any]],
        sink: TextIO,
        column_names: Optional[Sequence[str]] = None,
    ) -> int:
        """
        Write the header (if enabled) and all rows, then flush.

        Args:
            rows: Async row source; an AsyncResult supplies its own column names
            sink: Text stream opened with newline=""
            column_names: Result column names, when rows cannot report them

        Returns:
            Number of data rows written
        """
        if column_names is None:
            column_names = list(rows.keys())  # type: ignore[attr-defined]

        writer = self.create_writer(sink)
        categories = [self.category_for(name) for name in column_names]

        if self.options.include_headers:
            writer.writerow([str(name) for name in column_names])

        row_count = 0
        async for row in rows:
            writer.writerow(self.format_row(row, categories))
            row_count += 1

        sink.flush()
        return row_count


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)

