"""Declared-type classification shared by CSV quoting and column statistics."""

import re
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional


class TypeCategory(str, Enum):
    """Output-formatting behavior for a declared column type."""

    NUMERIC = "numeric"
    TEXT = "text"
    DATETIME = "datetime"
    BLOB = "blob"
    OTHER = "other"


NUMERIC_TYPES = frozenset({"INTEGER", "REAL", "NUMERIC", "DECIMAL", "FLOAT", "DOUBLE"})
TEXT_TYPES = frozenset({"TEXT", "VARCHAR", "CHAR", "STRING"})
DATETIME_TYPES = frozenset({"DATETIME", "DATE", "TIME", "TIMESTAMP"})
BLOB_TYPES = frozenset({"BLOB"})

# VARCHAR(255), DECIMAL(10, 2)
_SIZE_SUFFIX = re.compile(r"\s*\(.*\)\s*$")


def normalize_type(data_type: Optional[str]) -> str:
    """Upper-case a declared type and drop any size/precision suffix."""
    if not data_type:
        return ""
    return _SIZE_SUFFIX.sub("", data_type.strip()).strip().upper()


def classify_type(data_type: Optional[str]) -> TypeCategory:
    """
    Map a declared storage type to its category.

    Never raises: unknown, empty and None types are OTHER.

    Args:
        data_type: Declared column type as reported by the engine

    Returns:
        Type category
    """
    name = normalize_type(data_type)

    if name in NUMERIC_TYPES:
        return TypeCategory.NUMERIC
    if name in TEXT_TYPES:
        return TypeCategory.TEXT
    if name in DATETIME_TYPES:
        return TypeCategory.DATETIME
    if name in BLOB_TYPES:
        return TypeCategory.BLOB
    return TypeCategory.OTHER


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Interpret a stored value as a date-time.

    Args:
        value: datetime, date, or ISO-8601 text as stored by SQLite

    Returns:
        Parsed value, or None when the value is not a recognizable date-time
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None
