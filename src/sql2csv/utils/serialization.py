"""JSON serialization utilities using orjson for speed and correctness.

orjson handles most row values automatically and correctly:
- datetime, date, time → ISO format
- UUID → string
- dataclasses, pydantic models → dict

We only need to handle a few special cases.
"""

import base64
import datetime
import decimal
from typing import Any

import orjson


def blob_to_text(data: bytes) -> str:
    """
    Render binary data as text.

    Args:
        data: Raw bytes

    Returns:
        The UTF-8 decoded text when valid, otherwise base64
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return base64.b64encode(data).decode("ascii")


def _default_handler(obj: Any) -> Any:
    """
    Custom default handler for types orjson doesn't handle natively.

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation

    Raises:
        TypeError: If object cannot be serialized
    """
    # timedelta - convert to total seconds
    if isinstance(obj, datetime.timedelta):
        return obj.total_seconds()

    # Decimal - keep precision as text
    if isinstance(obj, decimal.Decimal):
        return str(obj)

    # bytes/bytearray - try UTF-8 decode, fall back to base64
    if isinstance(obj, (bytes, bytearray)):
        return blob_to_text(bytes(obj))

    if isinstance(obj, memoryview):
        return blob_to_text(bytes(obj))

    # Sets - convert to list
    if isinstance(obj, set):
        return list(obj)

    # Fallback for other types
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def convert_value_to_json_safe(value: Any) -> Any:
    """
    Convert a value to JSON-serializable format.

    Uses orjson's serialization and decodes back to Python objects.
    This ensures consistency with what will actually be serialized.

    Args:
        value: Value to convert

    Returns:
        JSON-serializable value
    """
    try:
        json_bytes = orjson.dumps(value, default=_default_handler)
        return orjson.loads(json_bytes)
    except TypeError:
        # If orjson can't handle it, convert to string as fallback
        return str(value)


def convert_row_to_json_safe(row: dict[str, Any]) -> dict[str, Any]:
    """
    Convert all values in a row dict to JSON-serializable formats.

    Args:
        row: Dictionary representing a database row

    Returns:
        Dictionary with JSON-serializable values
    """
    return {key: convert_value_to_json_safe(value) for key, value in row.items()}


def convert_rows_to_json_safe(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Convert all rows to JSON-serializable format.

    Args:
        rows: List of row dictionaries

    Returns:
        List of dictionaries with JSON-serializable values
    """
    return [convert_row_to_json_safe(row) for row in rows]


def dumps(obj: Any, indent: bool = False) -> str:
    """
    Serialize object to JSON string using orjson.

    Args:
        obj: Object to serialize
        indent: Pretty-print with two-space indentation

    Returns:
        JSON string
    """
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(obj, default=_default_handler, option=option).decode("utf-8")
