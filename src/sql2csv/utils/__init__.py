"""Utility modules for sql2csv."""

from sql2csv.utils.serialization import (
    blob_to_text,
    convert_row_to_json_safe,
    convert_rows_to_json_safe,
    convert_value_to_json_safe,
    dumps,
)

__all__ = [
    "blob_to_text",
    "convert_value_to_json_safe",
    "convert_row_to_json_safe",
    "convert_rows_to_json_safe",
    "dumps",
]
