"""Tests for the orjson-based JSON helpers used for reports and table data."""

import datetime
import decimal
import json

import orjson

from sql2csv.utils import (
    blob_to_text,
    convert_row_to_json_safe,
    convert_rows_to_json_safe,
    convert_value_to_json_safe,
    dumps,
)


class TestBlobToText:
    """Test rendering of binary column values."""

    def test_utf8_bytes_decoded(self):
        """Test valid UTF-8 is returned as text."""
        assert blob_to_text("héllo".encode("utf-8")) == "héllo"

    def test_binary_bytes_base64(self):
        """Test invalid UTF-8 falls back to base64."""
        assert blob_to_text(b"\x89PNG\xff") == "iVBOR/8="


class TestConvertValue:
    """Test conversion of SQLite row values."""

    def test_native_types_unchanged(self):
        """Test values orjson handles natively."""
        assert convert_value_to_json_safe(None) is None
        assert convert_value_to_json_safe(42) == 42
        assert convert_value_to_json_safe(3.5) == 3.5
        assert convert_value_to_json_safe("text") == "text"

    def test_datetime_iso_format(self):
        """Test datetimes become ISO strings."""
        value = datetime.datetime(2024, 1, 15, 10, 30)
        assert convert_value_to_json_safe(value) == "2024-01-15T10:30:00"

    def test_decimal_keeps_precision(self):
        """Test Decimal becomes its exact string."""
        assert convert_value_to_json_safe(decimal.Decimal("19.990")) == "19.990"

    def test_bytes(self):
        """Test BLOB values become text."""
        assert convert_value_to_json_safe(b"abc") == "abc"
        assert convert_value_to_json_safe(memoryview(b"abc")) == "abc"

    def test_timedelta_seconds(self):
        """Test timedelta becomes total seconds."""
        assert convert_value_to_json_safe(datetime.timedelta(minutes=1)) == 60.0

    def test_unknown_type_falls_back_to_str(self):
        """Test types nothing handles are stringified."""

        class Custom:
            def __str__(self):
                return "custom_value"

        assert convert_value_to_json_safe(Custom()) == "custom_value"


class TestConvertRows:
    """Test row-level conversion used by the table data view."""

    def test_rows(self):
        """Test every value of every row is converted."""
        rows = [
            {"Id": 1, "Data": b"\x00\xff", "Price": decimal.Decimal("1.50")},
            {"Id": 2, "Data": None, "Price": None},
        ]
        result = convert_rows_to_json_safe(rows)
        assert result[0] == {"Id": 1, "Data": "AP8=", "Price": "1.50"}
        assert result[1] == {"Id": 2, "Data": None, "Price": None}
        assert convert_row_to_json_safe({}) == {}

    def test_result_is_orjson_serializable(self):
        """Test converted rows serialize without a default handler."""
        rows = convert_rows_to_json_safe(
            [{"when": datetime.date(2024, 1, 15), "blob": b"\xff"}]
        )
        assert orjson.loads(orjson.dumps(rows)) == [{"when": "2024-01-15", "blob": "/w=="}]


class TestDumps:
    """Test the JSON string helper."""

    def test_compact_and_indented(self):
        """Test both output styles parse to the same data."""
        data = {"table": "Users", "columns": [{"name": "Id"}]}
        compact = dumps(data)
        indented = dumps(data, indent=True)
        assert "\n" not in compact
        assert "\n  " in indented
        assert json.loads(compact) == json.loads(indented) == data

    def test_special_types(self):
        """Test types needing the default handler."""
        result = json.loads(
            dumps(
                {
                    "duration": datetime.timedelta(seconds=1.5),
                    "amount": decimal.Decimal("2.50"),
                    "tags": {"x"},
                }
            )
        )
        assert result == {"duration": 1.5, "amount": "2.50", "tags": ["x"]}
