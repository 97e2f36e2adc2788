"""Module Tests for SchemaIntrospector

Tests table listing, column description, row counts and schema reports
directly against temporary SQLite databases.
"""

import asyncio
import json

import pytest

from sql2csv.core import SchemaIntrospector
from sql2csv.exceptions import OperationCancelledError

pytestmark = pytest.mark.sqlite


class TestListTables:
    """Test table listing."""

    @pytest.mark.asyncio
    async def test_sorted_and_internal_tables_excluded(
        self, sample_introspector: SchemaIntrospector
    ):
        """Test sqlite_sequence is hidden and names are ordered."""
        tables = await sample_introspector.list_tables()
        assert tables == ["Empty", "Notes", "Orders", "Scores", "Users"]
        assert not any(t.startswith("sqlite_") for t in tables)

    @pytest.mark.asyncio
    async def test_empty_database(self, make_database, sample_adapter):
        """Test a database without tables lists nothing."""
        from sql2csv.core import DatabaseConnection
        from sql2csv.models.config import DatabaseConfig

        path = make_database("blank", "PRAGMA user_version = 1;")
        async with DatabaseConnection(DatabaseConfig.from_sqlite_file(path)) as db:
            introspector = SchemaIntrospector(db, sample_adapter)
            assert await introspector.list_tables() == []
            assert await introspector.get_tables() == []


class TestColumns:
    """Test column descriptions."""

    @pytest.mark.asyncio
    async def test_users_columns(self, sample_introspector: SchemaIntrospector):
        """Test names, types, nullability and keys."""
        columns = await sample_introspector.list_columns("Users")
        assert [(c.name, c.data_type) for c in columns] == [
            ("Id", "INTEGER"),
            ("Name", "TEXT"),
            ("Email", "TEXT"),
            ("Age", "INTEGER"),
        ]
        assert columns[0].primary_key
        assert not columns[1].nullable
        assert columns[2].nullable

    @pytest.mark.asyncio
    async def test_defaults(self, sample_introspector: SchemaIntrospector):
        """Test declared defaults are reported."""
        columns = await sample_introspector.list_columns("Orders")
        total = next(c for c in columns if c.name == "Total")
        assert total.default == "0"
        assert total.data_type == "DECIMAL(10,2)"

    @pytest.mark.asyncio
    async def test_unknown_table_has_no_columns(
        self, sample_introspector: SchemaIntrospector
    ):
        """Test a missing table is empty rather than an error."""
        assert await sample_introspector.list_columns("Nope") == []


class TestTables:
    """Test full table descriptions."""

    @pytest.mark.asyncio
    async def test_row_counts(self, sample_introspector: SchemaIntrospector):
        """Test every table is described with its row count."""
        tables = {t.name: t for t in await sample_introspector.get_tables()}
        assert tables["Users"].row_count == 3
        assert tables["Orders"].row_count == 2
        assert tables["Empty"].row_count == 0
        assert tables["Users"].schema == "main"

    @pytest.mark.asyncio
    async def test_get_table_case_insensitive(
        self, sample_introspector: SchemaIntrospector
    ):
        """Test single-table lookup ignores case."""
        table = await sample_introspector.get_table("users")
        assert table is not None
        assert table.name == "Users"
        assert await sample_introspector.get_table("missing") is None

    @pytest.mark.asyncio
    async def test_cancelled(self, sample_introspector: SchemaIntrospector):
        """Test a set cancel event stops before the first table."""
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(OperationCancelledError) as exc_info:
            await sample_introspector.get_tables(cancel_event=cancel)
        assert exc_info.value.partial == []


class TestGenerateReport:
    """Test reports produced from a live database."""

    @pytest.mark.asyncio
    async def test_json_round_trip(self, sample_introspector: SchemaIntrospector):
        """Test the JSON report reproduces table/column names and types."""
        report = json.loads(await sample_introspector.generate_report("json"))
        from_report = {
            (t["table"], c["name"], c["type"]) for t in report for c in t["columns"]
        }
        from_schema = {
            (t.name, c.name, c.data_type)
            for t in await sample_introspector.get_tables()
            for c in t.columns
        }
        assert from_report == from_schema

    @pytest.mark.asyncio
    async def test_default_is_text(self, sample_introspector: SchemaIntrospector):
        """Test no format and an invalid format both give text."""
        default_report = await sample_introspector.generate_report()
        invalid_report = await sample_introspector.generate_report("bogus")
        assert default_report.startswith("Table: Empty (0 rows)")
        assert invalid_report == default_report
        assert "Table: Users (3 rows)" in default_report

    @pytest.mark.asyncio
    async def test_markdown(self, sample_introspector: SchemaIntrospector):
        """Test one section per table."""
        report = await sample_introspector.generate_report("markdown")
        assert report.count("## Table: ") == 5
