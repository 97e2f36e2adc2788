"""Unit tests for paged table query construction"""

import pytest

from sql2csv.adapters.sqlite import SQLiteAdapter
from sql2csv.core.query_builder import TableQueryBuilder, escape_like, validate_table
from sql2csv.exceptions import InvalidIdentifierError
from sql2csv.models.query import SortOrder
from sql2csv.models.table import ColumnInfo

COLUMNS = [
    ColumnInfo(name="Id", data_type="INTEGER", primary_key=True),
    ColumnInfo(name="Name", data_type="TEXT"),
    ColumnInfo(name='Odd"Name', data_type="TEXT"),
]


@pytest.fixture
def builder() -> TableQueryBuilder:
    return TableQueryBuilder("Users", COLUMNS, SQLiteAdapter())


class TestValidateTable:
    """Test the table allowlist."""

    def test_known_table(self):
        """Test exact and case-insensitive matches return the stored name."""
        assert validate_table("Users", ["Orders", "Users"]) == "Users"
        assert validate_table("users", ["Orders", "Users"]) == "Users"

    def test_unknown_table_fails_hard(self):
        """Test injection attempts and unknown tables raise."""
        with pytest.raises(InvalidIdentifierError):
            validate_table('Users"; DROP TABLE Users; --', ["Users"])
        with pytest.raises(ValueError):
            validate_table("Missing", ["Users"])


class TestBuild:
    """Test generated SQL and parameters."""

    def test_plain_page(self, builder):
        """Test no search and default sort by primary key."""
        query = builder.build()
        assert query.count_sql == 'SELECT COUNT(*) FROM "Users"'
        assert query.filtered_count_sql == 'SELECT COUNT(*) FROM "Users"'
        assert query.data_sql == (
            'SELECT "Id", "Name", "Odd""Name" FROM "Users" '
            'ORDER BY "Id" ASC LIMIT :limit OFFSET :offset'
        )
        assert query.params == {"limit": 10, "offset": 0}
        assert query.filter_params == {}

    def test_search_covers_every_column(self, builder):
        """Test the term is OR-ed over all columns with quoted identifiers."""
        query = builder.build(search="jo")
        where = (
            '("Id" LIKE :search ESCAPE \'\\\' OR "Name" LIKE :search ESCAPE \'\\\' '
            'OR "Odd""Name" LIKE :search ESCAPE \'\\\')'
        )
        assert query.filtered_count_sql == f'SELECT COUNT(*) FROM "Users" WHERE {where}'
        assert f"WHERE {where} ORDER BY" in query.data_sql
        assert query.params["search"] == "%jo%"
        assert query.filter_params == {"search": "%jo%"}

    def test_search_term_is_bound_not_interpolated(self, builder):
        """Test quotes in the search term never reach the SQL text."""
        query = builder.build(search="x' OR '1'='1")
        assert "'1'='1" not in query.data_sql
        assert query.params["search"] == "%x' OR '1'='1%"

    def test_like_wildcards_escaped(self):
        """Test % _ and the escape character match literally."""
        assert escape_like("50%") == "50\\%"
        assert escape_like("a_b") == "a\\_b"
        assert escape_like("c:\\dir") == "c:\\\\dir"

    def test_sort_by_index_and_direction(self, builder):
        """Test sort keys map to quoted column names."""
        query = builder.build(
            order=[SortOrder(column=1, direction="desc"), SortOrder(column=0)]
        )
        assert 'ORDER BY "Name" DESC, "Id" ASC' in query.data_sql

    def test_invalid_sort_index_ignored(self, builder):
        """Test out-of-range indices fall back to the primary key."""
        query = builder.build(order=[SortOrder(column=9), SortOrder(column=-1)])
        assert 'ORDER BY "Id" ASC' in query.data_sql

    def test_rowid_fallback_without_primary_key(self):
        """Test tables without a key sort by rowid."""
        builder = TableQueryBuilder(
            "Notes", [ColumnInfo(name="Body", data_type="TEXT")], SQLiteAdapter()
        )
        assert "ORDER BY rowid ASC" in builder.build().data_sql

    def test_paging(self, builder):
        """Test offset and limit parameters."""
        query = builder.build(start=20, length=5)
        assert query.params == {"limit": 5, "offset": 20}

    def test_negative_length_means_all_rows(self, builder):
        """Test length -1 disables the limit."""
        assert builder.build(length=-1).params["limit"] == -1
