"""Search/sort/paging SQL for the table data view."""

from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from sql2csv.core.inspector import resolve_table_name
from sql2csv.exceptions import InvalidIdentifierError
from sql2csv.models.query import BuiltQuery, SortOrder
from sql2csv.models.table import ColumnInfo

if TYPE_CHECKING:
    from sql2csv.adapters.base import BaseAdapter

LIKE_ESCAPE = "\\"


def validate_table(table_name: str, available: Sequence[str]) -> str:
    """
    Check a table name against the introspected table list.

    Args:
        table_name: Requested table name
        available: Tables that exist in the database

    Returns:
        The table name as stored in the database

    Raises:
        InvalidIdentifierError: If the table is not in the list
    """
    resolved = resolve_table_name(table_name, list(available))
    if resolved is None:
        raise InvalidIdentifierError(table_name, kind="table")
    return resolved


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


class TableQueryBuilder:
    """
    Builds the count, filtered count and page queries for one table.

    Identifiers only ever come from the introspected column list and are
    quoted by the adapter; the search term and paging values are bound
    parameters. Search matching is case-insensitive for ASCII only, which is
    SQLite's LIKE default.
    """

    def __init__(
        self,
        table_name: str,
        columns: Sequence[ColumnInfo],
        adapter: "BaseAdapter",
    ):
        """
        Initialize the query builder.

        Args:
            table_name: Validated table name (see validate_table)
            columns: Introspected columns of the table
            adapter: Adapter used for identifier quoting
        """
        self.table_name = table_name
        self.columns = list(columns)
        self.adapter = adapter

    def build(
        self,
        search: Optional[str] = None,
        order: Iterable[SortOrder] = (),
        start: int = 0,
        length: int = 10,
    ) -> BuiltQuery:
        """
        Build the SQL for one page request.

        Args:
            search: Free-text term matched against every column
            order: Sort keys by column index; invalid indices are ignored
            start: Offset of the first row
            length: Page size; negative means all rows

        Returns:
            Statements and bound parameters
        """
        table = self.adapter.quote_identifier(self.table_name)
        params: dict = {
            "limit": length if length >= 0 else -1,
            "offset": max(start, 0),
        }

        where = ""
        if search and self.columns:
            params["search"] = f"%{escape_like(search)}%"
            where = f" WHERE {self._search_clause()}"

        return BuiltQuery(
            count_sql=f"SELECT COUNT(*) FROM {table}",
            filtered_count_sql=f"SELECT COUNT(*) FROM {table}{where}",
            data_sql=(
                f"SELECT {self._select_list()} FROM {table}{where} "
                f"ORDER BY {self._order_clause(order)} "
                f"LIMIT :limit OFFSET :offset"
            ),
            params=params,
        )

    def _select_list(self) -> str:
        """Introspected columns in order, so sort indices match the row layout."""
        if not self.columns:
            return "*"
        return ", ".join(self.adapter.quote_identifier(c.name) for c in self.columns)

    def _search_clause(self) -> str:
        conditions = [
            f"{self.adapter.quote_identifier(c.name)} LIKE :search "
            f"ESCAPE '{LIKE_ESCAPE}'"
            for c in self.columns
        ]
        return "(" + " OR ".join(conditions) + ")"

    def _order_clause(self, order: Iterable[SortOrder]) -> str:
        quote = self.adapter.quote_identifier
        terms = [
            f"{quote(self.columns[o.column].name)} {o.direction.upper()}"
            for o in order
            if 0 <= o.column < len(self.columns)
        ]
        if terms:
            return ", ".join(terms)

        # Stable fallback: primary key, else the engine's row identity
        keys = [c.name for c in self.columns if c.primary_key]
        if keys:
            return ", ".join(f"{quote(k)} ASC" for k in keys)
        return f"{self.adapter.row_identity} ASC"
