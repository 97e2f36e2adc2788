"""SQLite adapter."""

from sqlalchemy.ext.asyncio import AsyncConnection

from sql2csv.adapters.base import BaseAdapter
from sql2csv.models.table import ColumnInfo

# Engine-internal tables (sqlite_sequence, sqlite_stat1, ...) share this prefix
RESERVED_PREFIX = "sqlite_"

# table_xinfo.hidden: 1 marks virtual-table hidden columns, 2 and 3 generated ones
HIDDEN_VIRTUAL_TABLE_COLUMN = 1


class SQLiteAdapter(BaseAdapter):
    """SQLite catalog access via sqlite_master and PRAGMA table_xinfo."""

    default_schema = "main"

    async def list_table_names(self, conn: AsyncConnection) -> list[str]:
        """List user tables in ascending name order."""
        # '_' is a LIKE wildcard, hence the escape
        result = await self.execute(
            conn,
            """
            SELECT name FROM sqlite_master
            WHERE type = 'table' AND name NOT LIKE :prefix ESCAPE '\\'
            ORDER BY name
            """,
            {"prefix": RESERVED_PREFIX.replace("_", "\\_") + "%"},
        )
        return [str(row[0]) for row in result.fetchall()]

    async def get_columns(
        self, conn: AsyncConnection, table_name: str
    ) -> list[ColumnInfo]:
        """
        Read PRAGMA table_xinfo; an unknown table yields no rows.

        Generated columns are included since SELECT * returns them.
        """
        result = await self.execute(
            conn, f"PRAGMA table_xinfo({self.quote_identifier(table_name)})"
        )
        columns = []
        for row in result.mappings().fetchall():
            if row["hidden"] == HIDDEN_VIRTUAL_TABLE_COLUMN:
                continue
            default = row["dflt_value"]
            columns.append(
                ColumnInfo(
                    name=str(row["name"]),
                    data_type=str(row["type"] or ""),
                    nullable=not bool(row["notnull"]),
                    primary_key=bool(row["pk"]),
                    default=str(default) if default is not None else None,
                )
            )
        return columns

    def quote_identifier(self, name: str) -> str:
        """Double-quote an identifier, doubling embedded quotes."""
        return '"' + name.replace('"', '""') + '"'

    @property
    def row_identity(self) -> str:
        return "rowid"
