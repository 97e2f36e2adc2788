"""Exception types raised by the export and analysis core."""

from typing import Any, Optional


class Sql2CsvError(Exception):
    """Base class for sql2csv errors."""


class DatabaseConnectionError(Sql2CsvError):
    """The database could not be opened or reached."""


class InvalidIdentifierError(Sql2CsvError, ValueError):
    """A table or column name is not in the introspected schema."""

    def __init__(self, identifier: str, kind: str = "table"):
        self.identifier = identifier
        self.kind = kind
        super().__init__(f"Unknown {kind}: {identifier!r}")


class UnknownIdentifierError(InvalidIdentifierError):
    """A requested column does not exist in the table."""

    def __init__(self, identifier: str, table: Optional[str] = None):
        self.table = table
        super().__init__(identifier, kind="column")
        if table:
            self.args = (f"Unknown column {identifier!r} in table {table!r}",)


class OperationCancelledError(Sql2CsvError):
    """An export or analysis stopped at a table/column boundary on request."""

    def __init__(self, message: str = "Operation cancelled", partial: Any = None):
        super().__init__(message)
        self.partial = partial
