"""Table and column information models."""

import warnings
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from sql2csv.models.types import TypeCategory, classify_type

# Suppress the specific warning about field 'schema' shadowing
warnings.filterwarnings(
    "ignore",
    message='Field name "schema" in "TableInfo" shadows an attribute in parent',
    category=UserWarning,
)

DEFAULT_SCHEMA = "main"


class ColumnInfo(BaseModel):
    """Information about a table column."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Declared column data type")
    nullable: bool = Field(default=True, description="Whether column allows NULL")
    primary_key: bool = Field(
        default=False, description="Whether column is part of primary key"
    )
    default: Optional[str] = Field(None, description="Default value expression")

    @property
    def category(self) -> TypeCategory:
        """Type category used for quoting and statistics."""
        return classify_type(self.data_type)


class TableInfo(BaseModel):
    """Point-in-time snapshot of a table's structure and size."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Table name")
    schema: str = Field(default=DEFAULT_SCHEMA, description="Schema name")
    columns: list[ColumnInfo] = Field(
        default_factory=list, description="Column information"
    )
    row_count: int = Field(default=0, description="Row count from COUNT(*)")

    @property
    def column_names(self) -> list[str]:
        """Column names in declaration order."""
        return [col.name for col in self.columns]

    @property
    def primary_key_columns(self) -> list[str]:
        """Get primary key column names."""
        return [col.name for col in self.columns if col.primary_key]

    @property
    def column_count(self) -> int:
        """Get number of columns."""
        return len(self.columns)

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        """Get column by name, falling back to a case-insensitive match."""
        for col in self.columns:
            if col.name == name:
                return col
        lowered = name.lower()
        for col in self.columns:
            if col.name.lower() == lowered:
                return col
        return None
