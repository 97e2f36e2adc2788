"""Paged table view request/response models."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SortOrder(BaseModel):
    """One sort key of a paged table request."""

    column: int = Field(..., description="Index into the table's column list")
    direction: Literal["asc", "desc"] = Field(
        default="asc", description="Sort direction"
    )

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v: Any) -> str:
        """Anything other than 'desc' sorts ascending."""
        if isinstance(v, str) and v.strip().lower() == "desc":
            return "desc"
        return "asc"


class TableDataRequest(BaseModel):
    """Search/sort/paging request from a table widget."""

    draw: int = Field(default=0, description="Request token echoed in the response")
    start: int = Field(default=0, ge=0, description="Offset of the first row")
    length: int = Field(default=10, description="Page size (-1 for all rows)")
    search: Optional[str] = Field(None, description="Free-text search term")
    order: list[SortOrder] = Field(default_factory=list, description="Sort keys")


class BuiltQuery(BaseModel):
    """SQL statements for one paged request, with bound parameters."""

    model_config = ConfigDict(frozen=True)

    count_sql: str = Field(..., description="Total row count")
    filtered_count_sql: str = Field(..., description="Row count after search")
    data_sql: str = Field(..., description="Page of rows")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Bound parameter values"
    )

    @property
    def filter_params(self) -> dict[str, Any]:
        """Parameters used by the filtered count (search term only)."""
        return {k: v for k, v in self.params.items() if k == "search"}


class TableDataPage(BaseModel):
    """Paged table view response envelope."""

    model_config = ConfigDict(populate_by_name=True)

    draw: int = Field(..., description="Echoed request token")
    records_total: int = Field(default=0, alias="recordsTotal")
    records_filtered: int = Field(default=0, alias="recordsFiltered")
    data: list[dict[str, Any]] = Field(default_factory=list, description="Rows")
    error: Optional[str] = Field(None, description="Error message, if any")

    def to_envelope(self) -> dict[str, Any]:
        """Serialize with the widget's camelCase keys."""
        return self.model_dump(by_alias=True)
