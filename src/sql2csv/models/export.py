"""Export result models."""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ExportResult(BaseModel):
    """Outcome of exporting one table of one database."""

    model_config = ConfigDict(frozen=True)

    database_name: str = Field(..., description="Database name")
    table_name: str = Field(..., description="Table name")
    output_path: str = Field(..., description="CSV file path")
    row_count: int = Field(default=0, description="Number of data rows written")
    duration: timedelta = Field(
        default_factory=timedelta, description="Time spent exporting the table"
    )
    success: bool = Field(..., description="Whether the export completed")
    error_message: Optional[str] = Field(None, description="Failure reason")
    cancelled: bool = Field(
        default=False, description="Whether the export was cancelled"
    )

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds."""
        return self.duration.total_seconds() * 1000


class ExportSummary(BaseModel):
    """Totals over a batch of export results."""

    total_tables: int = Field(..., description="Tables attempted")
    successful: int = Field(..., description="Tables exported successfully")
    failed: int = Field(..., description="Tables that failed")
    total_rows: int = Field(..., description="Rows exported across all tables")
    total_duration: timedelta = Field(..., description="Sum of table durations")

    @classmethod
    def from_results(cls, results: list[ExportResult]) -> "ExportSummary":
        """Summarize a list of export results."""
        successful = sum(1 for r in results if r.success)
        return cls(
            total_tables=len(results),
            successful=successful,
            failed=len(results) - successful,
            total_rows=sum(r.row_count for r in results if r.success),
            total_duration=sum((r.duration for r in results), timedelta()),
        )

    @property
    def all_succeeded(self) -> bool:
        """True when no table failed."""
        return self.failed == 0
