"""Column statistics and analysis models."""

from datetime import datetime, timedelta
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from sql2csv.models.types import TypeCategory, classify_type

NULL_DISPLAY = "(null)"


class QualityWeights(BaseModel):
    """
    Weights of the data-quality heuristic.

    The score is a weighted sum of completeness (share of non-NULL rows) and
    uniqueness (distinct non-NULL values per row, capped at 1). It is a rough
    exploration aid, not a statistical measure.
    """

    model_config = ConfigDict(frozen=True)

    completeness: float = Field(default=0.7, ge=0, description="Completeness weight")
    uniqueness: float = Field(default=0.3, ge=0, description="Uniqueness weight")


DEFAULT_QUALITY_WEIGHTS = QualityWeights()


class ValueFrequency(BaseModel):
    """One of the most frequent values of a column."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Value as text, '(null)' for NULL")
    count: int = Field(..., description="Number of rows holding the value")
    percentage: float = Field(..., description="Share of total rows (0-100)")

    @property
    def display_value(self) -> str:
        """Value shortened for display."""
        if len(self.value) > 50:
            return f"{self.value[:47]}..."
        return self.value


class NumericStats(BaseModel):
    """Statistics for numeric columns."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric"] = "numeric"
    min_value: Optional[float] = Field(None, description="Minimum value")
    max_value: Optional[float] = Field(None, description="Maximum value")
    mean_value: Optional[float] = Field(None, description="Arithmetic mean")
    median_value: Optional[float] = Field(
        None, description="Middle value (upper-middle row for even counts)"
    )
    stddev_value: Optional[float] = Field(
        None, description="Population standard deviation"
    )

    @property
    def range_value(self) -> Optional[float]:
        """max - min when both are known."""
        if self.min_value is None or self.max_value is None:
            return None
        return self.max_value - self.min_value


class TextStats(BaseModel):
    """Statistics for text columns."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    min_length: Optional[int] = Field(None, description="Shortest value length")
    max_length: Optional[int] = Field(None, description="Longest value length")
    avg_length: Optional[float] = Field(None, description="Average value length")


class DateTimeStats(BaseModel):
    """Statistics for date/time columns."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["datetime"] = "datetime"
    min_date: Optional[datetime] = Field(None, description="Earliest value")
    max_date: Optional[datetime] = Field(None, description="Latest value")

    @property
    def date_range(self) -> Optional[timedelta]:
        """max - min when both are known."""
        if self.min_date is None or self.max_date is None:
            return None
        try:
            return self.max_date - self.min_date
        except TypeError:
            # mixing naive and aware values
            return None


ColumnStatsGroup = Annotated[
    Union[NumericStats, TextStats, DateTimeStats], Field(discriminator="kind")
]


class ColumnAnalysis(BaseModel):
    """Profile of a single column."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Declared column data type")
    nullable: bool = Field(default=True, description="Whether column allows NULL")
    primary_key: bool = Field(default=False, description="Primary key member")
    default: Optional[str] = Field(None, description="Default value expression")

    total_count: int = Field(..., ge=0, description="Rows in the table")
    null_count: int = Field(..., ge=0, description="NULL rows")
    unique_count: int = Field(..., ge=0, description="Distinct non-NULL values")

    stats: Optional[ColumnStatsGroup] = Field(
        None, description="Type-specific statistics (one group at most)"
    )
    top_values: list[ValueFrequency] = Field(
        default_factory=list, description="Up to 10 most frequent values"
    )
    data_quality_score: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Heuristic quality score"
    )

    @property
    def category(self) -> TypeCategory:
        """Type category of the declared type."""
        return classify_type(self.data_type)

    @property
    def duplicate_count(self) -> int:
        """Rows not accounted for by distinct values."""
        return self.total_count - self.unique_count

    @property
    def null_percentage(self) -> float:
        """Percentage of NULL values."""
        if self.total_count == 0:
            return 0.0
        return round(self.null_count / self.total_count * 100, 2)

    @property
    def uniqueness_percentage(self) -> float:
        """Distinct values as a percentage of rows."""
        if self.total_count == 0:
            return 0.0
        return round(self.unique_count / self.total_count * 100, 2)

    @property
    def completeness_percentage(self) -> float:
        """Percentage of non-NULL values."""
        return round(100 - self.null_percentage, 2)

    @property
    def numeric_stats(self) -> Optional[NumericStats]:
        return self.stats if isinstance(self.stats, NumericStats) else None

    @property
    def text_stats(self) -> Optional[TextStats]:
        return self.stats if isinstance(self.stats, TextStats) else None

    @property
    def datetime_stats(self) -> Optional[DateTimeStats]:
        return self.stats if isinstance(self.stats, DateTimeStats) else None

    @property
    def quality_label(self) -> str:
        """Coarse band of the quality score."""
        if self.data_quality_score >= 0.9:
            return "excellent"
        if self.data_quality_score >= 0.7:
            return "good"
        if self.data_quality_score >= 0.5:
            return "fair"
        return "poor"


class TableAnalysis(BaseModel):
    """Column profiles and summary counts for one table."""

    database_name: str = Field(..., description="Database name")
    table_name: str = Field(..., description="Table name")
    row_count: int = Field(default=0, description="Rows in the table")
    columns: list[ColumnAnalysis] = Field(
        default_factory=list, description="Per-column analysis in column order"
    )
    duration: timedelta = Field(default_factory=timedelta, description="Elapsed time")
    success: bool = Field(default=True, description="Whether analysis completed")
    error_message: Optional[str] = Field(None, description="Failure reason")
    cancelled: bool = Field(default=False, description="Whether it was cancelled")

    def _count(self, category: TypeCategory) -> int:
        return sum(1 for c in self.columns if c.category == category)

    @property
    def total_columns(self) -> int:
        return len(self.columns)

    @property
    def numeric_columns(self) -> int:
        return self._count(TypeCategory.NUMERIC)

    @property
    def text_columns(self) -> int:
        return self._count(TypeCategory.TEXT)

    @property
    def datetime_columns(self) -> int:
        return self._count(TypeCategory.DATETIME)

    @property
    def nullable_columns(self) -> int:
        return sum(1 for c in self.columns if c.nullable)

    @property
    def primary_key_columns(self) -> int:
        return sum(1 for c in self.columns if c.primary_key)

    @property
    def data_quality_score(self) -> float:
        """Mean of the column scores (0.0 for a table without columns)."""
        if not self.columns:
            return 0.0
        return sum(c.data_quality_score for c in self.columns) / len(self.columns)

    def get_column(self, name: str) -> Optional[ColumnAnalysis]:
        """Get a column analysis by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None
