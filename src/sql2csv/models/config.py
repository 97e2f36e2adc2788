"""Database, export, and application configuration models."""

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.engine.url import make_url


class DatabaseConfig(BaseModel):
    """Configuration for a single SQLite database connection."""

    url: str = Field(
        ...,
        description="Database connection URL (e.g., sqlite+aiosqlite:///path/to/file.db)",
    )
    name: Optional[str] = Field(
        None, description="Logical database name (defaults to the file stem)"
    )
    read_only: bool = Field(
        default=True,
        description="Enforce read-only connections",
    )
    statement_timeout: Optional[float] = Field(
        default=600,
        gt=0,
        le=86400,
        description="Per-query timeout in seconds",
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo SQL statements to stdout",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        try:
            url = make_url(v)
        except Exception as e:
            raise ValueError(f"Invalid database URL: {e}")

        dialect = url.drivername.split("+")[0]
        if dialect != "sqlite":
            raise ValueError(
                f"Unsupported database dialect: {dialect}. Supported: sqlite"
            )

        # Ensure async driver is specified
        if "+" not in url.drivername:
            raise ValueError("Async driver required. Example: sqlite+aiosqlite://")

        return v

    @classmethod
    def from_sqlite_file(
        cls, file_path: Union[str, Path], **kwargs
    ) -> "DatabaseConfig":
        """
        Create a configuration from a SQLite file path.

        Args:
            file_path: Path to the SQLite database file
            **kwargs: Additional configuration fields

        Returns:
            Database configuration named after the file stem
        """
        path = Path(file_path)
        if not str(file_path).strip():
            raise ValueError("Database file path must not be empty")

        kwargs.setdefault("name", path.stem)
        return cls(url=f"sqlite+aiosqlite:///{path}", **kwargs)

    @classmethod
    def from_connection_string(cls, value: str, **kwargs) -> "DatabaseConfig":
        """
        Build a configuration from a URL, a file path, or ``Data Source=...``.

        Args:
            value: Connection URL, SQLite file path or ADO-style connection string
            **kwargs: Additional configuration fields

        Returns:
            Database configuration
        """
        value = value.strip()
        if "://" in value:
            return cls(url=value, **kwargs)

        for part in value.split(";"):
            key, sep, data_source = part.partition("=")
            if sep and key.strip().lower() == "data source":
                return cls.from_sqlite_file(data_source.strip(), **kwargs)

        return cls.from_sqlite_file(value, **kwargs)

    @property
    def dialect(self) -> str:
        """Extract database dialect from URL."""
        return make_url(self.url).drivername.split("+")[0]

    @property
    def driver(self) -> str:
        """Extract driver name from URL."""
        parts = make_url(self.url).drivername.split("+")
        return parts[1] if len(parts) > 1 else ""

    @property
    def database_path(self) -> Optional[str]:
        """Database file path, or None for in-memory databases."""
        database = make_url(self.url).database
        if not database or database == ":memory:":
            return None
        return database

    @property
    def database_name(self) -> str:
        """Logical name used in export results and reports."""
        if self.name:
            return self.name
        path = self.database_path
        return Path(path).stem if path else "memory"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "sqlite+aiosqlite:///data/chinook.db",
                    "name": "chinook",
                    "read_only": True,
                    "statement_timeout": 600,
                }
            ]
        }
    }


# Spellings of tab that survive a shell or an .env file
DELIMITER_ALIASES = {"\\t": "\t", "tab": "\t"}


class ExportConfig(BaseModel):
    """CSV export options."""

    delimiter: str = Field(default=",", description="Field delimiter")
    include_headers: bool = Field(default=True, description="Write a header row")
    encoding: str = Field(default="utf-8", description="Output file encoding")
    line_terminator: str = Field(default="\n", description="Record terminator")
    file_suffix: str = Field(
        default="_extract.csv", description="Suffix appended to the table name"
    )
    atomic_writes: bool = Field(
        default=True,
        description="Write to a temporary file and rename it when the table completes",
    )

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Delimiter must be exactly one character and not a quote or newline."""
        v = DELIMITER_ALIASES.get(v.lower(), v)
        if len(v) != 1:
            raise ValueError(f"Delimiter must be a single character, got {v!r}")
        if v in {'"', "\r", "\n"}:
            raise ValueError(f"Delimiter {v!r} is not allowed")
        return v

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Reject encodings Python does not know."""
        import codecs

        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown encoding: {v}")
        return v

    def with_overrides(
        self, delimiter: Optional[str] = None, include_headers: Optional[bool] = None
    ) -> "ExportConfig":
        """Return a copy with per-call delimiter/header overrides applied."""
        update = {}
        if delimiter:
            update["delimiter"] = delimiter
        if include_headers is not None:
            update["include_headers"] = include_headers
        if not update:
            return self
        return ExportConfig.model_validate({**self.model_dump(), **update})


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Application-level settings resolved from the environment."""

    data_path: str = Field(default="data", description="Directory holding *.db files")
    output_path: str = Field(default="export", description="CSV output directory")
    timeout: float = Field(default=600, gt=0, description="Per-query timeout (s)")
    log_level: str = Field(default="INFO", description="Logging level name")
    export: ExportConfig = Field(default_factory=ExportConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from ``SQL2CSV_*`` environment variables (and .env)."""
        load_dotenv()

        export = ExportConfig(
            delimiter=os.getenv("SQL2CSV_DELIMITER") or ",",
            include_headers=_env_bool(os.getenv("SQL2CSV_INCLUDE_HEADERS"), True),
            encoding=os.getenv("SQL2CSV_ENCODING") or "utf-8",
        )
        return cls(
            data_path=os.getenv("SQL2CSV_DATA_PATH") or "data",
            output_path=os.getenv("SQL2CSV_OUTPUT_PATH") or "export",
            timeout=float(os.getenv("SQL2CSV_TIMEOUT") or 600),
            log_level=(os.getenv("SQL2CSV_LOG_LEVEL") or "INFO").upper(),
            export=export,
        )

    def database_config(self, file_path: Union[str, Path]) -> DatabaseConfig:
        """Build a database configuration using these settings."""
        return DatabaseConfig.from_sqlite_file(
            file_path, statement_timeout=self.timeout
        )
