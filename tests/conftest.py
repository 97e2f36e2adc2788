"""Pytest configuration and shared fixtures for SQLite-backed tests"""

import sqlite3
import sys
from pathlib import Path
from typing import AsyncGenerator, Callable

import pytest

from sql2csv.adapters import create_adapter
from sql2csv.adapters.base import BaseAdapter
from sql2csv.core import (
    ColumnStatisticsAnalyzer,
    DatabaseConnection,
    SchemaIntrospector,
    TableExporter,
)
from sql2csv.models.config import DatabaseConfig

if sys.platform == "win32":
    import asyncio

    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())  # type: ignore[attr-defined]


USERS_SQL = """
CREATE TABLE Users (
    Id INTEGER PRIMARY KEY,
    Name TEXT NOT NULL,
    Email TEXT NULL,
    Age INTEGER NULL
);
INSERT INTO Users VALUES (1, 'John Doe', 'john@example.com', 30);
INSERT INTO Users VALUES (2, 'Jane Smith', NULL, NULL);
"""

SAMPLE_SQL = (
    USERS_SQL
    + """
INSERT INTO Users VALUES (3, 'Bob "The Builder" Jones', 'bob@example.com', 45);

CREATE TABLE Orders (
    OrderId INTEGER PRIMARY KEY AUTOINCREMENT,
    UserId INTEGER NOT NULL,
    Total DECIMAL(10,2) DEFAULT 0,
    Note VARCHAR(100),
    CreatedAt DATETIME
);
INSERT INTO Orders (UserId, Total, Note, CreatedAt)
    VALUES (1, 19.5, 'first, with comma', '2024-01-15 00:00:00');
INSERT INTO Orders (UserId, Total, Note, CreatedAt)
    VALUES (2, 5, NULL, '2024-02-20 14:30:00');

CREATE TABLE Scores (
    Id INTEGER PRIMARY KEY,
    Value REAL,
    Label TEXT,
    Seen DATE,
    Flag BOOLEAN
);
INSERT INTO Scores VALUES (1, 10.0, 'a', '2024-01-01', 1);
INSERT INTO Scores VALUES (2, 20.0, 'bb', '2024-03-01 12:00:00', 0);
INSERT INTO Scores VALUES (3, 20.0, 'bb', NULL, 1);
INSERT INTO Scores VALUES (4, NULL, 'dddd', '2024-02-01', NULL);

CREATE TABLE Notes (
    Body TEXT
);
INSERT INTO Notes VALUES ('a_b');
INSERT INTO Notes VALUES ('axb');
INSERT INTO Notes VALUES ('50% off');
INSERT INTO Notes VALUES ('back\\slash');

CREATE TABLE Empty (
    Id INTEGER PRIMARY KEY,
    Amount REAL
);
"""
)


def create_sqlite_database(path: Path, script: str) -> Path:
    """Create a SQLite database file from a SQL script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        conn.executescript(script)
        conn.commit()
    finally:
        conn.close()
    return path


# ==================== Database File Fixtures ====================


@pytest.fixture
def make_database(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory creating <name>.db in a temporary data directory"""

    def _make(name: str, script: str) -> Path:
        return create_sqlite_database(tmp_path / "data" / f"{name}.db", script)

    return _make


@pytest.fixture
def users_db(make_database) -> Path:
    """Database with only the Users table"""
    return make_database("users", USERS_SQL)


@pytest.fixture
def sample_db(make_database) -> Path:
    """Database with Users, Orders, Scores, Notes and an empty table"""
    return make_database("sample", SAMPLE_SQL)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Export target directory (not created)"""
    return tmp_path / "export"


# ==================== Connection Fixtures ====================


@pytest.fixture
def sample_config(sample_db: Path) -> DatabaseConfig:
    """Configuration for the sample database"""
    return DatabaseConfig.from_sqlite_file(sample_db)


@pytest.fixture
def sample_adapter(sample_config: DatabaseConfig) -> BaseAdapter:
    """SQLite adapter for the sample database"""
    return create_adapter(sample_config)


@pytest.fixture
async def sample_connection(
    sample_config: DatabaseConfig,
) -> AsyncGenerator[DatabaseConnection, None]:
    """Sample database connection with proper cleanup"""
    connection = DatabaseConnection(sample_config)
    await connection.initialize()
    try:
        yield connection
    finally:
        await connection.dispose()


@pytest.fixture
async def users_connection(
    users_db: Path,
) -> AsyncGenerator[DatabaseConnection, None]:
    """Users database connection with proper cleanup"""
    connection = DatabaseConnection(DatabaseConfig.from_sqlite_file(users_db))
    await connection.initialize()
    try:
        yield connection
    finally:
        await connection.dispose()


@pytest.fixture
def sample_introspector(
    sample_connection: DatabaseConnection, sample_adapter: BaseAdapter
) -> SchemaIntrospector:
    """Schema introspector for the sample database"""
    return SchemaIntrospector(sample_connection, sample_adapter)


@pytest.fixture
def sample_analyzer(
    sample_connection: DatabaseConnection, sample_adapter: BaseAdapter
) -> ColumnStatisticsAnalyzer:
    """Column statistics analyzer for the sample database"""
    return ColumnStatisticsAnalyzer(sample_connection, sample_adapter)


@pytest.fixture
def sample_exporter(
    sample_connection: DatabaseConnection, sample_adapter: BaseAdapter
) -> TableExporter:
    """Table exporter for the sample database"""
    return TableExporter(sample_connection, sample_adapter)


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "sqlite: Tests using temporary SQLite files")
    config.addinivalue_line(
        "markers", "integration: End-to-end tests through the CLI or MCP server"
    )
