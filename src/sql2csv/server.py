"""sql2csv MCP Server

A Model Context Protocol (MCP) server exposing SQLite discovery, schema
reports, CSV export and column analysis for the databases in a data directory.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from mcp.server import Server
from mcp.types import TextContent, Tool

from sql2csv.adapters import BaseAdapter, create_adapter
from sql2csv.core import (
    ColumnStatisticsAnalyzer,
    DatabaseConnection,
    SchemaIntrospector,
    TableDataService,
    TableExporter,
    discover_databases,
    summarize,
)
from sql2csv.models.config import DatabaseConfig, Settings
from sql2csv.models.query import TableDataRequest
from sql2csv.utils import dumps

logger = logging.getLogger(__name__)

# Response size limits (in characters) for MCP tool responses
MAX_RESPONSE_DISCOVER = 3000
MAX_RESPONSE_LIST_TABLES = 5000
MAX_RESPONSE_DESCRIBE_TABLE = 8000
MAX_RESPONSE_SCHEMA_REPORT = 10000
MAX_RESPONSE_EXPORT = 5000
MAX_RESPONSE_ANALYZE_COLUMN = 5000
MAX_RESPONSE_ANALYZE_TABLE = 10000
MAX_RESPONSE_TABLE_DATA = 10000


def truncate_json_response(data: str, max_length: int) -> str:
    """
    Truncate a response to a maximum length.

    Args:
        data: Response text to truncate
        max_length: Maximum length in characters

    Returns:
        Truncated text with a truncation notice if needed
    """
    if len(data) <= max_length:
        return data

    truncation_msg = (
        f"\n\n... [Response truncated: {len(data)} chars -> {max_length} chars]"
    )
    available_length = max_length - len(truncation_msg)

    if available_length < 100:
        return dumps(
            {
                "error": "Response too large",
                "original_size": len(data),
                "limit": max_length,
                "message": "Response exceeds size limit. Request fewer tables or rows.",
            },
            indent=True,
        )

    truncated = data[:available_length]

    # Cut at a line end when one is near the limit
    last_newline = truncated.rfind("\n")
    if last_newline > available_length * 0.8:
        truncated = truncated[:last_newline]

    return truncated + truncation_msg


def _text(data: str, max_length: int) -> list[TextContent]:
    return [TextContent(type="text", text=truncate_json_response(data, max_length))]


class Sql2CsvMCPServer:
    """MCP server over a directory of SQLite databases."""

    def __init__(self, settings: Settings):
        """
        Initialize the MCP server.

        Args:
            settings: Data/output directories, timeouts and export defaults
        """
        self.settings = settings
        self.server = Server("sql2csv")

    def discover(self) -> list[DatabaseConfig]:
        """Databases currently present in the data directory."""
        return discover_databases(
            self.settings.data_path, statement_timeout=self.settings.timeout
        )

    def resolve_database(self, name: str) -> DatabaseConfig:
        """
        Find a discovered database by name (case-insensitive).

        Raises:
            ValueError: If no database has that name
        """
        databases = self.discover()
        for config in databases:
            if config.database_name.lower() == name.lower():
                return config
        available = ", ".join(c.database_name for c in databases) or "none"
        raise ValueError(f"Unknown database: {name}. Available: {available}")

    @asynccontextmanager
    async def open_database(
        self, name: str
    ) -> AsyncIterator[tuple[DatabaseConnection, BaseAdapter]]:
        """Connection manager and adapter for one database, disposed on exit."""
        config = self.resolve_database(name)
        async with DatabaseConnection(config) as connection:
            yield connection, create_adapter(config)

    def _create_discover_databases_tool(self) -> Tool:
        """Create discover_databases tool."""
        return Tool(
            name="discover_databases",
            description="List the SQLite databases (*.db files) in the data directory",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": [],
            },
        )

    def _create_list_tables_tool(self) -> Tool:
        """Create list_tables tool."""
        return Tool(
            name="list_tables",
            description="List user tables of a database with their row counts",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "Database name"},
                },
                "required": ["database"],
            },
        )

    def _create_describe_table_tool(self) -> Tool:
        """Create describe_table tool."""
        return Tool(
            name="describe_table",
            description="Get the columns, types, keys and row count of a table",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "Database name"},
                    "table": {"type": "string", "description": "Table name"},
                },
                "required": ["database", "table"],
            },
        )

    def _create_schema_report_tool(self) -> Tool:
        """Create schema_report tool."""
        return Tool(
            name="schema_report",
            description="Render the schema of a database as text, markdown or JSON",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "Database name"},
                    "format": {
                        "type": "string",
                        "enum": ["text", "markdown", "json"],
                        "description": "Report format (default: text)",
                        "default": "text",
                    },
                },
                "required": ["database"],
            },
        )

    def _create_export_tables_tool(self) -> Tool:
        """Create export_tables tool."""
        return Tool(
            name="export_tables",
            description="Export tables of a database to {table}_extract.csv files",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "Database name"},
                    "tables": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Tables to export (default: all, case-insensitive)",
                    },
                    "delimiter": {
                        "type": "string",
                        "description": "Field delimiter (default: ',')",
                    },
                    "include_headers": {
                        "type": "boolean",
                        "description": "Write a header row (default: true)",
                    },
                },
                "required": ["database"],
            },
        )

    def _create_analyze_column_tool(self) -> Tool:
        """Create analyze_column tool."""
        return Tool(
            name="analyze_column",
            description="Get statistics, top values and a quality score for a column",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "Database name"},
                    "table": {"type": "string", "description": "Table name"},
                    "column": {"type": "string", "description": "Column name"},
                },
                "required": ["database", "table", "column"],
            },
        )

    def _create_analyze_table_tool(self) -> Tool:
        """Create analyze_table tool."""
        return Tool(
            name="analyze_table",
            description="Analyze every column of a table",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "Database name"},
                    "table": {"type": "string", "description": "Table name"},
                },
                "required": ["database", "table"],
            },
        )

    def _create_table_data_tool(self) -> Tool:
        """Create table_data tool."""
        return Tool(
            name="table_data",
            description="Page through a table with optional free-text search and sorting",
            inputSchema={
                "type": "object",
                "properties": {
                    "database": {"type": "string", "description": "Database name"},
                    "table": {"type": "string", "description": "Table name"},
                    "search": {
                        "type": "string",
                        "description": "Text matched against every column",
                    },
                    "start": {
                        "type": "integer",
                        "description": "Offset of the first row (default: 0)",
                        "default": 0,
                    },
                    "length": {
                        "type": "integer",
                        "description": "Page size, -1 for all rows (default: 10)",
                        "default": 10,
                    },
                    "order": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "column": {"type": "integer"},
                                "direction": {"type": "string", "enum": ["asc", "desc"]},
                            },
                            "required": ["column"],
                        },
                        "description": "Sort keys by column index",
                    },
                    "draw": {
                        "type": "integer",
                        "description": "Request token echoed in the response",
                    },
                },
                "required": ["database", "table"],
            },
        )

    def list_tool_definitions(self) -> list[Tool]:
        """All tools offered by this server."""
        return [
            self._create_discover_databases_tool(),
            self._create_list_tables_tool(),
            self._create_describe_table_tool(),
            self._create_schema_report_tool(),
            self._create_export_tables_tool(),
            self._create_analyze_column_tool(),
            self._create_analyze_table_tool(),
            self._create_table_data_tool(),
        ]

    # Tool handlers
    async def handle_discover_databases(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle discover_databases request."""
        databases = [
            {"name": c.database_name, "path": c.database_path}
            for c in self.discover()
        ]
        return _text(dumps(databases, indent=True), MAX_RESPONSE_DISCOVER)

    async def handle_list_tables(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle list_tables request."""
        async with self.open_database(arguments["database"]) as (connection, adapter):
            tables = await SchemaIntrospector(connection, adapter).get_tables()

        tables_data = [
            {"name": t.name, "row_count": t.row_count, "column_count": t.column_count}
            for t in tables
        ]
        return _text(dumps(tables_data, indent=True), MAX_RESPONSE_LIST_TABLES)

    async def handle_describe_table(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle describe_table request."""
        table = arguments["table"]
        async with self.open_database(arguments["database"]) as (connection, adapter):
            table_info = await SchemaIntrospector(connection, adapter).get_table(table)

        if table_info is None:
            raise ValueError(f"Table not found: {table}")
        return _text(
            dumps(table_info.model_dump(), indent=True), MAX_RESPONSE_DESCRIBE_TABLE
        )

    async def handle_schema_report(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle schema_report request."""
        async with self.open_database(arguments["database"]) as (connection, adapter):
            report = await SchemaIntrospector(connection, adapter).generate_report(
                arguments.get("format")
            )
        return _text(report, MAX_RESPONSE_SCHEMA_REPORT)

    async def handle_export_tables(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle export_tables request."""
        database = arguments["database"]
        async with self.open_database(database) as (connection, adapter):
            exporter = TableExporter(connection, adapter, self.settings.export)
            results = await exporter.export_database(
                Path(self.settings.output_path) / connection.database_name,
                tables=arguments.get("tables"),
                delimiter=arguments.get("delimiter"),
                include_headers=arguments.get("include_headers"),
            )

        summary = summarize(results)
        response = {
            "summary": summary.model_dump(),
            "results": [r.model_dump() for r in results],
        }
        return _text(dumps(response, indent=True), MAX_RESPONSE_EXPORT)

    async def handle_analyze_column(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle analyze_column request."""
        async with self.open_database(arguments["database"]) as (connection, adapter):
            analysis = await ColumnStatisticsAnalyzer(
                connection, adapter
            ).analyze_column(arguments["table"], arguments["column"])

        response = analysis.model_dump()
        response["quality_label"] = analysis.quality_label
        return _text(dumps(response, indent=True), MAX_RESPONSE_ANALYZE_COLUMN)

    async def handle_analyze_table(
        self, arguments: dict[str, Any]
    ) -> list[TextContent]:
        """Handle analyze_table request."""
        async with self.open_database(arguments["database"]) as (connection, adapter):
            analysis = await ColumnStatisticsAnalyzer(
                connection, adapter
            ).analyze_table(arguments["table"])

        response = analysis.model_dump()
        response["data_quality_score"] = analysis.data_quality_score
        return _text(dumps(response, indent=True), MAX_RESPONSE_ANALYZE_TABLE)

    async def handle_table_data(self, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle table_data request."""
        request = TableDataRequest.model_validate(
            {
                k: arguments[k]
                for k in ("draw", "start", "length", "search", "order")
                if arguments.get(k) is not None
            }
        )
        async with self.open_database(arguments["database"]) as (connection, adapter):
            page = await TableDataService(connection, adapter).get_table_data(
                arguments["table"], request
            )
        return _text(dumps(page.to_envelope(), indent=True), MAX_RESPONSE_TABLE_DATA)

    def handlers(self) -> dict[str, Any]:
        """Tool name to handler mapping."""
        return {
            "discover_databases": self.handle_discover_databases,
            "list_tables": self.handle_list_tables,
            "describe_table": self.handle_describe_table,
            "schema_report": self.handle_schema_report,
            "export_tables": self.handle_export_tables,
            "analyze_column": self.handle_analyze_column,
            "analyze_table": self.handle_analyze_table,
            "table_data": self.handle_table_data,
        }


async def main(settings: Optional[Settings] = None) -> None:
    """Main entry point for the MCP server."""
    settings = settings or Settings.from_env()

    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    mcp_server = Sql2CsvMCPServer(settings)
    logger.info(f"Serving SQLite databases from {settings.data_path}")

    @mcp_server.server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return mcp_server.list_tool_definitions()

    @mcp_server.server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool calls."""
        handler = mcp_server.handlers().get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")

        return await handler(arguments or {})

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await mcp_server.server.run(
            read_stream,
            write_stream,
            mcp_server.server.create_initialization_options(),
        )


def cli_entry() -> None:
    """
    Synchronous entry point for console script.

    This function is called by the 'sql2csv-mcp' console script.
    """
    # Windows-specific event loop policy
    if os.name == "nt":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())  # type: ignore[attr-defined]

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    cli_entry()
