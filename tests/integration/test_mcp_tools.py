"""MCP tool handler tests

Calls the server's tool handlers directly against a temporary data
directory, without the stdio transport.
"""

import json
from pathlib import Path

import pytest

from sql2csv.exceptions import InvalidIdentifierError
from sql2csv.models.config import Settings
from sql2csv.server import Sql2CsvMCPServer, truncate_json_response

pytestmark = pytest.mark.integration

EXPECTED_TOOLS = {
    "discover_databases",
    "list_tables",
    "describe_table",
    "schema_report",
    "export_tables",
    "analyze_column",
    "analyze_table",
    "table_data",
}


def parse(response) -> object:
    assert len(response) == 1
    assert response[0].type == "text"
    return json.loads(response[0].text)


@pytest.fixture
def mcp_server(sample_db: Path, users_db: Path, tmp_path: Path) -> Sql2CsvMCPServer:
    settings = Settings(
        data_path=str(sample_db.parent), output_path=str(tmp_path / "export")
    )
    return Sql2CsvMCPServer(settings)


class TestToolRegistry:
    """Test tool definitions."""

    def test_tool_names(self, mcp_server: Sql2CsvMCPServer):
        """Test every tool has a definition and a handler."""
        names = {tool.name for tool in mcp_server.list_tool_definitions()}
        assert names == EXPECTED_TOOLS
        assert set(mcp_server.handlers()) == EXPECTED_TOOLS

    def test_schemas_require_database(self, mcp_server: Sql2CsvMCPServer):
        """Test database-scoped tools require the database argument."""
        for tool in mcp_server.list_tool_definitions():
            if tool.name != "discover_databases":
                assert "database" in tool.inputSchema["required"]


class TestExplorationWorkflow:
    """Test a discover -> list -> describe -> report workflow."""

    @pytest.mark.asyncio
    async def test_workflow(self, mcp_server: Sql2CsvMCPServer):
        """Test the exploration tools in sequence."""
        databases = parse(await mcp_server.handle_discover_databases({}))
        assert [d["name"] for d in databases] == ["sample", "users"]

        tables = parse(await mcp_server.handle_list_tables({"database": "sample"}))
        assert {t["name"]: t["row_count"] for t in tables}["Users"] == 3

        table = parse(
            await mcp_server.handle_describe_table(
                {"database": "SAMPLE", "table": "users"}
            )
        )
        assert table["name"] == "Users"
        assert [c["name"] for c in table["columns"]] == ["Id", "Name", "Email", "Age"]

        report = await mcp_server.handle_schema_report(
            {"database": "users", "format": "json"}
        )
        assert parse(report)[0]["table"] == "Users"

    @pytest.mark.asyncio
    async def test_text_report_by_default(self, mcp_server: Sql2CsvMCPServer):
        """Test schema_report without a format returns text."""
        report = await mcp_server.handle_schema_report({"database": "users"})
        assert report[0].text.startswith("Table: Users (2 rows)")

    @pytest.mark.asyncio
    async def test_unknown_database(self, mcp_server: Sql2CsvMCPServer):
        """Test an unknown database name is an error listing the options."""
        with pytest.raises(ValueError, match="Available: sample, users"):
            await mcp_server.handle_list_tables({"database": "nope"})

    @pytest.mark.asyncio
    async def test_unknown_table(self, mcp_server: Sql2CsvMCPServer):
        """Test describe_table of a missing table."""
        with pytest.raises(ValueError, match="Table not found"):
            await mcp_server.handle_describe_table(
                {"database": "users", "table": "nope"}
            )


class TestExportTool:
    """Test export_tables."""

    @pytest.mark.asyncio
    async def test_export(self, mcp_server: Sql2CsvMCPServer, tmp_path: Path):
        """Test files land in the output directory per database."""
        response = parse(
            await mcp_server.handle_export_tables(
                {"database": "users", "delimiter": ";"}
            )
        )

        assert response["summary"]["successful"] == 1
        assert response["results"][0]["table_name"] == "Users"
        csv_path = tmp_path / "export" / "users" / "Users_extract.csv"
        assert csv_path.read_text().splitlines()[0] == '"Id";"Name";"Email";"Age"'

    @pytest.mark.asyncio
    async def test_export_filter(self, mcp_server: Sql2CsvMCPServer):
        """Test the table filter."""
        response = parse(
            await mcp_server.handle_export_tables(
                {"database": "sample", "tables": ["orders", "ghost"]}
            )
        )
        assert [r["table_name"] for r in response["results"]] == ["Orders"]


class TestAnalysisTools:
    """Test analyze_column, analyze_table and table_data."""

    @pytest.mark.asyncio
    async def test_analyze_column(self, mcp_server: Sql2CsvMCPServer):
        """Test column analysis output."""
        analysis = parse(
            await mcp_server.handle_analyze_column(
                {"database": "sample", "table": "Scores", "column": "Value"}
            )
        )
        assert analysis["null_count"] == 1
        assert analysis["stats"]["kind"] == "numeric"
        assert analysis["stats"]["median_value"] == 20.0
        assert analysis["quality_label"] in {"excellent", "good", "fair", "poor"}

    @pytest.mark.asyncio
    async def test_analyze_table(self, mcp_server: Sql2CsvMCPServer):
        """Test table analysis output."""
        analysis = parse(
            await mcp_server.handle_analyze_table({"database": "users", "table": "Users"})
        )
        assert analysis["success"] is True
        assert len(analysis["columns"]) == 4
        assert 0 <= analysis["data_quality_score"] <= 1

    @pytest.mark.asyncio
    async def test_table_data(self, mcp_server: Sql2CsvMCPServer):
        """Test the paged envelope."""
        envelope = parse(
            await mcp_server.handle_table_data(
                {
                    "database": "sample",
                    "table": "Users",
                    "draw": 4,
                    "search": "doe",
                    "order": [{"column": 0, "direction": "desc"}],
                }
            )
        )
        assert envelope["draw"] == 4
        assert envelope["recordsTotal"] == 3
        assert envelope["recordsFiltered"] == 1
        assert envelope["data"][0]["Name"] == "John Doe"

    @pytest.mark.asyncio
    async def test_table_data_rejects_unknown_table(self, mcp_server: Sql2CsvMCPServer):
        """Test the identifier allowlist through the tool."""
        with pytest.raises(InvalidIdentifierError):
            await mcp_server.handle_table_data({"database": "sample", "table": "x"})


class TestTruncation:
    """Test response size limiting."""

    def test_short_response_unchanged(self):
        """Test responses under the limit are returned as-is."""
        assert truncate_json_response("[1, 2]", 100) == "[1, 2]"

    def test_long_response_truncated(self):
        """Test long responses are cut with a notice."""
        data = "\n".join(f"line {i}" for i in range(1000))
        result = truncate_json_response(data, 500)
        assert len(result) <= 500
        assert "Response truncated" in result

    def test_tiny_limit(self):
        """Test a limit too small for content returns an error object."""
        result = json.loads(truncate_json_response("x" * 500, 120))
        assert result["error"] == "Response too large"
