"""Tests for the VulnMap MCP server tools."""

import json

import pytest

from vulnmap.server import (
    calculate_risk_scores,
    generate_vulnerability_maps,
    get_analytics,
    mcp,
    store_analytics,
)

FINDINGS = [
    {
        "id": "SQLI-1",
        "name": "SQL injection",
        "severity": "critical",
        "category": "injection",
        "location": {"file": "api/orders.py", "line": 40},
        "isSink": True,
    },
    {
        "id": "XSS-1",
        "name": "Reflected XSS",
        "severity": "low",
        "location": {"file": "web/views.py", "line": 12},
        "isEntryPoint": True,
    },
]


def test_mcp_instance():
    assert mcp.name == "vulnmap-mcp"


class TestGenerateVulnerabilityMapsTool:
    """Test the vulnerability map tool."""

    @pytest.mark.asyncio
    async def test_json_output(self, tmp_path):
        """Test the default JSON output has flows and heatmap only."""
        result = json.loads(await generate_vulnerability_maps.fn(str(tmp_path), FINDINGS, []))

        assert set(result) == {"flows", "heatmap"}
        assert [item["file"] for item in result["heatmap"]] == ["api/orders.py", "web/views.py"]
        assert result["heatmap"][0]["heatScore"] == 10
        assert not (tmp_path / ".vulnmap").exists()

    @pytest.mark.asyncio
    async def test_markdown_output(self, tmp_path):
        result = await generate_vulnerability_maps.fn(
            str(tmp_path), FINDINGS, None, output_format="markdown"
        )

        assert result.startswith(f"# 🗺️ Vulnerability Maps: {tmp_path.name}")
        assert "| api/orders.py | 1 | 1 | 0 | 0 | 0 | 0 | 10 |" in result

    @pytest.mark.asyncio
    async def test_store_analytics(self, tmp_path):
        """Test a snapshot is stored under the repository when requested."""
        result = json.loads(await generate_vulnerability_maps.fn(
            str(tmp_path), FINDINGS, [], store_analytics=True
        ))

        snapshot_id = result["analytics"]["snapshotId"]
        record_file = tmp_path / ".vulnmap" / "analytics" / "vulnerability-maps" / f"{snapshot_id}.json"
        record = json.loads(record_file.read_text())
        assert record["summary"]["filesWithFindings"] == 2
        assert record["summary"]["totalFindings"] == 2
        assert record["detailed"]["heatmap"] == result["heatmap"]

    @pytest.mark.asyncio
    async def test_invalid_finding(self, tmp_path):
        """Test malformed findings produce an error message."""
        result = await generate_vulnerability_maps.fn(str(tmp_path), [{"severity": 5}], [])
        assert result.startswith("Error: ")


class TestCalculateRiskScoresTool:
    """Test the risk scoring tool."""

    @pytest.mark.asyncio
    async def test_json_output(self):
        result = json.loads(await calculate_risk_scores.fn(
            "/repos/payments", code_vulnerabilities=FINDINGS, output_format="json"
        ))

        # (10 + 1) / 2 * 10
        assert result["overallRiskScore"] == 55
        assert result["riskCategory"] == "High"
        assert result["categoryRiskScores"]["injection"]["count"] == 1
        assert [item["id"] for item in result["remediationPriority"]] == ["SQLI-1", "XSS-1"]

    @pytest.mark.asyncio
    async def test_severity_threshold(self):
        """Test findings below the threshold are not scored."""
        result = json.loads(await calculate_risk_scores.fn(
            "/repos/payments",
            code_vulnerabilities=FINDINGS,
            severity_threshold="high",
            output_format="json",
        ))

        assert result["overallRiskScore"] == 100
        assert result["severityCounts"]["low"] == 0

    @pytest.mark.asyncio
    async def test_markdown_output(self):
        result = await calculate_risk_scores.fn("/repos/payments", code_vulnerabilities=FINDINGS)

        assert "Overall Risk: 55/100" in result
        assert "1. **SQL injection** [critical] (api/orders.py:40)" in result


class TestAnalyticsTools:
    """Test storing and retrieving analytics through the tools."""

    @pytest.mark.asyncio
    async def test_store_and_get_snapshot(self, tmp_path):
        result = await store_analytics.fn(
            "dependency-scanner",
            "1.2.0",
            "payments",
            {"vulnerable_packages": 3, "packages": ["flask", "jinja2"]},
            repository_path=str(tmp_path),
            branch="main",
        )

        assert result.startswith("Analytics data stored successfully.")
        snapshot_id = result.split("Snapshot ID: ")[1].split("\n")[0]

        text = await get_analytics.fn(snapshot_id=snapshot_id, repository_path=str(tmp_path))

        assert f"- **Snapshot ID**: {snapshot_id}" in text
        assert "- **Tool**: dependency-scanner" in text
        assert "- **Branch**: main" in text
        assert "- **vulnerable_packages**: 3" in text

    @pytest.mark.asyncio
    async def test_unknown_snapshot(self, tmp_path):
        text = await get_analytics.fn(snapshot_id="20200101-000000-000001", repository_path=str(tmp_path))
        assert text == "No snapshot found with ID: 20200101-000000-000001"

    @pytest.mark.asyncio
    async def test_latest_and_history(self, tmp_path):
        """Test the latest snapshot and full history for a tool."""
        for run in range(3):
            await store_analytics.fn(
                "scanner", "1.0.0", "payments", {"run": run}, repository_path=str(tmp_path)
            )

        latest = await get_analytics.fn(tool_id="scanner", repository_path=str(tmp_path))
        assert "- **run**: 2" in latest

        history = await get_analytics.fn(tool_id="scanner", history=True, repository_path=str(tmp_path))
        assert history.startswith("## Analytics Snapshots")
        assert history.count("| scanner |") == 3

    @pytest.mark.asyncio
    async def test_list_when_empty(self, tmp_path):
        text = await get_analytics.fn(repository_path=str(tmp_path))
        assert text == "## Analytics Snapshots\n\nNo snapshots found."

    @pytest.mark.asyncio
    async def test_no_latest(self, tmp_path):
        text = await get_analytics.fn(tool_id="scanner", repository_path=str(tmp_path))
        assert text == "## Analytics Snapshot\n\nNo snapshot found."

    @pytest.mark.asyncio
    async def test_invalid_tool_id(self, tmp_path):
        result = await store_analytics.fn("../evil", "1.0.0", "payments", {}, repository_path=str(tmp_path))
        assert result.startswith("Error: ")

    @pytest.mark.asyncio
    async def test_invalid_since(self, tmp_path):
        result = await get_analytics.fn(
            tool_id="scanner", history=True, since="yesterday", repository_path=str(tmp_path)
        )
        assert result.startswith("Error: ")

    @pytest.mark.asyncio
    async def test_history_returns_every_snapshot(self, tmp_path):
        """Test history is not capped unless a limit is given."""
        for run in range(12):
            await store_analytics.fn(
                "scanner", "1.0.0", "payments", {"run": run}, repository_path=str(tmp_path)
            )

        history = await get_analytics.fn(tool_id="scanner", history=True, repository_path=str(tmp_path))
        limited = await get_analytics.fn(
            tool_id="scanner", history=True, limit=5, repository_path=str(tmp_path)
        )
        listing = await get_analytics.fn(repository_path=str(tmp_path))

        assert history.count("| scanner |") == 12
        assert limited.count("| scanner |") == 5
        assert listing.count("| scanner |") == 10
