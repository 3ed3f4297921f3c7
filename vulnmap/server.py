import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, Literal

from fastmcp import FastMCP
from pydantic import Field

from .analysis import filter_by_severity, generate_risk_scores
from .analysis.maps import generate_vulnerability_maps as build_vulnerability_maps
from .config import get_log_file, get_log_level, get_mcp_port
from .constants import DEFAULT_SNAPSHOT_LIMIT, SERVICE_VERSION
from .core import (
    InvalidInputError,
    NotFoundError,
    VulnMapError,
    configure_analytics_logging,
    get_analytics_logger,
)
from .formatters import (
    format_risk_scores,
    format_snapshot,
    format_snapshot_list,
    format_vulnerability_maps,
)
from .storage import AnalyticsCollector, AnalyticsStore, RepositoryInfo, record_tool_analytics

# Configure logging to stderr to avoid interfering with MCP traffic on stdout
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(name)s %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger("vulnmap")

mcp: FastMCP = FastMCP("vulnmap-mcp")

TOOL_VERSION = "1.0.0"
MAX_TOP_FILES = 5

FindingList = list[dict[str, Any]]


def _repository_info(repository_path: str) -> RepositoryInfo:
    name = Path(repository_path).name or repository_path
    return RepositoryInfo(name=name, path=repository_path)


def _parse_time(value: str | None, name: str) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidInputError(f"{name} must be an ISO 8601 timestamp, got {value!r}") from e


@mcp.tool
async def generate_vulnerability_maps(
    repository_path: Annotated[
        str,
        Field(description="Path of the repository the findings were reported against"),
    ],
    code_vulnerabilities: Annotated[
        FindingList | None,
        Field(
            description="Code vulnerability findings. Each item may have 'severity', 'location' {'file', 'line'}, 'isEntryPoint', 'isSink' and descriptive fields"
        ),
    ] = None,
    security_anti_patterns: Annotated[
        FindingList | None,
        Field(description="Security anti-pattern findings, same shape as code_vulnerabilities"),
    ] = None,
    output_format: Annotated[
        Literal["json", "markdown"],
        Field(description="Return the raw {flows, heatmap} JSON or a markdown summary"),
    ] = "json",
    store_analytics: Annotated[
        bool,
        Field(description="Store a summary snapshot under the repository's .vulnmap/analytics directory"),
    ] = False,
) -> str:
    """Group findings by file into a flow map and a severity heatmap.

    USE THIS TOOL WHEN:
    - You have findings from security detectors and want to see which files are riskiest
    - You need entry points and sinks per file

    The heatmap ranks files by heat score (critical=10, high=5, medium=2, low=1, info=0).
    Flow edges between entry points and sinks are not computed; 'flows' is always empty."""
    code_vulnerabilities = code_vulnerabilities or []
    security_anti_patterns = security_anti_patterns or []
    logger.info(
        f"Generating vulnerability maps for {repository_path} "
        f"({len(code_vulnerabilities)} vulnerabilities, {len(security_anti_patterns)} anti-patterns)"
    )
    collector = AnalyticsCollector(
        "vulnerability-maps", TOOL_VERSION, _repository_info(repository_path)
    )

    try:
        maps = build_vulnerability_maps(
            repository_path, code_vulnerabilities, security_anti_patterns
        )
    except VulnMapError as e:
        logger.error(f"Error generating vulnerability maps for {repository_path}: {e}")
        return f"Error: {str(e)}"

    result = maps.to_dict()
    get_analytics_logger().info(
        "Generated vulnerability maps",
        extra={
            "event": "vulnerability_maps_generated",
            "tool": collector.tool_id,
            "repository": collector.repository_info.name,
            "context": {"files": len(maps.heatmap)},
        },
    )

    storage_result = None
    if store_analytics:
        summary = {
            "repositoryPath": repository_path,
            "filesWithFindings": len(maps.heatmap),
            "totalFindings": sum(item.vulnerability_count for item in maps.heatmap),
            "topFiles": [item.to_dict() for item in maps.heatmap[:MAX_TOP_FILES]],
        }
        storage_result = record_tool_analytics(collector, summary, result)

    if output_format == "markdown":
        text = format_vulnerability_maps(maps, repository_path)
        if storage_result is not None:
            text += f"\n\nAnalytics snapshot: {storage_result.snapshot_id}"
        return text

    if storage_result is not None:
        result["analytics"] = storage_result.to_dict()
    return json.dumps(result, indent=2)


@mcp.tool
async def calculate_risk_scores(
    repository_path: Annotated[
        str,
        Field(description="Path of the repository the findings were reported against"),
    ],
    code_vulnerabilities: Annotated[
        FindingList | None, Field(description="Code vulnerability findings")
    ] = None,
    dependency_vulnerabilities: Annotated[
        FindingList | None, Field(description="Vulnerable dependency findings")
    ] = None,
    hardcoded_credentials: Annotated[
        FindingList | None, Field(description="Hardcoded credential findings")
    ] = None,
    security_anti_patterns: Annotated[
        FindingList | None, Field(description="Security anti-pattern findings")
    ] = None,
    severity_threshold: Annotated[
        Literal["critical", "high", "medium", "low", "info"] | None,
        Field(description="Ignore findings below this severity. If not provided, all findings are scored"),
    ] = None,
    output_format: Annotated[
        Literal["json", "markdown"],
        Field(description="Return raw JSON scores or a markdown report"),
    ] = "markdown",
) -> str:
    """Compute an overall 0-100 risk score, per-category scores and a remediation priority list.

    USE THIS TOOL WHEN:
    - You want a single risk rating for a repository's findings
    - You need to know which findings to fix first"""
    logger.info(f"Calculating risk scores for {repository_path}")

    try:
        finding_sets: list[Any] = [
            code_vulnerabilities or [],
            dependency_vulnerabilities or [],
            hardcoded_credentials or [],
            security_anti_patterns or [],
        ]
        if severity_threshold is not None:
            finding_sets = [filter_by_severity(s, severity_threshold) for s in finding_sets]
        scores = generate_risk_scores(*finding_sets)
    except VulnMapError as e:
        logger.error(f"Error calculating risk scores for {repository_path}: {e}")
        return f"Error: {str(e)}"

    if output_format == "json":
        return json.dumps(scores.to_dict(), indent=2)
    return format_risk_scores(scores, repository_path)


@mcp.tool
async def store_analytics(
    tool_id: Annotated[
        str, Field(description="Unique identifier of the tool generating the analytics")
    ],
    tool_version: Annotated[str, Field(description="Semantic version of the tool")],
    repository_name: Annotated[str, Field(description="Repository name")],
    summary_data: Annotated[
        dict[str, Any],
        Field(description="Summary data containing key metrics for dashboard display"),
    ],
    detailed_data: Annotated[
        dict[str, Any] | None, Field(description="Detailed analytics data")
    ] = None,
    repository_path: Annotated[
        str | None,
        Field(description="Repository path. Analytics are stored under it; if not provided, the configured analytics directory is used"),
    ] = None,
    branch: Annotated[str | None, Field(description="Current branch")] = None,
    commit_hash: Annotated[str | None, Field(description="Current commit hash")] = None,
) -> str:
    """Store analytics data from a tool in the standardized envelope format.

    Each call appends a new snapshot; earlier snapshots for the same tool are never overwritten."""
    repository_info = RepositoryInfo(
        name=repository_name, branch=branch, commit_hash=commit_hash, path=repository_path
    )
    logger.info(f"Storing analytics data for tool: {tool_id}")

    try:
        store = AnalyticsStore(Path(repository_path) if repository_path else None)
        result = store.store(
            tool_id,
            summary_data,
            detailed_data,
            tool_version=tool_version,
            repository_info=repository_info,
        )
    except VulnMapError as e:
        logger.error(f"Failed to store analytics data for tool {tool_id}: {e}")
        return f"Error: {str(e)}"

    return (
        "Analytics data stored successfully.\n"
        f"Snapshot ID: {result.snapshot_id}\n"
        f"Path: {result.snapshot_path}"
    )


@mcp.tool
async def get_analytics(
    tool_id: Annotated[str | None, Field(description="Filter results by tool ID")] = None,
    repository_name: Annotated[
        str | None, Field(description="Filter results by repository name")
    ] = None,
    snapshot_id: Annotated[
        str | None, Field(description="Specific snapshot ID to retrieve")
    ] = None,
    history: Annotated[
        bool,
        Field(description="With tool_id, list that tool's snapshots in creation order instead of the latest one"),
    ] = False,
    since: Annotated[
        str | None, Field(description="With history, only snapshots at or after this ISO 8601 time")
    ] = None,
    until: Annotated[
        str | None, Field(description="With history, only snapshots at or before this ISO 8601 time")
    ] = None,
    limit: Annotated[
        int | None,
        Field(
            description="Maximum number of snapshots to return. If not provided, history returns every snapshot and listings return 10",
            ge=1,
            le=1000,
        ),
    ] = None,
    repository_path: Annotated[
        str | None,
        Field(description="Repository path whose analytics to read; if not provided, the configured analytics directory is used"),
    ] = None,
) -> str:
    """Retrieve stored analytics snapshots.

    - snapshot_id: returns that snapshot
    - tool_id with history: returns the tool's snapshots, oldest first
    - tool_id or repository_name: returns the latest matching snapshot
    - otherwise: lists the most recent snapshots across all tools"""
    filters = {"tool_id": tool_id, "repository_name": repository_name, "snapshot_id": snapshot_id}
    logger.info(f"Retrieving analytics data ({', '.join(f'{k}={v}' for k, v in filters.items() if v)})")

    try:
        store = AnalyticsStore(Path(repository_path) if repository_path else None)

        if snapshot_id:
            try:
                text = format_snapshot(store.get_snapshot(snapshot_id, tool_id))
            except NotFoundError:
                return f"No snapshot found with ID: {snapshot_id}"
            count = 1
        elif tool_id and history:
            envelopes = store.retrieve(
                tool_id,
                since=_parse_time(since, "since"),
                until=_parse_time(until, "until"),
                limit=limit,
            )
            text = format_snapshot_list([
                {
                    "id": env.id,
                    "tool_id": env.metadata.tool_id,
                    "timestamp": env.metadata.timestamp.isoformat(),
                    "repository_info": env.metadata.repository_info.model_dump(by_alias=True),
                    "execution_time_ms": env.metadata.execution_time_ms,
                }
                for env in envelopes
            ])
            count = len(envelopes)
        elif tool_id or repository_name:
            latest = store.get_latest(tool_id, repository_name)
            if latest is None:
                return "## Analytics Snapshot\n\nNo snapshot found."
            text = format_snapshot(latest)
            count = 1
        else:
            snapshots = store.list_snapshots(limit or DEFAULT_SNAPSHOT_LIMIT)
            text = format_snapshot_list(snapshots)
            count = len(snapshots)
    except VulnMapError as e:
        logger.error(f"Error retrieving analytics data: {e}")
        return f"Error: {str(e)}"

    get_analytics_logger().info(
        "Retrieved analytics data",
        extra={"event": "analytics_retrieved", "action": "get", "context": {**filters, "count": count}},
    )
    return text


def main() -> None:
    """Run the MCP server with HTTP streaming transport."""
    print(f"VulnMap MCP Server v{SERVICE_VERSION} (HTTP Streaming)", file=sys.stderr)
    print("=" * 50, file=sys.stderr)

    try:
        configure_analytics_logging(log_file=get_log_file(), log_level=get_log_level())
        port = get_mcp_port()
    except VulnMapError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Starting HTTP streaming server on port {port}...", file=sys.stderr)
    print(f"HTTP endpoint will be available at: http://localhost:{port}/mcp", file=sys.stderr)

    try:
        import asyncio
        asyncio.run(mcp.run_http_async(transport="streamable-http", host="0.0.0.0", port=port))
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
