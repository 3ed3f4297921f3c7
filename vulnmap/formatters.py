"""Markdown renderings of vulnerability maps, risk scores and snapshots."""

import json
from pathlib import PurePath
from typing import Any

from .analysis.models import VulnerabilityMaps
from .analysis.risk_scoring import RiskScores
from .storage.models import AnalyticsEnvelope

MAX_HEATMAP_ROWS = 10
MAX_SAMPLE_ITEMS = 3

_SEVERITY_BADGES = {
    "Critical": "🔴 Critical",
    "High": "🟠 High",
    "Medium": "🟡 Medium",
    "Low": "🔵 Low",
}


def _repo_name(repository_path: str) -> str:
    return PurePath(repository_path).name or repository_path


def format_vulnerability_maps(maps: VulnerabilityMaps, repository_path: str) -> str:
    """Render the heatmap and entry point / sink summary."""
    lines = [f"# 🗺️ Vulnerability Maps: {_repo_name(repository_path)}", ""]

    if not maps.heatmap:
        lines.append("No findings to map.")
        return "\n".join(lines)

    total = sum(item.vulnerability_count for item in maps.heatmap)
    lines.extend([
        f"- **Files with findings**: {len(maps.heatmap)}",
        f"- **Total findings**: {total}",
        "",
        "## Heatmap",
        "",
        "| File | Findings | Critical | High | Medium | Low | Info | Heat Score |",
        "|------|----------|----------|------|--------|-----|------|------------|",
    ])
    for item in maps.heatmap[:MAX_HEATMAP_ROWS]:
        c = item.severity_counts
        lines.append(
            f"| {item.file or '(no file)'} | {item.vulnerability_count} | {c.critical} | "
            f"{c.high} | {c.medium} | {c.low} | {c.info} | {item.heat_score} |"
        )
    if len(maps.heatmap) > MAX_HEATMAP_ROWS:
        lines.append("")
        lines.append(f"... and {len(maps.heatmap) - MAX_HEATMAP_ROWS} more files.")

    with_flow_roles = [f for f in maps.flows if f.entry_points or f.sinks]
    if with_flow_roles:
        lines.extend(["", "## Entry Points and Sinks", ""])
        for flow in with_flow_roles:
            lines.append(
                f"- `{flow.file or '(no file)'}`: {len(flow.entry_points)} entry point(s), "
                f"{len(flow.sinks)} sink(s)"
            )

    return "\n".join(lines)


def format_risk_scores(scores: RiskScores, repository_path: str) -> str:
    """Render overall risk, category scores and the remediation list."""
    badge = _SEVERITY_BADGES.get(scores.risk_category, scores.risk_category)
    c = scores.severity_counts
    lines = [
        f"# 🛡️ Risk Assessment: {_repo_name(repository_path)}",
        "",
        f"Overall Risk: {scores.overall_risk_score}/100 ({badge})",
        "",
        "## Severity Breakdown",
        "",
        f"- Critical: {c.critical}",
        f"- High: {c.high}",
        f"- Medium: {c.medium}",
        f"- Low: {c.low}",
        f"- Info: {c.info}",
    ]

    scored = {k: v for k, v in scores.category_risk_scores.items() if v.count}
    if scored:
        lines.extend(["", "## Category Risk", "", "| Category | Score | Findings | Label |",
                      "|----------|-------|----------|-------|"])
        for category, score in scored.items():
            lines.append(f"| {category} | {score.score} | {score.count} | {score.label} |")

    lines.extend(["", "## Remediation Priority", ""])
    if not scores.remediation_priority:
        lines.append("No remediation needed.")
    for i, item in enumerate(scores.remediation_priority, 1):
        where = ""
        if item.location is not None and item.location.file:
            where = f" ({item.location.file}"
            where += f":{item.location.line})" if item.location.line is not None else ")"
        lines.append(
            f"{i}. **{item.name or item.id or 'Unnamed finding'}** "
            f"[{item.severity or 'unknown'}]{where}"
        )
        if item.remediation:
            lines.append(f"   - {item.remediation}")

    return "\n".join(lines)


def format_snapshot_list(snapshots: list[dict[str, Any]]) -> str:
    """Render snapshot index entries as a table."""
    lines = ["## Analytics Snapshots", ""]
    if not snapshots:
        lines.append("No snapshots found.")
        return "\n".join(lines)

    lines.extend([
        "| Snapshot ID | Tool | Repository | Timestamp | Execution Time |",
        "|-------------|------|------------|-----------|----------------|",
    ])
    for snapshot in snapshots:
        repository = snapshot.get("repository_info", {}).get("name", "Unknown")
        lines.append(
            f"| {snapshot.get('id', 'Unknown')} | {snapshot.get('tool_id', 'Unknown')} | "
            f"{repository} | {snapshot.get('timestamp', 'Unknown')} | "
            f"{snapshot.get('execution_time_ms', 0)}ms |"
        )
    return "\n".join(lines)


def _format_value(key: str, value: Any) -> list[str]:
    if isinstance(value, list):
        lines = [f"#### {key}", "", f"- Total Items: {len(value)}"]
        if value:
            lines.append("- Sample Items:")
            for item in value[:MAX_SAMPLE_ITEMS]:
                text = json.dumps(item, default=str) if isinstance(item, (dict, list)) else item
                lines.append(f"  - {text}")
            if len(value) > MAX_SAMPLE_ITEMS:
                lines.append(f"  - ... and {len(value) - MAX_SAMPLE_ITEMS} more")
        lines.append("")
        return lines

    if isinstance(value, dict):
        lines = [f"#### {key}", ""]
        for sub_key, sub_value in value.items():
            text = json.dumps(sub_value, default=str) if isinstance(sub_value, (dict, list)) else sub_value
            lines.append(f"- **{sub_key}**: {text}")
        lines.append("")
        return lines

    return [f"- **{key}**: {value}"]


def format_snapshot(envelope: AnalyticsEnvelope) -> str:
    """Render one envelope: metadata, then summary data."""
    meta = envelope.metadata
    repo = meta.repository_info
    lines = [
        "## Analytics Snapshot",
        "",
        "### Metadata",
        "",
        f"- **Snapshot ID**: {envelope.id}",
        f"- **Tool**: {meta.tool_id}",
        f"- **Tool Version**: {meta.tool_version}",
        f"- **Schema Version**: {meta.schema_version}",
        f"- **Timestamp**: {meta.timestamp.isoformat()}",
        f"- **Execution Time**: {meta.execution_time_ms}ms",
        f"- **Repository**: {repo.name}",
    ]
    if repo.branch:
        lines.append(f"- **Branch**: {repo.branch}")
    if repo.commit_hash:
        lines.append(f"- **Commit Hash**: {repo.commit_hash}")
    lines.append("")

    if envelope.summary:
        lines.extend(["### Summary Data", ""])
        for key, value in envelope.summary.items():
            lines.extend(_format_value(key, value))

    if envelope.detailed:
        lines.extend([
            "",
            "### Detailed Data",
            "",
            f"Detailed data available ({len(envelope.detailed)} keys).",
        ])

    return "\n".join(lines)
