"""Finding aggregation: grouping, flow maps, heatmaps and risk scoring."""

from .filters import filter_by_path, filter_by_severity
from .flows import build_flows
from .grouping import FileBucket, group_findings
from .heatmap import build_heatmap, count_severities, heat_score
from .maps import generate_vulnerability_maps
from .models import (
    Finding,
    FindingLocation,
    HeatmapItem,
    Severity,
    SeverityCounts,
    VulnerabilityFlow,
    VulnerabilityMaps,
)
from .risk_scoring import RiskScores, generate_risk_scores

__all__ = [
    # Models
    "Finding",
    "FindingLocation",
    "Severity",
    "SeverityCounts",
    "VulnerabilityFlow",
    "HeatmapItem",
    "VulnerabilityMaps",
    "RiskScores",
    # Aggregation
    "FileBucket",
    "group_findings",
    "build_flows",
    "build_heatmap",
    "count_severities",
    "heat_score",
    "generate_vulnerability_maps",
    "generate_risk_scores",
    # Filters
    "filter_by_severity",
    "filter_by_path",
]
