"""Severity heatmap generation.

Files are ranked by a weighted sum of their finding severities so the
riskiest files surface first.
"""

from collections.abc import Iterable

from ..constants import SEVERITY_WEIGHTS
from .grouping import FileBucket
from .models import Finding, HeatmapItem, Severity, SeverityCounts


def count_severities(findings: Iterable[Finding]) -> SeverityCounts:
    """Count findings per recognized severity.

    Findings with a missing or unknown severity are skipped.
    """
    counts = SeverityCounts()
    for finding in findings:
        level = finding.severity_level
        if level is Severity.UNRECOGNIZED:
            continue
        setattr(counts, level.value, getattr(counts, level.value) + 1)
    return counts


def heat_score(counts: SeverityCounts) -> int:
    """Weighted severity sum: critical 10, high 5, medium 2, low 1, info 0."""
    return sum(
        getattr(counts, level) * weight for level, weight in SEVERITY_WEIGHTS.items()
    )


def build_heatmap(bucket: FileBucket) -> list[HeatmapItem]:
    """Build heatmap items sorted by descending heat score.

    The sort is stable, so files with equal scores keep the order in which
    they first appeared in the input.
    """
    items = []
    for file, findings in bucket.items():
        counts = count_severities(findings)
        items.append(
            HeatmapItem(
                file=file,
                vulnerability_count=len(findings),
                severity_counts=counts,
                heat_score=heat_score(counts),
            )
        )

    return sorted(items, key=lambda item: item.heat_score, reverse=True)
