"""Filtering of findings by severity threshold and file path."""

import fnmatch
from collections.abc import Iterable, Sequence

from ..constants import SEVERITY_LEVELS
from ..core.exceptions import InvalidInputError
from .grouping import RawFinding
from .models import Finding, Severity

# Lower rank is more severe
_SEVERITY_RANK = {level: rank for rank, level in enumerate(SEVERITY_LEVELS)}


def filter_by_severity(
    findings: Iterable[RawFinding], threshold: str = "low"
) -> list[Finding]:
    """Keep findings at or above a severity threshold.

    Findings with a missing or unknown severity cannot be ranked and are
    dropped.

    Args:
        findings: Findings to filter.
        threshold: Minimum severity, one of critical/high/medium/low/info
            (case-insensitive).

    Raises:
        InvalidInputError: If the threshold is not a recognized severity.
    """
    limit = _SEVERITY_RANK.get(threshold.lower())
    if limit is None:
        raise InvalidInputError(
            f"Unknown severity threshold '{threshold}'. "
            f"Expected one of: {', '.join(SEVERITY_LEVELS)}"
        )

    kept = []
    for raw in findings:
        finding = Finding.from_raw(raw)
        level = finding.severity_level
        if level is not Severity.UNRECOGNIZED and _SEVERITY_RANK[level.value] <= limit:
            kept.append(finding)
    return kept


def _matches(path: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        if fnmatch.fnmatch(path, pattern):
            return True
        # "**/x" should also match "x" at the repository root
        if pattern.startswith("**/") and fnmatch.fnmatch(path, pattern[3:]):
            return True
    return False


def filter_by_path(
    findings: Iterable[RawFinding],
    include_patterns: Sequence[str] = ("**/*",),
    exclude_patterns: Sequence[str] = (),
) -> list[Finding]:
    """Keep findings whose file matches an include pattern and no exclude pattern.

    Patterns are shell-style globs matched against ``location.file``.
    """
    kept = []
    for raw in findings:
        finding = Finding.from_raw(raw)
        path = finding.file
        if not _matches(path, include_patterns):
            continue
        if exclude_patterns and _matches(path, exclude_patterns):
            continue
        kept.append(finding)
    return kept
