"""Vulnerability map generation: flow map plus severity heatmap."""

import logging
from collections.abc import Iterable

from .flows import build_flows
from .grouping import RawFinding, group_findings
from .heatmap import build_heatmap
from .models import VulnerabilityMaps

logger = logging.getLogger(__name__)


def generate_vulnerability_maps(
    repository_path: str,
    code_vulnerabilities: Iterable[RawFinding],
    security_anti_patterns: Iterable[RawFinding],
) -> VulnerabilityMaps:
    """Generate the flow map and heatmap for a repository's findings.

    Code vulnerabilities and anti-patterns are grouped by file once, and both
    maps are derived from that grouping. This is a pure in-memory transform.

    Args:
        repository_path: Path of the analyzed repository. Accepted for path
            normalization; file keys are currently used as supplied.
        code_vulnerabilities: Findings from code vulnerability detectors.
        security_anti_patterns: Findings from anti-pattern detectors.

    Returns:
        VulnerabilityMaps with ``flows`` in first-occurrence file order and
        ``heatmap`` ranked by heat score.

    Raises:
        InvalidInputError: If any finding is malformed.
    """
    bucket = group_findings(code_vulnerabilities, security_anti_patterns)

    maps = VulnerabilityMaps(
        flows=build_flows(bucket),
        heatmap=build_heatmap(bucket),
    )

    logger.debug(
        f"Generated vulnerability maps for {repository_path}: "
        f"{len(bucket)} files, {sum(len(v) for v in bucket.values())} findings"
    )
    return maps
