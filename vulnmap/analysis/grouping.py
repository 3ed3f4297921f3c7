"""Group findings from several detectors by the file they were reported in."""

from collections.abc import Iterable, Mapping
from typing import Any

from .models import Finding

# Insertion-ordered: keys appear in order of first occurrence across the
# merged input, values keep the order findings were supplied in.
FileBucket = dict[str, list[Finding]]

RawFinding = Finding | Mapping[str, Any]


def group_findings(*finding_sets: Iterable[RawFinding]) -> FileBucket:
    """Merge finding collections into a per-file bucket.

    Findings for the same file are concatenated: all of the first
    collection's findings for that file, then the next collection's, each in
    their original order. Nothing is deduplicated, so an issue reported by two
    detectors appears twice. Findings without a file land under ``""``.

    Args:
        *finding_sets: Collections of findings, either ``Finding`` models or
            raw dicts as produced by detectors.

    Returns:
        Mapping of file path to that file's findings.

    Raises:
        InvalidInputError: If a finding is malformed.
    """
    bucket: FileBucket = {}
    for findings in finding_sets:
        for raw in findings:
            finding = Finding.from_raw(raw)
            bucket.setdefault(finding.file, []).append(finding)
    return bucket
