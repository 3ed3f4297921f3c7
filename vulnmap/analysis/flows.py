"""Flow map generation.

Each file's findings are split into entry points and sinks. Connecting them
requires inter-procedural dataflow analysis, which is not implemented, so
every flow entry carries an empty ``flows`` list.
"""

from .grouping import FileBucket
from .models import VulnerabilityFlow


def build_flows(bucket: FileBucket) -> list[VulnerabilityFlow]:
    """Build one flow entry per file, in bucket order.

    A finding flagged as both entry point and sink is listed in both
    ``entry_points`` and ``sinks``, and once in ``vulnerabilities``.
    """
    return [
        VulnerabilityFlow(
            file=file,
            vulnerabilities=list(findings),
            entry_points=[f for f in findings if f.is_entry_point],
            sinks=[f for f in findings if f.is_sink],
            flows=[],
        )
        for file, findings in bucket.items()
    ]
