"""Tests for file grouping and flow map generation."""

import pytest

from vulnmap.analysis.flows import build_flows
from vulnmap.analysis.grouping import group_findings
from vulnmap.core.exceptions import InvalidInputError


def _finding(file, **kwargs):
    return {"location": {"file": file}, **kwargs}


class TestGroupFindings:
    """Test merging finding collections by file."""

    def test_order_across_collections(self):
        """Test first collection's findings come first for a shared file."""
        code = [_finding("a.py", id="c1"), _finding("b.py", id="c2"), _finding("a.py", id="c3")]
        patterns = [_finding("a.py", id="p1"), _finding("c.py", id="p2")]

        bucket = group_findings(code, patterns)

        assert list(bucket) == ["a.py", "b.py", "c.py"]
        assert [f.id for f in bucket["a.py"]] == ["c1", "c3", "p1"]
        assert [f.id for f in bucket["c.py"]] == ["p2"]

    def test_no_deduplication(self):
        """Test the same issue in two collections is kept twice."""
        issue = _finding("a.py", id="dup", severity="high")

        bucket = group_findings([issue], [issue])

        assert len(bucket["a.py"]) == 2

    def test_missing_file_grouped_under_empty_key(self):
        """Test file-less findings share the empty-string bucket."""
        bucket = group_findings([{"id": "x"}], [{"location": {}, "id": "y"}])

        assert list(bucket) == [""]
        assert [f.id for f in bucket[""]] == ["x", "y"]

    def test_empty_input(self):
        """Test no collections or empty collections give an empty bucket."""
        assert group_findings() == {}
        assert group_findings([], []) == {}

    def test_malformed_finding_propagates(self):
        """Test malformed findings are not silently skipped."""
        with pytest.raises(InvalidInputError):
            group_findings([_finding("a.py", severity=3)])


class TestBuildFlows:
    """Test flow map construction."""

    def test_entry_points_and_sinks(self):
        """Test findings are split by role, preserving order."""
        bucket = group_findings([
            _finding("a.py", id="1", isEntryPoint=True),
            _finding("a.py", id="2", isSink=True),
            _finding("a.py", id="3"),
            _finding("a.py", id="4", isEntryPoint=True),
        ])

        (flow,) = build_flows(bucket)

        assert flow.file == "a.py"
        assert [f.id for f in flow.vulnerabilities] == ["1", "2", "3", "4"]
        assert [f.id for f in flow.entry_points] == ["1", "4"]
        assert [f.id for f in flow.sinks] == ["2"]
        assert flow.flows == []

    def test_entry_point_and_sink(self):
        """Test a finding with both flags appears in both lists but once overall."""
        bucket = group_findings([_finding("a.py", id="both", isEntryPoint=True, isSink=True)])

        (flow,) = build_flows(bucket)

        assert [f.id for f in flow.vulnerabilities] == ["both"]
        assert [f.id for f in flow.entry_points] == ["both"]
        assert [f.id for f in flow.sinks] == ["both"]

    def test_flow_order_follows_first_occurrence(self):
        """Test one flow per file in first-occurrence order."""
        bucket = group_findings(
            [_finding("z.py"), _finding("a.py")], [_finding("m.py"), _finding("z.py")]
        )

        assert [flow.file for flow in build_flows(bucket)] == ["z.py", "a.py", "m.py"]

    def test_completeness(self):
        """Test no finding is dropped or duplicated by grouping."""
        code = [_finding(f"f{i % 3}.py") for i in range(7)]
        patterns = [_finding(f"f{i % 4}.py") for i in range(5)] + [{}]

        flows = build_flows(group_findings(code, patterns))

        assert sum(len(flow.vulnerabilities) for flow in flows) == len(code) + len(patterns)
