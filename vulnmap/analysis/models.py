"""Pydantic models for findings and the derived vulnerability maps.

Findings arrive as loosely-typed dicts from external detectors. They are
parsed into ``Finding`` models with every optional field defaulted, so the
aggregation code never has to deal with missing keys. Output models
serialize with the camelCase field names consumers already parse.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import InvalidInputError


class Severity(str, Enum):
    """Severity of a finding.

    ``UNRECOGNIZED`` covers missing and unknown severity strings. Such
    findings are counted in totals but in none of the five severity buckets.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_value(cls, value: str | None) -> Severity:
        if value is None:
            return cls.UNRECOGNIZED
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNRECOGNIZED


class FindingLocation(BaseModel):
    """Where a finding was reported."""

    model_config = ConfigDict(extra="allow")

    file: str = ""
    line: Any = None

    @field_validator("file", mode="before")
    @classmethod
    def _missing_file_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Finding(BaseModel):
    """A single reported issue (vulnerability or anti-pattern).

    Attributes:
        id: Detector-assigned identifier, if any.
        name: Short human-readable title.
        severity: Raw severity string as reported. Compare via
            ``severity_level``, which lower-cases it.
        location: File and line of the finding.
        is_entry_point: Finding marks where untrusted input enters.
        is_sink: Finding marks where data reaches a dangerous operation.
        category: Risk category such as "injection" or "cryptography".
        exploitability: Optional multiplier used for remediation priority.
        business_impact: Optional multiplier used for remediation priority.

    Only severity and the location file are type-checked. Descriptive fields
    and the multipliers are kept exactly as the detector supplied them, as are
    unknown fields, and all are serialized back.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Any = None
    name: Any = None
    description: Any = None
    remediation: Any = None
    category: Any = None
    severity: str | None = None
    location: FindingLocation | None = None
    is_entry_point: bool = Field(default=False, alias="isEntryPoint")
    is_sink: bool = Field(default=False, alias="isSink")
    exploitability: Any = None
    business_impact: Any = Field(default=None, alias="businessImpact")

    @field_validator("is_entry_point", "is_sink", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return bool(value)

    @classmethod
    def from_raw(cls, raw: Finding | Mapping[str, Any]) -> Finding:
        """Parse a detector-supplied finding.

        Raises:
            InvalidInputError: If severity is present but not a string, or the
                finding is structurally malformed (e.g. non-string file path).
        """
        if isinstance(raw, Finding):
            return raw
        if not isinstance(raw, Mapping):
            raise InvalidInputError(
                f"Finding must be an object, got {type(raw).__name__}"
            )

        severity = raw.get("severity")
        if severity is not None and not isinstance(severity, str):
            raise InvalidInputError(
                f"Finding severity must be a string, got {type(severity).__name__}"
            )

        try:
            return cls.model_validate(dict(raw))
        except PydanticValidationError as e:
            raise InvalidInputError(f"Malformed finding: {e}") from e

    @property
    def file(self) -> str:
        return self.location.file if self.location is not None else ""

    @property
    def severity_level(self) -> Severity:
        return Severity.from_value(self.severity)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the shape the detector supplied."""
        data = self.model_dump(by_alias=True, exclude_unset=True, mode="json")
        for key, value in (self.model_extra or {}).items():
            data.setdefault(key, value)
        return data


class VulnerabilityFlow(BaseModel):
    """Per-file grouping of findings into entry points and sinks.

    ``flows`` is reserved for edges from a real dataflow analysis. No such
    analysis exists yet, so it is always empty.
    """

    model_config = ConfigDict(populate_by_name=True)

    file: str
    vulnerabilities: list[Finding] = Field(default_factory=list)
    entry_points: list[Finding] = Field(default_factory=list, alias="entryPoints")
    sinks: list[Finding] = Field(default_factory=list)
    flows: list[dict[str, Any]] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "vulnerabilities": [f.to_dict() for f in self.vulnerabilities],
            "entryPoints": [f.to_dict() for f in self.entry_points],
            "sinks": [f.to_dict() for f in self.sinks],
            "flows": list(self.flows),
        }


class SeverityCounts(BaseModel):
    """Per-severity finding counts. Always exactly these five keys."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    info: int = 0


class HeatmapItem(BaseModel):
    """Severity-weighted risk summary for one file."""

    model_config = ConfigDict(populate_by_name=True)

    file: str
    vulnerability_count: int = Field(alias="vulnerabilityCount")
    severity_counts: SeverityCounts = Field(alias="severityCounts")
    heat_score: int = Field(alias="heatScore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class VulnerabilityMaps(BaseModel):
    """Flow map plus heatmap for one aggregation run."""

    flows: list[VulnerabilityFlow] = Field(default_factory=list)
    heatmap: list[HeatmapItem] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "flows": [flow.to_dict() for flow in self.flows],
            "heatmap": [item.to_dict() for item in self.heatmap],
        }
