"""Risk scoring across all findings of an analysis run.

Produces an overall 0-100 risk score, per-category scores and a prioritized
remediation list. Severity weights are shared with the heatmap.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import (
    DEFAULT_PRIORITY_WEIGHT,
    LOWEST_RISK_CATEGORY,
    MAX_REMEDIATION_ITEMS,
    PRIORITY_WEIGHTS,
    RISK_CATEGORIES,
    RISK_CATEGORY_THRESHOLDS,
)
from .grouping import RawFinding
from .heatmap import count_severities, heat_score
from .models import Finding, FindingLocation, SeverityCounts


class CategoryRiskScore(BaseModel):
    score: int
    count: int
    label: str


class RemediationItem(BaseModel):
    """A finding selected for remediation, with its computed priority."""

    model_config = ConfigDict(populate_by_name=True)

    id: Any = None
    name: Any = None
    severity: str | None = None
    remediation: Any = None
    location: FindingLocation | None = None
    priority_score: float = Field(alias="priorityScore")


class RiskScores(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    overall_risk_score: int = Field(alias="overallRiskScore")
    risk_category: str = Field(alias="riskCategory")
    severity_counts: SeverityCounts = Field(alias="severityCounts")
    category_risk_scores: dict[str, CategoryRiskScore] = Field(alias="categoryRiskScores")
    risk_trend: str = Field(alias="riskTrend")
    remediation_priority: list[RemediationItem] = Field(alias="remediationPriority")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def risk_label(score: int) -> str:
    """Map a 0-100 score to Critical / High / Medium / Low."""
    for threshold, label in RISK_CATEGORY_THRESHOLDS:
        if score >= threshold:
            return label
    return LOWEST_RISK_CATEGORY


def calculate_category_risk_scores(findings: list[Finding]) -> dict[str, CategoryRiskScore]:
    """Score each fixed risk category independently.

    A category's score is five times its weighted severity sum, capped at
    100. Categories without findings are labelled "None".
    """
    scores: dict[str, CategoryRiskScore] = {}
    for category in RISK_CATEGORIES:
        in_category = [f for f in findings if f.category == category]
        if not in_category:
            scores[category] = CategoryRiskScore(score=0, count=0, label="None")
            continue

        weighted = heat_score(count_severities(in_category))
        score = min(100, _round_half_up(weighted * 5))
        scores[category] = CategoryRiskScore(
            score=score, count=len(in_category), label=risk_label(score)
        )
    return scores


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def priority_score(finding: Finding) -> float:
    """Severity base score, scaled by exploitability and business impact."""
    score: float = PRIORITY_WEIGHTS.get(
        finding.severity_level.value, DEFAULT_PRIORITY_WEIGHT
    )
    for multiplier in (finding.exploitability, finding.business_impact):
        # Zero and non-numeric multipliers are treated as absent
        if _is_number(multiplier) and multiplier:
            score *= multiplier
    return score


def generate_remediation_priority(findings: list[Finding]) -> list[RemediationItem]:
    """Return the top findings to fix, highest priority first.

    Ties keep input order. Input findings are not modified.
    """
    scored = [(priority_score(f), f) for f in findings]
    scored.sort(key=lambda pair: pair[0], reverse=True)

    return [
        RemediationItem(
            id=f.id,
            name=f.name,
            severity=f.severity,
            remediation=f.remediation,
            location=f.location,
            priority_score=score,
        )
        for score, f in scored[:MAX_REMEDIATION_ITEMS]
    ]


def generate_risk_scores(*finding_sets: Iterable[RawFinding]) -> RiskScores:
    """Compute risk scores over every supplied finding collection.

    The overall score is the average severity weight per finding scaled by
    ten and capped at 100: a repository with only critical findings scores
    100, one with only low findings scores 10.

    Args:
        *finding_sets: Code vulnerabilities, dependency vulnerabilities,
            hardcoded credentials, anti-patterns, in any combination.

    Raises:
        InvalidInputError: If any finding is malformed.
    """
    findings = [Finding.from_raw(raw) for findings in finding_sets for raw in findings]

    counts = count_severities(findings)
    overall = min(
        100, _round_half_up(heat_score(counts) / max(1, len(findings)) * 10)
    )

    return RiskScores(
        overall_risk_score=overall,
        risk_category=risk_label(overall),
        severity_counts=counts,
        category_risk_scores=calculate_category_risk_scores(findings),
        # No scan history is consulted, so trend cannot be determined
        risk_trend="Unknown",
        remediation_priority=generate_remediation_priority(findings),
    )
