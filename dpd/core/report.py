"""
Aggregation of findings into the scan report

Score, risk tier and the category grouping are derived here once all
detectors ran. Aggregation is pure: it never looks at the document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from bs4 import Tag

from .document import NodeArena
from .model import CATEGORY_ICONS, RISK_COLORS, SEVERITY_ORDER, Finding, risk_tier


def total_score(findings: Iterable[Finding]) -> int:
    return sum(finding.weight for finding in findings)


def group_by_category(findings: Iterable[Finding]) -> Dict[str, List[Finding]]:
    """Findings per category, categories in order of first appearance."""
    grouped: Dict[str, List[Finding]] = {}
    for finding in findings:
        grouped.setdefault(finding.category, []).append(finding)
    return grouped


@dataclass
class ScanReport:
    """Outcome of one detection pass."""

    findings: List[Finding]
    score: int
    tier: str
    grouped: Dict[str, List[Finding]]
    errors: List[Dict[str, str]] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    arena: Optional[NodeArena] = field(default=None, repr=False, compare=False)

    @property
    def color(self) -> str:
        return RISK_COLORS[self.tier]

    @property
    def is_clean(self) -> bool:
        return not self.findings

    def locate(self, index: int) -> Optional[Tag]:
        """Element behind a finding index, or None for element-less findings."""
        if index < 0 or index >= len(self.findings):
            raise IndexError(f"No finding with index {index}")
        if self.arena is None:
            return None
        return self.arena.get(self.findings[index].node_id)

    def severity_counts(self) -> Dict[str, int]:
        counts = {severity: 0 for severity in SEVERITY_ORDER}
        for finding in self.findings:
            counts[finding.severity] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "tier": self.tier,
            "total_findings": len(self.findings),
            "severity_counts": self.severity_counts(),
            "categories": [
                {
                    "category": category,
                    "icon": CATEGORY_ICONS.get(category, "⚠️"),
                    "count": len(items),
                    "findings": [finding.index for finding in items],
                }
                for category, items in self.grouped.items()
            ],
            "findings": [finding.to_dict() for finding in self.findings],
            "errors": list(self.errors),
        }


def aggregate(findings: Iterable[Finding],
              errors: Optional[List[Dict[str, str]]] = None,
              stats: Optional[Dict[str, Any]] = None,
              arena: Optional[NodeArena] = None) -> ScanReport:
    findings = list(findings)
    score = total_score(findings)
    return ScanReport(
        findings=findings,
        score=score,
        tier=risk_tier(score),
        grouped=group_by_category(findings),
        errors=list(errors or []),
        stats=dict(stats or {}),
        arena=arena,
    )
