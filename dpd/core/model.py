"""
Core models for the Dark Pattern Detector

Defines the severity model, the category set and the Finding record shared
across the engine, the detectors and the reporting layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


# Severity ranking -> score weight
SEVERITY_WEIGHTS: Dict[str, int] = {
    "critical": 10,
    "high": 6,
    "medium": 3,
    "low": 1,
}

SEVERITY_ORDER: Tuple[str, ...] = ("critical", "high", "medium", "low")

SEVERITY_COLORS: Dict[str, str] = {
    "critical": "#ff2d55",
    "high": "#ff6b00",
    "medium": "#ffd60a",
    "low": "#34c759",
}

CATEGORIES: Tuple[str, ...] = (
    "Forced Continuity",
    "Scarcity / Urgency",
    "Hidden Costs",
    "Confirm-shaming",
    "Roach Motel",
    "Disguised Ads",
    "Trick Questions",
    "Price Anchoring",
    "Intrusive UX",
    "Social Proof Manipulation",
    "Privacy Zuckering",
)

CATEGORY_ICONS: Dict[str, str] = {
    "Forced Continuity": "🔄",
    "Scarcity / Urgency": "⏳",
    "Hidden Costs": "💸",
    "Confirm-shaming": "😬",
    "Roach Motel": "🪤",
    "Disguised Ads": "🎭",
    "Trick Questions": "❓",
    "Price Anchoring": "🏷️",
    "Intrusive UX": "📢",
    "Social Proof Manipulation": "👥",
    "Privacy Zuckering": "🔏",
}

# Lower bound of each tier, highest first
RISK_TIERS: Tuple[Tuple[int, str], ...] = (
    (50, "Very High"),
    (25, "High"),
    (10, "Moderate"),
    (1, "Low"),
    (0, "Clean"),
)

RISK_COLORS: Dict[str, str] = {
    "Clean": "#34c759",
    "Low": "#34c759",
    "Moderate": "#ffd60a",
    "High": "#ff6b00",
    "Very High": "#ff2d55",
}


def severity_weight(severity: str) -> int:
    """Numeric weight of a severity level."""
    return SEVERITY_WEIGHTS[severity]


def severity_color(severity: str) -> str:
    return SEVERITY_COLORS.get(severity, "#aaa")


def risk_tier(score: int) -> str:
    """Map a total score onto its named risk tier."""
    for lower_bound, tier in RISK_TIERS:
        if score >= lower_bound:
            return tier
    return "Clean"


@dataclass(frozen=True)
class Finding:
    """Standard Finding object produced by detectors.

    `node_id` is a handle into the detection session's node arena. The document
    tree owns the element; a finding only refers to it. `selector` is a CSS path
    to the same element for consumers that only have the serialized page.
    """

    index: int
    detector: str
    category: str
    severity: str
    message: str
    excerpt: str = ""
    node_id: Optional[int] = None
    selector: Optional[str] = None

    def __post_init__(self) -> None:
        # Normalize severity capitalization
        severity = (self.severity or "").strip().lower()
        if severity not in SEVERITY_WEIGHTS:
            raise ValueError(f"Unknown severity: {self.severity!r}")
        object.__setattr__(self, "severity", severity)

        if self.category not in CATEGORIES:
            raise ValueError(f"Unknown category: {self.category!r}")

    @property
    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self.severity]

    @property
    def has_element(self) -> bool:
        return self.node_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "detector": self.detector,
            "category": self.category,
            "severity": self.severity,
            "weight": self.weight,
            "message": self.message,
            "excerpt": self.excerpt,
            "selector": self.selector,
        }
