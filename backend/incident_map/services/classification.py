"""
Severity and color classification of offense categories.

A category label is matched case-insensitively against ordered keyword
rules; the first rule with a matching keyword decides the color tier, and
the tier decides both the severity (legend order) and the marker color, so
the two can never disagree.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from incident_map.models import Incident


class Severity(str, Enum):
    """Severity levels in legend order."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFORMATIONAL = "informational"
    DEFAULT = "default"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = list(Severity)


class ColorTier(str, Enum):
    """Legend color tiers. PROPERTY and TRAFFIC share the LOW severity."""

    HIGH = "high"
    MEDIUM = "medium"
    PROPERTY = "property"
    TRAFFIC = "traffic"
    INFORMATIONAL = "informational"
    DEFAULT = "default"


TIER_SEVERITY: dict[ColorTier, Severity] = {
    ColorTier.HIGH: Severity.HIGH,
    ColorTier.MEDIUM: Severity.MEDIUM,
    ColorTier.PROPERTY: Severity.LOW,
    ColorTier.TRAFFIC: Severity.LOW,
    ColorTier.INFORMATIONAL: Severity.INFORMATIONAL,
    ColorTier.DEFAULT: Severity.DEFAULT,
}

TIER_COLORS: dict[ColorTier, str] = {
    ColorTier.HIGH: "#dc2626",  # red-600
    ColorTier.MEDIUM: "#f97316",  # orange-500
    ColorTier.PROPERTY: "#eab308",  # yellow-500
    ColorTier.TRAFFIC: "#3b82f6",  # blue-500
    ColorTier.INFORMATIONAL: "#6b7280",  # gray-500
    ColorTier.DEFAULT: "#8b5cf6",  # violet-500
}

DEFAULT_COLOR = TIER_COLORS[ColorTier.DEFAULT]


@dataclass(frozen=True)
class TierRule:
    """Keywords that place a category label in a color tier."""

    tier: ColorTier
    keywords: tuple[str, ...]
    whole_words: bool = False  # Match keywords as whole words, not substrings

    def matches(self, label: str) -> bool:
        lowered = label.lower()
        if self.whole_words:
            return any(
                re.search(rf"\b{re.escape(keyword)}\b", lowered) for keyword in self.keywords
            )
        return any(keyword in lowered for keyword in self.keywords)


# Evaluated top to bottom, first match wins. The whole-word "lost property" /
# "found property" rule only pre-empts PROPERTY; "Unfounded Property" is not
# caught by it, and other lost/found labels reach the last tier.
DEFAULT_TIER_RULES: tuple[TierRule, ...] = (
    TierRule(ColorTier.HIGH, ("violent", "robbery", "burglary", "weapon", "assault")),
    TierRule(ColorTier.MEDIUM, ("theft", "fraud", "vehicle", "stolen", "dui", "narcotic")),
    TierRule(ColorTier.INFORMATIONAL, ("lost property", "found property"), whole_words=True),
    TierRule(
        ColorTier.PROPERTY,
        ("property", "vandalism", "disturbance", "trespass", "public order"),
    ),
    TierRule(ColorTier.TRAFFIC, ("traffic",)),
    TierRule(
        ColorTier.INFORMATIONAL,
        (
            "admin",
            "other",
            "warrant",
            "arrest",
            "lost",
            "found",
            "suspicious",
            "info",
            "misc",
            "welfare",
        ),
    ),
)


class Classification(NamedTuple):
    """Result of classifying one category label."""

    tier: ColorTier
    severity: Severity
    color: str


class SeverityClassifier:
    """Keyword based classifier for offense category labels."""

    def __init__(self, rules: Sequence[TierRule] = DEFAULT_TIER_RULES):
        self.rules = tuple(rules)

    def tier(self, label: str | None) -> ColorTier:
        if label:
            for rule in self.rules:
                if rule.matches(label):
                    return rule.tier
        return ColorTier.DEFAULT

    def classify(self, label: str | None) -> Classification:
        """Classify a label. Total: unmatched or empty labels get DEFAULT."""
        tier = self.tier(label)
        return Classification(tier=tier, severity=TIER_SEVERITY[tier], color=TIER_COLORS[tier])


def derive_categories(
    incidents: Iterable[Incident], classifier: SeverityClassifier
) -> list[str]:
    """
    Distinct non-empty offense categories, most severe first.

    Within a severity level categories are ordered alphabetically.
    """
    labels = {incident.offense_category for incident in incidents if incident.offense_category}
    return sorted(
        labels,
        key=lambda label: (classifier.classify(label).severity.rank, label.casefold(), label),
    )


def build_color_map(
    categories: Iterable[str], classifier: SeverityClassifier
) -> dict[str, str]:
    """Marker/legend color for every category in ``categories``."""
    return {label: classifier.classify(label).color for label in categories}


def color_for(label: str | None, color_map: dict[str, str]) -> str:
    """Color for a marker; labels outside the map fall back to the default color."""
    if not label:
        return DEFAULT_COLOR
    return color_map.get(label, DEFAULT_COLOR)
