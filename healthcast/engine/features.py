"""
Gap Feature Tables.

Fixed lookup tables shared by the severity strategies and the feature-weight
calibrator. Unknown keys fall back to DEFAULT_TABLE_VALUE.
"""

from typing import Optional

from healthcast.schemas.gap import Gap, GapCategory, GapType, ImpactLevel, ImpactTimeframe

DEFAULT_TABLE_VALUE: float = 0.5

IMPACT_SCORES: dict[ImpactLevel, float] = {
    ImpactLevel.SEVERE: 1.0,
    ImpactLevel.HIGH: 0.8,
    ImpactLevel.MEDIUM: 0.6,
    ImpactLevel.LOW: 0.4,
    ImpactLevel.NEGLIGIBLE: 0.2,
}

TIMEFRAME_SCORES: dict[ImpactTimeframe, float] = {
    ImpactTimeframe.IMMEDIATE: 1.0,
    ImpactTimeframe.SHORT_TERM: 0.8,
    ImpactTimeframe.MEDIUM_TERM: 0.6,
    ImpactTimeframe.LONG_TERM: 0.4,
}

TYPE_MULTIPLIERS: dict[GapType, float] = {
    GapType.RESOURCE: 0.9,
    GapType.PROCESS: 0.8,
    GapType.COMMUNICATION: 0.7,
    GapType.TECHNOLOGY: 0.8,
    GapType.CULTURE: 0.6,
    GapType.TIMELINE: 0.9,
    GapType.QUALITY: 0.8,
    GapType.BUDGET: 0.9,
    GapType.SKILL: 0.7,
    GapType.GOVERNANCE: 0.6,
}

CATEGORY_MULTIPLIERS: dict[GapCategory, float] = {
    GapCategory.OPERATIONAL: 0.9,
    GapCategory.STRATEGIC: 0.8,
    GapCategory.TACTICAL: 0.7,
    GapCategory.TECHNICAL: 0.8,
    GapCategory.ORGANIZATIONAL: 0.6,
}

TYPE_COMPLEXITY: dict[GapType, float] = {
    GapType.RESOURCE: 0.6,
    GapType.PROCESS: 0.8,
    GapType.COMMUNICATION: 0.7,
    GapType.TECHNOLOGY: 0.9,
    GapType.CULTURE: 1.0,
    GapType.TIMELINE: 0.5,
    GapType.QUALITY: 0.7,
    GapType.BUDGET: 0.4,
    GapType.SKILL: 0.8,
    GapType.GOVERNANCE: 0.9,
}

BASE_RESOURCE_REQUIREMENT: dict[GapType, float] = {
    GapType.RESOURCE: 0.9,
    GapType.PROCESS: 0.7,
    GapType.COMMUNICATION: 0.5,
    GapType.TECHNOLOGY: 0.8,
    GapType.CULTURE: 0.9,
    GapType.TIMELINE: 0.6,
    GapType.QUALITY: 0.7,
    GapType.BUDGET: 0.8,
    GapType.SKILL: 0.8,
    GapType.GOVERNANCE: 0.6,
}

FEATURE_NAMES: tuple[str, ...] = (
    "abs_variance",
    "root_cause_count",
    "affected_area_count",
    "confidence",
    "impact_score",
    "stakeholder_count",
    "type_complexity",
    "category_weight",
)


def impact_score(level: ImpactLevel) -> float:
    return IMPACT_SCORES.get(level, DEFAULT_TABLE_VALUE)


def timeframe_score(timeframe: Optional[ImpactTimeframe]) -> float:
    if timeframe is None:
        return DEFAULT_TABLE_VALUE
    return TIMEFRAME_SCORES.get(timeframe, DEFAULT_TABLE_VALUE)


def type_multiplier(gap_type: GapType) -> float:
    return TYPE_MULTIPLIERS.get(gap_type, DEFAULT_TABLE_VALUE)


def category_multiplier(category: GapCategory) -> float:
    return CATEGORY_MULTIPLIERS.get(category, DEFAULT_TABLE_VALUE)


def type_complexity(gap_type: GapType) -> float:
    return TYPE_COMPLEXITY.get(gap_type, DEFAULT_TABLE_VALUE)


def base_resource_requirement(gap_type: GapType) -> float:
    return BASE_RESOURCE_REQUIREMENT.get(gap_type, DEFAULT_TABLE_VALUE)


def extract_features(gap: Gap) -> list[float]:
    """8-dimensional feature vector, in FEATURE_NAMES order."""
    return [
        abs(gap.variance),
        float(len(gap.root_causes)),
        float(len(gap.affected_areas)),
        gap.confidence,
        impact_score(gap.estimated_impact.level),
        float(len(gap.estimated_impact.affected_stakeholders)),
        type_complexity(gap.type),
        category_multiplier(gap.category),
    ]
