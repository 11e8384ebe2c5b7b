"""
Severity Summary — portfolio view over scored gaps.

Scores map low=1 … critical=4 and are reported divided by 4 so every metric
lands in [0, 1]. The weighted score scales each gap by its type multiplier.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence

from healthcast.analysis.discrepancy import recommendation_for
from healthcast.engine.features import type_multiplier
from healthcast.schemas.alert import Priority
from healthcast.schemas.gap import Gap, SeverityLevel

MAX_SCORE: float = 4.0


@dataclass(frozen=True)
class ScoredGap:
    gap: Gap
    severity: SeverityLevel


@dataclass(frozen=True)
class SeverityRecommendation:
    target_severity: SeverityLevel
    action: str
    priority: Priority
    expected_impact: str
    estimated_effort: str
    timeline: str


@dataclass(frozen=True)
class SeveritySummary:
    distribution: dict[SeverityLevel, int]
    total: int
    average_score: float            # [0, 1]
    weighted_score: float           # [0, 1]
    volatility: float               # Population σ of scores / 4
    escalation_probability: float   # Share of high + critical gaps
    dominant_severity: SeverityLevel
    average_confidence: float
    overall_assessment: str         # "critical" | "high" | "moderate" | "low"
    recommendations: list[SeverityRecommendation] = field(default_factory=list)
    gap_actions: list[str] = field(default_factory=list)


def _distribution(scored: Sequence[ScoredGap]) -> dict[SeverityLevel, int]:
    counts = {level: 0 for level in (
        SeverityLevel.CRITICAL, SeverityLevel.HIGH, SeverityLevel.MEDIUM, SeverityLevel.LOW,
    )}
    for item in scored:
        counts[item.severity] += 1
    return counts


def _overall(d: dict[SeverityLevel, int]) -> str:
    if d[SeverityLevel.CRITICAL] > 0:
        return "critical"
    if d[SeverityLevel.HIGH] > 2:
        return "high"
    if d[SeverityLevel.MEDIUM] > 3 or d[SeverityLevel.HIGH] > 0:
        return "moderate"
    return "low"


def _recommendations(d: dict[SeverityLevel, int]) -> list[SeverityRecommendation]:
    recs: list[SeverityRecommendation] = []
    n_critical = d[SeverityLevel.CRITICAL]
    if n_critical > 0:
        recs.append(SeverityRecommendation(
            target_severity=SeverityLevel.CRITICAL,
            action=f"Immediately address {n_critical} critical gap{'s' if n_critical > 1 else ''}",
            priority=Priority.URGENT,
            expected_impact="Reduce critical gaps by 80%",
            estimated_effort="high",
            timeline="1-2 weeks",
        ))
    if d[SeverityLevel.HIGH] > 2:
        recs.append(SeverityRecommendation(
            target_severity=SeverityLevel.HIGH,
            action=f"Prioritize {d[SeverityLevel.HIGH]} high-severity gaps",
            priority=Priority.HIGH,
            expected_impact="Prevent escalation",
            estimated_effort="medium",
            timeline="2-4 weeks",
        ))
    if d[SeverityLevel.MEDIUM] > 5:
        recs.append(SeverityRecommendation(
            target_severity=SeverityLevel.MEDIUM,
            action=f"Address {d[SeverityLevel.MEDIUM]} medium-severity gaps",
            priority=Priority.MEDIUM,
            expected_impact="Prevent accumulation",
            estimated_effort="medium",
            timeline="4-8 weeks",
        ))
    return recs


def summarize_severities(scored: Sequence[ScoredGap]) -> SeveritySummary:
    """
    Distribution, score metrics, assessment and recommendations.

    An empty input yields zeros, a LOW dominant severity and a "low"
    assessment.
    """
    distribution = _distribution(scored)
    if not scored:
        return SeveritySummary(
            distribution=distribution,
            total=0,
            average_score=0.0,
            weighted_score=0.0,
            volatility=0.0,
            escalation_probability=0.0,
            dominant_severity=SeverityLevel.LOW,
            average_confidence=0.0,
            overall_assessment="low",
        )

    n = len(scored)
    scores = [item.severity.score for item in scored]
    mean = sum(scores) / n
    weighted = sum(s * type_multiplier(item.gap.type) for s, item in zip(scores, scored)) / n
    sigma = math.sqrt(sum((s - mean) ** 2 for s in scores) / n)
    n_elevated = distribution[SeverityLevel.HIGH] + distribution[SeverityLevel.CRITICAL]

    # Most frequent level; ties go to the more severe one
    dominant = max(distribution, key=lambda level: (distribution[level], level.score))

    prioritized = sorted(scored, key=lambda item: item.severity.score, reverse=True)

    return SeveritySummary(
        distribution=distribution,
        total=n,
        average_score=mean / MAX_SCORE,
        weighted_score=weighted / MAX_SCORE,
        volatility=sigma / MAX_SCORE,
        escalation_probability=n_elevated / n,
        dominant_severity=dominant,
        average_confidence=sum(item.gap.confidence for item in scored) / n,
        overall_assessment=_overall(distribution),
        recommendations=_recommendations(distribution),
        gap_actions=[recommendation_for(item.gap) for item in prioritized],
    )
