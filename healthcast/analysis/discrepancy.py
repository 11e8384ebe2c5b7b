"""
Discrepancy Detection — find gaps between project state and goals.

Two passes:
1. Goal gaps: for every goal, read the current value its title refers to
   (progress, quality, resource, timeline, health keywords), compare it with
   the goal's target and keep variances of at least MIN_VARIANCE.
2. System gaps: fixed health checks on the project state (schedule delays,
   resource over-utilization, defect rate).

Gap type and category are inferred from the goal title. The detector fills
in a default root cause, affected area and impact; the severity scorer does
the rest.
"""

from typing import Any, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from healthcast.schemas.gap import (
    AffectedArea,
    CriticalityLevel,
    EstimatedImpact,
    Gap,
    GapCategory,
    GapType,
    ImpactLevel,
    ImpactTimeframe,
    RootCause,
    RootCauseCategory,
    compute_variance,
)

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

MIN_VARIANCE: float = 0.1
HIGH_IMPACT_VARIANCE: float = 0.3
DEFAULT_TARGET: float = 1.0
GOAL_GAP_CONFIDENCE: float = 0.8

OVER_UTILIZATION: float = 0.9
TARGET_UTILIZATION: float = 0.8
MAX_DEFECT_RATE: float = 0.05
TARGET_DEFECT_RATE: float = 0.02

TYPE_KEYWORDS: list[tuple[tuple[str, ...], GapType]] = [
    (("resource", "staff"), GapType.RESOURCE),
    (("process", "workflow"), GapType.PROCESS),
    (("communication",), GapType.COMMUNICATION),
    (("technology", "tech"), GapType.TECHNOLOGY),
    (("timeline", "schedule"), GapType.TIMELINE),
    (("quality",), GapType.QUALITY),
    (("budget", "cost"), GapType.BUDGET),
    (("skill", "training"), GapType.SKILL),
]

CATEGORY_BY_TYPE: dict[GapType, GapCategory] = {
    GapType.RESOURCE: GapCategory.OPERATIONAL,
    GapType.TIMELINE: GapCategory.OPERATIONAL,
    GapType.QUALITY: GapCategory.OPERATIONAL,
    GapType.TECHNOLOGY: GapCategory.TECHNICAL,
    GapType.COMMUNICATION: GapCategory.ORGANIZATIONAL,
    GapType.CULTURE: GapCategory.ORGANIZATIONAL,
}


class ProjectState(BaseModel):
    """Snapshot of the measurable project state."""
    model_config = ConfigDict(frozen=True)

    project_id: str = ""
    progress: float = 0.0
    defect_rate: float = 0.0
    resource_utilization: float = 0.0
    timeline_progress: float = 0.0
    timeline_delay_days: float = 0.0
    health_score: float = 0.0


class ProjectGoal(BaseModel):
    """
    A project goal with a target.

    target_value may be a number, a numeric string or a mapping carrying a
    ``value`` or ``target`` key; anything unusable falls back to 1.0.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str = ""
    title: str
    target_value: Any = None


def infer_gap_type(title: str) -> GapType:
    lowered = title.lower()
    for keywords, gap_type in TYPE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return gap_type
    return GapType.PROCESS


def infer_gap_category(title: str) -> GapCategory:
    return CATEGORY_BY_TYPE.get(infer_gap_type(title), GapCategory.TACTICAL)


def extract_target(goal: ProjectGoal) -> float:
    raw = goal.target_value
    if isinstance(raw, dict):
        raw = raw.get("value") or raw.get("target")
    try:
        target = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_TARGET
    return target or DEFAULT_TARGET


def extract_current(state: ProjectState, goal: ProjectGoal) -> float:
    title = goal.title.lower()
    extractors: list[tuple[tuple[str, ...], float]] = [
        (("progress", "completion"), state.progress),
        (("quality", "defect"), state.defect_rate),
        (("resource", "utilization"), state.resource_utilization),
        (("timeline", "schedule"), state.timeline_progress),
        (("health", "score"), state.health_score),
    ]
    for keywords, value in extractors:
        if any(k in title for k in keywords):
            return value
    return state.progress


class DiscrepancyDetector:
    """Build gaps from a project state and its goals."""

    def __init__(self, min_variance: float = MIN_VARIANCE):
        self.min_variance = min_variance

    def identify(
        self,
        state: ProjectState,
        goals: Sequence[ProjectGoal],
        include_system_gaps: bool = True,
    ) -> list[Gap]:
        gaps = [g for g in (self.goal_gap(state, goal) for goal in goals) if g is not None]
        if include_system_gaps:
            gaps.extend(self.system_gaps(state))

        logger.info(
            "discrepancies_identified",
            project_id=state.project_id,
            n_goals=len(goals),
            n_gaps=len(gaps),
        )
        return gaps

    def goal_gap(self, state: ProjectState, goal: ProjectGoal) -> Optional[Gap]:
        current = extract_current(state, goal)
        target = extract_target(goal)
        variance = compute_variance(current, target)
        if abs(variance) < self.min_variance:
            return None

        return Gap(
            project_id=goal.project_id or state.project_id,
            type=infer_gap_type(goal.title),
            category=infer_gap_category(goal.title),
            title=f"Gap in {goal.title}",
            description=f"Current performance does not meet target for {goal.title}",
            current_value=current,
            target_value=target,
            variance=variance,
            confidence=GOAL_GAP_CONFIDENCE,
            root_causes=[RootCause(
                description=f"Insufficient planning for {goal.title}",
                category=RootCauseCategory.PROCESS,
                confidence=0.7,
                contribution_weight=0.8,
                evidence=["Goal variance analysis"],
            )],
            affected_areas=[AffectedArea(
                name=goal.title,
                description=f"Area affected by {goal.title} gap",
                criticality=CriticalityLevel.MEDIUM,
            )],
            estimated_impact=EstimatedImpact(
                level=ImpactLevel.HIGH if abs(variance) > HIGH_IMPACT_VARIANCE else ImpactLevel.MEDIUM,
                affected_stakeholders=["project-manager"],
                timeframe=ImpactTimeframe.SHORT_TERM,
                description=f"Impact on {goal.title} achievement",
            ),
        )

    @staticmethod
    def system_gaps(state: ProjectState) -> list[Gap]:
        gaps: list[Gap] = []

        if state.timeline_delay_days > 0:
            gaps.append(Gap.from_values(
                state.timeline_delay_days, 0.0,
                project_id=state.project_id,
                type=GapType.TIMELINE,
                category=GapCategory.OPERATIONAL,
                title="Timeline Delay Detected",
                description=f"Project is delayed by {state.timeline_delay_days:g} days",
                confidence=GOAL_GAP_CONFIDENCE,
                estimated_impact=EstimatedImpact(description="Project delivery delays"),
            ))

        if state.resource_utilization > OVER_UTILIZATION:
            gaps.append(Gap.from_values(
                state.resource_utilization, TARGET_UTILIZATION,
                project_id=state.project_id,
                type=GapType.RESOURCE,
                category=GapCategory.OPERATIONAL,
                title="Resource Over-utilization",
                description=f"Resources are over-utilized at {state.resource_utilization * 100:.1f}%",
                confidence=GOAL_GAP_CONFIDENCE,
                estimated_impact=EstimatedImpact(description="Team burnout risk"),
            ))

        if state.defect_rate > MAX_DEFECT_RATE:
            gaps.append(Gap.from_values(
                state.defect_rate, TARGET_DEFECT_RATE,
                project_id=state.project_id,
                type=GapType.QUALITY,
                category=GapCategory.TECHNICAL,
                title="Quality Issues Detected",
                description=f"Defect rate is {state.defect_rate * 100:.1f}% above acceptable threshold",
                confidence=GOAL_GAP_CONFIDENCE,
                estimated_impact=EstimatedImpact(description="Product quality concerns"),
            ))

        return gaps


def recommendation_for(gap: Gap) -> str:
    """One-line corrective recommendation for a gap, by gap type."""
    if gap.type == GapType.RESOURCE:
        return f"Allocate additional resources or optimize current resource utilization for {gap.title}"
    if gap.type == GapType.TIMELINE:
        return f"Implement timeline recovery strategies and improve scheduling for {gap.title}"
    if gap.type == GapType.QUALITY:
        return f"Enhance quality assurance processes and implement additional testing for {gap.title}"
    if gap.type == GapType.COMMUNICATION:
        return f"Improve communication channels and establish regular check-ins for {gap.title}"
    return f"Implement corrective measures to address {gap.title}"
