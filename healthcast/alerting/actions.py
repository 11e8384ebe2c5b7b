"""
Preventive Action Templates.

Each warning source suggests a fixed action shape: priority, effort band,
required roles and the outcome the action aims for. Titles and descriptions
are filled in with the metric or indicator that fired.
"""

import uuid
from dataclasses import dataclass

from healthcast.schemas.alert import PreventiveAction, Priority


@dataclass(frozen=True)
class ActionTemplate:
    """Static part of a preventive action."""
    key: str
    title: str                      # str.format template, {name} placeholder
    description: str
    priority: Priority
    estimated_effort: str
    required_resources: tuple[str, ...]
    expected_impact: str

    def render(self, name: str = "") -> PreventiveAction:
        return PreventiveAction(
            id=f"{self.key}_{uuid.uuid4().hex[:12]}",
            title=self.title.format(name=name),
            description=self.description.format(name=name),
            priority=self.priority,
            estimated_effort=self.estimated_effort,
            required_resources=list(self.required_resources),
            expected_impact=self.expected_impact,
        )


DECLINING_TREND = ActionTemplate(
    key="trend_action",
    title="Address declining trend in {name}",
    description="Investigate and address the root cause of declining {name}",
    priority=Priority.HIGH,
    estimated_effort="4-6 hours",
    required_resources=("Team Lead", "Data Analyst"),
    expected_impact="Reverse negative trend",
)

LOW_VELOCITY = ActionTemplate(
    key="velocity_action",
    title="Improve {name} velocity",
    description="Identify and remove blockers affecting {name} velocity",
    priority=Priority.HIGH,
    estimated_effort="2-4 hours",
    required_resources=("Scrum Master", "Team Lead"),
    expected_impact="Restore normal velocity",
)

SUDDEN_CHANGE = ActionTemplate(
    key="change_action",
    title="Investigate sudden change in {name}",
    description="Immediate investigation of sudden change in {name}",
    priority=Priority.URGENT,
    estimated_effort="1-2 hours",
    required_resources=("Technical Lead", "System Administrator"),
    expected_impact="Identify and mitigate anomaly",
)

HIGH_RISK = ActionTemplate(
    key="risk_action",
    title="Mitigate risk in {name}",
    description="Take preventive action to reduce risk in {name}",
    priority=Priority.HIGH,
    estimated_effort="3-6 hours",
    required_resources=("Risk Manager", "Subject Matter Expert"),
    expected_impact="Reduce risk probability",
)

FORECAST_DECLINE = ActionTemplate(
    key="forecast_action",
    title="Get ahead of forecast decline in {name}",
    description="Plan corrective work before {name} reaches its forecast value",
    priority=Priority.MEDIUM,
    estimated_effort="4-8 hours",
    required_resources=("Team Lead", "Subject Matter Expert"),
    expected_impact="Prevent trend from becoming critical",
)

RECURRING_PATTERN = ActionTemplate(
    key="pattern_action",
    title="Monitor recurring pattern: {name}",
    description="Monitor the {name} pattern closely and prepare a response",
    priority=Priority.MEDIUM,
    estimated_effort="2-4 hours",
    required_resources=("Project Manager", "Data Analyst"),
    expected_impact="Early detection of pattern recurrence",
)

MULTIPLE_CRITICAL = ActionTemplate(
    key="composite_action",
    title="Emergency response required",
    description="Multiple critical issues require immediate coordinated response",
    priority=Priority.URGENT,
    estimated_effort="2-4 hours",
    required_resources=("Emergency Response Team", "Senior Management"),
    expected_impact="Prevent project failure",
)

MULTIPLE_HIGH = ActionTemplate(
    key="composite_high_action",
    title="Coordinate response to multiple issues",
    description="Address multiple high-priority issues with coordinated approach",
    priority=Priority.HIGH,
    estimated_effort="4-8 hours",
    required_resources=("Project Manager", "Team Leads"),
    expected_impact="Prevent issue escalation",
)

TREND_CONTINUATION = ActionTemplate(
    key="prediction_pattern_action",
    title="Monitor trend continuation",
    description="Monitor the {name} trend closely",
    priority=Priority.MEDIUM,
    estimated_effort="2-4 hours",
    required_resources=("Project Manager", "Data Analyst"),
    expected_impact="Early detection of trend changes",
)


def metric_trend_action(name: str, slope: float) -> PreventiveAction:
    """Action for a predicted metric trend; steep slopes get HIGH priority."""
    direction = "increasing" if slope > 0 else "decreasing"
    return PreventiveAction(
        id=f"prediction_trend_action_{uuid.uuid4().hex[:12]}",
        title=f"Address {name} trend",
        description=f"Take action to address the {direction} trend in {name}",
        priority=Priority.HIGH if abs(slope) > 0.5 else Priority.MEDIUM,
        estimated_effort="4-8 hours",
        required_resources=["Team Lead", "Subject Matter Expert"],
        expected_impact="Prevent trend from becoming critical",
    )
