"""
Alert Schemas.

An alert is a time-boxed, prioritized notification of a predicted issue.
Alerts are frozen: escalation produces a derived copy, never a mutation.
"""

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from healthcast.schemas.common import UnitFloat, UtcDatetime, ensure_utc
from healthcast.schemas.gap import ImpactLevel
from healthcast.schemas.indicator import Duration


# ── Enums ──────────────────────────────────────────────────────────────


class AlertType(StrEnum):
    EARLY_WARNING = "early_warning"
    RISK_ALERT = "risk_alert"
    TREND_ALERT = "trend_alert"
    ANOMALY_ALERT = "anomaly_alert"


class AlertSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[AlertSeverity, int] = {
    AlertSeverity.LOW: 1,
    AlertSeverity.MEDIUM: 2,
    AlertSeverity.HIGH: 3,
    AlertSeverity.CRITICAL: 4,
}


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AlertState(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    ESCALATED = "escalated"


# ── Preventive Action ──────────────────────────────────────────────────


class PreventiveAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    priority: Priority
    estimated_effort: str               # e.g. "2-4 hours"
    required_resources: list[str] = Field(default_factory=list)
    expected_impact: str = ""


# ── Alert ──────────────────────────────────────────────────────────────


class Alert(BaseModel):
    """
    A fired early warning.

    Lifecycle: created → active until expires_at → expired. Escalation emits
    a new alert with escalated_from set to the original id.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str = ""
    type: AlertType
    severity: AlertSeverity
    title: str
    description: str = ""
    probability: UnitFloat
    estimated_time_to_occurrence: Duration
    potential_impact: ImpactLevel
    prevention_window: Duration
    suggested_actions: list[PreventiveAction] = Field(default_factory=list)
    created_at: UtcDatetime
    expires_at: UtcDatetime
    escalated_from: Optional[str] = None

    @property
    def dedup_key(self) -> tuple[str, str, str]:
        return (self.type.value, self.title, self.severity.value)

    @property
    def is_escalation(self) -> bool:
        return self.escalated_from is not None

    def is_active(self, now: datetime) -> bool:
        return ensure_utc(now) < self.expires_at

    def state_at(self, now: datetime) -> AlertState:
        if not self.is_active(now):
            return AlertState.EXPIRED
        if self.is_escalation:
            return AlertState.ESCALATED
        return AlertState.ACTIVE

    def age_hours(self, now: datetime) -> float:
        return (ensure_utc(now) - self.created_at).total_seconds() / 3600.0
