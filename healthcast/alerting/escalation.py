"""
Alert Escalation — promote stale warnings.

An active, non-critical alert that has stayed open longer than the
escalation threshold is re-issued as a CRITICAL alert with a short expiry
that never outlives the original.
The original is never modified: the escalated alert is a new frozen copy
that points back to it through ``escalated_from``.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

import structlog

from healthcast.schemas.alert import Alert, AlertSeverity
from healthcast.schemas.common import ensure_utc, utc_now

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

ESCALATION_THRESHOLD_HOURS: float = 24.0
ESCALATED_ALERT_TTL_HOURS: float = 12.0
ESCALATED_TITLE_PREFIX: str = "ESCALATED: "


class EscalationEngine:
    """Decide which alerts are stale and derive their escalated copies."""

    def __init__(
        self,
        threshold_hours: float = ESCALATION_THRESHOLD_HOURS,
        ttl_hours: float = ESCALATED_ALERT_TTL_HOURS,
    ):
        self.threshold_hours = threshold_hours
        self.ttl_hours = ttl_hours

    def needs_escalation(self, alert: Alert, now: datetime) -> bool:
        return (
            alert.severity != AlertSeverity.CRITICAL
            and alert.is_active(now)
            and alert.age_hours(now) > self.threshold_hours
        )

    def escalated_copy(self, alert: Alert, now: datetime) -> Alert:
        now = ensure_utc(now)
        return alert.model_copy(update={
            "id": f"escalated_{alert.id}",
            "severity": AlertSeverity.CRITICAL,
            "title": f"{ESCALATED_TITLE_PREFIX}{alert.title}",
            "description": f"Escalated alert: {alert.description}",
            "created_at": now,
            "expires_at": min(now + timedelta(hours=self.ttl_hours), alert.expires_at),
            "escalated_from": alert.id,
        })

    def escalate(self, alerts: Iterable[Alert], now: Optional[datetime] = None) -> list[Alert]:
        """Escalated copies of every stale alert (originals untouched)."""
        now = ensure_utc(now) if now is not None else utc_now()
        alerts = list(alerts)
        escalated = [self.escalated_copy(a, now) for a in alerts if self.needs_escalation(a, now)]

        if escalated:
            logger.info(
                "alerts_escalated",
                n_checked=len(alerts),
                n_escalated=len(escalated),
                alert_ids=[a.escalated_from for a in escalated],
            )
        return escalated

    def apply_escalations(self, alerts: Iterable[Alert], now: Optional[datetime] = None) -> list[Alert]:
        """The alert list with each stale alert replaced by its escalated copy."""
        now = ensure_utc(now) if now is not None else utc_now()
        return [
            self.escalated_copy(a, now) if self.needs_escalation(a, now) else a
            for a in alerts
        ]
