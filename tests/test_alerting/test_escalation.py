"""
Tests for Alert Escalation.

Covers:
- Stale, active, non-critical alerts are escalated
- Critical, fresh and expired alerts are not
- The original alert is never modified
"""

from datetime import timedelta

import pytest

from healthcast.alerting.early_warning import EarlyWarningGenerator
from healthcast.alerting.escalation import EscalationEngine
from healthcast.schemas.alert import Alert, AlertSeverity, AlertState, AlertType
from healthcast.schemas.gap import ImpactLevel
from healthcast.schemas.indicator import Duration


@pytest.fixture
def escalation():
    return EscalationEngine()


@pytest.fixture
def make_alert(now):
    def _make(
        age_hours: float = 30,
        ttl_hours: float = 72,
        severity: AlertSeverity = AlertSeverity.MEDIUM,
        alert_id: str = "trend_warning_abc123",
    ) -> Alert:
        created = now - timedelta(hours=age_hours)
        return Alert(
            id=alert_id,
            project_id="proj-001",
            type=AlertType.TREND_ALERT,
            severity=severity,
            title="Declining trend detected in velocity",
            description="velocity has been declining at -60.0% rate",
            probability=0.8,
            estimated_time_to_occurrence=Duration.of_days(1),
            potential_impact=ImpactLevel.MEDIUM,
            prevention_window=Duration.of_hours(12),
            created_at=created,
            expires_at=created + timedelta(hours=ttl_hours),
        )
    return _make


class TestNeedsEscalation:
    def test_stale_alert(self, escalation, make_alert, now):
        assert escalation.needs_escalation(make_alert(age_hours=30), now)

    def test_fresh_alert(self, escalation, make_alert, now):
        assert not escalation.needs_escalation(make_alert(age_hours=2), now)

    def test_exactly_at_threshold(self, escalation, make_alert, now):
        assert not escalation.needs_escalation(make_alert(age_hours=24), now)

    def test_critical_alert(self, escalation, make_alert, now):
        assert not escalation.needs_escalation(make_alert(severity=AlertSeverity.CRITICAL), now)

    def test_expired_alert(self, escalation, make_alert, now):
        assert not escalation.needs_escalation(make_alert(age_hours=30, ttl_hours=24), now)

    def test_custom_threshold(self, make_alert, now):
        engine = EscalationEngine(threshold_hours=1)
        assert engine.needs_escalation(make_alert(age_hours=2), now)


class TestEscalate:
    def test_escalated_copy(self, escalation, make_alert, now):
        original = make_alert()
        escalated = escalation.escalate([original], now)

        assert len(escalated) == 1
        copy = escalated[0]
        assert copy.id == "escalated_trend_warning_abc123"
        assert copy.severity == AlertSeverity.CRITICAL
        assert copy.title == "ESCALATED: Declining trend detected in velocity"
        assert copy.description.startswith("Escalated alert: ")
        assert copy.created_at == now
        assert copy.expires_at == now + timedelta(hours=12)
        assert copy.escalated_from == original.id
        assert copy.state_at(now) == AlertState.ESCALATED

    def test_new_expiry_is_shorter(self, escalation, make_alert, now):
        original = make_alert()
        copy = escalation.escalate([original], now)[0]
        assert copy.expires_at - copy.created_at < original.expires_at - original.created_at

    def test_expiry_capped_at_original(self, escalation, make_alert, now):
        # Original expires 3h from now, inside the 12h escalation window
        original = make_alert(age_hours=30, ttl_hours=33)
        copy = escalation.escalate([original], now)[0]
        assert copy.expires_at == original.expires_at
        assert copy.expires_at == now + timedelta(hours=3)
        assert copy.is_active(now)

    def test_original_untouched(self, escalation, make_alert, now):
        original = make_alert()
        snapshot = original.model_dump()
        escalation.escalate([original], now)
        assert original.model_dump() == snapshot
        assert original.severity == AlertSeverity.MEDIUM
        assert original.escalated_from is None

    def test_only_stale_alerts_escalated(self, escalation, make_alert, now):
        alerts = [
            make_alert(alert_id="old"),
            make_alert(alert_id="new", age_hours=1),
            make_alert(alert_id="crit", severity=AlertSeverity.CRITICAL),
        ]
        escalated = escalation.escalate(alerts, now)
        assert [a.escalated_from for a in escalated] == ["old"]

    def test_apply_replaces_stale_alerts(self, escalation, make_alert, now):
        alerts = [make_alert(alert_id="old"), make_alert(alert_id="new", age_hours=1)]
        result = escalation.apply_escalations(alerts, now)
        assert [a.id for a in result] == ["escalated_old", "new"]

    def test_naive_now_accepted(self, escalation, make_alert, now):
        escalated = escalation.escalate([make_alert()], now.replace(tzinfo=None))
        assert escalated[0].created_at == now

    def test_generator_delegates(self, make_alert, now):
        generator = EarlyWarningGenerator(escalation=EscalationEngine(ttl_hours=6))
        copy = generator.escalate([make_alert()], now)[0]
        assert copy.expires_at == now + timedelta(hours=6)
        assert generator.apply_escalations([make_alert()], now)[0].is_escalation


class TestAlertLifecycle:
    def test_active_then_expired(self, make_alert, now):
        alert = make_alert(age_hours=1, ttl_hours=24)
        assert alert.state_at(now) == AlertState.ACTIVE
        assert alert.state_at(now + timedelta(hours=23)) == AlertState.EXPIRED

    def test_age(self, make_alert, now):
        assert make_alert(age_hours=5).age_hours(now) == pytest.approx(5.0)
