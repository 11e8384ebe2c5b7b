"""
Tests for Alert Deduplication & Prioritization.
"""

from datetime import datetime, timedelta, timezone

from healthcast.alerting.dedup import deduplicate, deduplicate_and_prioritize, prioritize
from healthcast.schemas.alert import Alert, AlertSeverity, AlertType
from healthcast.schemas.gap import ImpactLevel
from healthcast.schemas.indicator import Duration

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


def _make_alert(
    alert_id: str,
    title: str = "Declining trend detected in velocity",
    severity: AlertSeverity = AlertSeverity.HIGH,
    alert_type: AlertType = AlertType.TREND_ALERT,
    probability: float = 0.8,
) -> Alert:
    return Alert(
        id=alert_id,
        type=alert_type,
        severity=severity,
        title=title,
        probability=probability,
        estimated_time_to_occurrence=Duration.of_hours(24),
        potential_impact=ImpactLevel.HIGH,
        prevention_window=Duration.of_hours(12),
        created_at=NOW,
        expires_at=NOW + timedelta(hours=72),
    )


class TestDeduplicate:
    def test_identical_key_collapses_to_first(self):
        alerts = deduplicate([_make_alert("a1", probability=0.7), _make_alert("a2", probability=0.9)])
        assert [a.id for a in alerts] == ["a1"]

    def test_different_severity_kept(self):
        alerts = deduplicate([
            _make_alert("a1", severity=AlertSeverity.HIGH),
            _make_alert("a2", severity=AlertSeverity.CRITICAL),
        ])
        assert len(alerts) == 2

    def test_different_type_kept(self):
        alerts = deduplicate([
            _make_alert("a1", alert_type=AlertType.TREND_ALERT),
            _make_alert("a2", alert_type=AlertType.RISK_ALERT),
        ])
        assert len(alerts) == 2

    def test_different_title_kept(self):
        alerts = deduplicate([_make_alert("a1", title="x"), _make_alert("a2", title="y")])
        assert len(alerts) == 2

    def test_empty(self):
        assert deduplicate([]) == []


class TestPrioritize:
    def test_severity_first_then_probability(self):
        alerts = prioritize([
            _make_alert("low", severity=AlertSeverity.LOW, probability=0.99),
            _make_alert("crit", severity=AlertSeverity.CRITICAL, probability=0.5),
            _make_alert("high-a", title="a", probability=0.6),
            _make_alert("high-b", title="b", probability=0.9),
        ])
        assert [a.id for a in alerts] == ["crit", "high-b", "high-a", "low"]

    def test_combined(self):
        alerts = deduplicate_and_prioritize([
            _make_alert("m", severity=AlertSeverity.MEDIUM),
            _make_alert("h1"),
            _make_alert("h2"),
        ])
        assert [a.id for a in alerts] == ["h1", "m"]
