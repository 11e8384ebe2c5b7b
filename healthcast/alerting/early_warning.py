"""
Early-Warning Generator — predictive alerts from live trend data.

Sources (each independent; a failing source is logged and skipped):
1. Declining metrics        → TREND_ALERT    (|change rate| bands)
2. Velocity below average   → EARLY_WARNING  (current / average ratio bands)
3. Sudden changes           → ANOMALY_ALERT  (magnitude bands)
4. Risk indicators          → RISK_ALERT     (indicator risk > 0.6)
5. Historical forecasts     → TREND_ALERT    (significant declining trends)
6. Recurring patterns       → EARLY_WARNING  (confident, frequent patterns)

Composite alerts are then added when several critical or high alerts fire
together. Finally alerts are deduplicated on (type, title, severity) and
ordered by severity, then probability.

Every alert's prevention window is shorter than its time to occurrence: a
template window that is not gets cut to half the time to occurrence.
"""

import math
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

import structlog

from healthcast.alerting import actions
from healthcast.alerting.dedup import deduplicate, prioritize
from healthcast.alerting.escalation import EscalationEngine
from healthcast.engine.risk import RiskProbabilityEngine
from healthcast.engine.trend import TrendAnalyzer
from healthcast.schemas.alert import Alert, AlertSeverity, AlertType, PreventiveAction
from healthcast.schemas.common import ensure_utc, utc_now
from healthcast.schemas.gap import ImpactLevel
from healthcast.schemas.indicator import (
    Duration,
    HistoricalData,
    RiskIndicator,
    TrendDirection,
)
from healthcast.schemas.trend import ChangeType, TrendData

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

# Declining metric: |change rate| thresholds
TREND_CRITICAL: float = 0.9
TREND_HIGH: float = 0.7
TREND_MEDIUM: float = 0.5

# Velocity: current / average ratio thresholds
VELOCITY_CRITICAL_RATIO: float = 0.5
VELOCITY_HIGH_RATIO: float = 0.7
VELOCITY_MEDIUM_RATIO: float = 0.9

# Sudden change: magnitude thresholds
CHANGE_CRITICAL: float = 0.8
CHANGE_HIGH: float = 0.5
CHANGE_MEDIUM: float = 0.3

# Risk indicator: risk thresholds
RISK_CRITICAL: float = 0.8
RISK_HIGH: float = 0.7
RISK_ALERT: float = 0.6

# Historical sources
FORECAST_SIGNIFICANCE: float = 0.7
FORECAST_HIGH_SIGNIFICANCE: float = 0.9
PATTERN_CONFIDENCE: float = 0.7
PATTERN_HIGH_CONFIDENCE: float = 0.9
PATTERN_MIN_FREQUENCY: float = 2.0

# Composites
MIN_CRITICAL_FOR_COMPOSITE: int = 2
MIN_HIGH_FOR_COMPOSITE: int = 3

# Lifetimes (hours)
TREND_TTL_HOURS: float = 72.0
VELOCITY_TTL_HOURS: float = 48.0
CHANGE_TTL_HOURS: float = 24.0
RISK_TTL_HOURS: float = 48.0
FORECAST_TTL_HOURS: float = 72.0
PATTERN_TTL_HOURS: float = 72.0
COMPOSITE_CRITICAL_TTL_HOURS: float = 12.0
COMPOSITE_HIGH_TTL_HOURS: float = 36.0


def _impact_above(value: float, severe: float, high: float, medium: float) -> ImpactLevel:
    if value > severe:
        return ImpactLevel.SEVERE
    if value > high:
        return ImpactLevel.HIGH
    if value > medium:
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def bounded_prevention_window(window: Duration, time_to_occurrence: Duration) -> Duration:
    """The window, or half the time to occurrence if the window is not shorter."""
    if window.hours < time_to_occurrence.hours:
        return window
    return Duration.of_hours(time_to_occurrence.hours / 2)


class EarlyWarningGenerator:
    """
    Generate, deduplicate and escalate early-warning alerts.

    Stateless: every call builds fresh alerts stamped with ``now``.
    """

    def __init__(
        self,
        risk_engine: Optional[RiskProbabilityEngine] = None,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        escalation: Optional[EscalationEngine] = None,
    ):
        self.risk_engine = risk_engine or RiskProbabilityEngine()
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.escalation = escalation or EscalationEngine()

    def generate(
        self,
        trend_data: TrendData,
        historical: Optional[HistoricalData] = None,
        risk_indicators: Optional[Sequence[RiskIndicator]] = None,
        now: Optional[datetime] = None,
    ) -> list[Alert]:
        now = ensure_utc(now) if now is not None else utc_now()

        sources: dict[str, Callable[[], list[Alert]]] = {
            "trend": lambda: self.trend_warnings(trend_data, now),
            "velocity": lambda: self.velocity_warnings(trend_data, now),
            "change": lambda: self.change_warnings(trend_data, now),
        }
        if risk_indicators:
            sources["risk"] = lambda: self.risk_warnings(trend_data.project_id, risk_indicators, now)
        if historical is not None:
            sources["forecast"] = lambda: self.forecast_warnings(trend_data, historical, now)
            sources["pattern"] = lambda: self.pattern_warnings(trend_data.project_id, historical, now)

        alerts: list[Alert] = []
        counts: dict[str, int] = {}
        for name, source in sources.items():
            try:
                produced = source()
            except Exception as e:
                logger.warning(
                    "warning_source_failed",
                    source=name,
                    project_id=trend_data.project_id,
                    error=str(e),
                )
                produced = []
            counts[name] = len(produced)
            alerts.extend(produced)

        unique = deduplicate(alerts)
        composite = self.composite_warnings(unique, trend_data.project_id, now)
        result = prioritize(deduplicate(unique + composite))

        logger.info(
            "early_warnings_generated",
            project_id=trend_data.project_id,
            n_alerts=len(result),
            n_composite=len(composite),
            per_source=counts,
        )
        return result

    # ── Escalation ────────────────────────────────────────────────────────

    def escalate(self, alerts: Sequence[Alert], now: Optional[datetime] = None) -> list[Alert]:
        return self.escalation.escalate(alerts, now)

    def apply_escalations(self, alerts: Sequence[Alert], now: Optional[datetime] = None) -> list[Alert]:
        return self.escalation.apply_escalations(alerts, now)

    # ── Sources ───────────────────────────────────────────────────────────

    def trend_warnings(self, trend_data: TrendData, now: datetime) -> list[Alert]:
        alerts: list[Alert] = []
        for metric in trend_data.current_metrics:
            if metric.trend != TrendDirection.DECLINING:
                continue

            rate = abs(metric.change_rate)
            if rate > TREND_CRITICAL:
                severity = AlertSeverity.CRITICAL
            elif rate > TREND_HIGH:
                severity = AlertSeverity.HIGH
            elif rate > TREND_MEDIUM:
                severity = AlertSeverity.MEDIUM
            else:
                continue

            days = min(7, max(1, math.floor(1 / rate)))
            alerts.append(self._alert(
                prefix="trend_warning",
                project_id=trend_data.project_id,
                alert_type=AlertType.TREND_ALERT,
                severity=severity,
                title=f"Declining trend detected in {metric.name}",
                description=f"{metric.name} has been declining at {metric.change_rate * 100:.1f}% rate",
                probability=min(0.95, rate + 0.4),
                time_to_occurrence=Duration.of_days(days),
                impact=_impact_above(rate, 0.8, 0.5, 0.2),
                prevention_window=Duration.of_hours(48),
                ttl_hours=TREND_TTL_HOURS,
                suggested_actions=[actions.DECLINING_TREND.render(metric.name)],
                now=now,
            ))
        return alerts

    def velocity_warnings(self, trend_data: TrendData, now: datetime) -> list[Alert]:
        alerts: list[Alert] = []
        for velocity in trend_data.velocity_indicators:
            if velocity.average_velocity <= 0:
                continue

            ratio = velocity.current_velocity / velocity.average_velocity
            if ratio < VELOCITY_CRITICAL_RATIO:
                severity = AlertSeverity.CRITICAL
                impact = ImpactLevel.SEVERE
            elif ratio < VELOCITY_HIGH_RATIO:
                severity = AlertSeverity.HIGH
                impact = ImpactLevel.HIGH
            elif ratio < VELOCITY_MEDIUM_RATIO:
                severity = AlertSeverity.MEDIUM
                impact = ImpactLevel.MEDIUM
            else:
                continue

            alerts.append(self._alert(
                prefix="velocity_warning",
                project_id=trend_data.project_id,
                alert_type=AlertType.EARLY_WARNING,
                severity=severity,
                title=f"{velocity.name} velocity below threshold",
                description=f"{velocity.name} is at {ratio * 100:.1f}% of average velocity",
                probability=0.8 + (1 - ratio) * 0.15,
                time_to_occurrence=Duration.of_hours(max(12, math.floor(72 * ratio))),
                impact=impact,
                prevention_window=Duration.of_hours(36),
                ttl_hours=VELOCITY_TTL_HOURS,
                suggested_actions=[actions.LOW_VELOCITY.render(velocity.name)],
                now=now,
            ))
        return alerts

    def change_warnings(self, trend_data: TrendData, now: datetime) -> list[Alert]:
        alerts: list[Alert] = []
        for change in trend_data.recent_changes:
            if change.change_type != ChangeType.SUDDEN or change.magnitude <= CHANGE_MEDIUM:
                continue

            if change.magnitude > CHANGE_CRITICAL:
                severity = AlertSeverity.CRITICAL
            elif change.magnitude > CHANGE_HIGH:
                severity = AlertSeverity.HIGH
            else:
                severity = AlertSeverity.MEDIUM

            alerts.append(self._alert(
                prefix="change_warning",
                project_id=trend_data.project_id,
                alert_type=AlertType.ANOMALY_ALERT,
                severity=severity,
                title=f"Sudden change in {change.metric}",
                description=(
                    f"Detected {change.change_type.value} change with "
                    f"{change.magnitude * 100:.1f}% magnitude"
                ),
                probability=change.significance,
                time_to_occurrence=Duration.of_hours(12),
                impact=_impact_above(change.magnitude, 0.9, 0.7, 0.4),
                prevention_window=Duration.of_hours(6),
                ttl_hours=CHANGE_TTL_HOURS,
                suggested_actions=[actions.SUDDEN_CHANGE.render(change.metric)],
                now=now,
            ))
        return alerts

    def risk_warnings(
        self,
        project_id: str,
        indicators: Sequence[RiskIndicator],
        now: datetime,
    ) -> list[Alert]:
        alerts: list[Alert] = []
        for indicator in indicators:
            risk = self.risk_engine.indicator_risk(indicator)
            if risk <= RISK_ALERT:
                continue

            if risk > RISK_CRITICAL:
                severity = AlertSeverity.CRITICAL
            elif risk > RISK_HIGH:
                severity = AlertSeverity.HIGH
            else:
                severity = AlertSeverity.MEDIUM

            alerts.append(self._alert(
                prefix="risk_warning",
                project_id=project_id,
                alert_type=AlertType.RISK_ALERT,
                severity=severity,
                title=f"High risk detected in {indicator.name}",
                description=f"Risk level: {risk * 100:.1f}% for {indicator.name}",
                probability=risk,
                time_to_occurrence=Duration.of_hours(max(6, math.floor(48 * (1 - risk)))),
                impact=_impact_above(risk, 0.9, 0.7, 0.5),
                prevention_window=Duration.of_hours(24),
                ttl_hours=RISK_TTL_HOURS,
                suggested_actions=[actions.HIGH_RISK.render(indicator.name)],
                now=now,
            ))
        return alerts

    def forecast_warnings(
        self,
        trend_data: TrendData,
        historical: HistoricalData,
        now: datetime,
    ) -> list[Alert]:
        """Declining historical trends on metrics that are still being tracked."""
        tracked = {m.name for m in trend_data.current_metrics}
        analysis = self.trend_analyzer.analyze(historical, trend_data.project_id, now=now)

        alerts: list[Alert] = []
        for trend in analysis.trends:
            if (
                trend.direction != TrendDirection.DECLINING
                or trend.significance <= FORECAST_SIGNIFICANCE
                or trend.metric not in tracked
            ):
                continue

            prediction = analysis.prediction_for(trend.metric)
            horizon = prediction.time_horizon if prediction else Duration.of_days(7)
            forecast = (
                f"; forecast {prediction.predicted_value:.2f} in {horizon.value:g} {horizon.unit.value}"
                if prediction else ""
            )
            alerts.append(self._alert(
                prefix="forecast_warning",
                project_id=trend_data.project_id,
                alert_type=AlertType.TREND_ALERT,
                severity=(
                    AlertSeverity.HIGH if trend.significance > FORECAST_HIGH_SIGNIFICANCE
                    else AlertSeverity.MEDIUM
                ),
                title=f"Forecast decline in {trend.metric}",
                description=f"{trend.description}{forecast}",
                probability=min(0.95, trend.significance),
                time_to_occurrence=horizon,
                impact=_impact_above(abs(trend.slope), 0.8, 0.5, 0.2),
                prevention_window=Duration.of_days(3),
                ttl_hours=FORECAST_TTL_HOURS,
                suggested_actions=[actions.FORECAST_DECLINE.render(trend.metric)],
                now=now,
            ))
        return alerts

    def pattern_warnings(
        self,
        project_id: str,
        historical: HistoricalData,
        now: datetime,
    ) -> list[Alert]:
        alerts: list[Alert] = []
        for pattern in historical.patterns:
            if pattern.confidence <= PATTERN_CONFIDENCE or pattern.frequency <= PATTERN_MIN_FREQUENCY:
                continue

            label = pattern.description or pattern.pattern_type.value
            alerts.append(self._alert(
                prefix="pattern_warning",
                project_id=project_id,
                alert_type=AlertType.EARLY_WARNING,
                severity=(
                    AlertSeverity.HIGH if pattern.confidence > PATTERN_HIGH_CONFIDENCE
                    else AlertSeverity.MEDIUM
                ),
                title=f"Recurring {pattern.pattern_type.value} pattern: {label}",
                description=(
                    f"Pattern observed {pattern.frequency:g} times with "
                    f"{pattern.confidence * 100:.1f}% confidence"
                ),
                probability=pattern.confidence,
                time_to_occurrence=Duration.of_days(7),
                impact=ImpactLevel.MEDIUM,
                prevention_window=Duration.of_days(3),
                ttl_hours=PATTERN_TTL_HOURS,
                suggested_actions=[actions.RECURRING_PATTERN.render(label)],
                now=now,
            ))
        return alerts

    def composite_warnings(
        self,
        alerts: Sequence[Alert],
        project_id: str,
        now: datetime,
    ) -> list[Alert]:
        n_critical = sum(1 for a in alerts if a.severity == AlertSeverity.CRITICAL)
        n_high = sum(1 for a in alerts if a.severity == AlertSeverity.HIGH)

        composite: list[Alert] = []
        if n_critical >= MIN_CRITICAL_FOR_COMPOSITE:
            composite.append(self._alert(
                prefix="composite_critical",
                project_id=project_id,
                alert_type=AlertType.RISK_ALERT,
                severity=AlertSeverity.CRITICAL,
                title="Multiple critical issues detected",
                description=f"{n_critical} critical issues detected simultaneously",
                probability=0.95,
                time_to_occurrence=Duration.of_hours(12),
                impact=ImpactLevel.SEVERE,
                prevention_window=Duration.of_hours(6),
                ttl_hours=COMPOSITE_CRITICAL_TTL_HOURS,
                suggested_actions=[actions.MULTIPLE_CRITICAL.render()],
                now=now,
            ))
        if n_high >= MIN_HIGH_FOR_COMPOSITE:
            composite.append(self._alert(
                prefix="composite_high",
                project_id=project_id,
                alert_type=AlertType.EARLY_WARNING,
                severity=AlertSeverity.HIGH,
                title="Multiple high-priority issues detected",
                description=f"{n_high} high-priority issues may compound",
                probability=0.85,
                time_to_occurrence=Duration.of_hours(24),
                impact=ImpactLevel.HIGH,
                prevention_window=Duration.of_hours(12),
                ttl_hours=COMPOSITE_HIGH_TTL_HOURS,
                suggested_actions=[actions.MULTIPLE_HIGH.render()],
                now=now,
            ))
        return composite

    # ── Construction ──────────────────────────────────────────────────────

    @staticmethod
    def _alert(
        *,
        prefix: str,
        project_id: str,
        alert_type: AlertType,
        severity: AlertSeverity,
        title: str,
        description: str,
        probability: float,
        time_to_occurrence: Duration,
        impact: ImpactLevel,
        prevention_window: Duration,
        ttl_hours: float,
        suggested_actions: list[PreventiveAction],
        now: datetime,
    ) -> Alert:
        return Alert(
            id=f"{prefix}_{uuid.uuid4().hex[:12]}",
            project_id=project_id,
            type=alert_type,
            severity=severity,
            title=title,
            description=description,
            probability=probability,
            estimated_time_to_occurrence=time_to_occurrence,
            potential_impact=impact,
            prevention_window=bounded_prevention_window(prevention_window, time_to_occurrence),
            suggested_actions=suggested_actions,
            created_at=now,
            expires_at=now + timedelta(hours=ttl_hours),
        )
