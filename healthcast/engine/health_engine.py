"""
Project Health Engine — one-call facade over the scoring components.

Pipeline for one project:
1. Score every gap (severity ensemble) and summarize the portfolio
2. Assess indicator risk, optionally with Monte Carlo bounds
3. Analyze historical trends and predict issues
4. Generate early warnings from live trend data

Each step runs only when its input is supplied. The facade holds its
component engines and nothing else; reports are fresh on every call.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

import structlog

from healthcast.alerting.early_warning import EarlyWarningGenerator
from healthcast.alerting.escalation import EscalationEngine
from healthcast.analysis.severity_summary import ScoredGap, SeveritySummary, summarize_severities
from healthcast.config import Settings, settings as default_settings
from healthcast.engine.calibration import FeatureWeightCalibrator
from healthcast.engine.monte_carlo import MonteCarloResult
from healthcast.engine.prediction import IssuePredictor
from healthcast.engine.risk import RiskProbabilityEngine
from healthcast.engine.severity import SeverityBreakdown, SeverityScorer
from healthcast.engine.trend import TrendAnalyzer
from healthcast.schemas.alert import Alert, AlertSeverity
from healthcast.schemas.assessment import Prediction, RiskAssessment, TrendAnalysisResult
from healthcast.schemas.common import ensure_utc, utc_now
from healthcast.schemas.gap import Gap
from healthcast.schemas.indicator import HistoricalData, RiskIndicator
from healthcast.schemas.trend import TrendData

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class HealthReport:
    """Everything the engine concluded about one project."""
    project_id: str
    generated_at: datetime
    severities: list[SeverityBreakdown] = field(default_factory=list)
    severity_summary: Optional[SeveritySummary] = None
    risk_assessment: Optional[RiskAssessment] = None
    compound_risk: float = 0.0
    monte_carlo: Optional[MonteCarloResult] = None
    trend_analysis: Optional[TrendAnalysisResult] = None
    predictions: list[Prediction] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)

    @property
    def has_critical_alerts(self) -> bool:
        return any(a.severity == AlertSeverity.CRITICAL for a in self.alerts)


class ProjectHealthEngine:
    """Run severity, risk, trend and warning analysis for a project."""

    def __init__(
        self,
        scorer: Optional[SeverityScorer] = None,
        risk_engine: Optional[RiskProbabilityEngine] = None,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        warning_generator: Optional[EarlyWarningGenerator] = None,
        predictor: Optional[IssuePredictor] = None,
    ):
        self.scorer = scorer or SeverityScorer()
        self.risk_engine = risk_engine or RiskProbabilityEngine()
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.warning_generator = warning_generator or EarlyWarningGenerator(
            risk_engine=self.risk_engine,
            trend_analyzer=self.trend_analyzer,
        )
        self.predictor = predictor or IssuePredictor()

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "ProjectHealthEngine":
        """Wire every component from application settings."""
        config = config or default_settings
        risk_engine = RiskProbabilityEngine(
            min_points_for_dynamic=config.dynamic_threshold_min_points,
            monte_carlo_trials=config.monte_carlo_trials,
            monte_carlo_jitter=config.monte_carlo_jitter,
            monte_carlo_seed=config.monte_carlo_seed,
        )
        trend_analyzer = TrendAnalyzer(
            significant_slope=config.trend_significance_slope,
            horizon_days=config.trend_forecast_horizon,
        )
        return cls(
            scorer=SeverityScorer(
                calibrator=FeatureWeightCalibrator(min_history=config.feature_weight_min_history),
                min_history=config.feature_weight_min_history,
            ),
            risk_engine=risk_engine,
            trend_analyzer=trend_analyzer,
            warning_generator=EarlyWarningGenerator(
                risk_engine=risk_engine,
                trend_analyzer=trend_analyzer,
                escalation=EscalationEngine(
                    threshold_hours=config.escalation_threshold_hours,
                    ttl_hours=config.escalated_alert_ttl_hours,
                ),
            ),
        )

    def evaluate(
        self,
        project_id: str,
        gaps: Optional[Sequence[Gap]] = None,
        indicators: Optional[Sequence[RiskIndicator]] = None,
        historical: Optional[HistoricalData] = None,
        trend_data: Optional[TrendData] = None,
        historical_gaps: Optional[Sequence[Gap]] = None,
        benchmark_gaps: Optional[Sequence[Gap]] = None,
        simulate: bool = False,
        now: Optional[datetime] = None,
    ) -> HealthReport:
        now = ensure_utc(now) if now is not None else utc_now()

        severities: list[SeverityBreakdown] = []
        summary: Optional[SeveritySummary] = None
        if gaps:
            scored: list[ScoredGap] = []
            for gap in gaps:
                breakdown = self.scorer.score_breakdown(gap, historical_gaps, benchmark_gaps)
                severities.append(breakdown)
                scored.append(ScoredGap(gap=gap, severity=breakdown.level))
            summary = summarize_severities(scored)

        assessment: Optional[RiskAssessment] = None
        compound = 0.0
        monte_carlo: Optional[MonteCarloResult] = None
        if indicators:
            assessment = self.risk_engine.assess(indicators, historical)
            compound = self.risk_engine.compound_risk([f.risk for f in assessment.risk_factors])
            if simulate:
                monte_carlo = self.risk_engine.monte_carlo(indicators)

        trend_analysis: Optional[TrendAnalysisResult] = None
        predictions: list[Prediction] = []
        if historical is not None:
            trend_analysis = self.trend_analyzer.analyze(historical, project_id, now=now)
            predictions = self.predictor.predict(historical)

        alerts: list[Alert] = []
        if trend_data is not None:
            alerts = self.warning_generator.generate(trend_data, historical, indicators, now=now)

        logger.info(
            "health_report_generated",
            project_id=project_id,
            n_gaps=len(severities),
            overall_risk=round(assessment.overall_risk, 4) if assessment else None,
            n_trends=len(trend_analysis.trends) if trend_analysis else 0,
            n_alerts=len(alerts),
        )

        return HealthReport(
            project_id=project_id,
            generated_at=now,
            severities=severities,
            severity_summary=summary,
            risk_assessment=assessment,
            compound_risk=compound,
            monte_carlo=monte_carlo,
            trend_analysis=trend_analysis,
            predictions=predictions,
            alerts=alerts,
        )
