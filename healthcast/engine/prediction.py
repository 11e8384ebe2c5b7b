"""
Issue Predictor.

Turns historical data into predicted future issues, before any of them is
severe enough to become an alert:

- Trending patterns with confidence > 0.8 that recurred more than twice
  → "<pattern>_continuation" in 7 days
- Metrics whose OLS slope exceeds 0.1 in magnitude
  → "<metric>_trend_continuation" in 5 days
"""

import math
from typing import Optional

import structlog

from healthcast.alerting import actions
from healthcast.engine.trend import MIN_POINTS, fit_linear_trend
from healthcast.schemas.assessment import Prediction
from healthcast.schemas.gap import ImpactLevel
from healthcast.schemas.indicator import Duration, HistoricalData, PatternType

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

PATTERN_MIN_CONFIDENCE: float = 0.7
PATTERN_MIN_FREQUENCY: float = 2.0
TRENDING_PATTERN_CONFIDENCE: float = 0.8
METRIC_SLOPE_THRESHOLD: float = 0.1
MAX_TREND_PROBABILITY: float = 0.9


def slope_impact(slope: float) -> ImpactLevel:
    magnitude = abs(slope)
    if magnitude > 0.8:
        return ImpactLevel.SEVERE
    if magnitude > 0.5:
        return ImpactLevel.HIGH
    if magnitude > 0.2:
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


class IssuePredictor:
    """Predict issues from historical patterns and metric trends."""

    def __init__(self, slope_threshold: float = METRIC_SLOPE_THRESHOLD):
        self.slope_threshold = slope_threshold

    def predict(self, historical: Optional[HistoricalData]) -> list[Prediction]:
        if historical is None:
            return []

        predictions = self.pattern_predictions(historical) + self.metric_predictions(historical)
        predictions.sort(key=lambda p: p.probability, reverse=True)

        logger.info(
            "issue_predictions_generated",
            project_id=historical.project_id,
            n_predictions=len(predictions),
        )
        return predictions

    @staticmethod
    def pattern_predictions(historical: HistoricalData) -> list[Prediction]:
        predictions: list[Prediction] = []
        for pattern in historical.patterns:
            if pattern.confidence <= PATTERN_MIN_CONFIDENCE or pattern.frequency <= PATTERN_MIN_FREQUENCY:
                continue
            if pattern.pattern_type != PatternType.TRENDING or pattern.confidence <= TRENDING_PATTERN_CONFIDENCE:
                continue

            predictions.append(Prediction(
                issue_type=f"{pattern.pattern_type.value}_continuation",
                probability=pattern.confidence,
                estimated_time_to_occurrence=Duration.of_days(7),
                potential_impact=ImpactLevel.MEDIUM,
                prevention_window=Duration.of_days(3),
                suggested_actions=[
                    actions.TREND_CONTINUATION.render(pattern.description or pattern.pattern_type.value),
                ],
            ))
        return predictions

    def metric_predictions(self, historical: HistoricalData) -> list[Prediction]:
        predictions: list[Prediction] = []
        for metric in historical.metrics:
            series = metric.series
            if len(series) < MIN_POINTS:
                continue

            slope = fit_linear_trend(series).slope
            if not math.isfinite(slope) or abs(slope) <= self.slope_threshold:
                continue

            predictions.append(Prediction(
                issue_type=f"{metric.name}_trend_continuation",
                probability=min(MAX_TREND_PROBABILITY, abs(slope)),
                estimated_time_to_occurrence=Duration.of_days(5),
                potential_impact=slope_impact(slope),
                prevention_window=Duration.of_days(2),
                suggested_actions=[actions.metric_trend_action(metric.name, slope)],
            ))
        return predictions
