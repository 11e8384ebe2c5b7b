"""
Trend Analysis Engine.

Fits an ordinary least-squares line over sample index vs. value for every
historical metric with at least MIN_POINTS samples, keeps the significant
ones, forecasts FORECAST_HORIZON days ahead and recommends action for the
strongest trends.

    slope          = (nΣxy − ΣxΣy) / (nΣx² − (Σx)²)
    forecast       = intercept + slope × (n − 1 + horizon)
    bounds         = forecast ± population σ of the series
    confidence     = max(0.5, 1 − σ / |forecast|)

Trend strength is |slope| capped at 1 so it stays a [0, 1] score. Series
large enough to overflow the fit or σ are skipped rather than reported.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import structlog

from healthcast.exceptions import InsufficientDataError
from healthcast.schemas.alert import Priority
from healthcast.schemas.assessment import (
    IdentifiedTrend,
    PredictionBounds,
    TrendAnalysisResult,
    TrendPrediction,
    TrendRecommendation,
)
from healthcast.schemas.common import utc_now
from healthcast.schemas.indicator import Duration, HistoricalData, TrendDirection

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

MIN_POINTS: int = 3
SIGNIFICANT_SLOPE: float = 0.05
FORECAST_HORIZON_DAYS: int = 7
RECOMMENDATION_SIGNIFICANCE: float = 0.7
HIGH_PRIORITY_SIGNIFICANCE: float = 0.9
RECOMMENDATION_TIMEFRAME_DAYS: int = 3
MIN_FORECAST_CONFIDENCE: float = 0.5
MAX_OVERALL_CONFIDENCE: float = 0.95
DEFAULT_OVERALL_CONFIDENCE: float = 0.5


@dataclass(frozen=True)
class LinearFit:
    """OLS fit of value against sample index."""
    slope: float
    intercept: float
    r_squared: float
    n_points: int


def fit_linear_trend(values: Sequence[float]) -> LinearFit:
    """
    Least-squares line through (i, values[i]).

    Raises InsufficientDataError for fewer than two points.
    """
    n = len(values)
    if n < 2:
        raise InsufficientDataError(
            "Linear trend needs at least two points", required=2, available=n,
        )

    sum_x = n * (n - 1) / 2
    sum_xx = (n - 1) * n * (2 * n - 1) / 6
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    ss_tot = sum((v - mean_y) * (v - mean_y) for v in values)
    residuals = [v - (intercept + slope * i) for i, v in enumerate(values)]
    ss_res = sum(r * r for r in residuals)
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 1.0

    return LinearFit(slope=slope, intercept=intercept, r_squared=r_squared, n_points=n)


def population_std(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) * (v - mean) for v in values) / len(values))


class TrendAnalyzer:
    """Identify, forecast and act on metric trends."""

    def __init__(
        self,
        min_points: int = MIN_POINTS,
        significant_slope: float = SIGNIFICANT_SLOPE,
        horizon_days: int = FORECAST_HORIZON_DAYS,
    ):
        self.min_points = min_points
        self.significant_slope = significant_slope
        self.horizon_days = horizon_days

    def analyze(
        self,
        historical: HistoricalData,
        project_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TrendAnalysisResult:
        if now is None:
            now = utc_now()

        trends = self.identify_trends(historical)
        predictions = self.forecast(trends, historical)
        recommendations = self.recommend(trends, predictions)
        confidence = self.overall_confidence(trends)

        logger.info(
            "trend_analysis_completed",
            project_id=project_id or historical.project_id,
            n_metrics=len(historical.metrics),
            n_trends=len(trends),
            confidence=round(confidence, 4),
        )

        return TrendAnalysisResult(
            project_id=project_id or historical.project_id,
            analysis_timestamp=now,
            trends=trends,
            predictions=predictions,
            recommendations=recommendations,
            confidence_level=confidence,
        )

    def identify_trends(self, historical: HistoricalData) -> list[IdentifiedTrend]:
        trends: list[IdentifiedTrend] = []
        for metric in historical.metrics:
            series = metric.series
            if len(series) < self.min_points:
                continue

            fit = fit_linear_trend(series)
            if not (math.isfinite(fit.slope) and math.isfinite(population_std(series))):
                logger.debug("trend_series_not_finite", metric=metric.name)
                continue
            if abs(fit.slope) <= self.significant_slope:
                continue

            upward = fit.slope > 0
            trends.append(IdentifiedTrend(
                metric=metric.name,
                direction=TrendDirection.IMPROVING if upward else TrendDirection.DECLINING,
                slope=fit.slope,
                strength=min(1.0, abs(fit.slope)),
                duration=Duration.of_days(len(series)),
                significance=min(1.0, abs(fit.slope) * 2),
                description=f"{metric.name} showing {'upward' if upward else 'downward'} trend",
            ))
        return trends

    def forecast(
        self,
        trends: Sequence[IdentifiedTrend],
        historical: HistoricalData,
    ) -> list[TrendPrediction]:
        predictions: list[TrendPrediction] = []
        for trend in trends:
            metric = historical.metric(trend.metric)
            if metric is None or len(metric.values) < 2:
                continue

            series = metric.series
            fit = fit_linear_trend(series)
            predicted = fit.intercept + fit.slope * (len(series) - 1 + self.horizon_days)
            sigma = population_std(series)
            if not (math.isfinite(predicted) and math.isfinite(sigma)):
                continue

            if predicted == 0:
                confidence = MIN_FORECAST_CONFIDENCE
            else:
                confidence = max(MIN_FORECAST_CONFIDENCE, 1 - sigma / abs(predicted))

            predictions.append(TrendPrediction(
                metric=trend.metric,
                predicted_value=predicted,
                time_horizon=Duration.of_days(self.horizon_days),
                confidence=min(1.0, confidence),
                bounds=PredictionBounds(lower=predicted - sigma, upper=predicted + sigma),
            ))
        return predictions

    @staticmethod
    def recommend(
        trends: Sequence[IdentifiedTrend],
        predictions: Sequence[TrendPrediction],
    ) -> list[TrendRecommendation]:
        by_metric = {p.metric: p for p in predictions}
        recommendations: list[TrendRecommendation] = []

        for trend in trends:
            if trend.significance <= RECOMMENDATION_SIGNIFICANCE:
                continue

            prediction = by_metric.get(trend.metric)
            if prediction is not None:
                horizon = prediction.time_horizon
                expected = (
                    f"Predicted to reach {prediction.predicted_value:.2f} "
                    f"in {horizon.value:g} {horizon.unit.value}"
                )
            else:
                expected = "Trend continuation expected"

            recommendations.append(TrendRecommendation(
                priority=(
                    Priority.HIGH if trend.significance > HIGH_PRIORITY_SIGNIFICANCE
                    else Priority.MEDIUM
                ),
                action=f"Address {trend.direction.value} trend in {trend.metric}",
                rationale=(
                    f"Strong {trend.direction.value} trend detected with "
                    f"{trend.significance * 100:.1f}% significance"
                ),
                expected_impact=expected,
                timeframe=Duration.of_days(RECOMMENDATION_TIMEFRAME_DAYS),
            ))
        return recommendations

    @staticmethod
    def overall_confidence(trends: Sequence[IdentifiedTrend]) -> float:
        if not trends:
            return DEFAULT_OVERALL_CONFIDENCE
        mean_significance = sum(t.significance for t in trends) / len(trends)
        return min(MAX_OVERALL_CONFIDENCE, mean_significance + 0.1)
