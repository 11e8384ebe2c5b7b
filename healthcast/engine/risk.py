"""
Risk Probability Engine.

Turns weighted risk indicators into a RiskAssessment:

    deviation        = |current − threshold| / |threshold|
    indicator risk   = min(1, deviation^1.5) × trend multiplier × weight
    overall risk     = Σ(riskᵢ × wᵢ) / Σwᵢ
    compound risk    = 1 − Π(1 − riskᵢ)         (independence assumed)

Confidence grows with the number of indicators and is discounted by the
quality of the historical data behind them. Dynamic thresholds replace the
static 0.8×/1.0×/1.2× bands once a metric has enough history.

Guards: a zero threshold yields zero risk, an empty indicator list yields
zero risk and zero confidence.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from healthcast.engine.correlation import (
    IndicatorCorrelation,
    indicator_correlation,
    pairwise_correlations,
)
from healthcast.engine.monte_carlo import (
    DEFAULT_JITTER,
    DEFAULT_TRIALS,
    DEVIATION_EXPONENT,
    MonteCarloResult,
    MonteCarloSimulator,
    trend_multiplier,
)
from healthcast.exceptions import InsufficientDataError
from healthcast.schemas.assessment import RiskAssessment, RiskFactor
from healthcast.schemas.indicator import HistoricalData, RiskIndicator, TrendDirection

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

MIN_POINTS_FOR_DYNAMIC_THRESHOLDS: int = 10
STATIC_WARNING_RATIO: float = 0.8
STATIC_CRITICAL_RATIO: float = 1.0
STATIC_EMERGENCY_RATIO: float = 1.2

# Confidence
BASE_CONFIDENCE: float = 0.3
CONFIDENCE_PER_INDICATOR: float = 0.1
MAX_COUNT_CONFIDENCE: float = 0.9
MAX_CONFIDENCE: float = 0.95

# Data quality
MIN_DATA_QUALITY: float = 0.3
SPARSE_SAMPLES: int = 10            # Mean samples per metric below this → ×0.7
THIN_SAMPLES: int = 30              # Below this → ×0.85
SEVERE_GAP_RATIO: float = 0.5       # Samples / expected daily samples
MINOR_GAP_RATIO: float = 0.8

# Recommendation bands
CRITICAL_RISK: float = 0.8
HIGH_RISK: float = 0.6
MODERATE_RISK: float = 0.4
HIGH_FACTOR_RISK: float = 0.7

DEFAULT_DECAY_RATE: float = 0.1


def _clamp(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class DynamicThresholds:
    """Warning / critical / emergency boundaries for one indicator."""
    indicator: str
    warning: float
    critical: float
    emergency: float
    source: str                 # "historical" | "static"
    n_points: int = 0
    mean: Optional[float] = None
    std: Optional[float] = None


class RiskProbabilityEngine:
    """
    Score risk indicators and aggregate them into an assessment.

    Holds configuration only; every call returns fresh results.
    """

    def __init__(
        self,
        min_points_for_dynamic: int = MIN_POINTS_FOR_DYNAMIC_THRESHOLDS,
        monte_carlo_trials: int = DEFAULT_TRIALS,
        monte_carlo_jitter: float = DEFAULT_JITTER,
        monte_carlo_seed: Optional[int] = None,
    ):
        self.min_points_for_dynamic = min_points_for_dynamic
        self.monte_carlo_trials = monte_carlo_trials
        self.monte_carlo_jitter = monte_carlo_jitter
        self.monte_carlo_seed = monte_carlo_seed

    # ── Per-indicator ─────────────────────────────────────────────────────

    @staticmethod
    def deviation(indicator: RiskIndicator) -> float:
        if indicator.threshold == 0:
            return 0.0
        return abs(indicator.current_value - indicator.threshold) / abs(indicator.threshold)

    def indicator_risk(self, indicator: RiskIndicator) -> float:
        if indicator.threshold == 0:
            return 0.0
        deviation = self.deviation(indicator)
        if not math.isfinite(deviation):
            return 0.0

        # Capped before the power so huge deviations cannot overflow
        raw = min(1.0, deviation) ** DEVIATION_EXPONENT
        return _clamp(raw * trend_multiplier(indicator.trend) * indicator.weight)

    # ── Assessment ────────────────────────────────────────────────────────

    def assess(
        self,
        indicators: Sequence[RiskIndicator],
        historical: Optional[HistoricalData] = None,
    ) -> RiskAssessment:
        if not indicators:
            logger.info("risk_assessment_empty")
            return RiskAssessment(
                overall_risk=0.0,
                risk_factors=[],
                recommendations=self.recommendations([], 0.0),
                confidence_level=0.0,
            )

        factors = [
            RiskFactor(
                factor=ind.name,
                weight=ind.weight,
                current_value=ind.current_value,
                threshold=ind.threshold,
                trend=ind.trend,
                risk=self.indicator_risk(ind),
            )
            for ind in indicators
        ]
        factors.sort(key=lambda f: f.risk, reverse=True)

        overall = self.aggregate_risk(factors)
        confidence = self.confidence(indicators, historical)
        recommendations = self.recommendations(factors, overall)

        logger.info(
            "risk_assessment_completed",
            n_indicators=len(indicators),
            overall_risk=round(overall, 4),
            confidence=round(confidence, 4),
            top_factor=factors[0].factor,
        )

        return RiskAssessment(
            overall_risk=overall,
            risk_factors=factors,
            recommendations=recommendations,
            confidence_level=confidence,
        )

    @staticmethod
    def aggregate_risk(factors: Sequence[RiskFactor]) -> float:
        """Weighted mean of factor risks, normalized by the weight sum."""
        total_weight = sum(f.weight for f in factors)
        if total_weight <= 0:
            return 0.0
        return _clamp(sum(f.risk * f.weight for f in factors) / total_weight)

    def confidence(
        self,
        indicators: Sequence[RiskIndicator],
        historical: Optional[HistoricalData] = None,
    ) -> float:
        if not indicators:
            return 0.0

        confidence = min(MAX_COUNT_CONFIDENCE, BASE_CONFIDENCE + CONFIDENCE_PER_INDICATOR * len(indicators))
        if historical is not None:
            confidence *= self.data_quality(historical)

        mean_weight = sum(i.weight for i in indicators) / len(indicators)
        confidence *= 0.5 + 0.5 * mean_weight
        return _clamp(min(MAX_CONFIDENCE, confidence))

    @staticmethod
    def data_quality(historical: HistoricalData) -> float:
        """
        Score in [0.3, 1.0] for how well the history supports the estimate.

        Penalizes few samples per metric and sparse coverage of the time
        range (one sample per day expected).
        """
        if not historical.metrics:
            return MIN_DATA_QUALITY

        quality = 1.0
        mean_samples = sum(len(m.values) for m in historical.metrics) / len(historical.metrics)

        if mean_samples < SPARSE_SAMPLES:
            quality *= 0.7
        elif mean_samples < THIN_SAMPLES:
            quality *= 0.85

        if historical.time_range is not None:
            expected = historical.time_range.days
            if mean_samples < expected * SEVERE_GAP_RATIO:
                quality *= 0.6
            elif mean_samples < expected * MINOR_GAP_RATIO:
                quality *= 0.8

        return max(MIN_DATA_QUALITY, quality)

    @staticmethod
    def recommendations(factors: Sequence[RiskFactor], overall: float) -> list[str]:
        recs: list[str] = []

        if overall > CRITICAL_RISK:
            recs.append("CRITICAL: Immediate action required - risk level is critical")
            recs.append("Escalate to senior management immediately")
            recs.append("Implement emergency risk mitigation procedures")
        elif overall > HIGH_RISK:
            recs.append("HIGH: Urgent attention needed - risk level is high")
            recs.append("Activate risk response team")
            recs.append("Implement high-priority mitigation strategies")
        elif overall > MODERATE_RISK:
            recs.append("MEDIUM: Monitor closely - risk level is moderate")
            recs.append("Prepare contingency plans")
            recs.append("Increase monitoring frequency")
        else:
            recs.append("LOW: Continue monitoring - risk level is acceptable")
            recs.append("Maintain current risk management practices")

        for factor in factors:
            if factor.risk <= HIGH_FACTOR_RISK:
                continue
            recs.append(f"Address high-risk factor: {factor.factor}")
            if factor.trend == TrendDirection.DECLINING:
                recs.append(f"{factor.factor} is declining - investigate root causes")
            elif factor.trend == TrendDirection.VOLATILE:
                recs.append(f"{factor.factor} is volatile - stabilize the metric")

        return recs

    # ── Compound risk ─────────────────────────────────────────────────────

    @staticmethod
    def compound_risk(risks: Sequence[float]) -> float:
        """
        Probability that at least one adverse condition occurs.

        Assumes the conditions are independent; see correlated_compound_risk
        when they are not.
        """
        survival = 1.0
        for r in risks:
            survival *= 1.0 - _clamp(r)
        return _clamp(1.0 - survival)

    def correlated_compound_risk(
        self,
        indicators: Sequence[RiskIndicator],
        historical: Optional[HistoricalData] = None,
    ) -> float:
        """
        Compound risk adjusted for positive correlation between indicators.

        Interpolates between the independent result and the fully correlated
        bound max(rᵢ) by the mean positive pairwise correlation.
        """
        risks = [self.indicator_risk(i) for i in indicators]
        if not risks:
            return 0.0

        independent = self.compound_risk(risks)
        if len(risks) == 1:
            return independent

        pairs = pairwise_correlations(indicators, historical)
        rho = sum(max(0.0, p.correlation) for p in pairs) / len(pairs)
        combined = (1 - rho) * independent + rho * max(risks)

        logger.debug(
            "correlated_compound_risk",
            n_indicators=len(indicators),
            independent=round(independent, 4),
            mean_correlation=round(rho, 4),
            combined=round(combined, 4),
        )
        return _clamp(combined)

    def correlation(
        self,
        a: RiskIndicator,
        b: RiskIndicator,
        historical: Optional[HistoricalData] = None,
    ) -> IndicatorCorrelation:
        return indicator_correlation(a, b, historical)

    # ── Simulation ────────────────────────────────────────────────────────

    def monte_carlo(
        self,
        indicators: Sequence[RiskIndicator],
        trials: Optional[int] = None,
        jitter: Optional[float] = None,
        seed: Optional[int] = None,
    ) -> MonteCarloResult:
        simulator = MonteCarloSimulator(
            trials=trials if trials is not None else self.monte_carlo_trials,
            jitter=jitter if jitter is not None else self.monte_carlo_jitter,
            seed=seed if seed is not None else self.monte_carlo_seed,
        )
        return simulator.run(indicators)

    # ── Thresholds ────────────────────────────────────────────────────────

    def dynamic_thresholds(
        self,
        indicator: RiskIndicator,
        historical: Optional[HistoricalData] = None,
    ) -> DynamicThresholds:
        try:
            return self._historical_thresholds(indicator, historical)
        except InsufficientDataError as e:
            logger.debug(
                "dynamic_thresholds_static_fallback",
                indicator=indicator.name,
                available=e.details.get("available"),
            )
            return DynamicThresholds(
                indicator=indicator.name,
                warning=indicator.threshold * STATIC_WARNING_RATIO,
                critical=indicator.threshold * STATIC_CRITICAL_RATIO,
                emergency=indicator.threshold * STATIC_EMERGENCY_RATIO,
                source="static",
            )

    def _historical_thresholds(
        self,
        indicator: RiskIndicator,
        historical: Optional[HistoricalData],
    ) -> DynamicThresholds:
        metric = historical.metric(indicator.name) if historical is not None else None
        series = metric.series if metric is not None else []
        if len(series) < self.min_points_for_dynamic:
            raise InsufficientDataError(
                f"Not enough history for {indicator.name}",
                required=self.min_points_for_dynamic,
                available=len(series),
            )

        mean = sum(series) / len(series)
        std = math.sqrt(sum((v - mean) * (v - mean) for v in series) / len(series))
        if not (math.isfinite(mean) and math.isfinite(std)):
            # Statistics overflowed; the series is unusable as a baseline
            raise InsufficientDataError(
                f"History for {indicator.name} is not finite",
                required=self.min_points_for_dynamic,
                available=0,
            )
        return DynamicThresholds(
            indicator=indicator.name,
            warning=mean + std,
            critical=mean + 2 * std,
            emergency=mean + 3 * std,
            source="historical",
            n_points=len(series),
            mean=mean,
            std=std,
        )

    # ── Time dynamics ─────────────────────────────────────────────────────

    @staticmethod
    def time_decay_risk(
        base_risk: float,
        time_to_occurrence: float,
        decay_rate: float = DEFAULT_DECAY_RATE,
    ) -> float:
        """Risk discounted exponentially by the time until occurrence."""
        return _clamp(base_risk * math.exp(-decay_rate * time_to_occurrence))

    @staticmethod
    def risk_velocity(current_risk: float, previous_risk: float, interval: float) -> float:
        if interval <= 0:
            return 0.0
        return (current_risk - previous_risk) / interval

    @staticmethod
    def risk_acceleration(current_velocity: float, previous_velocity: float, interval: float) -> float:
        if interval <= 0:
            return 0.0
        return (current_velocity - previous_velocity) / interval
