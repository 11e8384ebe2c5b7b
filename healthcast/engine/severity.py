"""
Gap Severity Scoring Engine.

Four independent strategies classify a gap into a SeverityLevel:

1. Weighted factor  — five normalized factors × type/category multipliers
2. Risk based       — escalation potential, impact magnitude, time sensitivity
3. Feature weighted — 8-feature linear score, weights from calibration
4. Comparative      — percentile rank against benchmark gaps

The ensemble maps each level onto 1..4 and takes a weighted mean. Strategies
that lack their input (history, benchmarks) hand their weight to another
strategy, so the weights always sum to 1.

A strategy that raises is logged and counted as MEDIUM: ``score`` never raises.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import structlog

from healthcast.engine.calibration import (
    DEFAULT_FEATURE_WEIGHTS,
    MIN_HISTORY_FOR_CALIBRATION,
    SCORE_SCALE,
    FeatureWeightCalibrator,
)
from healthcast.engine.features import (
    base_resource_requirement,
    category_multiplier,
    extract_features,
    impact_score,
    timeframe_score,
    type_complexity,
    type_multiplier,
)
from healthcast.exceptions import ScoringError
from healthcast.schemas.gap import Gap, ImpactTimeframe, SeverityLevel

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

FACTOR_WEIGHTS: dict[str, float] = {
    "impact": 0.35,
    "urgency": 0.25,
    "complexity": 0.15,
    "resource": 0.15,
    "stakeholder": 0.10,
}

# Score → level thresholds shared by the absolute strategies
CRITICAL_SCORE: float = 0.8
HIGH_SCORE: float = 0.6
MEDIUM_SCORE: float = 0.4

# Percentile → level thresholds for the comparative strategy
CRITICAL_PERCENTILE: float = 0.9
HIGH_PERCENTILE: float = 0.7
MEDIUM_PERCENTILE: float = 0.4

# Ensemble weights
STANDARD_WEIGHT: float = 0.4
RISK_BASED_WEIGHT: float = 0.3
FEATURE_WEIGHT: float = 0.2
COMPARATIVE_WEIGHT: float = 0.1

FALLBACK_LEVEL: SeverityLevel = SeverityLevel.MEDIUM


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def level_for_score(score: float) -> SeverityLevel:
    if score >= CRITICAL_SCORE:
        return SeverityLevel.CRITICAL
    if score >= HIGH_SCORE:
        return SeverityLevel.HIGH
    if score >= MEDIUM_SCORE:
        return SeverityLevel.MEDIUM
    return SeverityLevel.LOW


@dataclass(frozen=True)
class SeverityFactors:
    """The five normalized factors of the weighted-factor strategy."""
    impact: float
    urgency: float
    complexity: float
    resource: float
    stakeholder: float

    def weighted_sum(self) -> float:
        return (
            self.impact * FACTOR_WEIGHTS["impact"]
            + self.urgency * FACTOR_WEIGHTS["urgency"]
            + self.complexity * FACTOR_WEIGHTS["complexity"]
            + self.resource * FACTOR_WEIGHTS["resource"]
            + self.stakeholder * FACTOR_WEIGHTS["stakeholder"]
        )


@dataclass(frozen=True)
class SeverityBreakdown:
    """
    Explainable output of the ensemble.

    strategy_levels and strategy_weights share keys; a strategy absent from
    both did not participate.
    """
    gap_id: str
    level: SeverityLevel
    ensemble_score: float                       # Weighted mean on the 1..4 scale
    strategy_levels: dict[str, SeverityLevel]
    strategy_weights: dict[str, float]
    failed_strategies: list[str] = field(default_factory=list)
    weight_method: str = "default"              # Feature-weight provenance


class SeverityScorer:
    """
    Classify gaps into severity levels.

    Stateless apart from the calibrator; safe to share between callers.
    """

    def __init__(
        self,
        calibrator: Optional[FeatureWeightCalibrator] = None,
        min_history: int = MIN_HISTORY_FOR_CALIBRATION,
    ):
        self.min_history = min_history
        self.calibrator = calibrator or FeatureWeightCalibrator(min_history=min_history)

    # ── Factors ───────────────────────────────────────────────────────────

    def factors(self, gap: Gap) -> SeverityFactors:
        variance = abs(gap.variance)
        n_causes = len(gap.root_causes)
        n_areas = len(gap.affected_areas)
        n_stakeholders = len(gap.estimated_impact.affected_stakeholders)

        urgency = (min(1.0, variance * 2) + timeframe_score(gap.estimated_impact.timeframe)) / 2
        complexity = (
            min(1.0, n_causes / 5) + min(1.0, n_areas / 3) + type_complexity(gap.type)
        ) / 3
        resource = min(1.0, base_resource_requirement(gap.type) * (1 + n_causes * 0.1))

        return SeverityFactors(
            impact=impact_score(gap.estimated_impact.level),
            urgency=urgency,
            complexity=complexity,
            resource=resource,
            stakeholder=min(1.0, n_stakeholders / 10),
        )

    def composite_score(self, gap: Gap) -> float:
        """Weighted factor score before the confidence adjustment."""
        base = self.factors(gap).weighted_sum()
        return _clamp(base * type_multiplier(gap.type) * category_multiplier(gap.category))

    # ── Strategies ────────────────────────────────────────────────────────

    def weighted_factor(self, gap: Gap) -> SeverityLevel:
        score = self.composite_score(gap) * (0.8 + 0.2 * gap.confidence)
        return level_for_score(score)

    def risk_based(self, gap: Gap) -> SeverityLevel:
        variance = abs(gap.variance)
        n_causes = len(gap.root_causes)
        n_areas = len(gap.affected_areas)
        n_stakeholders = len(gap.estimated_impact.affected_stakeholders)
        timeframe = gap.estimated_impact.timeframe

        immediacy = 1.0 if timeframe == ImpactTimeframe.IMMEDIATE else 0.5
        escalation = (min(1.0, variance * 1.5) + min(1.0, n_causes / 3) + immediacy) / 3
        impact_magnitude = (
            impact_score(gap.estimated_impact.level)
            + min(1.0, n_stakeholders / 5)
            + min(1.0, n_areas / 3)
        ) / 3
        time_sensitivity = timeframe_score(timeframe)

        score = escalation * 0.4 + impact_magnitude * 0.4 + time_sensitivity * 0.2
        return level_for_score(score)

    def feature_weighted(
        self,
        gap: Gap,
        historical_gaps: Optional[Sequence[Gap]] = None,
    ) -> SeverityLevel:
        if historical_gaps:
            weights = self.calibrator.weights_for(historical_gaps).weights
        else:
            weights = DEFAULT_FEATURE_WEIGHTS
        return self._feature_level(gap, weights)

    @staticmethod
    def _feature_level(gap: Gap, weights: Sequence[float]) -> SeverityLevel:
        features = extract_features(gap)
        if len(weights) != len(features):
            raise ScoringError(
                "feature_weighted",
                f"expected {len(features)} weights, got {len(weights)}",
            )
        raw = sum(f * w for f, w in zip(features, weights))
        return level_for_score(_clamp(raw / SCORE_SCALE))

    def comparative(self, gap: Gap, benchmark_gaps: Optional[Sequence[Gap]]) -> SeverityLevel:
        if not benchmark_gaps:
            return self.weighted_factor(gap)

        gap_score = self.composite_score(gap)
        benchmark_scores = [self.composite_score(b) for b in benchmark_gaps]
        percentile = sum(1 for s in benchmark_scores if s <= gap_score) / len(benchmark_scores)

        if percentile >= CRITICAL_PERCENTILE:
            return SeverityLevel.CRITICAL
        if percentile >= HIGH_PERCENTILE:
            return SeverityLevel.HIGH
        if percentile >= MEDIUM_PERCENTILE:
            return SeverityLevel.MEDIUM
        return SeverityLevel.LOW

    # ── Ensemble ──────────────────────────────────────────────────────────

    def score(
        self,
        gap: Gap,
        historical_gaps: Optional[Sequence[Gap]] = None,
        benchmark_gaps: Optional[Sequence[Gap]] = None,
    ) -> SeverityLevel:
        return self.score_breakdown(gap, historical_gaps, benchmark_gaps).level

    def score_breakdown(
        self,
        gap: Gap,
        historical_gaps: Optional[Sequence[Gap]] = None,
        benchmark_gaps: Optional[Sequence[Gap]] = None,
    ) -> SeverityBreakdown:
        """
        Run every applicable strategy and combine them.

        Weights: standard 0.4, risk 0.3, feature 0.2, comparative 0.1.
        Without enough history the feature weight moves to risk-based;
        without benchmarks the comparative weight moves to standard.
        """
        history = list(historical_gaps or [])
        benchmarks = list(benchmark_gaps or [])
        use_features = len(history) >= self.min_history
        use_benchmarks = len(benchmarks) > 0

        weights: dict[str, float] = {
            "weighted_factor": STANDARD_WEIGHT + (0.0 if use_benchmarks else COMPARATIVE_WEIGHT),
            "risk_based": RISK_BASED_WEIGHT + (0.0 if use_features else FEATURE_WEIGHT),
        }
        runners: dict[str, Callable[[], SeverityLevel]] = {
            "weighted_factor": lambda: self.weighted_factor(gap),
            "risk_based": lambda: self.risk_based(gap),
        }
        weight_method = "default"
        if use_features:
            def run_features() -> SeverityLevel:
                nonlocal weight_method
                calibrated = self.calibrator.weights_for(history)
                weight_method = calibrated.method
                return self._feature_level(gap, calibrated.weights)

            weights["feature_weighted"] = FEATURE_WEIGHT
            runners["feature_weighted"] = run_features
        if use_benchmarks:
            weights["comparative"] = COMPARATIVE_WEIGHT
            runners["comparative"] = lambda: self.comparative(gap, benchmarks)

        levels: dict[str, SeverityLevel] = {}
        failed: list[str] = []
        for name, run in runners.items():
            try:
                levels[name] = run()
            except Exception as e:
                logger.warning(
                    "severity_strategy_failed",
                    strategy=name,
                    gap_id=gap.id,
                    error=str(e),
                )
                levels[name] = FALLBACK_LEVEL
                failed.append(name)

        total_weight = sum(weights.values())
        ensemble_score = sum(levels[n].score * w for n, w in weights.items()) / total_weight
        level = SeverityLevel.from_score(ensemble_score)

        logger.debug(
            "severity_scored",
            gap_id=gap.id,
            level=level.value,
            ensemble_score=round(ensemble_score, 4),
            strategies={n: lv.value for n, lv in levels.items()},
        )

        return SeverityBreakdown(
            gap_id=gap.id,
            level=level,
            ensemble_score=round(ensemble_score, 4),
            strategy_levels=levels,
            strategy_weights={n: round(w, 4) for n, w in weights.items()},
            failed_strategies=failed,
            weight_method=weight_method,
        )
