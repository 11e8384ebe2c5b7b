"""
Risk Probability Engine Tests.

Covers:
- Per-indicator risk and the velocity_trend regression path
- Weighted aggregation, confidence and data quality
- Recommendations by risk band
- Compound and correlation-adjusted compound risk
- Dynamic thresholds with static fallback
- Time decay, velocity and acceleration
"""

import math
from datetime import timedelta

import pytest

from healthcast.engine.risk import RiskProbabilityEngine
from healthcast.schemas.indicator import (
    HistoricalData,
    RiskIndicator,
    TimeRange,
    TrendDirection,
)


def _make_indicator(
    name: str = "velocity_trend",
    current: float = 15.0,
    threshold: float = 20.0,
    trend: TrendDirection = TrendDirection.DECLINING,
    weight: float = 0.3,
) -> RiskIndicator:
    return RiskIndicator(
        name=name,
        current_value=current,
        threshold=threshold,
        trend=trend,
        weight=weight,
    )


class TestIndicatorRisk:
    def setup_method(self):
        self.engine = RiskProbabilityEngine()

    def test_velocity_trend_regression(self):
        indicator = _make_indicator()
        assert self.engine.deviation(indicator) == pytest.approx(0.25)
        # 0.25^1.5 × 1.3 declining × 0.3 weight
        assert self.engine.indicator_risk(indicator) == pytest.approx(0.04875)

    def test_single_indicator_aggregate_equals_its_risk(self):
        assessment = self.engine.assess([_make_indicator()])
        assert assessment.overall_risk == pytest.approx(0.04875)
        assert assessment.risk_factors[0].risk == pytest.approx(0.04875)

    def test_zero_threshold_is_zero_risk(self):
        assert self.engine.indicator_risk(_make_indicator(threshold=0.0)) == 0.0

    def test_deviation_saturates(self):
        indicator = _make_indicator(current=100.0, trend=TrendDirection.STABLE, weight=1.0)
        assert self.engine.indicator_risk(indicator) == 1.0

    def test_trend_multiplier_ordering(self):
        risks = {
            trend: self.engine.indicator_risk(_make_indicator(trend=trend))
            for trend in TrendDirection
        }
        assert (
            risks[TrendDirection.DECLINING]
            > risks[TrendDirection.VOLATILE]
            > risks[TrendDirection.STABLE]
            > risks[TrendDirection.IMPROVING]
        )

    def test_risk_clamped_after_multipliers(self):
        indicator = _make_indicator(current=100.0, trend=TrendDirection.DECLINING, weight=1.0)
        assert self.engine.indicator_risk(indicator) == 1.0

    def test_negative_threshold_uses_magnitude(self):
        indicator = _make_indicator(current=-15.0, threshold=-20.0)
        assert self.engine.indicator_risk(indicator) == pytest.approx(0.04875)

    def test_huge_deviation_saturates_without_overflow(self):
        indicator = _make_indicator(current=1e250, threshold=1.0, trend=TrendDirection.STABLE, weight=0.5)
        assert self.engine.indicator_risk(indicator) == pytest.approx(0.5)
        assessment = self.engine.assess([indicator])
        assert assessment.overall_risk == pytest.approx(0.5)

    def test_non_finite_current_value_is_zero_risk(self):
        for value in (float("nan"), float("inf")):
            assert self.engine.indicator_risk(_make_indicator(current=value)) == 0.0


class TestAssessment:
    def setup_method(self):
        self.engine = RiskProbabilityEngine()

    def test_empty_indicators(self):
        assessment = self.engine.assess([])
        assert assessment.overall_risk == 0.0
        assert assessment.confidence_level == 0.0
        assert assessment.risk_factors == []

    def test_factors_sorted_by_risk(self):
        assessment = self.engine.assess([
            _make_indicator("a", current=19.0),
            _make_indicator("b", current=5.0),
            _make_indicator("c", current=12.0),
        ])
        risks = [f.risk for f in assessment.risk_factors]
        assert risks == sorted(risks, reverse=True)
        assert assessment.risk_factors[0].factor == "b"

    def test_aggregate_normalized_by_weight_sum(self):
        a = _make_indicator("a", current=10.0, trend=TrendDirection.STABLE, weight=1.0)
        b = _make_indicator("b", current=20.0, trend=TrendDirection.STABLE, weight=0.5)
        assessment = self.engine.assess([a, b])
        risk_a = self.engine.indicator_risk(a)
        assert assessment.overall_risk == pytest.approx(risk_a * 1.0 / 1.5)

    def test_zero_weights_aggregate_to_zero(self):
        assessment = self.engine.assess([_make_indicator(weight=0.0)])
        assert assessment.overall_risk == 0.0

    def test_confidence_grows_with_indicator_count(self):
        one = self.engine.confidence([_make_indicator(weight=1.0)])
        five = self.engine.confidence([_make_indicator(f"i{i}", weight=1.0) for i in range(5)])
        assert one == pytest.approx(0.4)
        assert five == pytest.approx(0.8)

    def test_confidence_capped(self):
        many = [_make_indicator(f"i{i}", weight=1.0) for i in range(20)]
        assert self.engine.confidence(many) == pytest.approx(0.9)

    def test_confidence_discounted_by_weight(self):
        assert self.engine.confidence([_make_indicator(weight=0.0)]) == pytest.approx(0.2)

    def test_confidence_discounted_by_data_quality(self, make_history):
        history = make_history({"velocity_trend": [1.0, 2.0, 3.0]})
        indicator = _make_indicator(weight=1.0)
        with_history = self.engine.confidence([indicator], history)
        without = self.engine.confidence([indicator])
        assert with_history < without


class TestDataQuality:
    def setup_method(self):
        self.engine = RiskProbabilityEngine()

    def test_no_metrics_is_minimum(self):
        assert self.engine.data_quality(HistoricalData()) == pytest.approx(0.3)

    def test_dense_history_is_full_quality(self, make_history):
        history = make_history({"m": [1.0] * 40})
        assert self.engine.data_quality(history) == pytest.approx(1.0)

    def test_thin_history(self, make_history):
        history = make_history({"m": [1.0] * 20})
        assert self.engine.data_quality(history) == pytest.approx(0.85)

    def test_sparse_coverage_of_time_range(self, make_history):
        base = make_history({"m": [1.0] * 40})
        stretched = base.model_copy(update={
            "time_range": TimeRange(
                start=base.time_range.end - timedelta(days=100),
                end=base.time_range.end,
            ),
        })
        # 40 samples over 100 days: below half the expected daily samples
        assert self.engine.data_quality(stretched) == pytest.approx(0.6)

    def test_missing_time_range_skips_coverage(self, make_history):
        history = make_history({"m": [1.0] * 40}, time_range=None)
        assert self.engine.data_quality(history) == pytest.approx(1.0)

    def test_penalties_compound(self, make_history):
        base = make_history({"m": [1.0] * 3})
        stretched = base.model_copy(update={
            "time_range": TimeRange(start=base.time_range.end - timedelta(days=365), end=base.time_range.end),
        })
        # 0.7 × 0.6 = 0.42 stays above the floor
        assert self.engine.data_quality(stretched) == pytest.approx(0.42)


class TestRecommendations:
    def setup_method(self):
        self.engine = RiskProbabilityEngine()

    @pytest.mark.parametrize("overall,prefix,count", [
        (0.9, "CRITICAL", 3),
        (0.7, "HIGH", 3),
        (0.5, "MEDIUM", 3),
        (0.1, "LOW", 2),
    ])
    def test_band_recommendations(self, overall, prefix, count):
        recs = self.engine.recommendations([], overall)
        assert recs[0].startswith(prefix)
        assert len(recs) == count

    def test_high_risk_declining_factor(self):
        indicator = _make_indicator("defects", current=100.0, weight=1.0)
        assessment = self.engine.assess([indicator])
        assert "Address high-risk factor: defects" in assessment.recommendations
        assert "defects is declining - investigate root causes" in assessment.recommendations

    def test_volatile_factor(self):
        indicator = _make_indicator("scope", current=100.0, trend=TrendDirection.VOLATILE, weight=1.0)
        assessment = self.engine.assess([indicator])
        assert "scope is volatile - stabilize the metric" in assessment.recommendations

    def test_moderate_factor_not_called_out(self):
        assessment = self.engine.assess([_make_indicator()])
        assert not any(r.startswith("Address high-risk factor") for r in assessment.recommendations)


class TestCompoundRisk:
    def setup_method(self):
        self.engine = RiskProbabilityEngine()

    def test_independent_combination(self):
        assert self.engine.compound_risk([0.5, 0.5]) == pytest.approx(0.75)

    def test_empty_is_zero(self):
        assert self.engine.compound_risk([]) == 0.0

    def test_adding_risk_never_decreases(self):
        base = self.engine.compound_risk([0.2, 0.3])
        assert self.engine.compound_risk([0.2, 0.3, 0.05]) >= base

    def test_certain_risk_dominates(self):
        assert self.engine.compound_risk([0.1, 1.0]) == 1.0

    def test_correlated_between_max_and_independent(self, make_history):
        a = _make_indicator("a", current=10.0, weight=1.0)
        b = _make_indicator("b", current=12.0, weight=1.0)
        history = make_history({"a": [1, 2, 3, 4, 5], "b": [2, 4, 6, 8, 10]})
        risks = [self.engine.indicator_risk(a), self.engine.indicator_risk(b)]

        independent = self.engine.compound_risk(risks)
        correlated = self.engine.correlated_compound_risk([a, b], history)
        # Perfectly correlated series → the maximum single risk
        assert correlated == pytest.approx(max(risks))
        assert correlated <= independent

    def test_uncorrelated_series_match_independent(self, make_history):
        a = _make_indicator("a", current=10.0, weight=1.0)
        b = _make_indicator("b", current=12.0, weight=1.0)
        history = make_history({"a": [1, 2, 3, 4, 5], "b": [5, 4, 3, 2, 1]})
        risks = [self.engine.indicator_risk(a), self.engine.indicator_risk(b)]
        assert self.engine.correlated_compound_risk([a, b], history) == pytest.approx(
            self.engine.compound_risk(risks),
        )

    def test_correlated_single_and_empty(self):
        assert self.engine.correlated_compound_risk([]) == 0.0
        indicator = _make_indicator()
        assert self.engine.correlated_compound_risk([indicator]) == pytest.approx(0.04875)


class TestDynamicThresholds:
    def setup_method(self):
        self.engine = RiskProbabilityEngine()

    def test_constant_series_collapses_bands(self, make_history):
        history = make_history({"velocity_trend": [10.0] * 12})
        thresholds = self.engine.dynamic_thresholds(_make_indicator(), history)
        assert thresholds.source == "historical"
        assert thresholds.warning == thresholds.critical == thresholds.emergency == pytest.approx(10.0)
        assert thresholds.std == 0.0

    def test_mean_plus_sigma_bands(self, make_history):
        history = make_history({"velocity_trend": [8.0, 12.0] * 5})
        thresholds = self.engine.dynamic_thresholds(_make_indicator(), history)
        assert thresholds.mean == pytest.approx(10.0)
        assert thresholds.warning == pytest.approx(12.0)
        assert thresholds.critical == pytest.approx(14.0)
        assert thresholds.emergency == pytest.approx(16.0)
        assert thresholds.n_points == 10

    def test_short_history_uses_static_multiples(self, make_history):
        history = make_history({"velocity_trend": [10.0] * 9})
        thresholds = self.engine.dynamic_thresholds(_make_indicator(), history)
        assert thresholds.source == "static"
        assert thresholds.warning == pytest.approx(16.0)
        assert thresholds.critical == pytest.approx(20.0)
        assert thresholds.emergency == pytest.approx(24.0)

    def test_no_history_uses_static_multiples(self):
        assert self.engine.dynamic_thresholds(_make_indicator()).source == "static"

    def test_configurable_minimum(self, make_history):
        engine = RiskProbabilityEngine(min_points_for_dynamic=3)
        history = make_history({"velocity_trend": [1.0, 2.0, 3.0]})
        assert engine.dynamic_thresholds(_make_indicator(), history).source == "historical"

    def test_overflowing_history_uses_static_multiples(self, make_history):
        history = make_history({"velocity_trend": [1e200 * (i + 1) for i in range(12)]})
        thresholds = self.engine.dynamic_thresholds(_make_indicator(), history)
        assert thresholds.source == "static"
        assert thresholds.critical == pytest.approx(20.0)


class TestTimeDynamics:
    def setup_method(self):
        self.engine = RiskProbabilityEngine()

    def test_decay(self):
        assert self.engine.time_decay_risk(0.8, 10) == pytest.approx(0.8 * math.exp(-1.0))

    def test_no_time_no_decay(self):
        assert self.engine.time_decay_risk(0.6, 0) == pytest.approx(0.6)

    def test_velocity(self):
        assert self.engine.risk_velocity(0.6, 0.4, 2.0) == pytest.approx(0.1)

    def test_acceleration(self):
        assert self.engine.risk_acceleration(0.1, 0.3, 4.0) == pytest.approx(-0.05)

    def test_non_positive_interval(self):
        assert self.engine.risk_velocity(0.6, 0.4, 0) == 0.0
        assert self.engine.risk_acceleration(0.6, 0.4, -1) == 0.0
