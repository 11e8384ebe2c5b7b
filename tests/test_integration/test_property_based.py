"""
Property-Based Tests for the Scoring Algorithms.

Uses Hypothesis to test invariants that must hold for ALL inputs:
- Severity: ensemble output is a level, deterministic without history
- Risk: overall risk and confidence bounded
- Compound risk: bounded, monotonic in each component
- Schemas: unit fields clamped, variance always finite
- Monte Carlo: zero jitter collapses to the deterministic result
- Early warnings: prevention window inside time to occurrence, no duplicates
"""

import math
from datetime import datetime, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from healthcast.alerting.early_warning import EarlyWarningGenerator
from healthcast.engine.monte_carlo import MonteCarloSimulator
from healthcast.engine.risk import RiskProbabilityEngine
from healthcast.engine.severity import SeverityScorer
from healthcast.schemas.common import clamp_unit
from healthcast.schemas.gap import (
    AffectedArea,
    EstimatedImpact,
    Gap,
    GapCategory,
    GapType,
    ImpactLevel,
    ImpactTimeframe,
    RootCause,
    SeverityLevel,
    compute_variance,
)
from healthcast.schemas.indicator import RiskIndicator, TrendDirection
from healthcast.schemas.trend import (
    ChangeType,
    CurrentMetric,
    TrendChange,
    TrendData,
    VelocityIndicator,
)

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)

finite = st.floats(min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False)
unit = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
threshold = st.one_of(
    st.floats(min_value=0.01, max_value=1e3),
    st.floats(min_value=-1e3, max_value=-0.01),
    st.just(0.0),
)


@st.composite
def gaps(draw) -> Gap:
    return Gap(
        type=draw(st.sampled_from(list(GapType))),
        category=draw(st.sampled_from(list(GapCategory))),
        variance=draw(st.floats(allow_nan=True, allow_infinity=True)),
        confidence=draw(unit),
        root_causes=[RootCause() for _ in range(draw(st.integers(0, 6)))],
        affected_areas=[AffectedArea(name=f"area_{i}") for i in range(draw(st.integers(0, 6)))],
        estimated_impact=EstimatedImpact(
            level=draw(st.sampled_from(list(ImpactLevel))),
            affected_stakeholders=["pm"] * draw(st.integers(0, 15)),
            timeframe=draw(st.none() | st.sampled_from(list(ImpactTimeframe))),
        ),
    )


@st.composite
def indicators(draw) -> RiskIndicator:
    return RiskIndicator(
        name=draw(st.sampled_from(["velocity", "defects", "budget", "scope"])),
        current_value=draw(finite),
        threshold=draw(threshold),
        trend=draw(st.sampled_from(list(TrendDirection))),
        weight=draw(st.floats(min_value=-1.0, max_value=2.0, allow_nan=False)),
    )


# ── Severity Properties ───────────────────────────────────────────────


class TestSeverityProperties:
    @given(gap=gaps())
    @settings(max_examples=60)
    def test_level_always_valid(self, gap):
        """Every gap maps to one of the four levels."""
        assert SeverityScorer().score(gap) in set(SeverityLevel)

    @given(gap=gaps())
    @settings(max_examples=40)
    def test_deterministic_without_history(self, gap):
        """Without history no randomness enters the ensemble."""
        scorer = SeverityScorer()
        assert scorer.score(gap) == scorer.score(gap)

    @given(gap=gaps())
    @settings(max_examples=40)
    def test_ensemble_score_in_level_range(self, gap):
        breakdown = SeverityScorer().score_breakdown(gap)
        assert 1.0 <= breakdown.ensemble_score <= 4.0
        assert math.isclose(sum(breakdown.strategy_weights.values()), 1.0)


# ── Risk Properties ───────────────────────────────────────────────────


class TestRiskProperties:
    @given(items=st.lists(indicators(), min_size=0, max_size=8))
    @settings(max_examples=60)
    def test_assessment_bounded(self, items):
        """Overall risk and confidence always in [0, 1]."""
        result = RiskProbabilityEngine().assess(items)
        assert 0.0 <= result.overall_risk <= 1.0
        assert 0.0 <= result.confidence_level <= 1.0
        assert all(0.0 <= f.risk <= 1.0 for f in result.risk_factors)

    @given(items=st.lists(indicators(), min_size=1, max_size=8))
    @settings(max_examples=40)
    def test_factors_sorted_by_risk(self, items):
        risks = [f.risk for f in RiskProbabilityEngine().assess(items).risk_factors]
        assert risks == sorted(risks, reverse=True)

    @given(indicator=indicators())
    @settings(max_examples=50)
    def test_zero_threshold_zero_risk(self, indicator):
        zeroed = indicator.model_copy(update={"threshold": 0.0})
        assert RiskProbabilityEngine().indicator_risk(zeroed) == 0.0


# ── Compound Risk Properties ──────────────────────────────────────────


class TestCompoundProperties:
    @given(risks=st.lists(unit, min_size=0, max_size=10))
    @settings(max_examples=60)
    def test_bounded_and_at_least_max(self, risks):
        compound = RiskProbabilityEngine.compound_risk(risks)
        assert 0.0 <= compound <= 1.0
        if risks:
            assert compound >= max(risks) - 1e-12

    @given(risks=st.lists(unit, min_size=0, max_size=10), extra=unit)
    @settings(max_examples=60)
    def test_adding_a_risk_never_lowers_compound(self, risks, extra):
        before = RiskProbabilityEngine.compound_risk(risks)
        after = RiskProbabilityEngine.compound_risk(risks + [extra])
        assert after >= before - 1e-12

    @given(risks=st.lists(unit, min_size=1, max_size=10), index=st.integers(0, 9), bump=unit)
    @settings(max_examples=60)
    def test_monotonic_in_each_component(self, risks, index, bump):
        index %= len(risks)
        raised = list(risks)
        raised[index] = max(risks[index], bump)
        assert (
            RiskProbabilityEngine.compound_risk(raised)
            >= RiskProbabilityEngine.compound_risk(risks) - 1e-12
        )


# ── Schema Properties ─────────────────────────────────────────────────


class TestSchemaProperties:
    @given(value=st.floats(allow_nan=True, allow_infinity=True))
    @settings(max_examples=100)
    def test_clamp_unit_bounded(self, value):
        assert 0.0 <= clamp_unit(value) <= 1.0

    @given(value=st.floats(allow_nan=True, allow_infinity=True))
    @settings(max_examples=50)
    def test_gap_variance_always_finite(self, value):
        gap = Gap(type=GapType.PROCESS, category=GapCategory.TACTICAL, variance=value)
        assert math.isfinite(gap.variance)

    @given(current=finite, target=finite)
    @settings(max_examples=50)
    def test_compute_variance_finite(self, current, target):
        assert math.isfinite(compute_variance(current, target))


# ── Monte Carlo Properties ────────────────────────────────────────────


class TestMonteCarloProperties:
    @given(items=st.lists(indicators(), min_size=1, max_size=6), seed=st.integers(0, 2**16))
    @settings(max_examples=30, deadline=None)
    def test_zero_jitter_is_deterministic_compound(self, items, seed):
        engine = RiskProbabilityEngine()
        expected = engine.compound_risk([engine.indicator_risk(i) for i in items])
        result = MonteCarloSimulator(trials=20, jitter=0.0, seed=seed).run(items)
        assert math.isclose(result.mean_risk, expected, rel_tol=1e-9, abs_tol=1e-12)
        assert math.isclose(result.ci_lower, result.ci_upper, rel_tol=1e-9, abs_tol=1e-12)

    @given(items=st.lists(indicators(), min_size=0, max_size=6), jitter=st.floats(0.0, 1.0))
    @settings(max_examples=30, deadline=None)
    def test_bounds_ordered(self, items, jitter):
        result = MonteCarloSimulator(trials=50, jitter=jitter, seed=0).run(items)
        assert 0.0 <= result.ci_lower <= result.ci_upper <= 1.0
        assert 0.0 <= result.mean_risk <= 1.0


# ── Early Warning Properties ──────────────────────────────────────────


@st.composite
def trend_data(draw) -> TrendData:
    names = st.sampled_from(["velocity", "quality", "budget"])
    return TrendData(
        project_id="proj-prop",
        current_metrics=draw(st.lists(st.builds(
            CurrentMetric,
            name=names,
            change_rate=st.floats(-2.0, 2.0),
            trend=st.sampled_from(list(TrendDirection)),
        ), max_size=5)),
        recent_changes=draw(st.lists(st.builds(
            TrendChange,
            metric=names,
            change_type=st.sampled_from(list(ChangeType)),
            magnitude=st.floats(0.0, 2.0),
            significance=unit,
        ), max_size=5)),
        velocity_indicators=draw(st.lists(st.builds(
            VelocityIndicator,
            name=names,
            current_velocity=st.floats(0.0, 50.0),
            average_velocity=st.floats(-10.0, 50.0),
        ), max_size=5)),
    )


class TestEarlyWarningProperties:
    @given(data=trend_data(), risk_items=st.lists(indicators(), max_size=4))
    @settings(max_examples=60, deadline=None)
    def test_alert_invariants(self, data, risk_items):
        alerts = EarlyWarningGenerator().generate(data, risk_indicators=risk_items, now=NOW)

        keys = [a.dedup_key for a in alerts]
        assert len(keys) == len(set(keys))

        ranks = [a.severity.rank for a in alerts]
        assert ranks == sorted(ranks, reverse=True)

        for alert in alerts:
            assert alert.prevention_window.hours < alert.estimated_time_to_occurrence.hours
            assert 0.0 <= alert.probability <= 1.0
            assert alert.expires_at > alert.created_at == NOW
