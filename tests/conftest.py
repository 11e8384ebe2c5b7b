"""
Test fixtures for HealthCast tests.

Provides:
- A fixed, timezone-aware "now" so alert lifetimes are reproducible
- The resource/operational reference gap
- Factories for historical series and trend data
"""

from datetime import datetime, timedelta, timezone

import pytest

from healthcast.schemas.gap import (
    AffectedArea,
    EstimatedImpact,
    Gap,
    GapCategory,
    GapType,
    ImpactLevel,
    ImpactTimeframe,
    RootCause,
)
from healthcast.schemas.indicator import (
    HistoricalData,
    HistoricalMetric,
    TimeRange,
    TimeSeriesValue,
)

FIXED_NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def reference_gap() -> Gap:
    """variance 0.15, confidence 0.8, one of everything, medium impact."""
    return Gap(
        id="gap_reference",
        project_id="proj-001",
        type=GapType.RESOURCE,
        category=GapCategory.OPERATIONAL,
        title="Staffing below plan",
        current_value=1.15,
        target_value=1.0,
        variance=0.15,
        confidence=0.8,
        root_causes=[RootCause(description="Hiring freeze", confidence=0.7, contribution_weight=0.8)],
        affected_areas=[AffectedArea(name="Backend team")],
        estimated_impact=EstimatedImpact(
            level=ImpactLevel.MEDIUM,
            affected_stakeholders=["project-manager"],
            timeframe=ImpactTimeframe.SHORT_TERM,
        ),
    )


@pytest.fixture
def make_metric():
    """Build a daily HistoricalMetric ending at FIXED_NOW."""
    def _make(name: str, values: list[float]) -> HistoricalMetric:
        start = FIXED_NOW - timedelta(days=len(values))
        return HistoricalMetric(
            name=name,
            values=[
                TimeSeriesValue(timestamp=start + timedelta(days=i), value=v)
                for i, v in enumerate(values)
            ],
        )
    return _make


@pytest.fixture
def make_history(make_metric):
    """Build HistoricalData from {metric name: values}."""
    def _make(series: dict[str, list[float]], **kwargs) -> HistoricalData:
        days = max((len(v) for v in series.values()), default=0)
        kwargs.setdefault("project_id", "proj-001")
        kwargs.setdefault(
            "time_range",
            TimeRange(start=FIXED_NOW - timedelta(days=days), end=FIXED_NOW),
        )
        return HistoricalData(
            metrics=[make_metric(name, values) for name, values in series.items()],
            **kwargs,
        )
    return _make
