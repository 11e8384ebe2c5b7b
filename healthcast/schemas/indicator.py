"""
Indicator & Historical Data Schemas.

Risk indicators, durations, trend directions and the historical time series
handed to the risk engine and the trend analyzer.
"""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from healthcast.schemas.common import UnitFloat
from healthcast.schemas.gap import ImpactLevel


class TrendDirection(StrEnum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    VOLATILE = "volatile"


class TimeUnit(StrEnum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


_UNIT_HOURS: dict[TimeUnit, float] = {
    TimeUnit.MINUTES: 1 / 60,
    TimeUnit.HOURS: 1.0,
    TimeUnit.DAYS: 24.0,
    TimeUnit.WEEKS: 7 * 24.0,
    TimeUnit.MONTHS: 30 * 24.0,
}


class Duration(BaseModel):
    """A value + unit pair (months are 30 days)."""
    model_config = ConfigDict(frozen=True)

    value: float
    unit: TimeUnit = TimeUnit.HOURS

    @property
    def hours(self) -> float:
        return self.value * _UNIT_HOURS[self.unit]

    def to_timedelta(self) -> timedelta:
        return timedelta(hours=self.hours)

    @classmethod
    def of_hours(cls, hours: float) -> "Duration":
        return cls(value=hours, unit=TimeUnit.HOURS)

    @classmethod
    def of_days(cls, days: float) -> "Duration":
        return cls(value=days, unit=TimeUnit.DAYS)


class RiskIndicator(BaseModel):
    """
    A named, weighted metric with a threshold and trend.

    Weights across an input set need not sum to 1; the aggregation step
    normalizes by the weight sum.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    current_value: float
    threshold: float
    trend: TrendDirection = TrendDirection.STABLE
    weight: UnitFloat = 1.0


# ── Historical Data ────────────────────────────────────────────────────


class TimeSeriesValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    value: float


class HistoricalMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    values: list[TimeSeriesValue] = Field(default_factory=list)
    unit: str = ""

    @property
    def series(self) -> list[float]:
        """Values in sample order (equally spaced samples are assumed)."""
        return [v.value for v in self.values]


class HistoricalEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    type: str
    description: str = ""
    impact: ImpactLevel = ImpactLevel.MEDIUM


class PatternType(StrEnum):
    SEASONAL = "seasonal"
    CYCLICAL = "cyclical"
    TRENDING = "trending"
    ANOMALOUS = "anomalous"
    CORRELATION = "correlation"


class HistoricalPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern_type: PatternType
    frequency: float = 0.0
    confidence: UnitFloat = 0.0
    description: str = ""


class TimeRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @property
    def days(self) -> float:
        return max(0.0, (self.end - self.start).total_seconds() / 86400.0)


class HistoricalData(BaseModel):
    """Time range + per-metric series + discrete events + detected patterns."""
    model_config = ConfigDict(frozen=True)

    project_id: str = ""
    time_range: Optional[TimeRange] = None
    metrics: list[HistoricalMetric] = Field(default_factory=list)
    events: list[HistoricalEvent] = Field(default_factory=list)
    patterns: list[HistoricalPattern] = Field(default_factory=list)

    def metric(self, name: str) -> Optional[HistoricalMetric]:
        """First metric with the given name, or None."""
        for m in self.metrics:
            if m.name == name:
                return m
        return None
