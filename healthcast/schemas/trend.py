"""
Live Trend Data Schemas.

Current metric deltas, recent changes and velocity indicators consumed by
the early-warning generator.
"""

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from healthcast.schemas.common import UnitFloat
from healthcast.schemas.indicator import Duration, TrendDirection


class ChangeType(StrEnum):
    GRADUAL = "gradual"
    SUDDEN = "sudden"
    ACCELERATING = "accelerating"
    DECELERATING = "decelerating"


class CurrentMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    current_value: float = 0.0
    previous_value: float = 0.0
    change_rate: float = 0.0          # Relative change, e.g. -0.6 = 60% drop
    trend: TrendDirection = TrendDirection.STABLE
    unit: str = ""


class TrendChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str
    change_type: ChangeType
    magnitude: float = 0.0
    timeframe: Optional[Duration] = None
    significance: UnitFloat = 0.0


class VelocityIndicator(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    current_velocity: float
    average_velocity: float
    trend: TrendDirection = TrendDirection.STABLE
    predicted_velocity: float = 0.0


class TrendData(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str = ""
    current_metrics: list[CurrentMetric] = Field(default_factory=list)
    recent_changes: list[TrendChange] = Field(default_factory=list)
    velocity_indicators: list[VelocityIndicator] = Field(default_factory=list)
