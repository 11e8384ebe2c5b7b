"""
Assessment Result Schemas.

Outputs of the risk probability engine, the trend analyzer and the issue
predictor. All bounded fields are clamped into [0, 1].
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from healthcast.schemas.alert import PreventiveAction, Priority
from healthcast.schemas.common import UnitFloat, UtcDatetime
from healthcast.schemas.gap import ImpactLevel
from healthcast.schemas.indicator import Duration, TrendDirection


# ── Risk ───────────────────────────────────────────────────────────────


class RiskFactor(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor: str
    weight: UnitFloat
    current_value: float
    threshold: float
    trend: TrendDirection
    risk: UnitFloat = 0.0       # Per-indicator risk


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_risk: UnitFloat
    risk_factors: list[RiskFactor] = Field(default_factory=list)   # Highest risk first
    recommendations: list[str] = Field(default_factory=list)
    confidence_level: UnitFloat = 0.0


# ── Trends ─────────────────────────────────────────────────────────────


class IdentifiedTrend(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str
    direction: TrendDirection
    slope: float
    strength: UnitFloat
    duration: Duration
    significance: UnitFloat
    description: str = ""


class PredictionBounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    lower: float
    upper: float


class TrendPrediction(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: str
    predicted_value: float
    time_horizon: Duration
    confidence: UnitFloat
    bounds: PredictionBounds


class TrendRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    priority: Priority
    action: str
    rationale: str
    expected_impact: str
    timeframe: Duration


class TrendAnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str = ""
    analysis_timestamp: UtcDatetime
    trends: list[IdentifiedTrend] = Field(default_factory=list)
    predictions: list[TrendPrediction] = Field(default_factory=list)
    recommendations: list[TrendRecommendation] = Field(default_factory=list)
    confidence_level: UnitFloat = 0.5

    def trend_for(self, metric: str) -> Optional[IdentifiedTrend]:
        return next((t for t in self.trends if t.metric == metric), None)

    def prediction_for(self, metric: str) -> Optional[TrendPrediction]:
        return next((p for p in self.predictions if p.metric == metric), None)


# ── Issue Predictions ──────────────────────────────────────────────────


class Prediction(BaseModel):
    """A predicted future issue (not yet an alert)."""
    model_config = ConfigDict(frozen=True)

    issue_type: str
    probability: UnitFloat
    estimated_time_to_occurrence: Duration
    potential_impact: ImpactLevel
    prevention_window: Duration
    suggested_actions: list[PreventiveAction] = Field(default_factory=list)
