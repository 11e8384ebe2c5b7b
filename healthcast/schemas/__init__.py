"""
HealthCast value objects.

- gap: gaps, root causes, impact, severity levels, variance
- indicator: risk indicators, durations, historical time series
- trend: live metric deltas, sudden changes, velocity indicators
- assessment: risk assessments, trend analysis results, issue predictions
- alert: alerts and preventive actions
"""

from healthcast.schemas.alert import (
    Alert,
    AlertSeverity,
    AlertState,
    AlertType,
    PreventiveAction,
    Priority,
)
from healthcast.schemas.assessment import (
    IdentifiedTrend,
    Prediction,
    PredictionBounds,
    RiskAssessment,
    RiskFactor,
    TrendAnalysisResult,
    TrendPrediction,
    TrendRecommendation,
)
from healthcast.schemas.gap import (
    AffectedArea,
    CriticalityLevel,
    EstimatedImpact,
    Gap,
    GapCategory,
    GapType,
    ImpactLevel,
    ImpactTimeframe,
    RootCause,
    RootCauseCategory,
    SeverityLevel,
    compute_variance,
)
from healthcast.schemas.indicator import (
    Duration,
    HistoricalData,
    HistoricalEvent,
    HistoricalMetric,
    HistoricalPattern,
    PatternType,
    RiskIndicator,
    TimeRange,
    TimeSeriesValue,
    TimeUnit,
    TrendDirection,
)
from healthcast.schemas.trend import (
    ChangeType,
    CurrentMetric,
    TrendChange,
    TrendData,
    VelocityIndicator,
)

__all__ = [
    "AffectedArea",
    "Alert",
    "AlertSeverity",
    "AlertState",
    "AlertType",
    "ChangeType",
    "CriticalityLevel",
    "CurrentMetric",
    "Duration",
    "EstimatedImpact",
    "Gap",
    "GapCategory",
    "GapType",
    "HistoricalData",
    "HistoricalEvent",
    "HistoricalMetric",
    "HistoricalPattern",
    "IdentifiedTrend",
    "ImpactLevel",
    "ImpactTimeframe",
    "PatternType",
    "Prediction",
    "PredictionBounds",
    "PreventiveAction",
    "Priority",
    "RiskAssessment",
    "RiskFactor",
    "RiskIndicator",
    "RootCause",
    "RootCauseCategory",
    "SeverityLevel",
    "TimeRange",
    "TimeSeriesValue",
    "TimeUnit",
    "TrendAnalysisResult",
    "TrendChange",
    "TrendData",
    "TrendDirection",
    "TrendPrediction",
    "TrendRecommendation",
    "VelocityIndicator",
    "compute_variance",
]
