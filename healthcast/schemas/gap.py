"""
Gap Schemas.

A gap is a measured discrepancy between a project's current value and its
target for some goal. Severity is never stored on the gap; it is always
recomputed by the severity scorer from the fields below.
"""

import math
import uuid
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from healthcast.schemas.common import UnitFloat

# Variance reported when the target is zero and the current value is not.
ZERO_TARGET_VARIANCE: float = 1.0


class GapType(StrEnum):
    RESOURCE = "resource"
    PROCESS = "process"
    COMMUNICATION = "communication"
    TECHNOLOGY = "technology"
    CULTURE = "culture"
    TIMELINE = "timeline"
    QUALITY = "quality"
    BUDGET = "budget"
    SKILL = "skill"
    GOVERNANCE = "governance"


class GapCategory(StrEnum):
    OPERATIONAL = "operational"
    STRATEGIC = "strategic"
    TACTICAL = "tactical"
    TECHNICAL = "technical"
    ORGANIZATIONAL = "organizational"


class ImpactLevel(StrEnum):
    NEGLIGIBLE = "negligible"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"


class ImpactTimeframe(StrEnum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short-term"
    MEDIUM_TERM = "medium-term"
    LONG_TERM = "long-term"


class CriticalityLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RootCauseCategory(StrEnum):
    PEOPLE = "people"
    PROCESS = "process"
    TECHNOLOGY = "technology"
    ENVIRONMENT = "environment"
    MANAGEMENT = "management"
    EXTERNAL = "external"


class SeverityLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def score(self) -> int:
        """Ordinal scale used by the ensemble: low=1 … critical=4."""
        return _SEVERITY_SCORES[self]

    @classmethod
    def from_score(cls, score: float) -> "SeverityLevel":
        """Map a (possibly fractional) ordinal score back to a level."""
        if score >= 3.5:
            return cls.CRITICAL
        if score >= 2.5:
            return cls.HIGH
        if score >= 1.5:
            return cls.MEDIUM
        return cls.LOW


_SEVERITY_SCORES: dict[SeverityLevel, int] = {
    SeverityLevel.LOW: 1,
    SeverityLevel.MEDIUM: 2,
    SeverityLevel.HIGH: 3,
    SeverityLevel.CRITICAL: 4,
}


def compute_variance(current: float, target: float) -> float:
    """
    Relative variance of current against target.

    A zero target has no meaningful ratio: the result is 0.0 when the current
    value is also zero and ZERO_TARGET_VARIANCE otherwise.
    """
    if target == 0:
        return 0.0 if current == 0 else ZERO_TARGET_VARIANCE
    return (current - target) / target


class RootCause(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = ""
    category: RootCauseCategory = RootCauseCategory.PROCESS
    confidence: UnitFloat = 0.5
    contribution_weight: UnitFloat = 0.5
    evidence: list[str] = Field(default_factory=list)


class AffectedArea(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    criticality: CriticalityLevel = CriticalityLevel.MEDIUM


class EstimatedImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: ImpactLevel = ImpactLevel.MEDIUM
    affected_stakeholders: list[str] = Field(default_factory=list)
    timeframe: Optional[ImpactTimeframe] = None   # None = unknown bucket
    description: str = ""


class Gap(BaseModel):
    """
    A detected discrepancy between a target and a current value.

    Created by discrepancy detection, consumed by the severity scorer,
    immutable afterwards.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"gap_{uuid.uuid4().hex[:12]}")
    project_id: str = ""
    type: GapType
    category: GapCategory
    title: str = ""
    description: str = ""
    current_value: float = 0.0
    target_value: float = 0.0
    variance: float = 0.0
    confidence: UnitFloat = 0.5
    root_causes: list[RootCause] = Field(default_factory=list)
    affected_areas: list[AffectedArea] = Field(default_factory=list)
    estimated_impact: EstimatedImpact = Field(default_factory=EstimatedImpact)

    # Outcome severity recorded by the caller for historical gaps only.
    # Used for feature-weight calibration, never as ground truth for scoring.
    observed_severity: Optional[SeverityLevel] = None

    @field_validator("variance", mode="before")
    @classmethod
    def _finite_variance(cls, value: float) -> float:
        value = float(value)
        if math.isnan(value):
            return 0.0
        if math.isinf(value):
            return math.copysign(ZERO_TARGET_VARIANCE, value)
        return value

    @classmethod
    def from_values(cls, current_value: float, target_value: float, **kwargs) -> "Gap":
        """Build a gap, deriving variance from the two values."""
        return cls(
            current_value=current_value,
            target_value=target_value,
            variance=compute_variance(current_value, target_value),
            **kwargs,
        )
