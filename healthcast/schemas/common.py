"""
Shared field types for the schema package.

Every probability, confidence, weight, strength and significance in the
engine lives in [0, 1]. Out-of-range inputs are clamped on the way in.
"""

import math
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BeforeValidator


def clamp_unit(value: float) -> float:
    """Clamp a number into [0, 1]. NaN collapses to 0."""
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


UnitFloat = Annotated[float, BeforeValidator(clamp_unit)]


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
