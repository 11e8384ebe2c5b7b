"""
Indicator Correlation.

Pairwise correlation between risk indicators, used to temper compound risk
when indicators move together.

With historical series for both indicators the Pearson coefficient is used
(samples paired by position, truncated to the shorter series). Without
series, the trend directions stand in as a similarity proxy.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from healthcast.schemas.indicator import HistoricalData, RiskIndicator, TrendDirection

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

MIN_PAIRED_SAMPLES: int = 2

# Trend directions placed on a line for the similarity proxy
TREND_POSITION: dict[TrendDirection, float] = {
    TrendDirection.IMPROVING: 1.0,
    TrendDirection.STABLE: 0.0,
    TrendDirection.VOLATILE: 0.0,
    TrendDirection.DECLINING: -1.0,
}


@dataclass(frozen=True)
class IndicatorCorrelation:
    """Correlation between two named indicators."""
    indicator_a: str
    indicator_b: str
    correlation: float
    method: str             # "pearson" | "trend_similarity"
    n_pairs: int = 0


def pearson(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Pearson correlation of two series paired by position.

    Returns 0.0 with fewer than two pairs, when either side is constant, or
    when the sums overflow.
    """
    n = min(len(a), len(b))
    if n < MIN_PAIRED_SAMPLES:
        return 0.0

    xs = a[:n]
    ys = b[:n]
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n

    cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    var_x = sum((x - mean_x) * (x - mean_x) for x in xs)
    var_y = sum((y - mean_y) * (y - mean_y) for y in ys)
    if var_x == 0 or var_y == 0:
        return 0.0

    r = cov / math.sqrt(var_x * var_y)
    if not math.isfinite(r):
        return 0.0
    return max(-1.0, min(1.0, r))


def trend_similarity(a: TrendDirection, b: TrendDirection) -> float:
    """1.0 for identical trends, otherwise 1 − |Δposition|/2 floored at 0."""
    if a == b:
        return 1.0
    distance = abs(TREND_POSITION.get(a, 0.0) - TREND_POSITION.get(b, 0.0))
    return max(0.0, 1.0 - distance / 2)


def indicator_correlation(
    a: RiskIndicator,
    b: RiskIndicator,
    historical: Optional[HistoricalData] = None,
) -> IndicatorCorrelation:
    if historical is not None:
        metric_a = historical.metric(a.name)
        metric_b = historical.metric(b.name)
        if metric_a is not None and metric_b is not None:
            series_a = metric_a.series
            series_b = metric_b.series
            return IndicatorCorrelation(
                indicator_a=a.name,
                indicator_b=b.name,
                correlation=pearson(series_a, series_b),
                method="pearson",
                n_pairs=min(len(series_a), len(series_b)),
            )

    return IndicatorCorrelation(
        indicator_a=a.name,
        indicator_b=b.name,
        correlation=trend_similarity(a.trend, b.trend),
        method="trend_similarity",
    )


def pairwise_correlations(
    indicators: Sequence[RiskIndicator],
    historical: Optional[HistoricalData] = None,
) -> list[IndicatorCorrelation]:
    pairs: list[IndicatorCorrelation] = []
    for i, a in enumerate(indicators):
        for b in indicators[i + 1:]:
            pairs.append(indicator_correlation(a, b, historical))
    return pairs
