"""
Monte Carlo Risk Simulation.

Each trial perturbs every indicator's current value by a factor
``1 + jitter·z`` with z standard normal, recomputes per-indicator risk and
the compound risk, and records the compound risk as one sample.

Normal deviates come from a Box–Muller transform over numpy uniforms. Trials
are independent and evaluated as one vectorized batch, so only the summary
statistics (mean and the 5th/95th percentile samples) are meaningful, never
the sample order.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import structlog

from healthcast.exceptions import InvalidInputError
from healthcast.schemas.indicator import RiskIndicator, TrendDirection

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

DEFAULT_TRIALS: int = 1000
DEFAULT_JITTER: float = 0.1
LOWER_PERCENTILE: float = 0.05
UPPER_PERCENTILE: float = 0.95
DEVIATION_EXPONENT: float = 1.5

TREND_MULTIPLIERS: dict[TrendDirection, float] = {
    TrendDirection.DECLINING: 1.3,
    TrendDirection.VOLATILE: 1.2,
    TrendDirection.STABLE: 1.0,
    TrendDirection.IMPROVING: 0.8,
}


def trend_multiplier(trend: TrendDirection) -> float:
    return TREND_MULTIPLIERS.get(trend, 1.0)


@dataclass(frozen=True)
class MonteCarloResult:
    """Summary of a simulation run."""
    mean_risk: float
    ci_lower: float             # 5th percentile sample
    ci_upper: float             # 95th percentile sample
    n_trials: int
    jitter: float
    samples: list[float] = field(default_factory=list, repr=False)


def box_muller(rng: np.random.Generator, shape: tuple[int, ...]) -> np.ndarray:
    """Standard normal deviates from pairs of uniforms."""
    u1 = 1.0 - rng.random(shape)        # (0, 1], keeps log finite
    u2 = rng.random(shape)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * math.pi * u2)


def indicator_risks(
    current_values: np.ndarray,
    thresholds: np.ndarray,
    multipliers: np.ndarray,
    weights: np.ndarray,
) -> np.ndarray:
    """
    Vectorized per-indicator risk.

    Broadcasts over a leading trial axis. Zero thresholds and non-finite
    deviations yield zero risk, as in the scalar engine.
    """
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        safe_thresholds = np.where(thresholds == 0, 1.0, thresholds)
        deviation = np.abs(current_values - thresholds) / np.abs(safe_thresholds)
        risk = np.minimum(1.0, deviation) ** DEVIATION_EXPONENT * multipliers * weights
    usable = (thresholds != 0) & np.isfinite(deviation) & ~np.isnan(risk)
    risk = np.where(usable, risk, 0.0)
    return np.clip(risk, 0.0, 1.0)


class MonteCarloSimulator:
    """
    Simulate compound risk under measurement noise.

    Pass ``seed`` or ``rng`` for reproducible runs.
    """

    def __init__(
        self,
        trials: int = DEFAULT_TRIALS,
        jitter: float = DEFAULT_JITTER,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        if jitter < 0:
            raise InvalidInputError("Jitter must be non-negative", field="jitter")
        self.trials = max(1, int(trials))
        self.jitter = jitter
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def run(self, indicators: Sequence[RiskIndicator]) -> MonteCarloResult:
        if not indicators:
            return MonteCarloResult(
                mean_risk=0.0,
                ci_lower=0.0,
                ci_upper=0.0,
                n_trials=self.trials,
                jitter=self.jitter,
                samples=[0.0] * self.trials,
            )

        current = np.array([i.current_value for i in indicators], dtype=float)
        thresholds = np.array([i.threshold for i in indicators], dtype=float)
        multipliers = np.array([trend_multiplier(i.trend) for i in indicators], dtype=float)
        weights = np.array([i.weight for i in indicators], dtype=float)

        z = box_muller(self.rng, (self.trials, len(indicators)))
        perturbed = current * (1.0 + self.jitter * z)

        risks = indicator_risks(perturbed, thresholds, multipliers, weights)
        compound = 1.0 - np.prod(1.0 - risks, axis=1)

        ordered = np.sort(compound)
        lower = float(ordered[int(math.floor(LOWER_PERCENTILE * self.trials))])
        upper = float(ordered[min(self.trials - 1, int(math.floor(UPPER_PERCENTILE * self.trials)))])
        mean = float(np.mean(compound))

        logger.debug(
            "monte_carlo_completed",
            n_indicators=len(indicators),
            n_trials=self.trials,
            mean_risk=round(mean, 4),
            ci_lower=round(lower, 4),
            ci_upper=round(upper, 4),
        )

        return MonteCarloResult(
            mean_risk=mean,
            ci_lower=lower,
            ci_upper=upper,
            n_trials=self.trials,
            jitter=self.jitter,
            samples=[float(s) for s in compound],
        )
