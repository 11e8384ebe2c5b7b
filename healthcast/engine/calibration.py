"""
Feature-Weight Calibration.

The feature-weighted severity strategy scores a gap as a weighted sum of
eight features. This module decides which weights to use:

- Fewer than MIN_HISTORY_FOR_CALIBRATION historical gaps → default weights
- Enough historical gaps with recorded outcomes → least-squares fit of the
  features against the observed outcome severity, bounded to ±10% of the
  defaults and renormalized
- Enough historical gaps but no outcomes → legacy jitter stub (see below)

The legacy stub perturbs each default weight by a random factor in
[0.9, 1.1]. It does not learn from the historical content at all; it is kept
only so callers that supply bare history keep the old behaviour, and it
draws from an injectable ``random.Random`` so tests stay reproducible.
"""

import random
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import structlog

from healthcast.engine.features import FEATURE_NAMES, extract_features
from healthcast.exceptions import InvalidInputError
from healthcast.schemas.gap import Gap, SeverityLevel

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

DEFAULT_FEATURE_WEIGHTS: tuple[float, ...] = (0.2, 0.15, 0.1, 0.15, 0.2, 0.1, 0.05, 0.05)
MIN_HISTORY_FOR_CALIBRATION: int = 10
MAX_WEIGHT_ADJUSTMENT: float = 0.1     # ±10% around each default weight
SCORE_SCALE: float = 2.0                # Feature score is divided by this

# Raw-score target per observed severity (midpoint of each band × SCORE_SCALE)
OUTCOME_TARGETS: dict[SeverityLevel, float] = {
    SeverityLevel.LOW: 0.2 * SCORE_SCALE,
    SeverityLevel.MEDIUM: 0.5 * SCORE_SCALE,
    SeverityLevel.HIGH: 0.7 * SCORE_SCALE,
    SeverityLevel.CRITICAL: 0.9 * SCORE_SCALE,
}


@dataclass(frozen=True)
class CalibratedWeights:
    """Weights chosen for the feature-weighted strategy, with provenance."""
    weights: tuple[float, ...]
    method: str                 # "default" | "least_squares" | "legacy_jitter"
    n_history: int              # Historical gaps supplied
    n_outcomes: int             # Of which carried an observed severity


class FeatureWeightCalibrator:
    """Choose feature weights from historical gaps."""

    def __init__(
        self,
        default_weights: Sequence[float] = DEFAULT_FEATURE_WEIGHTS,
        min_history: int = MIN_HISTORY_FOR_CALIBRATION,
        max_adjustment: float = MAX_WEIGHT_ADJUSTMENT,
        rng: Optional[random.Random] = None,
    ):
        if len(default_weights) != len(FEATURE_NAMES):
            raise InvalidInputError(
                f"Expected {len(FEATURE_NAMES)} feature weights, got {len(default_weights)}",
                field="default_weights",
            )
        self.default_weights = tuple(default_weights)
        self.min_history = min_history
        self.max_adjustment = max_adjustment
        self.rng = rng or random.Random()

    def weights_for(self, historical_gaps: Optional[Sequence[Gap]]) -> CalibratedWeights:
        history = list(historical_gaps or [])
        with_outcome = [g for g in history if g.observed_severity is not None]

        if len(history) < self.min_history:
            return CalibratedWeights(self.default_weights, "default", len(history), len(with_outcome))

        if len(with_outcome) >= self.min_history:
            weights = self.fit_least_squares(with_outcome)
            return CalibratedWeights(weights, "least_squares", len(history), len(with_outcome))

        return CalibratedWeights(
            self.legacy_jitter_weights(), "legacy_jitter", len(history), len(with_outcome),
        )

    def fit_least_squares(self, gaps: Sequence[Gap]) -> tuple[float, ...]:
        """
        Fit weights so that Σ wᵢ·featureᵢ approximates the outcome target.

        The raw fit is clipped to ±max_adjustment around each default weight
        and rescaled to the default weight mass, so a small or noisy history
        can only nudge the defaults.
        """
        x = np.array([extract_features(g) for g in gaps], dtype=float)
        y = np.array([OUTCOME_TARGETS[g.observed_severity] for g in gaps], dtype=float)

        fitted, _, rank, _ = np.linalg.lstsq(x, y, rcond=None)
        defaults = np.array(self.default_weights, dtype=float)
        if not np.all(np.isfinite(fitted)):
            logger.warning("feature_weight_fit_non_finite", n_samples=len(gaps))
            return self.default_weights

        lower = defaults * (1 - self.max_adjustment)
        upper = defaults * (1 + self.max_adjustment)
        bounded = np.clip(fitted, lower, upper)
        bounded *= defaults.sum() / bounded.sum()

        logger.info(
            "feature_weights_calibrated",
            n_samples=len(gaps),
            rank=int(rank),
            weights=[round(float(w), 4) for w in bounded],
        )
        return tuple(float(w) for w in bounded)

    def legacy_jitter_weights(self) -> tuple[float, ...]:
        """Placeholder calibration: random ±max_adjustment per weight."""
        logger.debug("feature_weights_legacy_jitter", max_adjustment=self.max_adjustment)
        return tuple(
            w * (1 - self.max_adjustment + self.rng.random() * 2 * self.max_adjustment)
            for w in self.default_weights
        )
