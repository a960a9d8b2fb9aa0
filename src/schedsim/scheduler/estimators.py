"""Duration estimation strategies.

Every estimator turns a three-point estimate (optimistic, most likely,
pessimistic) and a confidence level into one duration in work days:

- PertEstimator: closed form, ``mean + z(confidence) * stddev``
- MonteCarloNormalEstimator: quantile of normal samples around the PERT mean
- MonteCarloBetaEstimator: quantile of a Beta fitted to PERT mean/variance

PERT narrows its deviation by a calibration factor and reads a two-sided
z-score, while the samplers take one-sided quantiles of the uncalibrated
distribution. For moderately skewed estimates the three stay within about
5% of each other at confidences of 0.8 to 0.9. Toward 0.95 the samplers run
higher than PERT, by up to about 10%.
"""

import math

import numpy as np
from scipy.special import erfinv

from schedsim.logger import get_logger
from schedsim.models import DurationEstimate

from .config import EstimatorType, SchedulingConfig

logger = get_logger()

MAX_CONFIDENCE = 0.9999


def clamp_confidence(confidence: float) -> float:
    """Clamp a confidence level into [0, MAX_CONFIDENCE]."""
    return min(max(confidence, 0.0), MAX_CONFIDENCE)


def pert_mean(duration: DurationEstimate) -> float:
    return (duration.optimistic + 4 * duration.most_likely + duration.pessimistic) / 6


def pert_stddev(duration: DurationEstimate) -> float:
    return (duration.pessimistic - duration.optimistic) / 6


def z_score(confidence: float) -> float:
    """Map a confidence level to a z-score; monotonic non-decreasing in confidence."""
    confidence = clamp_confidence(confidence)
    return math.sqrt(2) * float(erfinv(2 * ((1 + confidence) / 2) - 1))


class _BaseEstimator:
    def __init__(self, degenerate_tolerance: float = 0.1) -> None:
        self.degenerate_tolerance = degenerate_tolerance

    def _is_degenerate(self, duration: DurationEstimate) -> bool:
        return (
            abs(duration.optimistic - duration.pessimistic) < self.degenerate_tolerance
            and abs(duration.pessimistic - duration.most_likely) < self.degenerate_tolerance
        )

    def estimate(self, duration: DurationEstimate | None, confidence: float) -> float | None:
        if duration is None:
            return None
        if self._is_degenerate(duration):
            logger.debug(f"Degenerate estimate {duration}, using optimistic value")
            return duration.optimistic
        return self._estimate(duration, clamp_confidence(confidence))

    def _estimate(self, duration: DurationEstimate, confidence: float) -> float:
        raise NotImplementedError


class PertEstimator(_BaseEstimator):
    """Closed-form PERT estimate with a calibrated standard deviation."""

    def __init__(self, calibration_factor: float = 0.7, degenerate_tolerance: float = 0.1) -> None:
        super().__init__(degenerate_tolerance)
        self.calibration_factor = calibration_factor

    def _estimate(self, duration: DurationEstimate, confidence: float) -> float:
        stddev = pert_stddev(duration) * self.calibration_factor
        return pert_mean(duration) + z_score(confidence) * stddev


class _SamplingEstimator(_BaseEstimator):
    def __init__(
        self, samples: int = 10_000, seed: int | None = None, degenerate_tolerance: float = 0.1
    ) -> None:
        super().__init__(degenerate_tolerance)
        if samples < 1000:
            raise ValueError(f"At least 1000 samples are required, got {samples}")
        self.samples = samples
        self.rng = np.random.default_rng(seed)

    def _estimate(self, duration: DurationEstimate, confidence: float) -> float:
        values = np.sort(self._sample(duration))
        index = min(int(confidence * self.samples), self.samples - 1)
        return float(values[index])

    def _sample(self, duration: DurationEstimate) -> np.ndarray:
        raise NotImplementedError


class MonteCarloNormalEstimator(_SamplingEstimator):
    """Quantile of Box-Muller normal samples centred on the PERT mean."""

    def _sample(self, duration: DurationEstimate) -> np.ndarray:
        half = (self.samples + 1) // 2
        u1 = self.rng.random(half)
        u2 = self.rng.random(half)
        # 1 - u1 lies in (0, 1], so the log is finite
        radius = np.sqrt(-2.0 * np.log(1.0 - u1))
        angle = 2.0 * np.pi * u2
        standard = np.concatenate((radius * np.cos(angle), radius * np.sin(angle)))[: self.samples]
        return pert_mean(duration) + pert_stddev(duration) * standard


class MonteCarloBetaEstimator(_SamplingEstimator):
    """Quantile of a Beta distribution matching the PERT mean and variance on [O, P]."""

    @staticmethod
    def shape_parameters(duration: DurationEstimate) -> tuple[float, float]:
        """Return (alpha, beta) for the Beta fitted to the normalised PERT moments."""
        span = duration.pessimistic - duration.optimistic
        mean = (pert_mean(duration) - duration.optimistic) / span
        variance = (pert_stddev(duration) / span) ** 2
        common = mean * (1 - mean) / variance - 1
        return mean * common, (1 - mean) * common

    def _sample(self, duration: DurationEstimate) -> np.ndarray:
        alpha, beta = self.shape_parameters(duration)
        span = duration.pessimistic - duration.optimistic
        return duration.optimistic + span * self.rng.beta(alpha, beta, size=self.samples)


def create_estimator(
    config: SchedulingConfig | None = None,
) -> PertEstimator | MonteCarloNormalEstimator | MonteCarloBetaEstimator:
    """Create the duration estimator selected by the configuration.

    Args:
        config: Scheduling configuration (defaults are used when None)

    Returns:
        Estimator instance ready to use

    Raises:
        ValueError: If the estimator type is unknown
    """
    effective_config = config or SchedulingConfig()
    estimator_type = effective_config.estimator

    if estimator_type == EstimatorType.PERT:
        return PertEstimator(
            calibration_factor=effective_config.calibration_factor,
            degenerate_tolerance=effective_config.degenerate_tolerance,
        )
    if estimator_type == EstimatorType.MONTE_CARLO:
        return MonteCarloNormalEstimator(
            samples=effective_config.samples,
            seed=effective_config.random_seed,
            degenerate_tolerance=effective_config.degenerate_tolerance,
        )
    if estimator_type == EstimatorType.BETA:
        return MonteCarloBetaEstimator(
            samples=effective_config.samples,
            seed=effective_config.random_seed,
            degenerate_tolerance=effective_config.degenerate_tolerance,
        )
    raise ValueError(f"Unknown estimator type: {estimator_type}")
