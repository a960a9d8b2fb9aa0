"""Configuration classes for the scheduling system."""

from enum import Enum

from pydantic import BaseModel, Field


class EstimatorType(str, Enum):
    """Available duration estimation strategies."""

    PERT = "pert"  # Closed-form PERT with calibrated standard deviation
    MONTE_CARLO = "monte_carlo"  # Normal samples around the PERT mean
    BETA = "beta"  # Beta distribution fitted to PERT mean/variance


class SchedulingConfig(BaseModel):
    """Tunable constants for estimation, slot search and resource scoring."""

    # Duration estimation
    estimator: EstimatorType = EstimatorType.PERT
    samples: int = Field(default=10_000, ge=1000)
    random_seed: int | None = None
    calibration_factor: float = 0.7  # Shrinks the analytic PERT standard deviation
    degenerate_tolerance: float = 0.1  # O/M/P closer than this skip estimation

    # Slot search: a gap of up to max(min_blocked_days, duration // divisor)
    # blocked days is absorbed into the task instead of restarting the search
    min_blocked_days: int = 2
    blocked_days_divisor: int = Field(default=4, ge=1)

    # Candidate acceptance: P + max(floor, multiplier * (P - O))
    overrun_floor_days: float = 10.0
    overrun_spread_multiplier: float = 2.0
    default_max_duration: float = 8.0  # Used when the task has no estimate

    # Scores are bucketed to this many decimals before ordering by start day
    score_precision: int = 2

    slack_epsilon: float = 1e-6
