"""Protocol definitions for the scheduling system."""

from typing import Protocol

from schedsim.models import DurationEstimate


class DurationEstimator(Protocol):
    """Protocol for turning a three-point estimate into a single duration."""

    def estimate(self, duration: DurationEstimate | None, confidence: float) -> float | None:
        """Estimate the duration at a confidence level.

        Args:
            duration: Three-point estimate, or None when the task has none
            confidence: Target confidence in [0, 1]

        Returns:
            Duration in work days, or None when no estimate was given
        """
        ...


class TraceSink(Protocol):
    """Protocol for the step-by-step scheduling trace."""

    @property
    def enabled(self) -> bool:
        """Whether writing to this sink has any effect."""
        ...

    def write(self, line: str = "") -> None:
        """Write one line to the trace."""
        ...

    def section(self, title: str) -> None:
        """Start a titled section of the trace."""
        ...
