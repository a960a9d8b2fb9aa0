"""Custom exceptions for schedsim."""


class SchedsimError(Exception):
    """Base exception for all schedsim errors."""

    pass


class ConfigError(SchedsimError):
    """Raised when a project file cannot be loaded."""

    pass


class ValidationError(SchedsimError):
    """Raised when task input validation fails."""

    pass


class CircularDependencyError(ValidationError):
    """Raised when a circular dependency or parent reference is detected."""

    pass


class SchedulingError(SchedsimError):
    """Raised when a scheduling run cannot be completed."""

    def __init__(self, message: str, task_id: str | None = None) -> None:
        super().__init__(message)
        self.task_id = task_id


class MissingWorkTypeError(SchedulingError):
    """Raised when a schedulable task has no work type."""

    pass


class NoEligibleResourceError(SchedulingError):
    """Raised when no resource is able to perform a task's work type."""

    pass


class UnschedulableTaskError(SchedulingError):
    """Raised when even a forced assignment cannot place a task."""

    pass
