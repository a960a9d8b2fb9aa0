"""Input data models for schedsim.

Task definitions and global settings are supplied by the caller and never
mutated by the scheduler. Derived, mutable scheduling state lives in
:mod:`schedsim.scheduler.core`.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Weekday(str, Enum):
    """Day of the week a work week starts on."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def index(self) -> int:
        """Weekday number compatible with date.weekday() (Monday=0)."""
        return list(Weekday).index(self)


class DurationEstimate(BaseModel):
    """Three-point duration estimate in work days."""

    model_config = ConfigDict(frozen=True)

    optimistic: float = Field(ge=0)
    most_likely: float = Field(ge=0)
    pessimistic: float = Field(ge=0)

    @model_validator(mode="after")
    def validate_ordering(self) -> DurationEstimate:
        """Ensure optimistic <= most likely <= pessimistic."""
        if not self.optimistic <= self.most_likely <= self.pessimistic:
            raise ValueError("duration must satisfy optimistic <= most_likely <= pessimistic")
        return self

    def __str__(self) -> str:
        return f"{self.optimistic:g}-{self.most_likely:g}-{self.pessimistic:g}"


class IndividualPriority(BaseModel):
    """Per-task preference for a specific resource."""

    model_config = ConfigDict(frozen=True)

    resource_id: str
    priority: float = Field(ge=0)


class TaskDefinition(BaseModel):
    """A task as supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    duration: DurationEstimate | None = None
    dependencies: list[str] = Field(default_factory=list)
    priority: int | None = None  # Higher number is scheduled sooner
    start_after: date | None = None
    due_before: date | None = None
    parent_id: str | None = None
    sibling_ordinal: int = 0
    is_milestone: bool = False
    work_type_id: str | None = None
    required_familiarity: float = Field(default=0.0, ge=0, le=1)
    individual_priorities: list[IndividualPriority] = Field(default_factory=list)
    supersede_active_task: bool = False
    allow_parallel_scheduling: bool = False


class WorkType(BaseModel):
    """A kind of work resources can be assigned to."""

    id: str
    name: str = ""


class Holiday(BaseModel):
    """A non-working calendar date shared by every resource."""

    date: date
    description: str | None = None


class GlobalSettings(BaseModel):
    """Project-wide calendar and work-type catalog."""

    project_start_date: date
    start_day: Weekday = Weekday.MONDAY
    days_in_work_week: int = Field(default=5, ge=1, le=7)
    holidays: list[Holiday] = Field(default_factory=list)
    work_types: list[WorkType] = Field(default_factory=list)
