"""Core dataclasses for the scheduling system."""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from schedsim.models import TaskDefinition

if TYPE_CHECKING:
    from schedsim.resources import Resource
    from schedsim.workdays import WorkCalendar

    from .graph import TaskGraph


def _default_str_list() -> list[str]:
    return []


@dataclass
class SchedulingTask:
    """Mutable scheduling state for one task definition.

    All day values are work-day offsets from the project start. Finish values
    are exclusive: ``earliest_finish`` is the first work day after the work.
    """

    definition: TaskDefinition
    index: int
    duration: int  # ceil of the simulated estimate, 0 for placeholders
    duration_adjusted: int  # duration on the assigned resource
    estimate: float | None = None
    earliest_start: int = 0
    earliest_finish: int = 0
    latest_start: float = math.inf  # Unbounded until a due date constrains it
    latest_finish: float = math.inf
    slack: float = math.inf
    rank: int | None = None
    assigned_resource_id: str | None = None
    scheduled_start: int | None = None
    project_name: str = ""
    is_parent: bool = False
    is_root: bool = False
    start_after: int | None = None  # Earliest allowed start offset
    due_before: int | None = None  # Latest allowed finish offset (exclusive)

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def work_type_id(self) -> str | None:
        return self.definition.work_type_id

    @property
    def is_placeholder(self) -> bool:
        """Milestones, parents and zero-length tasks are never resource-scheduled."""
        return self.definition.is_milestone or self.is_parent or self.duration == 0

    @property
    def can_be_scheduled(self) -> bool:
        return not self.is_placeholder

    @property
    def is_scheduled(self) -> bool:
        return self.assigned_resource_id is not None

    @property
    def display_start(self) -> int:
        """Earliest start clamped to the project start for rendering."""
        return max(0, self.earliest_start)

    @property
    def display_finish(self) -> int:
        """Earliest finish clamped to the project start for rendering."""
        return max(0, self.earliest_finish)

    def assign(self, resource_id: str, start: int, duration: int) -> None:
        """Commit this task to a resource; start and finish are frozen afterwards."""
        self.assigned_resource_id = resource_id
        self.scheduled_start = start
        self.duration_adjusted = duration
        self.earliest_start = start
        self.earliest_finish = start + duration
        self.latest_start = self.latest_finish - duration
        self.slack = self.latest_start - self.earliest_start


@dataclass(frozen=True)
class Slot:
    """An available window on one resource."""

    resource_index: int
    start_day: int
    duration: int  # Span including any absorbed blocked days

    @property
    def end_day(self) -> int:
        return self.start_day + self.duration


@dataclass
class Candidate:
    """A resource slot considered for a task, with its score breakdown."""

    slot: Slot
    resource_id: str
    weight: float  # Selector weight (preference x individual override)
    delay_factor: float = 0.0
    duration_factor: float = 0.0
    score: float = 0.0


@dataclass
class CriticalPathResult:
    """Result of one forward/backward pass."""

    critical_path: list[int]  # Task indexes by rank ascending
    infeasible: list[int] = field(default_factory=list)  # Tasks with negative slack


@dataclass
class ScheduleResult:
    """Complete output of one scheduling run."""

    confidence: float
    graph: "TaskGraph"
    resources: dict[str, "Resource"]
    calendar: "WorkCalendar"
    warnings: list[str] = field(default_factory=_default_str_list)

    @property
    def tasks(self) -> dict[str, SchedulingTask]:
        """Lookup from task id to its scheduling state."""
        return self.graph.lookup

    @property
    def project_finish(self) -> int:
        """Exclusive finish offset of the last task."""
        return max((t.earliest_finish for t in self.graph.tasks), default=0)

    def start_date(self, task_id: str) -> date:
        """Calendar date the task starts on."""
        return self.calendar.workday_to_date(self.tasks[task_id].display_start)

    def finish_date(self, task_id: str) -> date:
        """Calendar date of the task's last work day (its start date when it has no length)."""
        task = self.tasks[task_id]
        last_day = max(task.display_start, task.display_finish - 1)
        return self.calendar.workday_to_date(last_day)

    def resource_name(self, task_id: str) -> str | None:
        resource_id = self.tasks[task_id].assigned_resource_id
        if resource_id is None:
            return None
        resource = self.resources.get(resource_id)
        return resource.name if resource is not None else resource_id


@dataclass
class TaskRange:
    """Best/worst case dates for one task across two runs."""

    task_id: str
    best_start: date
    best_finish: date
    worst_start: date
    worst_finish: date
    best_resource_id: str | None = None
    worst_resource_id: str | None = None


@dataclass
class ScheduleComparison:
    """Two runs at different confidence levels matched by task id."""

    best: ScheduleResult
    worst: ScheduleResult
    ranges: dict[str, TaskRange]
