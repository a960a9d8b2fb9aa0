"""Pytest configuration and fixtures for schedsim tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date
from typing import Any

import pytest

from schedsim.logger import reset_logger
from schedsim.models import DurationEstimate, GlobalSettings, TaskDefinition, WorkType
from schedsim.resources import Resource, UnavailablePeriod, WorkTypeAssignment
from schedsim.scheduler import (
    PertEstimator,
    ScheduleResult,
    SchedulingConfig,
    SchedulingService,
    TaskGraph,
    TaskGraphBuilder,
)
from schedsim.workdays import WorkCalendar

PROJECT_START = date(2024, 1, 1)  # A Monday


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    """Leave the schedsim logger unconfigured between tests."""
    yield
    reset_logger()


@pytest.fixture
def settings() -> GlobalSettings:
    """Monday-Friday work week starting 2024-01-01 with no holidays."""
    return GlobalSettings(
        project_start_date=PROJECT_START,
        work_types=[WorkType(id="api", name="API"), WorkType(id="ui", name="UI")],
    )


@pytest.fixture
def calendar(settings: GlobalSettings) -> WorkCalendar:
    return WorkCalendar(settings)


@pytest.fixture
def make_task() -> Callable[..., TaskDefinition]:
    """Factory for task definitions.

    ``duration`` may be an int (an exact estimate) or an (O, M, P) tuple.
    """

    def _make(
        task_id: str,
        duration: int | tuple[float, float, float] | None = 1,
        **kwargs: Any,
    ) -> TaskDefinition:
        estimate = None
        if isinstance(duration, int):
            estimate = DurationEstimate(
                optimistic=duration, most_likely=duration, pessimistic=duration
            )
        elif duration is not None:
            optimistic, most_likely, pessimistic = duration
            estimate = DurationEstimate(
                optimistic=optimistic, most_likely=most_likely, pessimistic=pessimistic
            )
        kwargs.setdefault("work_type_id", "api")
        return TaskDefinition(id=task_id, name=kwargs.pop("name", task_id), duration=estimate, **kwargs)

    return _make


@pytest.fixture
def make_resource() -> Callable[..., Resource]:
    """Factory for resources.

    ``work_types`` maps work type id to (familiarity, preference);
    ``absences`` is a list of (start, end) dates.
    """

    def _make(
        resource_id: str,
        work_types: dict[str, tuple[float, float]] | None = None,
        absences: list[tuple[date, date]] | None = None,
        **kwargs: Any,
    ) -> Resource:
        assignments = [
            WorkTypeAssignment(work_type_id=wt, familiarity=familiarity, preference=preference)
            for wt, (familiarity, preference) in (work_types or {"api": (1.0, 1.0)}).items()
        ]
        periods = [UnavailablePeriod(start=start, end=end) for start, end in absences or []]
        kwargs.setdefault("start_date", PROJECT_START)
        return Resource(
            id=resource_id,
            name=kwargs.pop("name", resource_id.capitalize()),
            work_type_assignments=assignments,
            unavailable_periods=periods,
            **kwargs,
        )

    return _make


@pytest.fixture
def build_graph(calendar: WorkCalendar) -> Callable[..., TaskGraph]:
    """Build a ranked task graph with the analytic PERT estimator."""

    def _build(tasks: list[TaskDefinition], confidence: float = 0.8) -> TaskGraph:
        return TaskGraphBuilder(calendar, PertEstimator(), confidence).build(tasks)

    return _build


@pytest.fixture
def run_schedule(settings: GlobalSettings) -> Callable[..., ScheduleResult]:
    """Run a complete scheduling pass."""

    def _run(
        tasks: list[TaskDefinition],
        resources: list[Resource],
        confidence: float = 0.8,
        config: SchedulingConfig | None = None,
        project_settings: GlobalSettings | None = None,
    ) -> ScheduleResult:
        service = SchedulingService(tasks, resources, project_settings or settings, config=config)
        return service.run(confidence)

    return _run


def assert_no_overlaps(result: ScheduleResult) -> None:
    """Check that no resource works on two tasks on the same day."""
    by_resource: dict[str, list[tuple[int, int, str]]] = {}
    for task in result.graph.tasks:
        if task.assigned_resource_id is None:
            continue
        by_resource.setdefault(task.assigned_resource_id, []).append(
            (task.earliest_start, task.earliest_finish, task.id)
        )
    for intervals in by_resource.values():
        intervals.sort()
        for (_, end1, id1), (start2, _, id2) in zip(intervals, intervals[1:]):
            assert end1 <= start2, f"{id1} and {id2} overlap"


@pytest.fixture
def no_overlaps() -> Callable[[ScheduleResult], None]:
    return assert_no_overlaps
