"""Tests for the high-level scheduling service."""

from collections.abc import Callable
from datetime import date

import pytest

from schedsim.exceptions import ValidationError
from schedsim.models import DurationEstimate, GlobalSettings, TaskDefinition
from schedsim.resources import Resource
from schedsim.scheduler import EstimatorType, SchedulingConfig, SchedulingService

MakeTask = Callable[..., TaskDefinition]
MakeResource = Callable[..., Resource]


class FixedEstimator:
    """Estimator returning the same duration for every task."""

    def __init__(self, days: float) -> None:
        self.days = days
        self.calls = 0

    def estimate(self, duration: DurationEstimate | None, confidence: float) -> float | None:
        self.calls += 1
        return None if duration is None else self.days


class TestRun:
    """Test single scheduling passes."""

    def test_result_lookups(
        self, make_task: MakeTask, make_resource: MakeResource, settings: GlobalSettings
    ) -> None:
        service = SchedulingService([make_task("a", 2)], [make_resource("alice")], settings)
        result = service.run(0.8)

        assert result.confidence == 0.8
        assert set(result.tasks) == {"a"}
        assert result.resources["alice"].name == "Alice"
        assert result.resource_name("a") == "Alice"
        assert result.start_date("a") == date(2024, 1, 1)
        assert result.finish_date("a") == date(2024, 1, 2)
        assert result.project_finish == 2

    def test_invalid_confidence(
        self, make_task: MakeTask, make_resource: MakeResource, settings: GlobalSettings
    ) -> None:
        service = SchedulingService([make_task("a", 2)], [make_resource("alice")], settings)
        with pytest.raises(ValidationError):
            service.run(1.5)

    def test_injected_estimator(
        self, make_task: MakeTask, make_resource: MakeResource, settings: GlobalSettings
    ) -> None:
        estimator = FixedEstimator(6.5)
        service = SchedulingService(
            [make_task("a", (1, 2, 3))], [make_resource("alice")], settings, estimator=estimator
        )
        result = service.run(0.8)

        assert estimator.calls == 1
        assert result.tasks["a"].duration == 7

    def test_runs_do_not_share_state(
        self, make_task: MakeTask, make_resource: MakeResource, settings: GlobalSettings
    ) -> None:
        service = SchedulingService(
            [make_task("a", 2), make_task("b", 3)], [make_resource("alice")], settings
        )
        first = service.run(0.8)
        second = service.run(0.8)

        assert first.graph is not second.graph
        assert first.tasks["b"].earliest_start == second.tasks["b"].earliest_start == 2

    def test_seeded_monte_carlo_is_repeatable(
        self, make_task: MakeTask, make_resource: MakeResource, settings: GlobalSettings
    ) -> None:
        config = SchedulingConfig(estimator=EstimatorType.MONTE_CARLO, random_seed=11)
        tasks = [make_task("a", (2, 5, 12)), make_task("b", (1, 3, 9))]

        durations = []
        for _ in range(2):
            service = SchedulingService(tasks, [make_resource("alice")], settings, config=config)
            result = service.run(0.9)
            durations.append({task_id: task.duration for task_id, task in result.tasks.items()})

        assert durations[0] == durations[1]


class TestRunRange:
    """Test best/worst case comparison."""

    def test_lower_confidence_is_best_case(
        self, make_task: MakeTask, make_resource: MakeResource, settings: GlobalSettings
    ) -> None:
        service = SchedulingService([make_task("a", (2, 4, 10))], [make_resource("alice")], settings)
        comparison = service.run_range(0.95, 0.5)

        assert comparison.best.confidence == 0.5
        assert comparison.worst.confidence == 0.95

        task_range = comparison.ranges["a"]
        assert task_range.best_start == task_range.worst_start == date(2024, 1, 1)
        assert task_range.best_finish < task_range.worst_finish
        assert task_range.best_resource_id == task_range.worst_resource_id == "alice"

    def test_every_task_compared(
        self, make_task: MakeTask, make_resource: MakeResource, settings: GlobalSettings
    ) -> None:
        tasks = [
            make_task("parent", None, work_type_id=None),
            make_task("child", (1, 2, 6), parent_id="parent"),
            make_task("done", None, is_milestone=True, dependencies=["parent"], work_type_id=None),
        ]
        service = SchedulingService(tasks, [make_resource("alice")], settings)
        comparison = service.run_range(0.5, 0.9)

        assert set(comparison.ranges) == {"parent", "child", "done"}
        assert comparison.ranges["done"].worst_start >= comparison.ranges["done"].best_start
