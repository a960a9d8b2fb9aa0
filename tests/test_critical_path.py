"""Tests for the critical path forward/backward passes."""

import math
from collections.abc import Callable
from datetime import date

from schedsim.models import TaskDefinition
from schedsim.scheduler import CriticalPathCalculator, TaskGraph

MakeTask = Callable[..., TaskDefinition]
BuildGraph = Callable[..., TaskGraph]


class TestCriticalPath:
    """Test earliest/latest dates and slack."""

    def test_linear_chain(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        # Jan 12 is work day 9, exactly when the chain finishes
        graph = build_graph(
            [
                make_task("a", 3),
                make_task("b", 2, dependencies=["a"]),
                make_task("c", 4, dependencies=["b"], due_before=date(2024, 1, 12)),
            ]
        )
        result = CriticalPathCalculator(graph).calculate()

        a, b, c = (graph.lookup[i] for i in "abc")
        assert (a.earliest_start, a.earliest_finish) == (0, 3)
        assert (b.earliest_start, b.earliest_finish) == (3, 5)
        assert (c.earliest_start, c.earliest_finish) == (5, 9)
        assert a.slack == b.slack == c.slack == 0
        assert [graph.tasks[i].id for i in result.critical_path] == ["a", "b", "c"]
        assert result.infeasible == []

    def test_chain_without_due_date_is_unbounded(
        self, make_task: MakeTask, build_graph: BuildGraph
    ) -> None:
        graph = build_graph(
            [make_task("a", 3), make_task("b", 2, dependencies=["a"]), make_task("c", 4, dependencies=["b"])]
        )
        result = CriticalPathCalculator(graph).calculate()

        assert graph.lookup["c"].earliest_finish == 9
        for task in graph.tasks:
            assert task.latest_finish == math.inf
            assert task.slack == math.inf
        assert result.critical_path == []
        assert result.infeasible == []

    def test_invariants_hold(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        graph = build_graph(
            [
                make_task("a", 3),
                make_task("b", 1),
                make_task("c", 2, dependencies=["a", "b"], due_before=date(2024, 1, 15)),
            ]
        )
        CriticalPathCalculator(graph).calculate()
        for task in graph.tasks:
            assert task.earliest_finish == task.earliest_start + task.duration_adjusted
            assert task.latest_start == task.latest_finish - task.duration_adjusted
            assert task.slack == task.latest_start - task.earliest_start
            assert task.slack >= 0

    def test_shorter_branch_has_slack(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        graph = build_graph(
            [
                make_task("a", 3),
                make_task("b", 1),
                make_task("c", 1, dependencies=["a", "b"], due_before=date(2024, 1, 5)),
            ]
        )
        result = CriticalPathCalculator(graph).calculate()

        assert graph.lookup["b"].slack == 2
        assert graph.lookup["a"].slack == 0
        assert graph.lookup["c"].earliest_start == 3
        assert [graph.tasks[i].id for i in result.critical_path] == ["a", "c"]

    def test_parent_waits_for_children(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        graph = build_graph(
            [
                make_task("parent", None, due_before=date(2024, 1, 8)),
                make_task("short", 2, parent_id="parent", allow_parallel_scheduling=True),
                make_task("long", 5, parent_id="parent", allow_parallel_scheduling=True),
            ]
        )
        result = CriticalPathCalculator(graph).calculate()

        assert graph.lookup["parent"].earliest_finish == 5
        assert graph.lookup["short"].slack == 3
        # Placeholders are never on the critical path
        assert [graph.tasks[i].id for i in result.critical_path] == ["long"]


    def test_start_after(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        graph = build_graph([make_task("a", 2, start_after=date(2024, 1, 8))])
        CriticalPathCalculator(graph).calculate()
        assert graph.lookup["a"].earliest_start == 5

    def test_due_before_gives_slack(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        graph = build_graph([make_task("a", 2, due_before=date(2024, 1, 8))])
        CriticalPathCalculator(graph).calculate()
        assert graph.lookup["a"].latest_finish == 5
        assert graph.lookup["a"].slack == 3

    def test_due_before_propagates_backwards(
        self, make_task: MakeTask, build_graph: BuildGraph
    ) -> None:
        graph = build_graph(
            [make_task("a", 2), make_task("b", 2, dependencies=["a"], due_before=date(2024, 1, 8))]
        )
        CriticalPathCalculator(graph).calculate()
        assert graph.lookup["a"].latest_finish == 3
        assert graph.lookup["a"].slack == 1

    def test_negative_slack_is_reported(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        graph = build_graph([make_task("a", 5, due_before=date(2024, 1, 4))])
        result = CriticalPathCalculator(graph).calculate()

        task = graph.lookup["a"]
        assert task.slack == -2
        assert result.infeasible == [task.index]
        assert result.critical_path == [task.index]

    def test_scheduled_tasks_are_frozen(self, make_task: MakeTask, build_graph: BuildGraph) -> None:
        graph = build_graph([make_task("a", 3), make_task("b", 2, dependencies=["a"])])
        calculator = CriticalPathCalculator(graph)
        calculator.calculate()

        graph.lookup["a"].assign("r1", start=4, duration=6)
        result = calculator.calculate()

        a, b = graph.lookup["a"], graph.lookup["b"]
        assert (a.earliest_start, a.earliest_finish) == (4, 10)
        assert b.earliest_start == 10
        assert a.index not in result.critical_path
        # No due date downstream, so a late assignment does not go negative
        assert a.slack == math.inf
