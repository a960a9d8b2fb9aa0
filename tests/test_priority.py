"""Tests for priority propagation."""

from collections.abc import Callable

from schedsim.models import TaskDefinition
from schedsim.scheduler import TaskGraph

MakeTask = Callable[..., TaskDefinition]
BuildGraph = Callable[..., TaskGraph]


def ranks(graph: TaskGraph) -> dict[str, int | None]:
    return {task.id: task.rank for task in graph.tasks}


def test_ranks_are_dense(make_task: MakeTask, build_graph: BuildGraph) -> None:
    graph = build_graph(
        [
            make_task("a"),
            make_task("b", dependencies=["a"]),
            make_task("c", priority=3),
            make_task("d", dependencies=["b", "c"]),
            make_task("e"),
        ]
    )
    assert sorted(r for r in ranks(graph).values() if r is not None) == list(range(5))


def test_no_priorities_uses_input_order(make_task: MakeTask, build_graph: BuildGraph) -> None:
    graph = build_graph([make_task("a"), make_task("b"), make_task("c")])
    assert ranks(graph) == {"a": 0, "b": 1, "c": 2}


def test_higher_priority_ranks_first(make_task: MakeTask, build_graph: BuildGraph) -> None:
    graph = build_graph([make_task("low", priority=5), make_task("high", priority=10)])
    result = ranks(graph)
    assert result["high"] == 0
    assert result["low"] == 1


def test_prioritized_tasks_before_unprioritized(
    make_task: MakeTask, build_graph: BuildGraph
) -> None:
    graph = build_graph([make_task("plain"), make_task("urgent", priority=1)])
    result = ranks(graph)
    assert result["urgent"] == 0
    assert result["plain"] == 1


def test_dependencies_ranked_before_dependents(
    make_task: MakeTask, build_graph: BuildGraph
) -> None:
    graph = build_graph(
        [
            make_task("setup"),
            make_task("other"),
            make_task("feature", priority=10, dependencies=["setup"]),
        ]
    )
    result = ranks(graph)
    # The priority pulls its dependency forward with it
    assert result["setup"] == 0
    assert result["feature"] == 1
    assert result["other"] == 2


def test_every_edge_increases_rank(make_task: MakeTask, build_graph: BuildGraph) -> None:
    graph = build_graph(
        [
            make_task("parent", None),
            make_task("c1", parent_id="parent", sibling_ordinal=1, priority=2),
            make_task("c2", parent_id="parent", sibling_ordinal=2),
            make_task("x", dependencies=["c2"], priority=9),
            make_task("y", dependencies=["parent", "x"]),
            make_task("z", priority=5, dependencies=["c1"]),
        ]
    )
    for source, target in graph.edges:
        source_rank = graph.tasks[source].rank
        target_rank = graph.tasks[target].rank
        assert source_rank is not None and target_rank is not None
        assert source_rank < target_rank


def test_deep_chain_does_not_recurse(make_task: MakeTask, build_graph: BuildGraph) -> None:
    count = 3000
    tasks = [make_task("t0")]
    tasks += [make_task(f"t{i}", dependencies=[f"t{i - 1}"]) for i in range(1, count)]
    tasks.append(make_task("end", priority=1, dependencies=[f"t{count - 1}"]))

    graph = build_graph(tasks)
    assert graph.lookup["t0"].rank == 0
    assert graph.lookup["end"].rank == count
