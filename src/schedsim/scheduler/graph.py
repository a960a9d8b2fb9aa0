"""Task graph construction.

The graph is an index-addressed arena: vertices are SchedulingTask objects
stored in a list (``task.index`` is the position), edges are
``(predecessor, successor)`` index pairs. Three edge classes share one graph:

- explicit dependency: dependency -> dependent
- hierarchy: child -> parent (a parent is done when all children are)
- sibling order: previous non-parallel sibling -> next sibling
"""

import heapq
import math
from collections.abc import Iterable, Iterator

from schedsim.exceptions import CircularDependencyError
from schedsim.logger import get_logger
from schedsim.models import TaskDefinition
from schedsim.workdays import WorkCalendar

from .core import SchedulingTask
from .priority import PriorityPropagator
from .protocols import DurationEstimator

logger = get_logger()


class TaskGraph:
    """Directed acyclic graph of scheduling tasks."""

    def __init__(self, tasks: list[SchedulingTask], edges: Iterable[tuple[int, int]]) -> None:
        """Create the graph and verify it is acyclic.

        Args:
            tasks: Vertices, where ``tasks[i].index == i``
            edges: (predecessor index, successor index) pairs; duplicates are ignored

        Raises:
            CircularDependencyError: If the edges contain a cycle
        """
        self.tasks = tasks
        self.lookup: dict[str, SchedulingTask] = {task.id: task for task in tasks}
        self.edges: list[tuple[int, int]] = []
        self._predecessors: list[list[int]] = [[] for _ in tasks]
        self._successors: list[list[int]] = [[] for _ in tasks]

        seen: set[tuple[int, int]] = set()
        for edge in edges:
            if edge in seen:
                continue
            seen.add(edge)
            source, target = edge
            self.edges.append(edge)
            self._successors[source].append(target)
            self._predecessors[target].append(source)

        self.topological_order = self._topological_sort()

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[SchedulingTask]:
        return iter(self.tasks)

    def predecessors(self, index: int) -> list[int]:
        return self._predecessors[index]

    def successors(self, index: int) -> list[int]:
        return self._successors[index]

    def _topological_sort(self) -> list[int]:
        """Kahn's algorithm, lowest index first among ready vertices."""
        in_degree = [len(preds) for preds in self._predecessors]
        queue = [index for index, degree in enumerate(in_degree) if degree == 0]
        heapq.heapify(queue)
        order: list[int] = []

        while queue:
            index = heapq.heappop(queue)
            order.append(index)
            for successor in self._successors[index]:
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    heapq.heappush(queue, successor)

        if len(order) != len(self.tasks):
            remaining = sorted(self.tasks[i].id for i, degree in enumerate(in_degree) if degree > 0)
            raise CircularDependencyError(
                f"Circular dependency detected in task graph: {', '.join(remaining)}"
            )
        return order


class TaskGraphBuilder:
    """Normalizes task definitions into a ranked TaskGraph."""

    def __init__(
        self,
        calendar: WorkCalendar,
        estimator: DurationEstimator,
        confidence: float,
    ) -> None:
        self.calendar = calendar
        self.estimator = estimator
        self.confidence = confidence

    def build(self, definitions: Iterable[TaskDefinition]) -> TaskGraph:
        """Build the graph, check it for cycles and rank every task.

        Raises:
            CircularDependencyError: On a cycle in the parent chain or the graph
        """
        ordered = self._sorted(self._deduplicate(definitions))
        by_id = {definition.id: definition for definition in ordered}

        children: dict[str, list[TaskDefinition]] = {}
        for definition in ordered:
            parent_id = definition.parent_id
            if parent_id is None:
                continue
            if parent_id not in by_id:
                logger.warning(
                    f"Task '{definition.id}' has unknown parent '{parent_id}', treating it as a root"
                )
                continue
            children.setdefault(parent_id, []).append(definition)

        tasks: list[SchedulingTask] = []
        for definition in ordered:
            root = self._resolve_root(definition, by_id)
            tasks.append(self._create_task(definition, len(tasks), root, definition.id in children))

        index_by_id = {task.id: task.index for task in tasks}
        edges = self._dependency_edges(tasks, index_by_id)
        for parent_id, siblings in children.items():
            parent_index = index_by_id[parent_id]
            edges.extend((index_by_id[child.id], parent_index) for child in siblings)
            edges.extend(self._sibling_edges(siblings, index_by_id))

        graph = TaskGraph(tasks, edges)
        logger.debug(f"Built task graph with {len(graph.tasks)} tasks and {len(graph.edges)} edges")

        PriorityPropagator(graph).propagate()
        return graph

    @staticmethod
    def _deduplicate(definitions: Iterable[TaskDefinition]) -> list[TaskDefinition]:
        unique: dict[str, TaskDefinition] = {}
        for definition in definitions:
            if definition.id in unique:
                logger.debug(f"Dropping duplicate task definition '{definition.id}'")
                continue
            unique[definition.id] = definition
        return list(unique.values())

    @staticmethod
    def _sorted(definitions: list[TaskDefinition]) -> list[TaskDefinition]:
        # Root tasks first, then grouped by parent, in sibling order
        return sorted(
            definitions,
            key=lambda d: (d.parent_id is not None, d.parent_id or "", d.sibling_ordinal),
        )

    @staticmethod
    def _resolve_root(
        definition: TaskDefinition, by_id: dict[str, TaskDefinition]
    ) -> TaskDefinition:
        visited = {definition.id}
        current = definition
        while current.parent_id is not None and current.parent_id in by_id:
            if current.parent_id in visited:
                raise CircularDependencyError(
                    f"Circular reference detected in parent chain of task '{definition.id}'"
                )
            current = by_id[current.parent_id]
            visited.add(current.id)
        return current

    def _create_task(
        self, definition: TaskDefinition, index: int, root: TaskDefinition, is_parent: bool
    ) -> SchedulingTask:
        estimate = None
        if not definition.is_milestone and not is_parent:
            estimate = self.estimator.estimate(definition.duration, self.confidence)
        duration = max(0, math.ceil(estimate)) if estimate is not None else 0

        task = SchedulingTask(
            definition=definition,
            index=index,
            duration=duration,
            duration_adjusted=duration,
            estimate=estimate,
            project_name=root.name,
            is_parent=is_parent,
            is_root=root is definition,
        )
        if definition.start_after is not None:
            task.start_after = self.calendar.date_to_workday(definition.start_after)
            task.earliest_start = task.start_after
        if definition.due_before is not None:
            task.due_before = self.calendar.date_to_workday(definition.due_before)
            task.latest_finish = task.due_before
        return task

    @staticmethod
    def _dependency_edges(
        tasks: list[SchedulingTask], index_by_id: dict[str, int]
    ) -> list[tuple[int, int]]:
        edges: list[tuple[int, int]] = []
        for task in tasks:
            for dependency_id in task.definition.dependencies:
                dependency_index = index_by_id.get(dependency_id)
                if dependency_index is None:
                    logger.warning(
                        f"Task '{task.id}' depends on unknown task '{dependency_id}', ignoring"
                    )
                    continue
                edges.append((dependency_index, task.index))
        return edges

    @staticmethod
    def _sibling_edges(
        siblings: list[TaskDefinition], index_by_id: dict[str, int]
    ) -> list[tuple[int, int]]:
        edges: list[tuple[int, int]] = []
        previous: int | None = None
        for sibling in siblings:
            if sibling.allow_parallel_scheduling:
                continue
            current = index_by_id[sibling.id]
            if previous is not None:
                edges.append((previous, current))
            previous = current
        return edges
