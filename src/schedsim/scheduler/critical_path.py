"""Critical Path Method forward and backward passes."""

import math

from schedsim.logger import debug_enabled, get_logger

from .core import CriticalPathResult
from .graph import TaskGraph

logger = get_logger()


class CriticalPathCalculator:
    """Recomputes earliest/latest start and finish and slack for unscheduled tasks.

    Finish offsets are exclusive, so a successor can start on its
    predecessor's earliest finish. Scheduled tasks keep their frozen values
    and feed into the passes as fixed points.

    Latest dates only come from due dates: a task with no due date and no
    constrained successor has an unbounded latest finish and infinite slack,
    so a critical path forms only where a due date is tight.
    """

    def __init__(self, graph: TaskGraph, epsilon: float = 1e-6) -> None:
        self.graph = graph
        self.epsilon = epsilon

    def calculate(self) -> CriticalPathResult:
        self._forward_pass()
        self._backward_pass()

        tasks = self.graph.tasks
        critical: list[int] = []
        infeasible: list[int] = []
        for task in tasks:
            if task.is_scheduled:
                continue
            if task.slack < 0:
                infeasible.append(task.index)
            if task.can_be_scheduled and task.slack < self.epsilon:
                critical.append(task.index)

        critical.sort(key=lambda index: tasks[index].rank or 0)

        if debug_enabled():
            logger.debug(f"Critical path: {[tasks[i].id for i in critical]}")
        return CriticalPathResult(critical_path=critical, infeasible=infeasible)

    def _forward_pass(self) -> None:
        tasks = self.graph.tasks
        for index in self.graph.topological_order:
            task = tasks[index]
            if task.is_scheduled:
                continue
            earliest_start = task.start_after if task.start_after is not None else 0
            for predecessor in self.graph.predecessors(index):
                earliest_start = max(earliest_start, tasks[predecessor].earliest_finish)
            task.earliest_start = earliest_start
            task.earliest_finish = earliest_start + task.duration_adjusted

    def _backward_pass(self) -> None:
        tasks = self.graph.tasks
        for index in reversed(self.graph.topological_order):
            task = tasks[index]
            if task.is_scheduled:
                continue
            latest_finish = min(
                (tasks[s].latest_start for s in self.graph.successors(index)), default=math.inf
            )
            if task.due_before is not None:
                latest_finish = min(latest_finish, task.due_before)
            task.latest_finish = latest_finish
            task.latest_start = latest_finish - task.duration_adjusted
            task.slack = task.latest_start - task.earliest_start
