"""Priority propagation into a dense total ranking."""

from typing import TYPE_CHECKING

from schedsim.logger import get_logger

if TYPE_CHECKING:
    from .graph import TaskGraph

logger = get_logger()


class PriorityPropagator:
    """Assigns every task a dense rank (lower is scheduled sooner).

    Tasks with an explicit priority are visited first, highest priority first,
    then the remaining tasks in graph order. Visiting a task ranks all of its
    unranked predecessors before it (post-order), so every task's rank is
    strictly greater than the ranks of everything it depends on.
    """

    def __init__(self, graph: "TaskGraph") -> None:
        self.graph = graph
        self._next_rank = 0

    def propagate(self) -> None:
        tasks = self.graph.tasks
        prioritized = sorted(
            (task for task in tasks if task.definition.priority is not None),
            key=lambda task: (-(task.definition.priority or 0), task.index),
        )
        for task in prioritized:
            self._rank(task.index)
        for task in tasks:
            self._rank(task.index)

    def _rank(self, start: int) -> int:
        tasks = self.graph.tasks
        existing = tasks[start].rank
        if existing is not None:
            return existing

        # (index, expanded): an expanded entry is ranked once its predecessors are
        stack: list[tuple[int, bool]] = [(start, False)]
        while stack:
            index, expanded = stack.pop()
            task = tasks[index]
            if task.rank is not None:
                continue
            if expanded:
                task.rank = self._next_rank
                self._next_rank += 1
                logger.debug(f"Rank {task.rank}: {task.id}")
                continue
            stack.append((index, True))
            for predecessor in reversed(self.graph.predecessors(index)):
                if tasks[predecessor].rank is None:
                    stack.append((predecessor, False))

        rank = tasks[start].rank
        assert rank is not None
        return rank
