"""Greedy resource assignment loop.

Each iteration recomputes the critical path, picks one ready task (the head
of the critical path, else the lowest rank), scores every eligible resource
and commits the best acceptable slot. Assignments are never revisited.
"""

import math

import numpy as np

from schedsim.exceptions import (
    MissingWorkTypeError,
    NoEligibleResourceError,
    UnschedulableTaskError,
)
from schedsim.logger import checks_enabled, get_logger
from schedsim.resources import Resource

from .config import SchedulingConfig
from .core import Candidate, SchedulingTask
from .critical_path import CriticalPathCalculator
from .graph import TaskGraph
from .protocols import TraceSink
from .resources import BlockKind, ResourceAvailability
from .trace import NullTraceSink

logger = get_logger()

EPSILON = 1e-9


class ResourceScheduler:
    """Assigns every schedulable task in a graph to one resource."""

    def __init__(  # noqa: PLR0913 - scheduler needs graph, resources and collaborators
        self,
        graph: TaskGraph,
        resources: list[Resource],
        availability: ResourceAvailability,
        config: SchedulingConfig | None = None,
        trace: TraceSink | None = None,
    ) -> None:
        self.graph = graph
        self.resources = resources
        self.availability = availability
        self.config = config or SchedulingConfig()
        self.trace: TraceSink = trace or NullTraceSink()
        self.calculator = CriticalPathCalculator(graph, self.config.slack_epsilon)
        self.warnings: list[str] = []
        self._resource_index = {resource.id: i for i, resource in enumerate(resources)}
        self._reported_infeasible: set[int] = set()

    def run(self) -> list[str]:
        """Schedule until every schedulable task has a resource.

        Returns:
            Warnings collected during the run (negative slack, forced placements)

        Raises:
            MissingWorkTypeError: A schedulable task has no work type
            NoEligibleResourceError: No resource may do a task's work type
            UnschedulableTaskError: No resource has any slot for a task
        """
        iteration = 0
        while True:
            result = self.calculator.calculate()
            self._report_infeasible(result.infeasible)

            task = self._next_task(result.critical_path)
            if task is None:
                break

            iteration += 1
            on_critical_path = task.index in result.critical_path
            logger.checks(
                f"[{iteration}] Selected {task.id} (rank={task.rank}, slack={task.slack}"
                f"{', critical' if on_critical_path else ''})"
            )
            self._schedule_task(task)

        self.calculator.calculate()
        logger.changes(f"Scheduled {iteration} tasks")
        return self.warnings

    def _report_infeasible(self, infeasible: list[int]) -> None:
        for index in infeasible:
            if index in self._reported_infeasible:
                continue
            self._reported_infeasible.add(index)
            task = self.graph.tasks[index]
            message = (
                f"Task '{task.id}' has negative slack ({task.slack} days): "
                "its date constraints cannot all be met"
            )
            logger.warning(message)
            self.warnings.append(message)

    def _ready_tasks(self) -> list[bool]:
        """Tasks whose predecessors are all done.

        A scheduled task is done; a placeholder is done once its own
        predecessors are.
        """
        tasks = self.graph.tasks
        done = [False] * len(tasks)
        ready = [False] * len(tasks)
        for index in self.graph.topological_order:
            task = tasks[index]
            predecessors_done = all(done[p] for p in self.graph.predecessors(index))
            if task.is_scheduled:
                done[index] = True
            elif task.is_placeholder:
                done[index] = predecessors_done
            else:
                ready[index] = predecessors_done
        return ready

    def _next_task(self, critical_path: list[int]) -> SchedulingTask | None:
        ready = self._ready_tasks()
        tasks = self.graph.tasks
        for index in critical_path:
            if ready[index]:
                return tasks[index]

        candidates = [task for task in tasks if ready[task.index]]
        if not candidates:
            return None
        return min(candidates, key=lambda task: (task.rank or 0, task.index))

    def _selector(self, task: SchedulingTask, work_type_id: str) -> np.ndarray:
        """Per-resource selection weight for a task."""
        required = task.definition.required_familiarity
        weights = np.zeros(len(self.resources), dtype=float)
        for index, resource in enumerate(self.resources):
            assignment = resource.get_assignment(work_type_id)
            if assignment is None or assignment.familiarity <= 0:
                continue
            if assignment.familiarity < required:
                logger.checks(
                    f"  {resource.name}: familiarity {assignment.familiarity:.2f} "
                    f"below required {required:.2f}"
                )
                continue
            weights[index] = assignment.preference

        overrides = np.zeros(len(self.resources), dtype=float)
        for individual in task.definition.individual_priorities:
            index = self._resource_index.get(individual.resource_id)
            if index is None:
                logger.debug(
                    f"  Ignoring individual priority for unknown resource '{individual.resource_id}'"
                )
                continue
            overrides[index] = individual.priority

        if overrides.sum() > EPSILON:
            weights = weights * overrides

        self.trace.write(f"Selector: {np.round(weights, 3).tolist()}")
        return weights

    def _candidates(self, task: SchedulingTask, work_type_id: str) -> list[Candidate]:
        selector = self._selector(task, work_type_id)
        if selector.sum() < EPSILON:
            raise NoEligibleResourceError(
                f"No resource can be assigned work type '{work_type_id}' for task '{task.id}'",
                task_id=task.id,
            )

        candidates: list[Candidate] = []
        for index, weight in enumerate(selector):
            if weight <= EPSILON:
                continue
            slot = self.availability.find_slot(
                index, task.duration, task.earliest_start, work_type_id
            )
            if slot is None:
                logger.checks(f"  {self.resources[index].name}: no slot available")
                continue
            candidates.append(
                Candidate(slot=slot, resource_id=self.resources[index].id, weight=float(weight))
            )
        return candidates

    @staticmethod
    def _log_factor(value: float, spread: float) -> float:
        normalized = 0.0 if spread <= 0 else value / spread
        if normalized <= 0:
            return 1.0
        return min(1.0, -math.log(normalized))

    def _score(self, task: SchedulingTask, candidates: list[Candidate]) -> list[Candidate]:
        """Score candidates and order them best first."""
        delays = [c.slot.start_day - task.earliest_start for c in candidates]
        min_delay = min(delays)
        delay_spread = max(0, *delays) - min_delay
        duration_spread = max(0, *(c.slot.duration for c in candidates)) - task.duration

        for candidate, delay in zip(candidates, delays, strict=True):
            candidate.delay_factor = self._log_factor(delay - min_delay, delay_spread)
            candidate.duration_factor = self._log_factor(
                candidate.slot.duration - task.duration, duration_spread
            )
            candidate.score = (
                2 * candidate.weight + candidate.delay_factor + candidate.duration_factor
            ) / 4

        scale = 10**self.config.score_precision
        return sorted(candidates, key=lambda c: (-int(c.score * scale), c.slot.start_day))

    def _max_duration(self, task: SchedulingTask) -> float:
        duration = task.definition.duration
        if duration is None:
            return self.config.default_max_duration
        spread = duration.pessimistic - duration.optimistic
        return duration.pessimistic + max(
            self.config.overrun_floor_days, self.config.overrun_spread_multiplier * spread
        )

    def _choose(self, task: SchedulingTask, candidates: list[Candidate]) -> tuple[Candidate, bool]:
        """Pick the first acceptable candidate, else force the best-scored one."""
        earliest_start = min(c.slot.start_day for c in candidates)
        max_duration = self._max_duration(task)
        self.trace.write(f"Earliest start: {earliest_start} Max duration: {max_duration:g}")

        for candidate in candidates:
            start_delay = candidate.slot.start_day - earliest_start
            extension = candidate.slot.duration - task.duration
            if start_delay + extension > task.slack:
                logger.checks(
                    f"  Skipping {candidate.resource_id}: can't complete in time "
                    f"({start_delay} + {extension} > {task.slack})"
                )
                continue
            if candidate.slot.duration > max_duration:
                logger.checks(
                    f"  Skipping {candidate.resource_id}: too long "
                    f"({candidate.slot.duration} > {max_duration:g})"
                )
                continue
            return candidate, False

        return candidates[0], True

    def _schedule_task(self, task: SchedulingTask) -> None:
        work_type_id = task.work_type_id
        if work_type_id is None:
            raise MissingWorkTypeError(f"Task '{task.id}' has no work type", task_id=task.id)

        self.trace.section(f"Scheduling: {task.name} ({task.id})")
        self.trace.write(
            f"Duration: {task.duration} WorkType: {work_type_id} Slack: {task.slack} "
            f"Earliest start: {task.earliest_start} Latest finish: {task.latest_finish}"
        )

        candidates = self._candidates(task, work_type_id)
        if not candidates:
            raise UnschedulableTaskError(
                f"No resource has an available slot for task '{task.id}'", task_id=task.id
            )

        candidates = self._score(task, candidates)
        if checks_enabled() or self.trace.enabled:
            for candidate in candidates:
                line = (
                    f"  Candidate {candidate.resource_id}: start={candidate.slot.start_day} "
                    f"duration={candidate.slot.duration} score={candidate.score:.2f} "
                    f"[weight={candidate.weight:.2f} delay={candidate.delay_factor:.2f} "
                    f"duration={candidate.duration_factor:.2f}]"
                )
                logger.checks(line)
                self.trace.write(line)

        chosen, forced = self._choose(task, candidates)
        if forced:
            message = (
                f"Task '{task.id}' force-scheduled on '{chosen.resource_id}': "
                "no candidate met the slack and duration limits"
            )
            logger.checks(f"  {message}")
            self.trace.write("FORCE SCHEDULE")
            self.warnings.append(message)

        slot = chosen.slot
        self.availability.block(slot.start_day, slot.duration, slot.resource_index, BlockKind.BOOKING)
        task.assign(chosen.resource_id, slot.start_day, slot.duration)

        resource = self.resources[slot.resource_index]
        logger.changes(
            f"Scheduled {task.id} on {resource.name} at day {slot.start_day} "
            f"for {slot.duration} days (planned {task.duration})"
        )
        self.trace.write(
            f"Scheduled {task.id} on {resource.name} at {slot.start_day} for {slot.duration} days"
        )
