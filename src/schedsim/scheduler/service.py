"""High-level scheduling service."""

from collections.abc import Sequence

from schedsim.exceptions import ValidationError
from schedsim.logger import get_logger
from schedsim.models import GlobalSettings, TaskDefinition
from schedsim.resources import Resource, build_resource_lookup
from schedsim.workdays import WorkCalendar

from .assignment import ResourceScheduler
from .config import SchedulingConfig
from .core import ScheduleComparison, ScheduleResult, TaskRange
from .estimators import create_estimator
from .graph import TaskGraphBuilder
from .protocols import DurationEstimator, TraceSink
from .resources import ResourceAvailability

logger = get_logger()


class SchedulingService:
    """Runs complete scheduling passes over one set of inputs.

    This service coordinates:
    - TaskGraphBuilder (duration estimates, graph, ranking)
    - ResourceAvailability (absence calendar per resource)
    - ResourceScheduler (greedy assignment loop)

    Each run builds its own graph and availability matrix, so runs never
    share mutable state.
    """

    def __init__(  # noqa: PLR0913 - needs inputs plus optional collaborators
        self,
        tasks: Sequence[TaskDefinition],
        resources: Sequence[Resource],
        settings: GlobalSettings,
        config: SchedulingConfig | None = None,
        estimator: DurationEstimator | None = None,
        trace: TraceSink | None = None,
    ):
        """Initialize scheduling service.

        Args:
            tasks: Task definitions in input order
            resources: Resource pool
            settings: Project calendar and work types
            config: Optional scheduling configuration
            estimator: Optional duration estimator (overrides config.estimator)
            trace: Optional sink for the step-by-step trace
        """
        self.tasks = list(tasks)
        self.resources = list(resources)
        self.settings = settings
        self.config = config or SchedulingConfig()
        self.estimator = estimator
        self.trace = trace
        self.calendar = WorkCalendar(settings)
        self.resource_lookup = build_resource_lookup(self.resources)

    def run(self, confidence: float) -> ScheduleResult:
        """Schedule every task at one confidence level.

        Raises:
            ValidationError: On an out-of-range confidence or a cyclic graph
            SchedulingError: When a task cannot be assigned
        """
        if not 0 <= confidence <= 1:
            raise ValidationError(f"Confidence must be between 0 and 1, got {confidence}")

        estimator = self.estimator or create_estimator(self.config)
        logger.changes(
            f"Scheduling {len(self.tasks)} tasks on {len(self.resources)} resources "
            f"at {confidence:.0%} confidence"
        )

        graph = TaskGraphBuilder(self.calendar, estimator, confidence).build(self.tasks)
        availability = ResourceAvailability(self.resources, self.calendar, self.config)
        scheduler = ResourceScheduler(
            graph, self.resources, availability, config=self.config, trace=self.trace
        )
        warnings = scheduler.run()

        return ScheduleResult(
            confidence=confidence,
            graph=graph,
            resources=self.resource_lookup,
            calendar=self.calendar,
            warnings=warnings,
        )

    def run_range(self, confidence: float, range_confidence: float) -> ScheduleComparison:
        """Run two passes and compare them task by task.

        The lower confidence level is the best case.
        """
        low, high = sorted((confidence, range_confidence))
        best = self.run(low)
        worst = self.run(high)

        ranges: dict[str, TaskRange] = {}
        for task_id, best_task in best.tasks.items():
            worst_task = worst.tasks.get(task_id)
            if worst_task is None:
                continue
            ranges[task_id] = TaskRange(
                task_id=task_id,
                best_start=best.start_date(task_id),
                best_finish=best.finish_date(task_id),
                worst_start=worst.start_date(task_id),
                worst_finish=worst.finish_date(task_id),
                best_resource_id=best_task.assigned_resource_id,
                worst_resource_id=worst_task.assigned_resource_id,
            )

        return ScheduleComparison(best=best, worst=worst, ranges=ranges)
