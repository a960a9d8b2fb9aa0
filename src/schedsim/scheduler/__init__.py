"""Scheduler package - resource-constrained project scheduling.

This package provides:
- Duration estimators (analytic PERT, Monte Carlo normal and Beta)
- TaskGraphBuilder: dependency/hierarchy/sibling graph with cycle detection
- PriorityPropagator: dense ranking from priorities and topology
- CriticalPathCalculator: CPM forward/backward passes
- ResourceAvailability: day-by-resource capacity matrix
- ResourceScheduler: greedy assignment loop

Main entry point:
- SchedulingService: runs complete passes and best/worst comparisons
"""

from .assignment import ResourceScheduler
from .config import EstimatorType, SchedulingConfig
from .core import (
    Candidate,
    CriticalPathResult,
    ScheduleComparison,
    ScheduleResult,
    SchedulingTask,
    Slot,
    TaskRange,
)
from .critical_path import CriticalPathCalculator
from .estimators import (
    MonteCarloBetaEstimator,
    MonteCarloNormalEstimator,
    PertEstimator,
    create_estimator,
)
from .graph import TaskGraph, TaskGraphBuilder
from .priority import PriorityPropagator
from .protocols import DurationEstimator, TraceSink
from .resources import BlockKind, ResourceAvailability
from .service import SchedulingService
from .trace import NullTraceSink, StreamTraceSink

__all__ = [
    "BlockKind",
    "Candidate",
    "CriticalPathCalculator",
    "CriticalPathResult",
    "DurationEstimator",
    "EstimatorType",
    "MonteCarloBetaEstimator",
    "MonteCarloNormalEstimator",
    "NullTraceSink",
    "PertEstimator",
    "PriorityPropagator",
    "ResourceAvailability",
    "ResourceScheduler",
    "ScheduleComparison",
    "ScheduleResult",
    "SchedulingConfig",
    "SchedulingService",
    "SchedulingTask",
    "Slot",
    "StreamTraceSink",
    "TaskGraph",
    "TaskGraphBuilder",
    "TaskRange",
    "TraceSink",
    "create_estimator",
]
