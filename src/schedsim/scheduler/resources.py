"""Day-by-resource availability matrix."""

import math
from enum import Enum

import numpy as np

from schedsim.logger import get_logger
from schedsim.resources import Resource
from schedsim.workdays import WorkCalendar

from .config import SchedulingConfig
from .core import Slot

logger = get_logger()


class BlockKind(str, Enum):
    """Why a matrix cell is blocked."""

    ABSENCE = "absence"  # Time off or before/after employment; may be absorbed into a task
    BOOKING = "booking"  # Committed task assignment; never shared


class ResourceAvailability:
    """Tracks per-day capacity for every resource.

    Row ``d`` of the matrix is work day ``d`` (0 is the project start), column
    ``r`` is ``resources[r]``. Cells hold 1.0 when free and 0.0 when blocked,
    and a blocked cell is never freed again. Days past the end of the matrix
    are free; the matrix grows as blocks extend beyond it.
    """

    def __init__(
        self,
        resources: list[Resource],
        calendar: WorkCalendar,
        config: SchedulingConfig | None = None,
    ) -> None:
        self.resources = resources
        self.calendar = calendar
        self.config = config or SchedulingConfig()
        self._matrix = np.ones((0, len(resources)), dtype=float)
        self._booked = np.zeros((0, len(resources)), dtype=bool)
        self._bookings: list[list[Slot]] = [[] for _ in resources]
        self._end_limits: list[int | None] = [
            calendar.workday_count_through(r.end_date) if r.end_date is not None else None
            for r in resources
        ]
        self._seed_absences()

    @property
    def days(self) -> int:
        """Number of materialized days."""
        return self._matrix.shape[0]

    @property
    def matrix(self) -> np.ndarray:
        """Read-only view of the capacity matrix."""
        view = self._matrix.view()
        view.flags.writeable = False
        return view

    def bookings(self, resource_index: int) -> list[Slot]:
        """Committed task intervals for a resource, in booking order."""
        return list(self._bookings[resource_index])

    def is_free(self, day: int, resource_index: int) -> bool:
        if day >= self.days:
            return True
        return bool(self._matrix[day, resource_index] > 0)

    def _seed_absences(self) -> None:
        project_start = self.calendar.project_start
        for index, resource in enumerate(self.resources):
            if resource.start_date > project_start:
                first_day = self.calendar.date_to_workday(resource.start_date)
                if first_day > 0:
                    self.block(0, first_day, index, BlockKind.ABSENCE)

            for period in resource.unavailable_periods:
                start = self.calendar.date_to_workday(max(period.start, project_start))
                end = self.calendar.workday_count_through(period.end)
                if end > start:
                    logger.debug(
                        f"{resource.name}: unavailable days {start}-{end - 1}"
                        + (f" ({period.reason})" if period.reason else "")
                    )
                    self.block(start, end - start, index, BlockKind.ABSENCE)

    def familiarity(self, resource_index: int, work_type_id: str) -> float:
        """Familiarity of a resource with a work type, 0 when unassigned."""
        assignment = self.resources[resource_index].get_assignment(work_type_id)
        return assignment.familiarity if assignment is not None else 0.0

    def adjusted_duration(
        self, resource_index: int, duration: int, work_type_id: str | None
    ) -> int | None:
        """Duration on this resource, or None if it cannot do the work type."""
        if work_type_id is None:
            return duration
        familiarity = self.familiarity(resource_index, work_type_id)
        if familiarity <= 0:
            return None
        # Tolerance keeps 3 / 0.5 from rounding up to 7
        return math.ceil(duration / familiarity - 1e-9)

    def find_slot(
        self,
        resource_index: int,
        duration: int,
        not_before: int,
        work_type_id: str | None = None,
    ) -> Slot | None:
        """Find the earliest window for ``duration`` days of work on a resource.

        Short runs of absence (up to ``max(min_blocked_days, duration // divisor)``
        consecutive days) are absorbed into the returned span; longer runs, and
        any day booked by another task, restart the search after them.

        Args:
            resource_index: Column of the resource
            duration: Work days before familiarity adjustment
            not_before: Earliest allowed start day
            work_type_id: Work type used for the familiarity adjustment

        Returns:
            Slot with the start day and the total span, or None when the
            resource cannot do the work or would have left before finishing
        """
        if duration <= 0:
            raise ValueError(f"Slot duration must be positive, got {duration}")

        adjusted = self.adjusted_duration(resource_index, duration, work_type_id)
        if adjusted is None:
            return None

        allowed_blocked = max(
            self.config.min_blocked_days, adjusted // self.config.blocked_days_divisor
        )
        start = max(not_before, 0)

        started = False
        proposed_start = start
        span = adjusted
        remaining = adjusted
        consecutive_blocked = 0

        slot: Slot | None = None
        for day in range(start, self.days):
            if self._booked[day, resource_index]:
                started = False
                span = adjusted
                remaining = adjusted
                consecutive_blocked = 0
                continue

            if self._matrix[day, resource_index] <= 0:
                consecutive_blocked += 1
                if started:
                    span += 1
                continue

            if consecutive_blocked > allowed_blocked:
                started = False
                span = adjusted
                remaining = adjusted
            consecutive_blocked = 0

            if not started:
                proposed_start = day
                started = True

            remaining -= 1
            if remaining <= 0:
                slot = Slot(resource_index, proposed_start, span)
                break

        if slot is None:
            if started and consecutive_blocked <= allowed_blocked:
                # span already counts the days still needed past the end of the matrix
                slot = Slot(resource_index, proposed_start, span)
            else:
                slot = Slot(resource_index, max(self.days, start), adjusted)

        end_limit = self._end_limits[resource_index]
        if end_limit is not None and slot.end_day > end_limit:
            logger.debug(
                f"{self.resources[resource_index].name}: slot {slot.start_day}+{slot.duration} "
                f"ends after the resource's last day {end_limit - 1}"
            )
            return None
        return slot

    def block(
        self,
        start_day: int,
        duration: int,
        resource_index: int,
        kind: BlockKind = BlockKind.BOOKING,
    ) -> None:
        """Mark ``[start_day, start_day + duration)`` unavailable for a resource.

        Raises:
            ValueError: If a booking overlaps another booking
        """
        if start_day < 0 or duration < 0:
            raise ValueError(f"Invalid block {start_day}+{duration}")
        end_day = start_day + duration
        self._ensure_days(end_day)

        if kind == BlockKind.BOOKING:
            if self._booked[start_day:end_day, resource_index].any():
                raise ValueError(
                    f"Booking {start_day}+{duration} overlaps an existing booking for "
                    f"{self.resources[resource_index].name}"
                )
            self._booked[start_day:end_day, resource_index] = True
            self._bookings[resource_index].append(Slot(resource_index, start_day, duration))

        self._matrix[start_day:end_day, resource_index] = 0.0

    def _ensure_days(self, days: int) -> None:
        missing = days - self.days
        if missing <= 0:
            return
        columns = len(self.resources)
        self._matrix = np.vstack((self._matrix, np.ones((missing, columns), dtype=float)))
        self._booked = np.vstack((self._booked, np.zeros((missing, columns), dtype=bool)))

    def format_matrix(self, start_day: int = 0, end_day: int | None = None) -> str:
        """Render the matrix as text, one row per day ('.' free, 'x' absent, '#' booked)."""
        end = self.days if end_day is None else min(end_day, self.days)
        header = "day  " + " ".join(r.id for r in self.resources)
        lines = [header]
        for day in range(start_day, end):
            cells = []
            for index, resource in enumerate(self.resources):
                if self._booked[day, index]:
                    mark = "#"
                elif self._matrix[day, index] <= 0:
                    mark = "x"
                else:
                    mark = "."
                cells.append(mark.ljust(len(resource.id)))
            lines.append(f"{day:<4} " + " ".join(cells))
        return "\n".join(lines)
