"""Conversion between calendar dates and work-day offsets.

The scheduling core works exclusively in integer work-day offsets from the
project start. Offset 0 is the first working day on or after
``GlobalSettings.project_start_date``; weekends (days outside the configured
work week) and holidays are skipped entirely.
"""

from datetime import date, timedelta

from schedsim.models import GlobalSettings


class WorkCalendar:
    """Translate dates to work-day offsets and back for one project."""

    def __init__(self, settings: GlobalSettings) -> None:
        self.settings = settings
        self.project_start = settings.project_start_date
        self._start_weekday = settings.start_day.index
        self._days_in_week = settings.days_in_work_week
        self._holidays = frozenset(h.date for h in settings.holidays)

    def _is_work_weekday(self, d: date) -> bool:
        return (d.weekday() - self._start_weekday) % 7 < self._days_in_week

    def is_working_day(self, d: date) -> bool:
        """Return True if ``d`` falls in the work week and is not a holiday."""
        return self._is_work_weekday(d) and d not in self._holidays

    def workdays_between(self, start: date, end: date) -> int:
        """Count working days in the half-open range ``[start, end)``."""
        if end <= start:
            return 0

        total_days = (end - start).days
        full_weeks, remainder = divmod(total_days, 7)
        count = full_weeks * self._days_in_week
        tail_start = start + timedelta(days=full_weeks * 7)
        for offset in range(remainder):
            if self._is_work_weekday(tail_start + timedelta(days=offset)):
                count += 1

        count -= sum(
            1 for holiday in self._holidays if start <= holiday < end and self._is_work_weekday(holiday)
        )
        return count

    def date_to_workday(self, d: date) -> int:
        """Offset of ``d`` from the project start.

        Dates before the project start map to 0; a non-working date maps to
        the offset of the next working day.
        """
        return self.workdays_between(self.project_start, d)

    def workday_to_date(self, offset: int) -> date:
        """Calendar date of work-day ``offset`` (0 is the first working day)."""
        if offset < 0:
            raise ValueError(f"Work-day offset must not be negative, got {offset}")

        current = self.project_start
        while not self.is_working_day(current):
            current += timedelta(days=1)

        # Skip whole weeks when no holiday could be inside them
        remaining = offset
        while remaining > 0:
            if remaining > self._days_in_week and not self._has_holiday_within(current, 7):
                current += timedelta(days=7)
                remaining -= self._days_in_week
                continue
            current += timedelta(days=1)
            if self.is_working_day(current):
                remaining -= 1
        return current

    def _has_holiday_within(self, start: date, days: int) -> bool:
        end = start + timedelta(days=days + 1)
        return any(start <= holiday <= end for holiday in self._holidays)

    def workday_count_through(self, d: date) -> int:
        """Number of working days from the project start up to and including ``d``."""
        return self.workdays_between(self.project_start, d + timedelta(days=1))
