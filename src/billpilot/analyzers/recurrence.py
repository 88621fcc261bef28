"""
Recurrence rules — due-date arithmetic for recurring bills.

Provides:
- Month arithmetic with end-of-month clamping
- Next / upcoming due dates for a frequency
- Every occurrence of a pattern inside a date window
- Pattern validation
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterator

from billpilot.models.bill import RecurrenceFrequency, RecurrencePattern


@dataclass
class ValidationResult:
    """Outcome of validating a recurrence pattern."""

    valid: bool
    error: str | None = None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(day: date, months: int, day_of_month: int | None = None) -> date:
    """Shift ``day`` by whole months, clamping the day to the target month's length."""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    wanted = day_of_month if day_of_month is not None else day.day
    return date(year, month, min(wanted, days_in_month(year, month)))


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start``'s month to ``end``'s month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def next_due_date(
    last_due: date,
    frequency: RecurrenceFrequency,
    day_of_month: int,
    end_date: date | None = None,
) -> date | None:
    """Next due date after ``last_due``, or None once the recurrence has ended."""
    candidate = add_months(last_due, frequency.months, day_of_month)
    if end_date and candidate > end_date:
        return None
    return candidate


def upcoming_due_dates(
    start: date,
    frequency: RecurrenceFrequency,
    day_of_month: int,
    end_date: date | None = None,
    count: int = 12,
) -> list[date]:
    """The next ``count`` due dates strictly after ``start``."""
    dates: list[date] = []
    current = start
    for _ in range(max(0, count)):
        following = next_due_date(current, frequency, day_of_month, end_date)
        if following is None:
            break
        dates.append(following)
        current = following
    return dates


def occurrences_between(
    pattern: RecurrencePattern,
    start: date,
    end: date,
) -> Iterator[date]:
    """Yield every occurrence of ``pattern`` that falls within ``[start, end]``.

    Occurrences are anchored on the pattern's start month and computed from
    the anchor each time, so a clamped February never shifts later months.
    """
    limit = end if pattern.end_date is None else min(end, pattern.end_date)
    if limit < start:
        return

    step = pattern.frequency.months
    anchor = pattern.start_date.replace(day=1)

    # Jump close to the window instead of walking from a distant anchor.
    k = max(0, months_between(anchor, start) // step - 1)
    while True:
        occurrence = add_months(anchor, k * step, pattern.day_of_month)
        if occurrence > limit:
            break
        if occurrence >= start and occurrence >= pattern.start_date:
            yield occurrence
        k += 1


def validate_pattern(
    frequency: RecurrenceFrequency,
    day_of_month: int,
    start_date: date,
    end_date: date | None = None,
) -> ValidationResult:
    """Validate the parts of a recurrence pattern before it is stored."""
    if not isinstance(frequency, RecurrenceFrequency):
        try:
            RecurrenceFrequency(frequency)
        except ValueError:
            return ValidationResult(False, f"Unknown frequency: {frequency}")

    if day_of_month < 1 or day_of_month > 31:
        return ValidationResult(False, "Day of month must be between 1 and 31")

    if end_date and end_date < start_date:
        return ValidationResult(False, "End date must be after start date")

    max_day = days_in_month(start_date.year, start_date.month)
    if day_of_month > max_day:
        return ValidationResult(
            False,
            f"Day of month ({day_of_month}) is invalid for the start date's month (max: {max_day})",
        )

    return ValidationResult(True)
