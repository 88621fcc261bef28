"""
Period Calendar — calendar period boundaries, labels and enumeration.

Periods are inclusive calendar-date ranges: a monthly period runs from the
1st to the last day of the month. Weeks start on Monday. The ``custom``
period type is bucketed monthly.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator

from billpilot.models.forecast import PeriodType


class PeriodCalendar:
    """Pure date arithmetic over calendar periods."""

    @staticmethod
    def normalize(period_type: PeriodType) -> PeriodType:
        """Map ``custom`` onto the granularity it is bucketed with."""
        if period_type == PeriodType.CUSTOM:
            return PeriodType.MONTHLY
        return period_type

    @classmethod
    def period_start(cls, period_type: PeriodType, day: date) -> date:
        """Start of the period enclosing ``day``."""
        period_type = cls.normalize(period_type)

        if period_type == PeriodType.WEEKLY:
            return day - timedelta(days=day.weekday())
        if period_type == PeriodType.MONTHLY:
            return day.replace(day=1)
        if period_type == PeriodType.QUARTERLY:
            quarter = (day.month - 1) // 3
            return date(day.year, quarter * 3 + 1, 1)
        return date(day.year, 1, 1)

    @classmethod
    def next_period_start(cls, period_type: PeriodType, day: date) -> date:
        """Start of the period following the one enclosing ``day``."""
        period_type = cls.normalize(period_type)
        start = cls.period_start(period_type, day)

        if period_type == PeriodType.WEEKLY:
            return start + timedelta(days=7)
        if period_type == PeriodType.MONTHLY:
            if start.month == 12:
                return date(start.year + 1, 1, 1)
            return date(start.year, start.month + 1, 1)
        if period_type == PeriodType.QUARTERLY:
            if start.month == 10:
                return date(start.year + 1, 1, 1)
            return date(start.year, start.month + 3, 1)
        return date(start.year + 1, 1, 1)

    @classmethod
    def period_end(cls, period_type: PeriodType, day: date) -> date:
        """Last day of the period enclosing ``day``."""
        return cls.next_period_start(period_type, day) - timedelta(days=1)

    @classmethod
    def enumerate_periods(
        cls,
        period_type: PeriodType,
        start: date,
        end: date,
    ) -> Iterator[tuple[date, date]]:
        """Yield ``(period_start, period_end)`` for every period touching ``[start, end]``.

        Periods are always whole, so the first and last may extend past the
        window. Nothing is yielded when ``end`` is before ``start``.
        """
        if end < start:
            return
        current = cls.period_start(period_type, start)
        while current <= end:
            following = cls.next_period_start(period_type, current)
            yield current, following - timedelta(days=1)
            current = following

    @classmethod
    def label(cls, period_type: PeriodType, period_start: date) -> str:
        """Human readable label, e.g. "January 2026", "Q1 2026", "2026"."""
        period_type = cls.normalize(period_type)

        if period_type == PeriodType.WEEKLY:
            return f"Week of {period_start.isoformat()}"
        if period_type == PeriodType.MONTHLY:
            return period_start.strftime("%B %Y")
        if period_type == PeriodType.QUARTERLY:
            return f"Q{(period_start.month - 1) // 3 + 1} {period_start.year}"
        return str(period_start.year)

    @classmethod
    def key(cls, period_type: PeriodType, day: date) -> str:
        """Sortable period key, e.g. "2026-01", "2026-Q1", "2026"."""
        period_type = cls.normalize(period_type)
        start = cls.period_start(period_type, day)

        if period_type == PeriodType.WEEKLY:
            return start.isoformat()
        if period_type == PeriodType.MONTHLY:
            return f"{start.year}-{start.month:02d}"
        if period_type == PeriodType.QUARTERLY:
            return f"{start.year}-Q{(start.month - 1) // 3 + 1}"
        return str(start.year)
