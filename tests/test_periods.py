"""Tests for calendar period arithmetic."""

from datetime import date

from billpilot.analyzers.periods import PeriodCalendar
from billpilot.models.forecast import PeriodType


class TestPeriodBoundaries:
    def test_monthly_start_and_end(self) -> None:
        assert PeriodCalendar.period_start(PeriodType.MONTHLY, date(2026, 3, 17)) == date(2026, 3, 1)
        assert PeriodCalendar.period_end(PeriodType.MONTHLY, date(2026, 3, 17)) == date(2026, 3, 31)

    def test_leap_february_end(self) -> None:
        assert PeriodCalendar.period_end(PeriodType.MONTHLY, date(2024, 2, 10)) == date(2024, 2, 29)

    def test_quarter_start(self) -> None:
        assert PeriodCalendar.period_start(PeriodType.QUARTERLY, date(2026, 5, 20)) == date(2026, 4, 1)
        assert PeriodCalendar.period_end(PeriodType.QUARTERLY, date(2026, 5, 20)) == date(2026, 6, 30)

    def test_week_starts_monday(self) -> None:
        # 2026-01-01 is a Thursday
        assert PeriodCalendar.period_start(PeriodType.WEEKLY, date(2026, 1, 1)) == date(2025, 12, 29)

    def test_year_rollover(self) -> None:
        assert PeriodCalendar.next_period_start(PeriodType.MONTHLY, date(2025, 12, 15)) == date(2026, 1, 1)
        assert PeriodCalendar.next_period_start(PeriodType.QUARTERLY, date(2025, 11, 2)) == date(2026, 1, 1)
        assert PeriodCalendar.next_period_start(PeriodType.YEARLY, date(2025, 6, 1)) == date(2026, 1, 1)

    def test_custom_buckets_monthly(self) -> None:
        assert PeriodCalendar.normalize(PeriodType.CUSTOM) == PeriodType.MONTHLY
        assert PeriodCalendar.period_start(PeriodType.CUSTOM, date(2026, 7, 9)) == date(2026, 7, 1)


class TestEnumeratePeriods:
    def test_partial_month_expands_to_whole_month(self) -> None:
        periods = list(PeriodCalendar.enumerate_periods(PeriodType.MONTHLY, date(2026, 1, 5), date(2026, 1, 20)))
        assert periods == [(date(2026, 1, 1), date(2026, 1, 31))]
        assert PeriodCalendar.label(PeriodType.MONTHLY, periods[0][0]) == "January 2026"

    def test_quarters_touching_window(self) -> None:
        periods = list(PeriodCalendar.enumerate_periods(PeriodType.QUARTERLY, date(2026, 2, 15), date(2026, 8, 1)))
        assert [p[0] for p in periods] == [date(2026, 1, 1), date(2026, 4, 1), date(2026, 7, 1)]
        assert periods[-1][1] == date(2026, 9, 30)

    def test_weeks(self) -> None:
        periods = list(PeriodCalendar.enumerate_periods(PeriodType.WEEKLY, date(2026, 1, 1), date(2026, 1, 11)))
        assert periods == [
            (date(2025, 12, 29), date(2026, 1, 4)),
            (date(2026, 1, 5), date(2026, 1, 11)),
        ]

    def test_periods_are_contiguous(self) -> None:
        periods = list(PeriodCalendar.enumerate_periods(PeriodType.MONTHLY, date(2025, 1, 1), date(2026, 12, 31)))
        assert len(periods) == 24
        for (_, end), (start, _) in zip(periods, periods[1:]):
            assert (start - end).days == 1

    def test_end_before_start_yields_nothing(self) -> None:
        assert list(PeriodCalendar.enumerate_periods(PeriodType.MONTHLY, date(2026, 3, 1), date(2026, 1, 1))) == []


class TestLabels:
    def test_labels(self) -> None:
        assert PeriodCalendar.label(PeriodType.QUARTERLY, date(2026, 4, 1)) == "Q2 2026"
        assert PeriodCalendar.label(PeriodType.YEARLY, date(2026, 1, 1)) == "2026"
        assert PeriodCalendar.label(PeriodType.WEEKLY, date(2026, 1, 5)) == "Week of 2026-01-05"

    def test_keys_sort_chronologically(self) -> None:
        assert PeriodCalendar.key(PeriodType.MONTHLY, date(2026, 1, 31)) == "2026-01"
        assert PeriodCalendar.key(PeriodType.QUARTERLY, date(2026, 12, 1)) == "2026-Q4"
        assert PeriodCalendar.key(PeriodType.MONTHLY, date(2025, 12, 1)) < PeriodCalendar.key(
            PeriodType.MONTHLY, date(2026, 1, 1)
        )
