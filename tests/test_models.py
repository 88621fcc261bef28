"""Tests for bill and report models."""

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from billpilot.models.bill import (
    BillFilter,
    BillRecord,
    BillStatus,
    RecurrenceFrequency,
    RecurrencePattern,
)
from billpilot.models.forecast import (
    BudgetReport,
    ForecastMethod,
    HistoricReport,
    PeriodBucket,
    PeriodType,
    PredictedBill,
    PredictionSource,
)


def _bill(**kwargs) -> BillRecord:
    values = {"id": "b1", "title": "Water", "amount": Decimal("42.10"), "due_date": date(2026, 1, 9)}
    values.update(kwargs)
    return BillRecord(**values)


class TestBillRecord:
    def test_defaults(self) -> None:
        bill = _bill()
        assert bill.status == BillStatus.PENDING
        assert not bill.is_paid
        assert not bill.has_pattern

    def test_negative_amount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _bill(amount=Decimal("-1.00"))

    def test_pattern_id_alone_counts_as_pattern(self) -> None:
        assert _bill(recurrence_pattern_id="p1").has_pattern


class TestRecurrencePattern:
    def test_frequency_months(self) -> None:
        assert [f.months for f in RecurrenceFrequency] == [1, 3, 6, 12]

    def test_end_before_start_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RecurrencePattern(
                frequency=RecurrenceFrequency.MONTHLY,
                day_of_month=1,
                start_date=date(2026, 1, 1),
                end_date=date(2025, 1, 1),
            )

    def test_day_of_month_range(self) -> None:
        with pytest.raises(ValidationError):
            RecurrencePattern(frequency=RecurrenceFrequency.MONTHLY, day_of_month=32, start_date=date(2026, 1, 1))


class TestBillFilter:
    def test_empty_filter_matches_everything(self) -> None:
        assert BillFilter().matches(_bill())

    def test_due_range(self) -> None:
        bill_filter = BillFilter(due_from=date(2026, 1, 1), due_to=date(2026, 1, 31))
        assert bill_filter.matches(_bill())
        assert not bill_filter.matches(_bill(due_date=date(2026, 2, 1)))

    def test_paid_range_excludes_unpaid(self) -> None:
        bill_filter = BillFilter(paid_from=date(2026, 1, 1))
        assert not bill_filter.matches(_bill())
        assert bill_filter.matches(_bill(paid_date=date(2026, 1, 10), status=BillStatus.PAID))

    def test_status_recurring_and_vendors(self) -> None:
        bills = [
            _bill(id="a", is_recurring=True, vendor_id="v1", status=BillStatus.PAID),
            _bill(id="b", is_recurring=False, vendor_id="v1", status=BillStatus.PAID),
            _bill(id="c", is_recurring=True, vendor_id="v2", status=BillStatus.PAID),
            _bill(id="d", is_recurring=True, vendor_id="v1"),
        ]
        bill_filter = BillFilter(is_recurring=True, status=BillStatus.PAID, vendor_ids=["v1"])
        assert [b.id for b in bill_filter.apply(bills)] == ["a"]


class TestPredictedBill:
    def test_from_actual(self) -> None:
        entry = PredictedBill.from_actual(_bill(category_id="util", vendor_id="v1"), "series-1")
        assert entry.is_actual
        assert entry.source == PredictionSource.ACTUAL
        assert entry.method is None
        assert entry.confidence == 1.0
        assert entry.amount == Decimal("42.10")
        assert entry.period_date == date(2026, 1, 9)

    def test_confidence_bounds(self) -> None:
        with pytest.raises(ValidationError):
            PredictedBill(series_id="s", title="x", amount=Decimal("1"), period_date=date(2026, 1, 1), confidence=1.5)


class TestReports:
    def _budget(self) -> BudgetReport:
        predicted = PredictedBill(
            series_id="s1", title="Water", amount=Decimal("40.00"), period_date=date(2026, 2, 9),
            method=ForecastMethod.WEIGHTED_MOVING_AVERAGE, confidence=0.5,
        )
        actual = PredictedBill.from_actual(_bill(), "s1")
        return BudgetReport(
            period_type=PeriodType.MONTHLY,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 2, 28),
            predictions=[
                PeriodBucket(period_label="January 2026", period_start=date(2026, 1, 1),
                             period_end=date(2026, 1, 31), total_amount=Decimal("42.10"),
                             bill_count=1, bills=[actual]),
                PeriodBucket(period_label="February 2026", period_start=date(2026, 2, 1),
                             period_end=date(2026, 2, 28), total_amount=Decimal("40.00"),
                             bill_count=1, bills=[predicted]),
            ],
        )

    def test_budget_counts(self) -> None:
        report = self._budget()
        assert report.total_predicted == Decimal("82.10")
        assert report.actual_count == 1
        assert report.predicted_count == 1
        assert report.historic_total == Decimal("0")

    def test_budget_to_json(self) -> None:
        data = json.loads(self._budget().to_json())
        assert data["period_type"] == "monthly"
        assert len(data["predictions"]) == 2

    def test_historic_totals(self) -> None:
        report = HistoricReport(
            period_type=PeriodType.YEARLY,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
            buckets=[PeriodBucket(period_label="2026", period_start=date(2026, 1, 1),
                                  period_end=date(2026, 12, 31), total_amount=Decimal("42.10"),
                                  bill_count=1, bills=[_bill()])],
        )
        assert report.total_amount == Decimal("42.10")
        assert report.bill_count == 1
        assert report.to_dict()["buckets"][0]["bill_count"] == 1
