"""
Forecast output models — predicted bills, period buckets, reports.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from billpilot.models.bill import BillRecord


class PeriodType(str, Enum):
    """Granularity used to bucket bills into calendar periods."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"  # bucketed monthly


class ForecastMethod(str, Enum):
    """Statistical method that produced a predicted amount."""

    LINEAR_REGRESSION = "linear_regression"
    WEIGHTED_MOVING_AVERAGE = "weighted_moving_average"
    SEASONAL_AVERAGE = "seasonal_average"
    SIMPLE_AVERAGE = "simple_average"


class PredictionSource(str, Enum):
    """Where a budget entry came from."""

    ACTUAL = "actual"          # a real bill already in the store
    RECURRENCE = "recurrence"  # explicit recurrence pattern
    DETECTED = "detected"      # pattern detected from history


class DateBasis(str, Enum):
    """Which bill date decides the period a bill belongs to."""

    DUE = "due"
    PAID = "paid"  # falls back to the due date for unpaid bills


class PredictedBill(BaseModel):
    """One entry of a budget forecast: a prediction or the real bill that replaced it."""

    series_id: str
    bill_id: str | None = None
    title: str
    category_id: str | None = None
    vendor_id: str | None = None
    amount: Decimal = Field(ge=0)
    period_date: date
    method: ForecastMethod | None = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    source: PredictionSource = PredictionSource.RECURRENCE
    is_actual: bool = False
    is_synthetic: bool = False

    @classmethod
    def from_actual(cls, bill: BillRecord, series_id: str) -> PredictedBill:
        """Wrap a real bill so it can sit in a budget timeline."""
        return cls(
            series_id=series_id,
            bill_id=bill.id,
            title=bill.title,
            category_id=bill.category_id,
            vendor_id=bill.vendor_id,
            amount=bill.amount,
            period_date=bill.due_date,
            method=None,
            confidence=1.0,
            source=PredictionSource.ACTUAL,
            is_actual=True,
        )


class PeriodBucket(BaseModel):
    """Bills grouped into one calendar period."""

    period_label: str
    period_start: date
    period_end: date
    total_amount: Decimal = Decimal("0")
    bill_count: int = 0
    bills: list[BillRecord | PredictedBill] = Field(default_factory=list)


class HistoricReport(BaseModel):
    """Already-paid bills aggregated by period."""

    period_type: PeriodType
    start_date: date
    end_date: date
    buckets: list[PeriodBucket] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=datetime.now)

    @property
    def total_amount(self) -> Decimal:
        return sum((b.total_amount for b in self.buckets), Decimal("0"))

    @property
    def bill_count(self) -> int:
        return sum(b.bill_count for b in self.buckets)

    def to_markdown(self) -> str:
        """Export report as Markdown."""
        from billpilot.exporters.markdown import render_markdown

        return render_markdown(self)

    def to_json(self) -> str:
        """Export report as JSON."""
        return self.model_dump_json(indent=2)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()


class BudgetReport(BaseModel):
    """Predicted and known bills for a future window, bucketed by period."""

    period_type: PeriodType
    start_date: date
    end_date: date
    predictions: list[PeriodBucket] = Field(default_factory=list)
    historic: list[PeriodBucket] | None = None
    generated_at: datetime = Field(default_factory=datetime.now)

    @property
    def total_predicted(self) -> Decimal:
        return sum((b.total_amount for b in self.predictions), Decimal("0"))

    @property
    def entries(self) -> list[PredictedBill]:
        return [e for b in self.predictions for e in b.bills if isinstance(e, PredictedBill)]

    @property
    def actual_count(self) -> int:
        return sum(1 for e in self.entries if e.is_actual)

    @property
    def predicted_count(self) -> int:
        return sum(1 for e in self.entries if not e.is_actual)

    @property
    def historic_total(self) -> Decimal:
        if not self.historic:
            return Decimal("0")
        return sum((b.total_amount for b in self.historic), Decimal("0"))

    def to_markdown(self) -> str:
        """Export report as Markdown."""
        from billpilot.exporters.markdown import render_markdown

        return render_markdown(self)

    def to_json(self) -> str:
        """Export report as JSON."""
        return self.model_dump_json(indent=2)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()


class VendorTrendPeriod(BaseModel):
    """Spending with one vendor in one period."""

    period_label: str
    period_start: date
    total_amount: Decimal = Decimal("0")
    bill_count: int = 0


class VendorTrend(BaseModel):
    """Spending trend for a single vendor across periods."""

    vendor_id: str
    vendor_name: str
    periods: list[VendorTrendPeriod] = Field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return sum((p.total_amount for p in self.periods), Decimal("0"))
