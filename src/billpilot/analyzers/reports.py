"""
Report Assembler — turn bills into period-bucketed reports.

Two kinds of report:

1. **Historic report**: paid bills aggregated per period. No forecasting.
2. **Budget report**: every recurring obligation projected over a future
   window. Bills are grouped into series, each series gets a cadence
   (explicit pattern, else a reliable detected one), every occurrence in
   the window is forecast from the history before it, real bills replace
   predictions in their slot, and the result is bucketed by period.

Everything here is a pure function of its inputs and safe to call
concurrently.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Union

from billpilot.analyzers.forecaster import Forecaster
from billpilot.analyzers.merger import PredictionMerger
from billpilot.analyzers.patterns import PatternDetector
from billpilot.analyzers.periods import PeriodCalendar
from billpilot.analyzers.recurrence import add_months, occurrences_between
from billpilot.analyzers.series import DataPoint, Series, SeriesGrouper
from billpilot.config import BillPilotConfig
from billpilot.models.bill import BillRecord, RecurrencePattern
from billpilot.models.forecast import (
    BudgetReport,
    DateBasis,
    HistoricReport,
    PeriodBucket,
    PeriodType,
    PredictedBill,
    PredictionSource,
    VendorTrend,
    VendorTrendPeriod,
)

logger = logging.getLogger("billpilot.analyzers.reports")

Entry = Union[BillRecord, PredictedBill]


def bill_date(bill: BillRecord, basis: DateBasis = DateBasis.DUE) -> date:
    """The date that decides which period a bill belongs to."""
    if basis == DateBasis.PAID and bill.paid_date is not None:
        return bill.paid_date
    return bill.due_date


def _entry_date(entry: Entry, basis: DateBasis) -> date:
    if isinstance(entry, PredictedBill):
        return entry.period_date
    return bill_date(entry, basis)


def _entry_id(entry: Entry) -> str:
    if isinstance(entry, PredictedBill):
        return entry.bill_id or ""
    return entry.id


def bucket_entries(
    entries: Iterable[Entry],
    period_type: PeriodType,
    start: date,
    end: date,
    basis: DateBasis = DateBasis.DUE,
) -> list[PeriodBucket]:
    """Partition ``[start, end]`` into periods and drop each entry into its period.

    Entries dated outside the window are left out. Every period of the
    window is returned, empty ones included.
    """
    buckets: dict[date, PeriodBucket] = {}
    for period_start, period_end in PeriodCalendar.enumerate_periods(period_type, start, end):
        buckets[period_start] = PeriodBucket(
            period_label=PeriodCalendar.label(period_type, period_start),
            period_start=period_start,
            period_end=period_end,
        )

    for entry in entries:
        when = _entry_date(entry, basis)
        if when < start or when > end:
            continue
        bucket = buckets[PeriodCalendar.period_start(period_type, when)]
        bucket.bills.append(entry)
        bucket.total_amount += entry.amount
        bucket.bill_count += 1

    for bucket in buckets.values():
        bucket.bills.sort(key=lambda e: (_entry_date(e, basis), _entry_id(e)))

    return [buckets[k] for k in sorted(buckets)]


def _check_window(start: date, end: date) -> None:
    if end < start:
        raise ValueError(f"end date {end} is before start date {start}")


class ReportAssembler:
    """Drive grouping, detection, forecasting and merging into reports.

    Usage::

        assembler = ReportAssembler()
        report = assembler.build_budget_report(
            recurring_bills,
            start=date(2026, 1, 1),
            end=date(2026, 12, 31),
            period_type=PeriodType.QUARTERLY,
            actual_bills=entered_bills,
            historical_bills=last_two_years,
        )
        for bucket in report.predictions:
            print(bucket.period_label, bucket.total_amount)
    """

    def __init__(self, config: BillPilotConfig | None = None) -> None:
        self.config = config or BillPilotConfig()
        self.grouper = SeriesGrouper(self.config.forecast)
        self.detector = PatternDetector(self.config.detection)
        self.forecaster = Forecaster(self.config.forecast)
        self.merger = PredictionMerger(self.config.report.include_unmatched_actuals)

    # ------------------------------------------------------------------
    # Historic
    # ------------------------------------------------------------------

    def build_historic_report(
        self,
        paid_bills: list[BillRecord],
        period_type: PeriodType,
        start: date,
        end: date,
        date_basis: DateBasis = DateBasis.DUE,
    ) -> HistoricReport:
        """Aggregate paid bills per period over ``[start, end]``."""
        _check_window(start, end)
        buckets = bucket_entries(paid_bills, period_type, start, end, date_basis)
        report = HistoricReport(
            period_type=period_type,
            start_date=start,
            end_date=end,
            buckets=buckets,
        )
        logger.info(
            "Historic report: %d bills in %d periods, total %s",
            report.bill_count, len(buckets), report.total_amount,
        )
        return report

    # ------------------------------------------------------------------
    # Budget
    # ------------------------------------------------------------------

    def build_budget_report(
        self,
        recurring_bills: list[BillRecord],
        start: date,
        end: date,
        period_type: PeriodType,
        actual_bills: list[BillRecord] | None = None,
        historical_bills: list[BillRecord] | None = None,
        historic_paid_bills: list[BillRecord] | None = None,
    ) -> BudgetReport:
        """Forecast every recurring obligation over ``[start, end]``.

        Args:
            recurring_bills: Recurring bills, typically carrying patterns.
            start: First day of the forecast window.
            end: Last day of the forecast window.
            period_type: Bucket granularity.
            actual_bills: Bills already entered for the window.
            historical_bills: Past bills used to learn amounts and cadences.
            historic_paid_bills: Optional paid bills from the year before
                ``start``, bucketed alongside for comparison.

        Returns:
            BudgetReport with one bucket per period of the window.
        """
        _check_window(start, end)
        entries = self.predict(recurring_bills, start, end, actual_bills, historical_bills)
        buckets = bucket_entries(entries, period_type, start, end)

        historic = None
        if historic_paid_bills is not None:
            historic_start = add_months(start, -12)
            historic = bucket_entries(
                historic_paid_bills, period_type, historic_start, start - timedelta(days=1), DateBasis.PAID,
            )

        report = BudgetReport(
            period_type=period_type,
            start_date=start,
            end_date=end,
            predictions=buckets,
            historic=historic,
        )
        logger.info(
            "Budget report: %d predicted + %d actual entries, total %s",
            report.predicted_count, report.actual_count, report.total_predicted,
        )
        return report

    def predict(
        self,
        recurring_bills: list[BillRecord],
        start: date,
        end: date,
        actual_bills: list[BillRecord] | None = None,
        historical_bills: list[BillRecord] | None = None,
    ) -> list[PredictedBill]:
        """Merged timeline entries for every series over ``[start, end]``."""
        _check_window(start, end)
        bills = list(recurring_bills) + list(actual_bills or []) + list(historical_bills or [])

        timeline: list[PredictedBill] = []
        for series in self.grouper.group(bills):
            timeline.extend(self.forecast_series(series, start, end))

        timeline.sort(key=lambda e: (e.period_date, e.series_id, e.bill_id or ""))
        return timeline

    def resolve_cadence(
        self,
        series: Series,
        start: date,
        end: date,
    ) -> tuple[RecurrencePattern | None, PredictionSource | None, float]:
        """Pick the cadence layer for a series: explicit pattern, else detected.

        Returns the pattern, its source, and the confidence ceiling the
        cadence imposes on predictions (1.0 for explicit patterns).
        """
        if series.recurrence_pattern is not None:
            return series.recurrence_pattern, PredictionSource.RECURRENCE, 1.0

        known = [b for b in series.bills if b.due_date <= end]
        history = [b for b in known if b.due_date < start]
        # Cadence is learned from bills before the window; bills entered for it only overlay
        observed = history or known
        estimate = self.detector.detect_recurrence_from_history(observed)
        if not observed or not estimate.is_reliable(self.config.detection.min_reliable_confidence):
            return None, None, 0.0

        anchor = history[-1] if history else known[0]
        pattern = estimate.to_pattern(anchor=anchor.due_date)
        return pattern, PredictionSource.DETECTED, estimate.confidence

    def forecast_series(self, series: Series, start: date, end: date) -> list[PredictedBill]:
        """Predict one series over the window and overlay its actual bills."""
        pattern, source, ceiling = self.resolve_cadence(series, start, end)
        actuals = series.bills_between(start, end)

        if pattern is None or source is None:
            return self.merger.merge(series.series_id, [], actuals)

        frequency = pattern.frequency
        template = series.template or series.bills[-1]
        predictions: list[PredictedBill] = []

        for occurrence in occurrences_between(pattern, start, end):
            history = series.points(before=occurrence)
            if not history:
                history = [DataPoint(
                    date=add_months(occurrence, -frequency.months),
                    amount=template.amount,
                    bill_id=template.id,
                )]
            history = self.grouper.synthesize(history, frequency)
            forecast = self.forecaster.forecast(history, occurrence, frequency)

            predictions.append(PredictedBill(
                series_id=series.series_id,
                bill_id=template.id,
                title=series.title,
                category_id=series.category_id,
                vendor_id=series.vendor_id,
                amount=forecast.amount,
                period_date=occurrence,
                method=forecast.method,
                confidence=min(forecast.confidence, ceiling),
                source=source,
                is_actual=False,
                is_synthetic=forecast.is_synthetic,
            ))

        logger.debug(
            "Series %s: %s cadence %s, %d predictions, %d actual bills",
            series.series_id, source.value, frequency.value, len(predictions), len(actuals),
        )
        return self.merger.merge(series.series_id, predictions, actuals, frequency)

    # ------------------------------------------------------------------
    # Vendor trends
    # ------------------------------------------------------------------

    def build_vendor_trends(
        self,
        bills: list[BillRecord],
        vendors: dict[str, str],
        period_type: PeriodType,
        start: date | None = None,
        end: date | None = None,
        date_basis: DateBasis = DateBasis.PAID,
    ) -> list[VendorTrend]:
        """Per-vendor spending per period.

        Args:
            bills: Bills to analyze, usually paid ones.
            vendors: Vendor id to display name, in output order.
            period_type: Bucket granularity.
            start: Window start; defaults to the earliest bill.
            end: Window end; defaults to the latest bill.
            date_basis: Which bill date decides the period.
        """
        relevant = [b for b in bills if b.vendor_id in vendors]
        dates = [bill_date(b, date_basis) for b in relevant]
        if start is None or end is None:
            if not dates:
                return [VendorTrend(vendor_id=v, vendor_name=n) for v, n in vendors.items()]
            start = start or min(dates)
            end = end or max(dates)
        _check_window(start, end)

        trends: list[VendorTrend] = []
        for vendor_id, vendor_name in vendors.items():
            vendor_bills = [b for b in relevant if b.vendor_id == vendor_id]
            buckets = bucket_entries(vendor_bills, period_type, start, end, date_basis)
            trends.append(VendorTrend(
                vendor_id=vendor_id,
                vendor_name=vendor_name,
                periods=[
                    VendorTrendPeriod(
                        period_label=b.period_label,
                        period_start=b.period_start,
                        total_amount=b.total_amount,
                        bill_count=b.bill_count,
                    )
                    for b in buckets
                ],
            ))
        return trends


def group_bills_by_period(
    bills: list[BillRecord],
    period_type: PeriodType,
    window: tuple[date, date] | None = None,
    date_basis: DateBasis = DateBasis.DUE,
) -> list[PeriodBucket]:
    """Bucket bills by period over ``window`` (default: the span of the bills)."""
    if window is None:
        if not bills:
            return []
        dates = [bill_date(b, date_basis) for b in bills]
        window = (min(dates), max(dates))
    start, end = window
    _check_window(start, end)
    return bucket_entries(bills, period_type, start, end, date_basis)


def generate_budget_predictions(
    recurring_bills: list[BillRecord],
    start_date: date,
    end_date: date,
    period_type: PeriodType,
    actual_bills: list[BillRecord] | None = None,
    historical_bills: list[BillRecord] | None = None,
    config: BillPilotConfig | None = None,
) -> list[PeriodBucket]:
    """Predicted and actual bills over the window, bucketed by period."""
    report = ReportAssembler(config).build_budget_report(
        recurring_bills,
        start_date,
        end_date,
        period_type,
        actual_bills=actual_bills,
        historical_bills=historical_bills,
    )
    return report.predictions
