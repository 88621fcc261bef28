"""
BillPilot forecasting engine — pure computation modules.

Everything in this package is synchronous and stateless: bills go in,
series, patterns, forecasts and period buckets come out.
"""

from billpilot.analyzers.forecaster import Forecast, Forecaster, linear_regression
from billpilot.analyzers.merger import OverlayLayer, PredictionMerger
from billpilot.analyzers.patterns import PatternDetector, PatternEstimate
from billpilot.analyzers.periods import PeriodCalendar
from billpilot.analyzers.recurrence import (
    ValidationResult,
    next_due_date,
    occurrences_between,
    upcoming_due_dates,
    validate_pattern,
)
from billpilot.analyzers.reports import (
    ReportAssembler,
    generate_budget_predictions,
    group_bills_by_period,
)
from billpilot.analyzers.series import DataPoint, Series, SeriesGrouper

__all__ = [
    "DataPoint",
    "Forecast",
    "Forecaster",
    "OverlayLayer",
    "PatternDetector",
    "PatternEstimate",
    "PeriodCalendar",
    "PredictionMerger",
    "ReportAssembler",
    "Series",
    "SeriesGrouper",
    "ValidationResult",
    "generate_budget_predictions",
    "group_bills_by_period",
    "linear_regression",
    "next_due_date",
    "occurrences_between",
    "upcoming_due_dates",
    "validate_pattern",
]
