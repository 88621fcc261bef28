"""Data models — bills in, forecasts and reports out."""
from billpilot.models.bill import (
    BillFilter,
    BillRecord,
    BillStatus,
    RecurrenceFrequency,
    RecurrencePattern,
)
from billpilot.models.forecast import (
    BudgetReport,
    DateBasis,
    ForecastMethod,
    HistoricReport,
    PeriodBucket,
    PeriodType,
    PredictedBill,
    PredictionSource,
    VendorTrend,
    VendorTrendPeriod,
)

__all__ = [
    "BillFilter",
    "BillRecord",
    "BillStatus",
    "BudgetReport",
    "DateBasis",
    "ForecastMethod",
    "HistoricReport",
    "PeriodBucket",
    "PeriodType",
    "PredictedBill",
    "PredictionSource",
    "RecurrenceFrequency",
    "RecurrencePattern",
    "VendorTrend",
    "VendorTrendPeriod",
]
