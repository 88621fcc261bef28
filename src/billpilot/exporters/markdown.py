"""
Markdown report exporter.

Renders historic and budget reports as Markdown, suitable for GitHub,
Notion, or any Markdown viewer.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Union

from billpilot.models.bill import BillRecord
from billpilot.models.forecast import (
    BudgetReport,
    ForecastMethod,
    HistoricReport,
    PeriodBucket,
    PredictedBill,
    PredictionSource,
    VendorTrend,
)

_METHOD_NOTES: dict[ForecastMethod, str] = {
    ForecastMethod.LINEAR_REGRESSION: "Trend line fitted to past amounts (strong trend)",
    ForecastMethod.SEASONAL_AVERAGE: "Average of the same month in previous years",
    ForecastMethod.WEIGHTED_MOVING_AVERAGE: "Recent amounts weighted 40/30/20/10",
    ForecastMethod.SIMPLE_AVERAGE: "Plain average of very little history",
}

_SOURCE_LABELS: dict[PredictionSource, str] = {
    PredictionSource.ACTUAL: "✅ actual",
    PredictionSource.RECURRENCE: "🔁 recurring",
    PredictionSource.DETECTED: "🔍 detected",
}


def _money(amount: Decimal, currency: str) -> str:
    if currency == "USD":
        return f"${amount:,.2f}"
    return f"{amount:,.2f} {currency}"


def render_markdown(report: Union[HistoricReport, BudgetReport], currency: str = "USD") -> str:
    """Render a historic or budget report as Markdown."""
    if isinstance(report, BudgetReport):
        return _render_budget(report, currency)
    return _render_historic(report, currency)


def _period_table(buckets: list[PeriodBucket], currency: str) -> list[str]:
    lines = ["| Period | Bills | Total |", "|--------|-------|-------|"]
    for bucket in buckets:
        lines.append(
            f"| {bucket.period_label} | {bucket.bill_count} | {_money(bucket.total_amount, currency)} |"
        )
    lines.append("")
    return lines


def _render_historic(report: HistoricReport, currency: str) -> str:
    lines: list[str] = []

    lines.append("# 🧾 BillPilot Historic Report")
    lines.append("")
    lines.append(f"*Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M')}*")
    lines.append(f"*Period: {report.start_date} to {report.end_date} ({report.period_type.value})*")
    lines.append("")

    lines.append("## 📊 Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| **Bills Paid** | {report.bill_count} |")
    lines.append(f"| **Total Paid** | {_money(report.total_amount, currency)} |")
    lines.append(f"| **Periods** | {len(report.buckets)} |")
    lines.append("")

    lines.append("## 📅 By Period")
    lines.append("")
    lines.extend(_period_table(report.buckets, currency))

    lines.append("## 📋 Bills")
    lines.append("")
    for bucket in report.buckets:
        if not bucket.bills:
            continue
        lines.append(f"### {bucket.period_label}")
        lines.append("")
        lines.append("| Due | Paid | Bill | Amount |")
        lines.append("|-----|------|------|--------|")
        for bill in bucket.bills:
            if not isinstance(bill, BillRecord):
                continue
            paid = bill.paid_date.isoformat() if bill.paid_date else "-"
            lines.append(f"| {bill.due_date} | {paid} | {bill.title} | {_money(bill.amount, currency)} |")
        lines.append("")

    lines.append("---")
    lines.append("*Report generated by BillPilot*")
    return "\n".join(lines)


def _render_budget(report: BudgetReport, currency: str) -> str:
    lines: list[str] = []

    lines.append("# 💰 BillPilot Budget Forecast")
    lines.append("")
    lines.append(f"*Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M')}*")
    lines.append(f"*Window: {report.start_date} to {report.end_date} ({report.period_type.value})*")
    lines.append("")

    lines.append("## 📊 Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| **Forecast Total** | {_money(report.total_predicted, currency)} |")
    lines.append(f"| **Predicted Bills** | {report.predicted_count} |")
    lines.append(f"| **Known Bills** | {report.actual_count} |")
    if report.historic is not None:
        lines.append(f"| **Previous Year Paid** | {_money(report.historic_total, currency)} |")
    lines.append("")

    lines.append("## 📅 By Period")
    lines.append("")
    lines.extend(_period_table(report.predictions, currency))

    lines.append("## 📋 Forecast Details")
    lines.append("")
    for bucket in report.predictions:
        entries = [e for e in bucket.bills if isinstance(e, PredictedBill)]
        if not entries:
            continue
        lines.append(f"### {bucket.period_label}")
        lines.append("")
        lines.append("| Date | Bill | Amount | Source | Method | Confidence |")
        lines.append("|------|------|--------|--------|--------|------------|")
        for entry in entries:
            method = entry.method.value.replace("_", " ") if entry.method else "-"
            if entry.is_synthetic:
                method += " *"
            lines.append(
                f"| {entry.period_date} | {entry.title} | {_money(entry.amount, currency)} | "
                f"{_SOURCE_LABELS[entry.source]} | {method} | {entry.confidence:.0%} |"
            )
        lines.append("")

    if report.historic is not None:
        lines.append("## 🕰️ Previous Year")
        lines.append("")
        lines.extend(_period_table(report.historic, currency))

    used = {e.method for e in report.entries if e.method is not None}
    if used:
        lines.append("## 🧠 Prediction Methods")
        lines.append("")
        for method in ForecastMethod:
            if method in used:
                lines.append(f"- **{method.value.replace('_', ' ').title()}**: {_METHOD_NOTES[method]}")
        if any(e.is_synthetic for e in report.entries):
            lines.append("- \\* Based partly on synthesized history; confidence is capped.")
        lines.append("")

    lines.append("---")
    lines.append("*Report generated by BillPilot*")
    return "\n".join(lines)


def render_vendor_trends(trends: list[VendorTrend], currency: str = "USD") -> str:
    """Render vendor spending trends as one Markdown table per vendor."""
    lines: list[str] = ["# 🏢 BillPilot Vendor Trends", ""]

    for trend in trends:
        lines.append(f"## {trend.vendor_name}")
        lines.append("")
        if not trend.periods:
            lines.append("*No bills in this window.*")
            lines.append("")
            continue
        lines.append("| Period | Bills | Total |")
        lines.append("|--------|-------|-------|")
        for period in trend.periods:
            lines.append(
                f"| {period.period_label} | {period.bill_count} | {_money(period.total_amount, currency)} |"
            )
        lines.append(f"| **Total** | | **{_money(trend.total_amount, currency)}** |")
        lines.append("")

    lines.append("---")
    lines.append("*Report generated by BillPilot*")
    return "\n".join(lines)
