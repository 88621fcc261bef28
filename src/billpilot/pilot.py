"""
BillPilot — Main orchestrator.

The BillPilot class is the top-level entry point: it pulls bills from the
configured bill stores and runs the forecasting engine over them.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from billpilot.analyzers.patterns import PatternEstimate
from billpilot.analyzers.recurrence import add_months
from billpilot.analyzers.reports import ReportAssembler
from billpilot.analyzers.series import Series
from billpilot.config import BillPilotConfig
from billpilot.connectors.base import BaseConnector
from billpilot.connectors.registry import ConnectorRegistry
from billpilot.models.bill import BillFilter, BillRecord, BillStatus
from billpilot.models.forecast import (
    BudgetReport,
    DateBasis,
    HistoricReport,
    PeriodType,
    VendorTrend,
)

logger = logging.getLogger("billpilot")


def month_start(day: date) -> date:
    return day.replace(day=1)


@dataclass
class BillPilot:
    """Top-level orchestrator for BillPilot.

    Usage::

        from billpilot import BillPilot

        pilot = BillPilot.from_config("billpilot.yaml")
        report = await pilot.budget_report(period_type=PeriodType.QUARTERLY)
        print(report.to_markdown())

    BillPilot coordinates:
    - **Connectors**: Fetch bills from CSV exports and databases.
    - **Analyzers**: Group series, detect patterns, forecast amounts.
    - **Reports**: Period-bucketed historic and budget reports.
    """

    config: BillPilotConfig
    connector_registry: ConnectorRegistry = field(default_factory=ConnectorRegistry)
    _assembler: ReportAssembler | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, config_path: str | None = None, **overrides: Any) -> BillPilot:
        """Create a BillPilot instance from a config file or keyword arguments."""
        config = BillPilotConfig.load(config_path, **overrides)
        instance = cls(config=config)
        instance._setup()
        return instance

    def _setup(self) -> None:
        """Initialize connectors and the report engine."""
        self.connector_registry = ConnectorRegistry()
        self.connector_registry.auto_discover(self.config)
        self._assembler = ReportAssembler(self.config)
        logger.info(
            "BillPilot initialized with %d connectors",
            len(self.connector_registry),
        )

    def add_connector(self, connector: BaseConnector) -> None:
        """Register an already built connector."""
        self.connector_registry.register(connector)

    @property
    def assembler(self) -> ReportAssembler:
        if self._assembler is None:
            self._assembler = ReportAssembler(self.config)
        return self._assembler

    async def fetch_bills(self, bill_filter: BillFilter | None = None) -> list[BillRecord]:
        """Query every connector and merge the results, first id wins."""
        connectors = self.connector_registry.active_connectors
        if not connectors:
            raise ValueError("No bill connectors configured")

        results = await asyncio.gather(*(c.fetch_bills(bill_filter) for c in connectors))

        bills: list[BillRecord] = []
        seen: set[str] = set()
        for batch in results:
            for bill in batch:
                if bill.id not in seen:
                    seen.add(bill.id)
                    bills.append(bill)
        return bills

    async def budget_report(
        self,
        start: date | None = None,
        end: date | None = None,
        period_type: PeriodType | None = None,
        include_historic: bool | None = None,
    ) -> BudgetReport:
        """Forecast recurring bills over a window.

        Args:
            start: Window start; defaults to the first day of this month.
            end: Window end; defaults to ``report.horizon_months`` later.
            period_type: Bucket granularity; defaults to config.
            include_historic: Also bucket last year's paid bills.

        Returns:
            BudgetReport with predicted and known bills per period.
        """
        report_cfg = self.config.report
        start = start or month_start(date.today())
        end = end or add_months(start, report_cfg.horizon_months) - timedelta(days=1)
        period_type = period_type or report_cfg.period_type
        if include_historic is None:
            include_historic = report_cfg.include_historic
        if end < start:
            raise ValueError(f"end date {end} is before start date {start}")

        day_before = start - timedelta(days=1)
        history_start = add_months(start, -12 * report_cfg.history_years)
        queries = [
            self.fetch_bills(BillFilter(is_recurring=True)),
            self.fetch_bills(BillFilter(due_from=start, due_to=end)),
            self.fetch_bills(BillFilter(due_from=history_start, due_to=day_before)),
        ]
        if include_historic:
            queries.append(self.fetch_bills(BillFilter(
                status=BillStatus.PAID,
                paid_from=add_months(start, -12),
                paid_to=day_before,
            )))

        results = await asyncio.gather(*queries)
        recurring, actual, historical = results[0], results[1], results[2]
        historic_paid = results[3] if include_historic else None

        logger.info(
            "Forecasting %s to %s from %d recurring, %d known, %d historical bills",
            start, end, len(recurring), len(actual), len(historical),
        )
        return self.assembler.build_budget_report(
            recurring,
            start,
            end,
            period_type,
            actual_bills=actual,
            historical_bills=historical,
            historic_paid_bills=historic_paid,
        )

    async def history_report(
        self,
        start: date | None = None,
        end: date | None = None,
        period_type: PeriodType | None = None,
        date_basis: DateBasis = DateBasis.DUE,
    ) -> HistoricReport:
        """Aggregate paid bills per period; defaults to the last twelve months."""
        end = end or date.today()
        start = start or add_months(month_start(end), -11)
        period_type = period_type or self.config.report.period_type

        if date_basis == DateBasis.PAID:
            bill_filter = BillFilter(status=BillStatus.PAID, paid_from=start, paid_to=end)
        else:
            bill_filter = BillFilter(status=BillStatus.PAID, due_from=start, due_to=end)

        bills = await self.fetch_bills(bill_filter)
        return self.assembler.build_historic_report(bills, period_type, start, end, date_basis)

    async def vendor_trends(
        self,
        vendor_ids: list[str],
        start: date | None = None,
        end: date | None = None,
        period_type: PeriodType | None = None,
        vendor_names: dict[str, str] | None = None,
    ) -> list[VendorTrend]:
        """Per-vendor paid totals per period."""
        if not vendor_ids:
            raise ValueError("At least one vendor id is required")
        end = end or date.today()
        start = start or add_months(month_start(end), -11)
        period_type = period_type or self.config.report.period_type

        bills = await self.fetch_bills(BillFilter(
            status=BillStatus.PAID,
            vendor_ids=vendor_ids,
            paid_from=start,
            paid_to=end,
        ))
        names = vendor_names or {}
        vendors = {v: names.get(v, v) for v in vendor_ids}
        return self.assembler.build_vendor_trends(bills, vendors, period_type, start, end)

    async def detect_patterns(self) -> list[tuple[Series, PatternEstimate]]:
        """Detect cadences for every series without an explicit pattern."""
        bills = await self.fetch_bills()
        return self.assembler.detector.analyze_historical_patterns(bills, self.assembler.grouper)

    def budget_report_sync(self, **kwargs: Any) -> BudgetReport:
        """Synchronous wrapper around :meth:`budget_report`."""
        return asyncio.run(self.budget_report(**kwargs))

    def history_report_sync(self, **kwargs: Any) -> HistoricReport:
        """Synchronous wrapper around :meth:`history_report`."""
        return asyncio.run(self.history_report(**kwargs))
