"""Tests for the BillPilot orchestrator."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from billpilot.config import BillPilotConfig, ConnectorConfig
from billpilot.connectors.base import BaseConnector
from billpilot.connectors.csv_connector import CSVConnector
from billpilot.models.bill import BillFilter, BillRecord, RecurrenceFrequency
from billpilot.models.forecast import DateBasis, ForecastMethod, PeriodType, PredictionSource
from billpilot.pilot import BillPilot

BILLS_CSV = """id,title,amount,due_date,paid_date,status,category_id,vendor_id,recurrence_frequency,recurrence_day,recurrence_pattern_id
b1,Rent,1000.00,2025-10-01,2025-10-01,PAID,housing,landlord,monthly,1,p-rent
b2,Rent,1000.00,2025-11-01,2025-11-01,PAID,housing,landlord,monthly,1,p-rent
b3,Rent,1000.00,2025-12-01,2025-12-01,PAID,housing,landlord,monthly,1,p-rent
b4,Power,80.50,2025-10-15,2025-10-14,PAID,utilities,acme-power,,,
b5,Power,95.25,2025-11-15,2025-11-16,PAID,utilities,acme-power,,,
b6,Power,110.00,2025-12-15,,,utilities,acme-power,,,
"""


class ExtraConnector(BaseConnector):
    """Second store returning one duplicate id and one new bill."""

    name = "extra"

    async def fetch_bills(self, bill_filter: BillFilter | None = None) -> list[BillRecord]:
        bills = [
            BillRecord(id="b1", title="Rent (copy)", amount=Decimal("1.00"), due_date=date(2025, 10, 1)),
            BillRecord(id="x1", title="Parking", amount=Decimal("30.00"), due_date=date(2025, 10, 5)),
        ]
        return bill_filter.apply(bills) if bill_filter else bills

    async def validate_credentials(self) -> bool:
        return True


@pytest.fixture
def pilot(tmp_path: Path) -> BillPilot:
    csv_file = tmp_path / "bills.csv"
    csv_file.write_text(BILLS_CSV)
    instance = BillPilot(config=BillPilotConfig())
    instance.add_connector(CSVConnector(file_path=str(csv_file)))
    return instance


class TestFetch:
    @pytest.mark.asyncio
    async def test_no_connectors(self) -> None:
        with pytest.raises(ValueError, match="No bill connectors"):
            await BillPilot(config=BillPilotConfig()).fetch_bills()

    @pytest.mark.asyncio
    async def test_first_id_wins(self, pilot: BillPilot) -> None:
        pilot.add_connector(ExtraConnector())
        bills = {b.id: b for b in await pilot.fetch_bills()}

        assert len(bills) == 7
        assert bills["b1"].title == "Rent"
        assert "x1" in bills

    def test_from_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BILLPILOT_CSV", raising=False)
        csv_file = tmp_path / "bills.csv"
        csv_file.write_text(BILLS_CSV)
        instance = BillPilot.from_config(
            None, connectors=[ConnectorConfig(type="csv", options={"file_path": str(csv_file)})],
        )
        assert len(instance.connector_registry) == 1


class TestBudgetReport:
    @pytest.mark.asyncio
    async def test_explicit_and_detected_series(self, pilot: BillPilot) -> None:
        report = await pilot.budget_report(
            start=date(2026, 1, 1), end=date(2026, 3, 31), period_type=PeriodType.MONTHLY,
        )

        assert [b.period_label for b in report.predictions] == ["January 2026", "February 2026", "March 2026"]
        assert [b.total_amount for b in report.predictions] == [
            Decimal("1124.75"), Decimal("1139.50"), Decimal("1154.25"),
        ]
        assert report.total_predicted == Decimal("3418.50")
        assert report.actual_count == 0
        assert report.historic is None

        rent = [e for e in report.entries if e.title == "Rent"]
        assert all(e.source == PredictionSource.RECURRENCE for e in rent)
        assert all(e.method == ForecastMethod.WEIGHTED_MOVING_AVERAGE for e in rent)

        power = [e for e in report.entries if e.title == "Power"]
        assert [e.period_date for e in power] == [date(2026, 1, 15), date(2026, 2, 15), date(2026, 3, 15)]
        assert all(e.source == PredictionSource.DETECTED for e in power)
        assert all(e.method == ForecastMethod.LINEAR_REGRESSION for e in power)
        assert all(e.confidence < 1.0 for e in power)

    @pytest.mark.asyncio
    async def test_include_historic(self, pilot: BillPilot) -> None:
        report = await pilot.budget_report(
            start=date(2026, 1, 1), end=date(2026, 3, 31), include_historic=True,
        )

        assert report.historic is not None
        assert len(report.historic) == 12
        assert report.historic_total == Decimal("3175.75")

    @pytest.mark.asyncio
    async def test_rejects_reversed_window(self, pilot: BillPilot) -> None:
        with pytest.raises(ValueError):
            await pilot.budget_report(start=date(2026, 3, 1), end=date(2026, 1, 1))

    def test_sync_wrapper(self, pilot: BillPilot) -> None:
        report = pilot.budget_report_sync(
            start=date(2026, 1, 1), end=date(2026, 1, 31), period_type=PeriodType.MONTHLY,
        )
        assert report.total_predicted == Decimal("1124.75")


class TestHistoryReport:
    @pytest.mark.asyncio
    async def test_by_due_date(self, pilot: BillPilot) -> None:
        report = await pilot.history_report(start=date(2025, 10, 1), end=date(2025, 12, 31))

        assert [b.total_amount for b in report.buckets] == [
            Decimal("1080.50"), Decimal("1095.25"), Decimal("1000.00"),
        ]
        assert report.total_amount == Decimal("3175.75")
        assert report.bill_count == 5

    @pytest.mark.asyncio
    async def test_by_paid_date(self, pilot: BillPilot) -> None:
        report = await pilot.history_report(
            start=date(2025, 10, 1), end=date(2025, 10, 31), date_basis=DateBasis.PAID,
        )
        assert report.total_amount == Decimal("1080.50")

    def test_sync_wrapper(self, pilot: BillPilot) -> None:
        report = pilot.history_report_sync(
            start=date(2025, 1, 1), end=date(2025, 12, 31), period_type=PeriodType.YEARLY,
        )
        assert len(report.buckets) == 1
        assert report.total_amount == Decimal("3175.75")


class TestVendorTrends:
    @pytest.mark.asyncio
    async def test_vendor_trends(self, pilot: BillPilot) -> None:
        trends = await pilot.vendor_trends(
            ["acme-power"],
            start=date(2025, 10, 1),
            end=date(2025, 12, 31),
            vendor_names={"acme-power": "Acme Power"},
        )

        assert len(trends) == 1
        assert trends[0].vendor_name == "Acme Power"
        assert [p.total_amount for p in trends[0].periods] == [
            Decimal("80.50"), Decimal("95.25"), Decimal("0"),
        ]

    @pytest.mark.asyncio
    async def test_requires_vendor(self, pilot: BillPilot) -> None:
        with pytest.raises(ValueError):
            await pilot.vendor_trends([])


class TestDetectPatterns:
    @pytest.mark.asyncio
    async def test_detects_unscheduled_series(self, pilot: BillPilot) -> None:
        results = await pilot.detect_patterns()

        assert len(results) == 1
        series, estimate = results[0]
        assert series.title == "Power"
        assert estimate.frequency == RecurrenceFrequency.MONTHLY
        assert estimate.is_reliable(pilot.config.detection.min_reliable_confidence)
