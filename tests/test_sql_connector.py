"""Tests for the SQL connector (SQLite file database)."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

from billpilot.connectors.sql_connector import SQLConnector
from billpilot.models.bill import BillFilter, RecurrenceFrequency

ROWS = [
    ("s1", "Insurance", 300.0, "2025-01-20", "2025-01-18", "PAID", "quarterly", 20, 1),
    ("s2", "Insurance", 300.0, "2025-04-20", "2025-04-19", "PAID", "quarterly", 20, 1),
    ("s3", "Gym", 45.5, "2025-04-02", None, "PENDING", None, None, 0),
]


@pytest.fixture
def database(tmp_path: Path) -> str:
    """Create a SQLite database with a bills table."""
    url = f"sqlite:///{tmp_path / 'bills.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE bills (id TEXT, title TEXT, amount REAL, due_date TEXT, paid_date TEXT, "
            "status TEXT, recurrence_frequency TEXT, recurrence_day INTEGER, is_recurring INTEGER)"
        ))
        for row in ROWS:
            conn.execute(
                text("INSERT INTO bills VALUES (:id, :title, :amount, :due, :paid, :status, :freq, :day, :rec)"),
                dict(zip(["id", "title", "amount", "due", "paid", "status", "freq", "day", "rec"], row)),
            )
    engine.dispose()
    return url


class TestSQLConnector:
    @pytest.mark.asyncio
    async def test_fetch_bills(self, database: str) -> None:
        connector = SQLConnector(credentials={"connection_string": database})
        bills = {b.id: b for b in await connector.fetch_bills()}

        assert set(bills) == {"s1", "s2", "s3"}
        assert bills["s3"].amount == Decimal("45.5")
        assert bills["s3"].paid_date is None
        assert not bills["s3"].is_recurring

        insurance = bills["s1"]
        assert insurance.is_recurring
        assert insurance.recurrence_pattern.frequency == RecurrenceFrequency.QUARTERLY
        assert insurance.recurrence_pattern.day_of_month == 20
        assert insurance.paid_date == date(2025, 1, 18)

    @pytest.mark.asyncio
    async def test_custom_query_and_filter(self, database: str) -> None:
        connector = SQLConnector(
            credentials={"connection_string": database},
            query="SELECT * FROM bills WHERE title = 'Insurance'",
        )
        bills = await connector.fetch_bills(BillFilter(due_from=date(2025, 3, 1)))
        assert [b.id for b in bills] == ["s2"]

    @pytest.mark.asyncio
    async def test_validate_credentials(self, database: str) -> None:
        assert await SQLConnector(credentials={"connection_string": database}).validate_credentials()

    @pytest.mark.asyncio
    async def test_invalid_connection_string(self) -> None:
        connector = SQLConnector(credentials={"connection_string": "not-a-url"})
        assert not await connector.validate_credentials()
