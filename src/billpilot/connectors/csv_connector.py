"""
CSV Connector — load bills from CSV exports.

This is the simplest connector and the easiest way to get started. Any CSV
with a title, amount and due date column works; recurrence columns are
optional and turn rows into recurring bills with an explicit pattern.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import ValidationError

from billpilot.connectors.base import BaseConnector
from billpilot.models.bill import (
    BillFilter,
    BillRecord,
    BillStatus,
    RecurrenceFrequency,
    RecurrencePattern,
)

logger = logging.getLogger("billpilot.connectors.csv")

# Common column name mappings
_COLUMN_ALIASES: dict[str, list[str]] = {
    "id": ["id", "bill_id", "bill_number", "reference"],
    "title": ["title", "name", "bill", "description", "memo", "payee"],
    "amount": ["amount", "total", "amount_due", "value", "sum"],
    "due_date": ["due_date", "due", "date", "due_on"],
    "paid_date": ["paid_date", "paid", "paid_on", "payment_date"],
    "status": ["status", "state"],
    "category": ["category_id", "category", "expense_type", "account"],
    "vendor": ["vendor_id", "vendor", "supplier", "merchant"],
    "vendor_account": ["vendor_account_id", "vendor_account", "account_number"],
    "is_recurring": ["is_recurring", "recurring"],
    "frequency": ["recurrence_frequency", "frequency", "recurrence"],
    "day_of_month": ["recurrence_day", "day_of_month"],
    "pattern_id": ["recurrence_pattern_id", "pattern_id"],
    "pattern_start": ["recurrence_start", "recurrence_start_date"],
    "pattern_end": ["recurrence_end", "recurrence_end_date"],
    "notes": ["notes", "note", "details", "comment"],
}

_TRUTHY = {"1", "true", "yes", "y", "t"}

_FREQUENCY_ALIASES: dict[str, RecurrenceFrequency] = {
    "monthly": RecurrenceFrequency.MONTHLY,
    "month": RecurrenceFrequency.MONTHLY,
    "quarterly": RecurrenceFrequency.QUARTERLY,
    "quarter": RecurrenceFrequency.QUARTERLY,
    "biannually": RecurrenceFrequency.BIANNUALLY,
    "biannual": RecurrenceFrequency.BIANNUALLY,
    "semiannual": RecurrenceFrequency.BIANNUALLY,
    "yearly": RecurrenceFrequency.YEARLY,
    "annual": RecurrenceFrequency.YEARLY,
    "annually": RecurrenceFrequency.YEARLY,
}


def _text(value: Any) -> str | None:
    """Cell value as stripped text, None for blanks and NaN."""
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    if text is None:
        return None
    return pd.to_datetime(text).date()


def _parse_amount(value: Any) -> Decimal:
    text = _text(value)
    if text is None:
        raise ValueError("missing amount")
    try:
        return Decimal(text.replace(",", "").replace("$", ""))
    except InvalidOperation as e:
        raise ValueError(f"invalid amount {text!r}") from e


def _parse_frequency(value: Any) -> RecurrenceFrequency | None:
    text = _text(value)
    if text is None:
        return None
    frequency = _FREQUENCY_ALIASES.get(text.lower())
    if frequency is None:
        raise ValueError(f"unknown recurrence frequency {text!r}")
    return frequency


class CSVConnector(BaseConnector):
    """Load bills from a CSV file.

    Usage::

        connector = CSVConnector(file_path="bills.csv")
        bills = await connector.fetch_bills(BillFilter(is_recurring=True))

    Columns are detected by name. Rows that cannot be turned into a valid
    bill are skipped with a warning.
    """

    name = "csv"
    description = "Load bills from CSV files"

    def __init__(
        self,
        credentials: dict[str, Any] | None = None,
        file_path: str | None = None,
        **options: Any,
    ) -> None:
        super().__init__(credentials, **options)
        # file_path can come from: direct param, options, or credentials
        creds = credentials or {}
        self.file_path = (
            file_path
            or options.get("file_path")
            or creds.get("file_path", "")
        )
        self.encoding = options.get("encoding", "utf-8")
        self.delimiter = options.get("delimiter", ",")

    async def fetch_bills(self, bill_filter: BillFilter | None = None) -> list[BillRecord]:
        """Read the CSV file and return the bills matching ``bill_filter``."""
        path = Path(self.file_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {self.file_path}")

        df = pd.read_csv(
            path,
            encoding=self.encoding,
            delimiter=self.delimiter,
            dtype=str,
            keep_default_na=False,
        )
        df.columns = df.columns.str.strip().str.lower()

        col_map = self._detect_columns(df)
        bills = self._parse_bills(df, col_map)
        if bill_filter is not None:
            bills = bill_filter.apply(bills)

        logger.info("Loaded %d bills from %s", len(bills), path.name)
        return bills

    async def validate_credentials(self) -> bool:
        """Check if the CSV file exists and is readable."""
        path = Path(self.file_path)
        return path.exists() and path.is_file()

    def _detect_columns(self, df: pd.DataFrame) -> dict[str, str]:
        """Auto-detect column mappings from the DataFrame."""
        col_map: dict[str, str] = {}
        df_cols = set(df.columns)
        claimed: set[str] = set()

        for field, aliases in _COLUMN_ALIASES.items():
            for alias in aliases:
                if alias in df_cols and alias not in claimed:
                    col_map[field] = alias
                    claimed.add(alias)
                    break

        return col_map

    def _parse_bills(self, df: pd.DataFrame, col_map: dict[str, str]) -> list[BillRecord]:
        """Convert DataFrame rows to BillRecord objects."""
        bills: list[BillRecord] = []

        if "amount" not in col_map or "due_date" not in col_map:
            logger.warning("Bill data missing required columns (amount, due_date)")
            return bills

        for index, row in df.iterrows():
            try:
                bills.append(self._parse_row(row, col_map, index))
            except (ValueError, ValidationError) as e:
                logger.warning("Skipping row %s: %s", index, e)

        return bills

    def _parse_row(self, row: pd.Series, col_map: dict[str, str], index: Any) -> BillRecord:
        def cell(field: str) -> Any:
            column = col_map.get(field)
            return row[column] if column else None

        due_date = _parse_date(cell("due_date"))
        if due_date is None:
            raise ValueError("missing due date")

        status_text = _text(cell("status"))
        paid_date = _parse_date(cell("paid_date"))
        if status_text:
            status = BillStatus(status_text.upper().replace(" ", "_"))
        else:
            status = BillStatus.PAID if paid_date else BillStatus.PENDING

        pattern = None
        frequency = _parse_frequency(cell("frequency"))
        if frequency is not None:
            day = _text(cell("day_of_month"))
            pattern = RecurrencePattern(
                id=_text(cell("pattern_id")),
                frequency=frequency,
                day_of_month=int(float(day)) if day else due_date.day,
                start_date=_parse_date(cell("pattern_start")) or due_date,
                end_date=_parse_date(cell("pattern_end")),
            )

        recurring_text = _text(cell("is_recurring"))
        is_recurring = (
            recurring_text.lower() in _TRUTHY if recurring_text else pattern is not None
        )

        title = _text(cell("title")) or _text(cell("vendor")) or "Untitled bill"
        return BillRecord(
            id=_text(cell("id")) or f"row-{index}",
            title=title,
            amount=_parse_amount(cell("amount")),
            due_date=due_date,
            paid_date=paid_date,
            status=status,
            category_id=_text(cell("category")),
            vendor_id=_text(cell("vendor")),
            vendor_account_id=_text(cell("vendor_account")),
            is_recurring=is_recurring,
            recurrence_pattern_id=_text(cell("pattern_id")) if pattern else None,
            recurrence_pattern=pattern,
            description=_text(cell("notes")) or "",
        )
