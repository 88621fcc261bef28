"""
Bill data models — bills, recurrence rules, store filters.

These are the records BillPilot consumes from the bill store. The engine
treats them as read-only values.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class BillStatus(str, Enum):
    """Lifecycle status of a bill."""

    PENDING = "PENDING"
    DUE_SOON = "DUE_SOON"
    OVERDUE = "OVERDUE"
    PAID = "PAID"
    SKIPPED = "SKIPPED"


class RecurrenceFrequency(str, Enum):
    """How often a recurring bill comes due."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    BIANNUALLY = "BIANNUALLY"
    YEARLY = "YEARLY"

    @property
    def months(self) -> int:
        """Number of calendar months between two occurrences."""
        return _FREQUENCY_MONTHS[self]


_FREQUENCY_MONTHS: dict[RecurrenceFrequency, int] = {
    RecurrenceFrequency.MONTHLY: 1,
    RecurrenceFrequency.QUARTERLY: 3,
    RecurrenceFrequency.BIANNUALLY: 6,
    RecurrenceFrequency.YEARLY: 12,
}


class RecurrencePattern(BaseModel):
    """An explicit recurrence rule attached to a bill."""

    id: str | None = None
    frequency: RecurrenceFrequency
    day_of_month: int = Field(ge=1, le=31)
    start_date: date
    end_date: date | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> RecurrencePattern:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BillRecord(BaseModel):
    """A single bill as stored by the bill store."""

    id: str
    title: str
    amount: Decimal = Field(ge=0, description="Amount owed in base currency")
    due_date: date
    paid_date: date | None = None
    status: BillStatus = BillStatus.PENDING
    category_id: str | None = None
    vendor_id: str | None = None
    vendor_account_id: str | None = None
    is_recurring: bool = False
    recurrence_pattern_id: str | None = None
    recurrence_pattern: RecurrencePattern | None = None
    description: str = ""

    @property
    def is_paid(self) -> bool:
        return self.status == BillStatus.PAID

    @property
    def has_pattern(self) -> bool:
        return self.recurrence_pattern is not None or self.recurrence_pattern_id is not None


class BillFilter(BaseModel):
    """Criteria for fetching bills from a bill store.

    All criteria are optional and combined with AND. Date bounds are
    inclusive. ``paid_from``/``paid_to`` exclude bills without a paid date.
    """

    is_recurring: bool | None = None
    status: BillStatus | None = None
    due_from: date | None = None
    due_to: date | None = None
    paid_from: date | None = None
    paid_to: date | None = None
    vendor_ids: list[str] = Field(default_factory=list)

    def matches(self, bill: BillRecord) -> bool:
        """Check whether a bill satisfies every criterion of this filter."""
        if self.is_recurring is not None and bill.is_recurring != self.is_recurring:
            return False
        if self.status is not None and bill.status != self.status:
            return False
        if self.due_from and bill.due_date < self.due_from:
            return False
        if self.due_to and bill.due_date > self.due_to:
            return False
        if self.paid_from or self.paid_to:
            if bill.paid_date is None:
                return False
            if self.paid_from and bill.paid_date < self.paid_from:
                return False
            if self.paid_to and bill.paid_date > self.paid_to:
                return False
        if self.vendor_ids and bill.vendor_id not in self.vendor_ids:
            return False
        return True

    def apply(self, bills: list[BillRecord]) -> list[BillRecord]:
        """Return the bills matching this filter, preserving order."""
        return [b for b in bills if self.matches(b)]
