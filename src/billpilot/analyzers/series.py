"""
Series Grouper — partition bills into series of the same recurring obligation.

A series is every bill we believe belongs to one obligation: the electric
bill, the quarterly insurance premium, the annual domain renewal. Grouping
precedence:

1. Bills sharing an explicit recurrence pattern.
2. Bills matching a pattern series' template (same vendor, account and
   category; or same category and title when there is no vendor).
3. Bills sharing vendor + category (+ vendor account).
4. Bills sharing a normalized title.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from billpilot.analyzers.recurrence import add_months
from billpilot.config import ForecastConfig
from billpilot.models.bill import BillRecord, RecurrenceFrequency, RecurrencePattern

logger = logging.getLogger("billpilot.analyzers.series")


@dataclass
class DataPoint:
    """A dated amount in a series history."""

    date: date
    amount: Decimal
    bill_id: str | None = None
    is_actual: bool = True  # False for synthesized occurrences


@dataclass
class Series:
    """Bills believed to represent the same recurring obligation."""

    series_id: str
    bills: list[BillRecord] = field(default_factory=list)
    recurrence_pattern: RecurrencePattern | None = None
    template: BillRecord | None = None

    @property
    def size(self) -> int:
        return len(self.bills)

    @property
    def has_explicit_pattern(self) -> bool:
        return self.recurrence_pattern is not None

    @property
    def title(self) -> str:
        if self.template:
            return self.template.title
        return self.bills[-1].title if self.bills else self.series_id

    @property
    def category_id(self) -> str | None:
        return self.template.category_id if self.template else None

    @property
    def vendor_id(self) -> str | None:
        return self.template.vendor_id if self.template else None

    @property
    def amounts(self) -> list[Decimal]:
        return [b.amount for b in self.bills]

    def points(self, before: date | None = None) -> list[DataPoint]:
        """History points, optionally only those due strictly before ``before``."""
        return [
            DataPoint(date=b.due_date, amount=b.amount, bill_id=b.id)
            for b in self.bills
            if before is None or b.due_date < before
        ]

    def bills_between(self, start: date, end: date) -> list[BillRecord]:
        return [b for b in self.bills if start <= b.due_date <= end]


def normalize_title(title: str) -> str:
    """Case-insensitive, whitespace-collapsed title used as a grouping key."""
    return " ".join(title.split()).lower()


def _pattern_key(bill: BillRecord) -> str | None:
    """Key of the pattern a bill names by id, None when it names none."""
    pattern_id = bill.recurrence_pattern_id
    if pattern_id is None and bill.recurrence_pattern is not None:
        pattern_id = bill.recurrence_pattern.id
    return f"pattern:{pattern_id}" if pattern_id else None


def _schedule_key(bill: BillRecord) -> str:
    """Key for a pattern without an id: its schedule plus the obligation key."""
    pattern = bill.recurrence_pattern
    return f"pattern:{pattern.frequency.value.lower()}/{pattern.day_of_month}/{_fallback_key(bill)}"


def _fallback_key(bill: BillRecord) -> str:
    if bill.vendor_id and bill.category_id:
        account = bill.vendor_account_id or "-"
        return f"vendor:{bill.vendor_id}/{bill.category_id}/{account}"
    return f"title:{normalize_title(bill.title)}"


def matches_template(bill: BillRecord, template: BillRecord) -> bool:
    """Check whether ``bill`` is another occurrence of a recurring ``template``."""
    if bill.category_id != template.category_id:
        return False
    if template.vendor_id:
        return (
            bill.vendor_id == template.vendor_id
            and bill.vendor_account_id == template.vendor_account_id
        )
    return bill.vendor_id is None and normalize_title(bill.title) == normalize_title(template.title)


def _sort_key(bill: BillRecord) -> tuple[date, str]:
    return bill.due_date, bill.id


class SeriesGrouper:
    """Group a flat list of bills into series.

    Usage::

        grouper = SeriesGrouper()
        for series in grouper.group(bills):
            print(series.series_id, series.size)
    """

    def __init__(self, config: ForecastConfig | None = None) -> None:
        self.config = config or ForecastConfig()

    def group(self, bills: list[BillRecord]) -> list[Series]:
        """Partition ``bills`` into series, sorted by series id.

        Duplicate ids keep their first occurrence.
        """
        unique: list[BillRecord] = []
        seen: set[str] = set()
        for bill in bills:
            if bill.id in seen:
                continue
            seen.add(bill.id)
            unique.append(bill)

        groups: dict[str, list[BillRecord]] = {}
        unnamed: list[BillRecord] = []
        remaining: list[BillRecord] = []

        # 1. Explicit patterns, by pattern id
        for bill in unique:
            key = _pattern_key(bill)
            if key is not None:
                groups.setdefault(key, []).append(bill)
            elif bill.recurrence_pattern is not None:
                unnamed.append(bill)
            else:
                remaining.append(bill)

        # Patterns without an id join a matching named series, else share one per schedule
        named = {key: self._pick_template(members) for key, members in sorted(groups.items())}
        for bill in unnamed:
            key = next(
                (k for k, t in named.items() if matches_template(bill, t)),
                None,
            )
            groups.setdefault(key or _schedule_key(bill), []).append(bill)

        templates = {key: self._pick_template(members) for key, members in sorted(groups.items())}

        # 2. Occurrences of a pattern template, 3. vendor/category, 4. title
        for bill in remaining:
            key = next(
                (k for k, t in templates.items() if matches_template(bill, t)),
                None,
            )
            if key is None:
                key = _fallback_key(bill)
            groups.setdefault(key, []).append(bill)

        series_list: list[Series] = []
        for key in sorted(groups):
            members = sorted(groups[key], key=_sort_key)
            template = templates.get(key) or members[-1]
            pattern = next(
                (b.recurrence_pattern for b in reversed(members) if b.recurrence_pattern),
                None,
            )
            series_list.append(Series(
                series_id=key,
                bills=members,
                recurrence_pattern=pattern,
                template=template,
            ))

        logger.debug("Grouped %d bills into %d series", len(unique), len(series_list))
        return series_list

    @staticmethod
    def _pick_template(members: list[BillRecord]) -> BillRecord:
        """The most recent member carrying the pattern, else the most recent member."""
        ordered = sorted(members, key=_sort_key)
        carriers = [b for b in ordered if b.recurrence_pattern is not None]
        return carriers[-1] if carriers else ordered[-1]

    def synthesize(
        self,
        points: list[DataPoint],
        frequency: RecurrenceFrequency | None = None,
        gap_days: float | None = None,
    ) -> list[DataPoint]:
        """Back-fill virtual occurrences for a series with too little history.

        Virtual points are spaced at the series cadence before the earliest
        real point and carry the most recent real amount. Nothing is added
        once ``min_history`` real points exist or no cadence is known.
        """
        real = sorted((p for p in points if p.is_actual), key=lambda p: p.date)
        if not real or len(real) >= self.config.min_history:
            return real
        if frequency is None and not gap_days:
            return real

        count = max(self.config.min_synthetic_points, self.config.min_history - len(real))
        earliest = real[0]
        amount = real[-1].amount

        virtual: list[DataPoint] = []
        for k in range(1, count + 1):
            if frequency is not None:
                when = add_months(earliest.date, -k * frequency.months)
            else:
                when = earliest.date - timedelta(days=round(gap_days * k))
            virtual.append(DataPoint(date=when, amount=amount, bill_id=None, is_actual=False))

        logger.debug("Synthesized %d occurrences at %s", count, amount)
        return sorted(virtual + real, key=lambda p: p.date)
