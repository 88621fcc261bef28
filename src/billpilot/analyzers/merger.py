"""
Prediction Merger — overlay real bills onto a predicted timeline.

Each series' timeline is cut into cadence slots (the month, quarter,
half-year or year a predicted occurrence falls in). Entries competing for a
slot are resolved by overlay layer, highest precedence first:

    ACTUAL > RECURRENCE (explicit pattern) > DETECTED (detected pattern)

A real bill due in a slot replaces the prediction outright; amounts are
never blended, and a slot never holds both.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from enum import IntEnum
from typing import Hashable

from billpilot.models.bill import BillRecord, RecurrenceFrequency
from billpilot.models.forecast import PredictedBill, PredictionSource

logger = logging.getLogger("billpilot.analyzers.merger")


class OverlayLayer(IntEnum):
    """Precedence of timeline entries; lower values win."""

    ACTUAL = 0
    RECURRENCE = 1
    DETECTED = 2


_SOURCE_LAYERS: dict[PredictionSource, OverlayLayer] = {
    PredictionSource.ACTUAL: OverlayLayer.ACTUAL,
    PredictionSource.RECURRENCE: OverlayLayer.RECURRENCE,
    PredictionSource.DETECTED: OverlayLayer.DETECTED,
}


def layer_of(entry: PredictedBill) -> OverlayLayer:
    if entry.is_actual:
        return OverlayLayer.ACTUAL
    return _SOURCE_LAYERS[entry.source]


def slot_key(day: date, frequency: RecurrenceFrequency) -> int:
    """Index of the calendar-aligned cadence slot containing ``day``."""
    return (day.year * 12 + day.month - 1) // frequency.months


def _entry_order(entry: PredictedBill) -> tuple[date, str]:
    return entry.period_date, entry.bill_id or ""


class PredictionMerger:
    """Combine predictions with actual bills, actual bills winning.

    Usage::

        merger = PredictionMerger()
        timeline = merger.merge("pattern:p1", predictions, actual_bills, RecurrenceFrequency.MONTHLY)
    """

    def __init__(self, include_unmatched_actuals: bool = True) -> None:
        self.include_unmatched_actuals = include_unmatched_actuals

    def merge(
        self,
        series_id: str,
        predictions: list[PredictedBill],
        actual_bills: list[BillRecord],
        frequency: RecurrenceFrequency | None = None,
    ) -> list[PredictedBill]:
        """Merge one series' predictions with its actual bills.

        Args:
            series_id: Series the entries belong to.
            predictions: Predicted occurrences inside the window.
            actual_bills: Real bills of the series due inside the window.
            frequency: Series cadence defining the slots. Without one there
                can be no predictions and actual bills pass through.

        Returns:
            Entries ordered by date, at most one layer per slot.
        """
        slots: dict[Hashable, list[tuple[OverlayLayer, PredictedBill]]] = defaultdict(list)
        predicted_slots: set[Hashable] = set()

        if predictions and frequency is None:
            raise ValueError("Predictions need a cadence to be merged")

        for prediction in predictions:
            key = slot_key(prediction.period_date, frequency)
            slots[key].append((layer_of(prediction), prediction))
            predicted_slots.add(key)

        for bill in actual_bills:
            actual_key: Hashable = slot_key(bill.due_date, frequency) if frequency else ("bill", bill.id)
            slots[actual_key].append((OverlayLayer.ACTUAL, PredictedBill.from_actual(bill, series_id)))

        merged: list[PredictedBill] = []
        replaced = 0
        for key, entries in slots.items():
            top = min(layer for layer, _ in entries)
            winners = sorted((e for layer, e in entries if layer == top), key=_entry_order)

            if top == OverlayLayer.ACTUAL:
                if key in predicted_slots:
                    replaced += 1
                elif not self.include_unmatched_actuals:
                    continue
                merged.extend(winners)
            else:
                merged.append(winners[0])

        if replaced:
            logger.debug("Series %s: %d predicted slots replaced by actual bills", series_id, replaced)
        return sorted(merged, key=_entry_order)
