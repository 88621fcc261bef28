"""
Pattern Detector — infer the cadence of a bill series from its history.

Looks at the day gaps between consecutive due dates and classifies the
mean gap as monthly, quarterly, biannual or yearly. Confidence blends three
factors, each in [0, 1]:

- **Interval regularity**: 1 - coefficient of variation of the gaps.
- **Sample size**: occurrences / saturation, capped at 1.
- **Amount stability**: 1 - coefficient of variation of the amounts.

Detected patterns are a fallback: an explicit recurrence pattern on a bill
always wins.
"""

from __future__ import annotations

import logging
import statistics
from collections import Counter
from dataclasses import dataclass
from datetime import date

from billpilot.analyzers.series import Series, SeriesGrouper
from billpilot.config import DetectionConfig
from billpilot.models.bill import BillRecord, RecurrenceFrequency, RecurrencePattern

logger = logging.getLogger("billpilot.analyzers.patterns")

# Inclusive mean-gap ranges in days
FREQUENCY_RANGES: list[tuple[RecurrenceFrequency, float, float]] = [
    (RecurrenceFrequency.MONTHLY, 25, 35),
    (RecurrenceFrequency.QUARTERLY, 80, 100),
    (RecurrenceFrequency.BIANNUALLY, 165, 195),
    (RecurrenceFrequency.YEARLY, 350, 380),
]


@dataclass
class PatternEstimate:
    """A detected recurrence and how much to trust it."""

    frequency: RecurrenceFrequency | None
    confidence: float
    sample_size: int
    mean_gap_days: float | None = None
    day_of_month: int | None = None

    def is_reliable(self, threshold: float) -> bool:
        return self.frequency is not None and self.confidence >= threshold

    def to_pattern(self, anchor: date) -> RecurrencePattern | None:
        """Express the estimate as a recurrence pattern starting at ``anchor``."""
        if self.frequency is None:
            return None
        return RecurrencePattern(
            frequency=self.frequency,
            day_of_month=self.day_of_month or anchor.day,
            start_date=anchor,
        )


def coefficient_of_variation(values: list[float]) -> float:
    """Population standard deviation over |mean|; 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    mean = sum(values) / len(values)
    if mean == 0:
        return 0.0 if all(v == 0 for v in values) else 1.0
    return statistics.pstdev(values) / abs(mean)


def classify_gap(mean_gap: float) -> RecurrenceFrequency | None:
    """Map a mean day gap onto a frequency, or None when irregular."""
    for frequency, low, high in FREQUENCY_RANGES:
        if low <= mean_gap <= high:
            return frequency
    return None


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _dominant_day(dates: list[date]) -> int | None:
    if not dates:
        return None
    counts = Counter(d.day for d in dates)
    best = max(counts.values())
    # Ties go to the most recent day seen
    for d in reversed(dates):
        if counts[d.day] == best:
            return d.day
    return None


class PatternDetector:
    """Detect recurring payment patterns in bill series.

    Usage::

        detector = PatternDetector()
        estimate = detector.detect(series)
        if estimate.is_reliable(0.5):
            print(estimate.frequency, estimate.confidence)
    """

    def __init__(self, config: DetectionConfig | None = None) -> None:
        self.config = config or DetectionConfig()

    def detect(self, series: Series) -> PatternEstimate:
        """Estimate the frequency of a single series."""
        return self.detect_recurrence_from_history(series.bills)

    def detect_recurrence_from_history(self, bills: list[BillRecord]) -> PatternEstimate:
        """Estimate the frequency of a group of bills assumed to be one obligation."""
        ordered = sorted(bills, key=lambda b: (b.due_date, b.id))
        dates = [b.due_date for b in ordered]
        amounts = [float(b.amount) for b in ordered]
        n = len(ordered)

        if n == 0:
            return PatternEstimate(frequency=None, confidence=0.0, sample_size=0)

        gaps = [float((dates[i] - dates[i - 1]).days) for i in range(1, n)]
        mean_gap = sum(gaps) / len(gaps) if gaps else None
        raw = self.confidence_score(gaps, amounts, n)
        day = _dominant_day(dates)

        if n < self.config.min_occurrences:
            return PatternEstimate(
                frequency=None,
                confidence=min(raw, self.config.insufficient_confidence_cap),
                sample_size=n,
                mean_gap_days=mean_gap,
                day_of_month=day,
            )

        frequency = classify_gap(mean_gap) if mean_gap is not None else None
        confidence = raw if frequency else min(raw, self.config.irregular_confidence_cap)

        logger.debug(
            "Detected %s (mean gap %.1f days, n=%d, confidence %.2f)",
            frequency.value if frequency else "irregular",
            mean_gap or 0.0,
            n,
            confidence,
        )
        return PatternEstimate(
            frequency=frequency,
            confidence=confidence,
            sample_size=n,
            mean_gap_days=mean_gap,
            day_of_month=day,
        )

    def confidence_score(self, gaps: list[float], amounts: list[float], sample_size: int) -> float:
        """Weighted blend of interval regularity, sample size and amount stability."""
        cfg = self.config
        total_weight = cfg.interval_weight + cfg.sample_weight + cfg.amount_weight
        if total_weight <= 0:
            return 0.0

        regularity = 1.0 - min(coefficient_of_variation(gaps), 1.0) if gaps else 0.0
        samples = min(sample_size / cfg.sample_saturation, 1.0)
        stability = 1.0 - min(coefficient_of_variation(amounts), 1.0)

        score = (
            cfg.interval_weight * regularity
            + cfg.sample_weight * samples
            + cfg.amount_weight * stability
        ) / total_weight
        return _clamp01(score)

    def analyze_historical_patterns(
        self,
        bills: list[BillRecord],
        grouper: SeriesGrouper | None = None,
    ) -> list[tuple[Series, PatternEstimate]]:
        """Group bills into series and detect a pattern for each.

        Series carrying an explicit pattern are skipped.
        """
        grouper = grouper or SeriesGrouper()
        results: list[tuple[Series, PatternEstimate]] = []
        for series in grouper.group(bills):
            if series.has_explicit_pattern:
                continue
            results.append((series, self.detect(series)))

        reliable = sum(1 for _, e in results if e.is_reliable(self.config.min_reliable_confidence))
        logger.info("Analyzed %d series, %d with a reliable pattern", len(results), reliable)
        return results
