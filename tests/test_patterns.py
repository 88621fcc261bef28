"""Tests for recurrence pattern detection."""

from datetime import date, timedelta
from decimal import Decimal

from billpilot.analyzers.patterns import (
    PatternDetector,
    PatternEstimate,
    classify_gap,
    coefficient_of_variation,
)
from billpilot.models.bill import BillRecord, RecurrenceFrequency, RecurrencePattern


def _bills(dates: list[date], amounts: list[str] | None = None, **kwargs) -> list[BillRecord]:
    amounts = amounts or ["100.00"] * len(dates)
    return [
        BillRecord(id=f"b{i}", title="Utility", amount=Decimal(a), due_date=d, **kwargs)
        for i, (d, a) in enumerate(zip(dates, amounts))
    ]


def _every(days: int, count: int, start: date = date(2025, 1, 15)) -> list[date]:
    return [start + timedelta(days=days * i) for i in range(count)]


class TestFrequencyDetection:
    def test_monthly(self) -> None:
        dates = [date(2025, m, 15) for m in range(1, 7)]
        estimate = PatternDetector().detect_recurrence_from_history(_bills(dates))

        assert estimate.frequency == RecurrenceFrequency.MONTHLY
        assert estimate.confidence >= 0.9
        assert estimate.day_of_month == 15
        assert estimate.sample_size == 6

    def test_quarterly(self) -> None:
        dates = [date(2025, 1, 15), date(2025, 4, 15), date(2025, 7, 15), date(2025, 10, 15)]
        estimate = PatternDetector().detect_recurrence_from_history(_bills(dates))
        assert estimate.frequency == RecurrenceFrequency.QUARTERLY

    def test_biannual(self) -> None:
        dates = [date(2024, 1, 10), date(2024, 7, 10), date(2025, 1, 10)]
        estimate = PatternDetector().detect_recurrence_from_history(_bills(dates))
        assert estimate.frequency == RecurrenceFrequency.BIANNUALLY

    def test_yearly(self) -> None:
        dates = [date(2023, 3, 1), date(2024, 3, 1), date(2025, 3, 1)]
        estimate = PatternDetector().detect_recurrence_from_history(_bills(dates))
        assert estimate.frequency == RecurrenceFrequency.YEARLY

    def test_irregular_gaps_are_capped(self) -> None:
        dates = [date(2025, 1, 1), date(2025, 1, 6), date(2025, 1, 18), date(2025, 1, 25)]
        estimate = PatternDetector().detect_recurrence_from_history(_bills(dates))
        assert estimate.frequency is None
        assert estimate.confidence <= 0.4
        assert not estimate.is_reliable(0.5)

    def test_too_few_occurrences(self) -> None:
        dates = [date(2025, 1, 15), date(2025, 2, 15)]
        estimate = PatternDetector().detect_recurrence_from_history(_bills(dates))
        assert estimate.frequency is None
        assert estimate.confidence <= 0.3

    def test_empty(self) -> None:
        estimate = PatternDetector().detect_recurrence_from_history([])
        assert estimate.frequency is None
        assert estimate.confidence == 0.0
        assert estimate.sample_size == 0


class TestConfidence:
    def test_non_decreasing_in_sample_size(self) -> None:
        detector = PatternDetector()
        scores = [
            detector.detect_recurrence_from_history(_bills(_every(30, n))).confidence
            for n in range(3, 10)
        ]
        assert scores == sorted(scores)

    def test_unstable_amounts_lower_confidence(self) -> None:
        detector = PatternDetector()
        dates = _every(30, 6)
        steady = detector.detect_recurrence_from_history(_bills(dates))
        noisy = detector.detect_recurrence_from_history(
            _bills(dates, ["40", "180", "65", "220", "30", "150"])
        )
        assert noisy.confidence < steady.confidence

    def test_confidence_within_unit_interval(self) -> None:
        detector = PatternDetector()
        score = detector.confidence_score([30.0, 31.0, 29.0], [1.0, 1000.0, 0.0, 5.0], 4)
        assert 0.0 <= score <= 1.0

    def test_no_gaps_means_no_regularity(self) -> None:
        detector = PatternDetector()
        assert detector.confidence_score([], [100.0], 1) < 0.5


class TestHelpers:
    def test_coefficient_of_variation(self) -> None:
        assert coefficient_of_variation([]) == 0.0
        assert coefficient_of_variation([5.0]) == 0.0
        assert coefficient_of_variation([0.0, 0.0]) == 0.0
        assert coefficient_of_variation([10.0, 10.0, 10.0]) == 0.0

    def test_classify_gap(self) -> None:
        assert classify_gap(30) == RecurrenceFrequency.MONTHLY
        assert classify_gap(91) == RecurrenceFrequency.QUARTERLY
        assert classify_gap(182) == RecurrenceFrequency.BIANNUALLY
        assert classify_gap(365) == RecurrenceFrequency.YEARLY
        assert classify_gap(60) is None

    def test_to_pattern(self) -> None:
        estimate = PatternEstimate(
            frequency=RecurrenceFrequency.MONTHLY,
            confidence=0.9,
            sample_size=6,
            day_of_month=15,
        )
        pattern = estimate.to_pattern(date(2025, 6, 15))
        assert pattern == RecurrencePattern(
            frequency=RecurrenceFrequency.MONTHLY,
            day_of_month=15,
            start_date=date(2025, 6, 15),
        )

    def test_to_pattern_without_frequency(self) -> None:
        estimate = PatternEstimate(frequency=None, confidence=0.2, sample_size=2)
        assert estimate.to_pattern(date(2025, 6, 15)) is None


class TestAnalyzeHistoricalPatterns:
    def test_skips_series_with_explicit_patterns(self) -> None:
        pattern = RecurrencePattern(
            id="p1", frequency=RecurrenceFrequency.MONTHLY, day_of_month=1, start_date=date(2025, 1, 1)
        )
        explicit = [
            BillRecord(id=f"e{i}", title="Rent", amount=Decimal("1000"), due_date=date(2025, m, 1),
                       recurrence_pattern=pattern, recurrence_pattern_id="p1")
            for i, m in enumerate(range(1, 4))
        ]
        detected = _bills([date(2025, m, 20) for m in range(1, 5)], vendor_id="water", category_id="util")

        results = PatternDetector().analyze_historical_patterns(explicit + detected)

        assert len(results) == 1
        series, estimate = results[0]
        assert series.series_id == "vendor:water/util/-"
        assert estimate.frequency == RecurrenceFrequency.MONTHLY
