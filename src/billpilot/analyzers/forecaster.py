"""
Forecaster — predict the next amount of a bill series.

Four interchangeable methods, chosen per series and target date by a fixed
policy (first match wins):

1. **Linear regression**: 3+ points and a trend that explains the data
   (R² >= 0.7). Projects the line to the target at the series cadence.
2. **Seasonal average**: weak trend (R² < 0.5) and the target's calendar
   month seen in at least two different years.
3. **Weighted moving average**: 2+ points. Last four amounts weighted
   0.4/0.3/0.2/0.1, most recent first.
4. **Simple average**: whatever is left (a single point).

Amounts stay ``Decimal``; only the regression runs in float and its result
is rounded back to cents right away. Forecasts built on synthesized
history are capped at a low confidence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from billpilot.analyzers.recurrence import months_between
from billpilot.analyzers.series import DataPoint
from billpilot.config import ForecastConfig
from billpilot.models.bill import RecurrenceFrequency
from billpilot.models.forecast import ForecastMethod

logger = logging.getLogger("billpilot.analyzers.forecaster")

CENT = Decimal("0.01")


@dataclass
class TrendFit:
    """Ordinary least squares fit of amount against sequence index."""

    slope: float
    intercept: float
    r_squared: float

    def at(self, index: float) -> float:
        return self.intercept + self.slope * index


@dataclass
class Forecast:
    """A predicted amount for one target date."""

    amount: Decimal
    method: ForecastMethod
    confidence: float
    target_date: date
    sample_size: int
    r_squared: float = 0.0
    is_synthetic: bool = False


def to_money(value: float | Decimal) -> Decimal:
    """Round to cents, never below zero."""
    amount = value if isinstance(value, Decimal) else Decimal(repr(float(value)))
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    return max(amount, Decimal("0.00"))


def linear_regression(values: list[float]) -> TrendFit:
    """Fit ``value = intercept + slope * index`` and report R².

    R² is 0 for fewer than two points or when the values do not vary.
    """
    n = len(values)
    if n < 2:
        return TrendFit(0.0, values[0] if values else 0.0, 0.0)

    x = list(range(n))
    x_mean = sum(x) / n
    y_mean = sum(values) / n

    numerator = sum((x[i] - x_mean) * (values[i] - y_mean) for i in range(n))
    denominator = sum((x[i] - x_mean) ** 2 for i in range(n))

    slope = numerator / denominator if denominator else 0.0
    intercept = y_mean - slope * x_mean

    ss_tot = sum((v - y_mean) ** 2 for v in values)
    if ss_tot == 0:
        return TrendFit(slope, intercept, 0.0)

    ss_res = sum((values[i] - (intercept + slope * x[i])) ** 2 for i in range(n))
    r_squared = max(0.0, min(1.0, 1.0 - ss_res / ss_tot))
    return TrendFit(slope, intercept, r_squared)


class Forecaster:
    """Select a forecasting method and predict a series' amount at a date.

    Usage::

        forecaster = Forecaster()
        result = forecaster.forecast(points, date(2026, 12, 1), RecurrenceFrequency.MONTHLY)
        print(result.amount, result.method, result.confidence)
    """

    def __init__(self, config: ForecastConfig | None = None) -> None:
        self.config = config or ForecastConfig()

    def forecast(
        self,
        points: list[DataPoint],
        target: date,
        frequency: RecurrenceFrequency | None = None,
    ) -> Forecast:
        """Predict the amount due at ``target`` from a series history.

        Args:
            points: History, any order. Synthetic points are allowed.
            target: Date being predicted.
            frequency: Series cadence, used to place ``target`` on the
                regression index. Falls back to the mean day gap.

        Returns:
            The forecast with the method that produced it.
        """
        if not points:
            raise ValueError("Cannot forecast a series without history")

        cfg = self.config
        ordered = sorted(points, key=lambda p: p.date)
        n = len(ordered)
        values = [float(p.amount) for p in ordered]

        fit = linear_regression(values) if n >= 3 else TrendFit(0.0, values[-1], 0.0)
        r2 = fit.r_squared

        if n >= 3 and r2 >= cfg.trend_r2_threshold:
            index = (n - 1) + self.steps_ahead(ordered, target, frequency)
            amount = to_money(fit.at(index))
            confidence = max(cfg.trend_confidence_floor, min(cfg.trend_confidence_ceiling, r2))
            method = ForecastMethod.LINEAR_REGRESSION
        elif n >= 2 and r2 < cfg.seasonal_r2_threshold and self._has_seasonal_history(ordered, target):
            amount = to_money(self._seasonal_average(ordered, target))
            confidence = cfg.seasonal_confidence
            method = ForecastMethod.SEASONAL_AVERAGE
        elif n >= 2:
            amount = to_money(self._weighted_moving_average(ordered))
            confidence = (
                cfg.smoothing_trend_confidence
                if r2 >= cfg.smoothing_r2_threshold
                else cfg.smoothing_confidence
            )
            method = ForecastMethod.WEIGHTED_MOVING_AVERAGE
        else:
            amount = to_money(sum((p.amount for p in ordered), Decimal("0")) / n)
            confidence = cfg.single_point_confidence
            method = ForecastMethod.SIMPLE_AVERAGE

        is_synthetic = any(not p.is_actual for p in ordered)
        if is_synthetic:
            confidence = min(confidence, cfg.synthetic_confidence_cap)

        logger.debug(
            "Forecast %s for %s: %s (confidence %.2f, R² %.3f, n=%d)",
            method.value, target, amount, confidence, r2, n,
        )
        return Forecast(
            amount=amount,
            method=method,
            confidence=confidence,
            target_date=target,
            sample_size=n,
            r_squared=r2,
            is_synthetic=is_synthetic,
        )

    def steps_ahead(
        self,
        points: list[DataPoint],
        target: date,
        frequency: RecurrenceFrequency | None = None,
    ) -> int:
        """Number of cadence steps from the last point to ``target`` (at least 1)."""
        last = points[-1].date
        if frequency is not None:
            steps = round(months_between(last, target) / frequency.months)
        else:
            gaps = [(points[i].date - points[i - 1].date).days for i in range(1, len(points))]
            mean_gap = sum(gaps) / len(gaps) if gaps else 0
            steps = round((target - last).days / mean_gap) if mean_gap > 0 else 1
        return max(1, steps)

    def _weighted_moving_average(self, points: list[DataPoint]) -> Decimal:
        weights = [Decimal(str(w)) for w in self.config.wma_weights]
        recent = list(reversed(points[-len(weights):]))
        used = weights[: len(recent)]
        total = sum(used, Decimal("0"))
        return sum((p.amount * w for p, w in zip(recent, used)), Decimal("0")) / total

    @staticmethod
    def _same_month(points: list[DataPoint], target: date) -> list[DataPoint]:
        return [p for p in points if p.date.month == target.month and p.date < target]

    def _has_seasonal_history(self, points: list[DataPoint], target: date) -> bool:
        same_month = self._same_month(points, target)
        return len(same_month) >= 2 and len({p.date.year for p in same_month}) >= 2

    def _seasonal_average(self, points: list[DataPoint], target: date) -> Decimal:
        same_month = self._same_month(points, target)
        return sum((p.amount for p in same_month), Decimal("0")) / len(same_month)
