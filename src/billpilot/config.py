"""
BillPilot configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from billpilot.models.forecast import PeriodType


class ForecastConfig(BaseModel):
    """Method-selection thresholds and confidence bounds for the forecaster."""

    trend_r2_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    seasonal_r2_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    smoothing_r2_threshold: float = Field(
        default=0.4, ge=0.0, le=1.0,
        description="Trend R² at which the moving average earns the higher confidence",
    )
    wma_weights: list[float] = Field(default_factory=lambda: [0.4, 0.3, 0.2, 0.1])
    trend_confidence_floor: float = Field(default=0.3, ge=0.0, le=1.0)
    trend_confidence_ceiling: float = Field(default=0.95, ge=0.0, le=1.0)
    smoothing_confidence: float = 0.5
    smoothing_trend_confidence: float = 0.6
    seasonal_confidence: float = 0.6
    # Simple average only ever sees one point: two or more go to the moving average
    single_point_confidence: float = 0.3
    synthetic_confidence_cap: float = Field(default=0.4, ge=0.0, le=1.0)
    min_history: int = Field(default=3, ge=1, description="Real occurrences needed before synthesis stops")
    min_synthetic_points: int = Field(default=2, ge=0)

    @field_validator("wma_weights")
    @classmethod
    def _check_weights(cls, value: list[float]) -> list[float]:
        if not value or any(w <= 0 for w in value):
            raise ValueError("wma_weights must be a non-empty list of positive numbers")
        return value


class DetectionConfig(BaseModel):
    """Pattern detection weights and confidence caps."""

    interval_weight: float = Field(default=1 / 3, ge=0.0)
    sample_weight: float = Field(default=1 / 3, ge=0.0)
    amount_weight: float = Field(default=1 / 3, ge=0.0)
    sample_saturation: int = Field(default=6, ge=1)
    min_occurrences: int = Field(default=3, ge=2)
    insufficient_confidence_cap: float = Field(default=0.3, ge=0.0, le=1.0)
    irregular_confidence_cap: float = Field(default=0.4, ge=0.0, le=1.0)
    min_reliable_confidence: float = Field(
        default=0.5, ge=0.0, le=1.0,
        description="Detected patterns below this confidence are not forecast",
    )


class ReportConfig(BaseModel):
    """Defaults for report generation."""

    period_type: PeriodType = PeriodType.MONTHLY
    horizon_months: int = Field(default=12, ge=1, le=120)
    history_years: int = Field(default=2, ge=1, le=20)
    include_historic: bool = False
    include_unmatched_actuals: bool = True


class ConnectorConfig(BaseModel):
    """Configuration for a single bill store connector."""

    type: str = Field(description="Connector type: csv, sql, or a dotted class path")
    enabled: bool = True
    credentials: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, Any] = Field(default_factory=dict)


class BillPilotConfig(BaseModel):
    """Root configuration for BillPilot."""

    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    connectors: list[ConnectorConfig] = Field(default_factory=list)

    # Output settings
    currency: str = Field(default="USD")

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> BillPilotConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_period = os.environ.get("BILLPILOT_PERIOD")
        env_horizon = os.environ.get("BILLPILOT_HORIZON_MONTHS")
        env_currency = os.environ.get("BILLPILOT_CURRENCY")
        env_csv = os.environ.get("BILLPILOT_CSV")

        if env_period or env_horizon:
            report = data.get("report", {})
            if env_period:
                report["period_type"] = env_period.lower()
            if env_horizon:
                report["horizon_months"] = int(env_horizon)
            data["report"] = report

        if env_currency:
            data["currency"] = env_currency

        if env_csv:
            connectors = data.get("connectors", [])
            connectors.append({"type": "csv", "options": {"file_path": env_csv}})
            data["connectors"] = connectors

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)
