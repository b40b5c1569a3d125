"""Walk-forward validation configuration."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

import pandas as pd
from pydantic import Field, field_validator

from config.base import BaseConfig
from config.metrics import MetricsConfig, PrimaryMetric, RobustnessBands


class WindowMode(str, Enum):
    """How the training interval moves between windows."""

    ANCHORED = "anchored"  # training start fixed, end expands
    ROLLING = "rolling"  # fixed-length training slides forward


def _parse_duration(value: Any) -> Any:
    """Accept pandas-style duration strings ('60d', '12h', '90 days')."""
    if isinstance(value, pd.Timedelta):
        return value.to_pytimedelta()
    # ISO 8601 durations ('P60D') are handled by pydantic itself
    if isinstance(value, str) and not value.strip().upper().startswith("P"):
        try:
            parsed = pd.Timedelta(value)
        except ValueError as e:
            raise ValueError(f"Invalid duration '{value}': {e}") from e
        if pd.isna(parsed):
            raise ValueError(f"Invalid duration '{value}'")
        return parsed.to_pytimedelta()
    return value


class WindowPolicy(BaseConfig):
    """
    Windowing policy for partitioning a date range into train/test windows.

    Sizes are durations. A window's testing interval starts `gap` after its
    training interval ends; the default gap of zero means testing
    immediately follows training.
    """

    training_size: timedelta = Field(description="Length of the (initial) training interval")
    testing_size: timedelta = Field(description="Length of each testing interval")
    step_size: timedelta = Field(description="Advance between consecutive windows")
    mode: WindowMode = Field(default=WindowMode.ANCHORED, description="Anchored or rolling windows")
    gap: timedelta = Field(
        default=timedelta(0),
        description="Embargo between training end and testing start",
    )

    @field_validator("training_size", "testing_size", "step_size", "gap", mode="before")
    @classmethod
    def parse_duration(cls, v: Any) -> Any:
        """Parse human-friendly duration strings."""
        return _parse_duration(v)

    @field_validator("training_size", "testing_size", "step_size")
    @classmethod
    def validate_positive(cls, v: timedelta) -> timedelta:
        """Window sizes must be strictly positive."""
        if v <= timedelta(0):
            raise ValueError(f"window sizes must be positive, got {v}")
        return v

    @field_validator("gap")
    @classmethod
    def validate_gap(cls, v: timedelta) -> timedelta:
        """A negative gap would make testing overlap training."""
        if v < timedelta(0):
            raise ValueError(f"gap must be >= 0 (negative gap overlaps training and testing), got {v}")
        return v


class MetricFilters(BaseConfig):
    """
    Minimum training performance a candidate needs to be selected.

    Unset thresholds are not applied. When no candidate passes, the
    optimizer falls back to the candidate with the highest total return.
    """

    min_trades: Optional[int] = Field(default=None, description="Require total_trades >= min_trades", ge=0)
    min_net_profit: Optional[float] = Field(
        default=None,
        description="Require net_profit > min_net_profit",
    )

    @property
    def active(self) -> bool:
        return self.min_trades is not None or self.min_net_profit is not None


class OptimizerConfig(BaseConfig):
    """Configuration for the optimizer adapter used inside each training window."""

    method: str = Field(default="grid", description="Search adapter (grid, optuna)")
    objective: PrimaryMetric = Field(
        default=PrimaryMetric.SHARPE_RATIO,
        description="Metric maximised on the training period",
    )
    n_trials: int = Field(default=50, description="Number of trials (optuna only)", ge=1)
    seed: Optional[int] = Field(default=42, description="Sampler seed; None = non-deterministic")
    timeout: Optional[float] = Field(
        default=None,
        description="Search budget in seconds per window (optuna only)",
        gt=0.0,
    )
    filters: MetricFilters = Field(
        default_factory=MetricFilters,
        description="Training-metric thresholds applied before picking the best candidate",
    )

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        """Validate optimizer method is a recognized value."""
        allowed = ["grid", "optuna"]
        if v not in allowed:
            raise ValueError(f"method must be one of {allowed}")
        return v


class WalkForwardConfig(BaseConfig):
    """
    Complete configuration for a walk-forward run.

    The engine itself only needs `window_policy`, `max_concurrency`,
    `metrics` and `bands`; the remaining fields describe a run launched
    from the command line.
    """

    window_policy: Optional[WindowPolicy] = Field(default=None, description="Windowing policy")
    max_concurrency: int = Field(default=1, description="Windows evaluated in parallel", ge=1)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    bands: RobustnessBands = Field(default_factory=RobustnessBands)

    # Run description (CLI)
    start: Optional[datetime] = Field(default=None, description="Start of the full date range")
    end: Optional[datetime] = Field(default=None, description="End of the full date range")
    optimizer: OptimizerConfig = Field(default_factory=OptimizerConfig)
    parameters: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Parameter space: name -> {min_value, max_value, step} or {choices}",
    )
    runner: Optional[str] = Field(
        default=None,
        description="Backtest runner import path ('package.module:attribute')",
    )
    strategy: Dict[str, Any] = Field(default_factory=dict, description="Strategy template passed to collaborators")

    @field_validator("runner")
    @classmethod
    def validate_runner_path(cls, v: Optional[str]) -> Optional[str]:
        """Runner must be given as 'module:attribute'."""
        if v is not None and (":" not in v or v.startswith(":") or v.endswith(":")):
            raise ValueError(f"runner must look like 'package.module:attribute', got '{v}'")
        return v
