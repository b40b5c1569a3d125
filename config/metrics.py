"""Metrics and scoring configuration."""

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from config.base import BaseConfig


class PrimaryMetric(str, Enum):
    """Metric used to rank combinations and compare training vs testing."""

    TOTAL_RETURN = "total_return"
    ANNUALIZED_RETURN = "annualized_return"
    SHARPE_RATIO = "sharpe_ratio"
    SORTINO_RATIO = "sortino_ratio"
    PROFIT_FACTOR = "profit_factor"
    WIN_RATE = "win_rate"
    NET_PROFIT = "net_profit"


class MetricsConfig(BaseConfig):
    """
    Configuration threaded into every metrics calculation.

    Kept explicit rather than global so the calculator stays pure.
    """

    risk_free_rate: float = Field(
        default=0.0,
        description="Annual risk-free rate as decimal (e.g., 0.02 = 2%)",
        ge=-0.5,
        le=1.0,
    )
    initial_capital: Optional[float] = Field(
        default=None,
        description="Starting value used when a run reports no portfolio timeline",
        gt=0.0,
    )
    primary_metric: PrimaryMetric = Field(
        default=PrimaryMetric.TOTAL_RETURN,
        description="Metric compared between training and testing periods",
    )
    zero_tolerance: float = Field(
        default=0.0,
        description=(
            "Training metrics with absolute value <= tolerance are excluded from "
            "the efficiency mean (0.0 = only exact zeros)"
        ),
        ge=0.0,
    )


class RobustnessBands(BaseConfig):
    """Walk-forward efficiency bands used when presenting a report."""

    robust: float = Field(default=0.5, description="Efficiency at or above this is robust")
    marginal: float = Field(default=0.3, description="Efficiency at or above this is marginal")

    @model_validator(mode="after")
    def validate_ordering(self) -> "RobustnessBands":
        """Ensure the robust threshold is not below the marginal one."""
        if self.robust < self.marginal:
            raise ValueError(
                f"robust threshold ({self.robust}) must be >= marginal threshold ({self.marginal})"
            )
        return self
