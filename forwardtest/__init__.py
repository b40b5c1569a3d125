"""
ForwardTest - walk-forward validation for parameterized trading strategies

Splits history into successive training/testing windows, lets an optimizer
pick parameters on each training interval, replays them on the unseen
testing interval, and scores how well in-sample performance carries over.
"""

__version__ = "0.1.0"
__author__ = "ForwardTest Team"

from config import MetricFilters, MetricsConfig, OptimizerConfig, PrimaryMetric, WalkForwardConfig, WindowMode, WindowPolicy
from optimization import GridSearchOptimizer, OptunaOptimizer, create_optimizer
from validation import (
    BacktestOutcome,
    BacktestRunner,
    CancellationToken,
    OptimizationOutcome,
    Optimizer,
    ParameterCombination,
    ParameterSpace,
    Period,
    PortfolioSnapshot,
    Trade,
    WalkForwardReport,
    WalkForwardValidator,
    generate_windows,
)

__all__ = [
    "MetricsConfig",
    "MetricFilters",
    "OptimizerConfig",
    "PrimaryMetric",
    "WalkForwardConfig",
    "WindowMode",
    "WindowPolicy",
    "GridSearchOptimizer",
    "OptunaOptimizer",
    "create_optimizer",
    "BacktestOutcome",
    "BacktestRunner",
    "CancellationToken",
    "OptimizationOutcome",
    "Optimizer",
    "ParameterCombination",
    "ParameterSpace",
    "Period",
    "PortfolioSnapshot",
    "Trade",
    "WalkForwardReport",
    "WalkForwardValidator",
    "generate_windows",
]
