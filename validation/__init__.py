"""Walk-forward validation engine."""

from validation.aggregator import AggregateScores, WalkForwardAggregator, aggregate, performance_degradation
from validation.cancellation import CancellationToken
from validation.collaborators import BacktestOutcome, BacktestRunner, OptimizationOutcome, Optimizer
from validation.errors import (
    CancelledError,
    ConfigurationError,
    LeakageError,
    WalkForwardError,
    WindowExecutionError,
)
from validation.metrics import MetricsCalculator, PerformanceMetrics, calculate_metrics
from validation.parameters import ParameterCombination, ParameterDefinition, ParameterSpace
from validation.results import Robustness, RunStatus, WalkForwardReport, WindowResult, classify_efficiency
from validation.trades import PortfolioSnapshot, Trade
from validation.walk_forward import WalkForwardValidator
from validation.windows import Period, Window, WindowGenerator, generate_windows

__all__ = [
    "AggregateScores",
    "WalkForwardAggregator",
    "aggregate",
    "performance_degradation",
    "CancellationToken",
    "BacktestOutcome",
    "BacktestRunner",
    "OptimizationOutcome",
    "Optimizer",
    "CancelledError",
    "ConfigurationError",
    "LeakageError",
    "WalkForwardError",
    "WindowExecutionError",
    "MetricsCalculator",
    "PerformanceMetrics",
    "calculate_metrics",
    "ParameterCombination",
    "ParameterDefinition",
    "ParameterSpace",
    "Robustness",
    "RunStatus",
    "WalkForwardReport",
    "WindowResult",
    "classify_efficiency",
    "PortfolioSnapshot",
    "Trade",
    "WalkForwardValidator",
    "Period",
    "Window",
    "WindowGenerator",
    "generate_windows",
]
