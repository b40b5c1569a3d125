"""Build optimizer adapters from configuration."""

from typing import Optional

from config.metrics import MetricsConfig
from config.walk_forward import OptimizerConfig
from optimization.base import BaseOptimizer
from optimization.grid_search import GridSearchOptimizer
from optimization.optuna_optimizer import OptunaOptimizer
from validation.collaborators import BacktestRunner
from validation.errors import ConfigurationError


def create_optimizer(
    config: OptimizerConfig,
    runner: BacktestRunner,
    metrics_config: Optional[MetricsConfig] = None,
) -> BaseOptimizer:
    """
    Create the optimizer named by `config.method`.

    Args:
        config: Optimizer settings
        runner: Backtest runner used to score candidates
        metrics_config: Metric settings shared with the engine

    Returns:
        Optimizer instance
    """
    if config.method == "grid":
        return GridSearchOptimizer(
            runner,
            objective=config.objective,
            metrics_config=metrics_config,
            filters=config.filters,
        )
    if config.method == "optuna":
        return OptunaOptimizer(
            runner,
            objective=config.objective,
            metrics_config=metrics_config,
            n_trials=config.n_trials,
            seed=config.seed,
            timeout=config.timeout,
            filters=config.filters,
        )
    raise ConfigurationError(f"Unknown optimizer method: {config.method}")
