"""Optimizer adapters that select parameters on a training period."""

from optimization.base import BaseOptimizer, Evaluation
from optimization.factory import create_optimizer
from optimization.grid_search import GridSearchOptimizer
from optimization.optuna_optimizer import OptunaOptimizer

__all__ = [
    "BaseOptimizer",
    "Evaluation",
    "GridSearchOptimizer",
    "OptunaOptimizer",
    "create_optimizer",
]
