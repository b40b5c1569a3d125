"""Configuration management using Pydantic models."""

from config.base import BaseConfig
from config.metrics import MetricsConfig, PrimaryMetric, RobustnessBands
from config.walk_forward import MetricFilters, OptimizerConfig, WalkForwardConfig, WindowMode, WindowPolicy

__all__ = [
    "BaseConfig",
    "MetricsConfig",
    "PrimaryMetric",
    "RobustnessBands",
    "MetricFilters",
    "OptimizerConfig",
    "WalkForwardConfig",
    "WindowMode",
    "WindowPolicy",
]
