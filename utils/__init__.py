"""Utilities for logging, configuration, and reproducibility."""

from utils.logger import setup_logger, get_logger
from utils.config import load_config, ConfigLoader
from utils.determinism import set_random_seeds

__all__ = [
    "setup_logger",
    "get_logger",
    "load_config",
    "ConfigLoader",
    "set_random_seeds",
]
