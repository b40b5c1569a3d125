"""Configuration loading utilities."""

from pathlib import Path
from typing import Type, TypeVar

from config.base import BaseConfig
from config.walk_forward import WalkForwardConfig

T = TypeVar("T", bound=BaseConfig)


class ConfigLoader:
    """
    Utility class for loading configurations.

    Provides convenience methods for the walk-forward config and the
    project's default config directory.
    """

    DEFAULT_FILENAME = "walk_forward_default.yaml"

    @staticmethod
    def load_walk_forward(path: Path | str) -> WalkForwardConfig:
        """
        Load walk-forward configuration from YAML file.

        Args:
            path: Path to walk-forward config YAML

        Returns:
            Validated WalkForwardConfig instance
        """
        return WalkForwardConfig.from_yaml(path)

    @staticmethod
    def get_default_config_dir() -> Path:
        """Get default configuration directory (<project root>/configs)."""
        return Path(__file__).resolve().parent.parent / "configs"

    @staticmethod
    def load_default_walk_forward() -> WalkForwardConfig:
        """
        Load default walk-forward configuration.

        Returns:
            Config from configs/walk_forward_default.yaml, or defaults if absent
        """
        default_path = ConfigLoader.get_default_config_dir() / ConfigLoader.DEFAULT_FILENAME

        if default_path.exists():
            return WalkForwardConfig.from_yaml(default_path)
        return WalkForwardConfig()


def load_config(path: Path | str, config_class: Type[T]) -> T:
    """
    Generic configuration loader.

    Args:
        path: Path to config YAML file
        config_class: Configuration class to instantiate

    Returns:
        Loaded and validated configuration instance

    Example:
        >>> from config.walk_forward import WalkForwardConfig
        >>> config = load_config("configs/walk_forward_default.yaml", WalkForwardConfig)
    """
    return config_class.from_yaml(path)
