"""Structured logging utilities for forwardtest.

JSON-formatted output for batch runs and log files, human-readable output
for interactive use. Every record carries a category naming the engine
component that emitted it (windows, metrics, optimization, validation).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

LOGGER_NAME = "forwardtest"

# Log categories
CATEGORY_WINDOWS = "windows"
CATEGORY_METRICS = "metrics"
CATEGORY_OPTIMIZATION = "optimization"
CATEGORY_VALIDATION = "validation"
CATEGORY_SYSTEM = "system"


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Emits one JSON object per record with timestamp, level, category,
    message, logger name and any `extra_data` attached by the adapter.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "category": getattr(record, "category", CATEGORY_SYSTEM),
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        # default=str keeps datetimes and enums from breaking a log line
        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Colored single-line formatter for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        reset = self.COLORS["RESET"]
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        category = getattr(record, "category", CATEGORY_SYSTEM)

        msg = f"{color}[{timestamp}] {record.levelname:8s}{reset} [{category:12s}] {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            msg += f"\n  Data: {record.extra_data}"

        return msg


class CategoryAdapter(logging.LoggerAdapter):
    """
    Logger adapter that stamps a category on every record.

    Accepts an `extra_data` keyword on any logging call and moves it into
    the record so both formatters can render it.
    """

    def __init__(self, logger: logging.Logger, category: str):
        super().__init__(logger, {})
        self.category = category

    def process(self, msg: str, kwargs: Dict) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        extra["category"] = self.category

        if "extra_data" in kwargs:
            extra["extra_data"] = kwargs.pop("extra_data")

        kwargs["extra"] = extra
        return msg, kwargs


def setup_logger(
    name: str = LOGGER_NAME,
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Configure the project logger.

    Args:
        name: Logger name
        level: Logging level
        log_dir: Directory for dated JSON log files (stdout only if None)
        json_format: Use JSON on stdout instead of the human-readable format

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = JSONFormatter() if json_format else HumanReadableFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        # File logs are always JSON
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(
    category: str,
    name: str = LOGGER_NAME,
    level: Optional[int] = None,
) -> CategoryAdapter:
    """
    Get logger with specific category.

    Args:
        category: Log category
        name: Base logger name
        level: Optional logging level override

    Returns:
        Logger adapter with category
    """
    logger = logging.getLogger(name)

    if level is not None:
        logger.setLevel(level)

    return CategoryAdapter(logger, category)


def get_windows_logger(name: str = LOGGER_NAME) -> CategoryAdapter:
    """Get logger for window generation."""
    return get_logger(CATEGORY_WINDOWS, name)


def get_metrics_logger(name: str = LOGGER_NAME) -> CategoryAdapter:
    """Get logger for metrics calculation."""
    return get_logger(CATEGORY_METRICS, name)


def get_optimization_logger(name: str = LOGGER_NAME) -> CategoryAdapter:
    """Get logger for optimizer adapters."""
    return get_logger(CATEGORY_OPTIMIZATION, name)


def get_validation_logger(name: str = LOGGER_NAME) -> CategoryAdapter:
    """Get logger for walk-forward orchestration."""
    return get_logger(CATEGORY_VALIDATION, name)
