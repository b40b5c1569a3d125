"""Train/test window generation with temporal leakage prevention.

Partitions a date range into an ordered sequence of (training, testing)
interval pairs. Intervals are half-open, and a window's testing interval
never starts before its training interval ends.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator, List, Mapping, Union

from pydantic import ValidationError

from config.walk_forward import WindowMode, WindowPolicy
from utils.logger import get_windows_logger
from validation.errors import ConfigurationError, LeakageError

logger = get_windows_logger()


@dataclass(frozen=True)
class Period:
    """Half-open time interval [start, end)."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def days(self) -> float:
        """Length of the period in (fractional) days."""
        return self.duration.total_seconds() / 86400.0

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp < self.end

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    def __str__(self) -> str:
        return f"[{self.start.isoformat()} -> {self.end.isoformat()})"


@dataclass(frozen=True)
class Window:
    """
    A single walk-forward window.

    Attributes:
        index: Position of this window in the sequence (0-based)
        training: Interval the optimizer may look at
        testing: Unseen interval the chosen parameters are evaluated on
    """

    index: int
    training: Period
    testing: Period

    def validate(self) -> bool:
        """
        Validate that this window has no temporal leakage.

        Returns:
            True if valid

        Raises:
            ConfigurationError: If an interval is empty or inverted
            LeakageError: If testing starts before training ends
        """
        if self.training.start >= self.training.end:
            raise ConfigurationError(f"Invalid training period {self.training}: start >= end")

        if self.testing.start >= self.testing.end:
            raise ConfigurationError(f"Invalid testing period {self.testing}: start >= end")

        if self.training.end > self.testing.start:
            raise LeakageError(
                f"Data leakage detected in window {self.index}: training end "
                f"({self.training.end}) > testing start ({self.testing.start})"
            )

        return True

    @property
    def gap(self) -> timedelta:
        """Gap between training end and testing start."""
        return self.testing.start - self.training.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "training": self.training.to_dict(),
            "testing": self.testing.to_dict(),
        }

    def __repr__(self) -> str:
        return (
            f"Window {self.index}: "
            f"Train{self.training} "
            f"Test{self.testing} "
            f"(gap: {self.gap})"
        )


def _coerce_policy(policy: Union[WindowPolicy, Mapping[str, Any]]) -> WindowPolicy:
    """Build a WindowPolicy, reporting invalid settings as ConfigurationError."""
    if isinstance(policy, WindowPolicy):
        return policy
    if policy is None:
        raise ConfigurationError("A window policy is required")
    try:
        return WindowPolicy(**dict(policy))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid window policy: {e}") from e


class WindowGenerator:
    """
    Walk-forward window generator.

    Supports two policies:
    - Rolling: fixed-length training window that slides by `step_size`
    - Anchored: training always starts at the range start and its end
      advances by `step_size` (expanding window)

    In both, testing follows training after `gap` for `testing_size`.
    Generation stops once a testing interval would extend past the end of
    the range. A range too short for a single window yields no windows.
    """

    def __init__(self, policy: Union[WindowPolicy, Mapping[str, Any]]):
        self.policy = _coerce_policy(policy)

        logger.debug(
            "Initialized WindowGenerator",
            extra_data={
                "mode": self.policy.mode.value,
                "training_size": str(self.policy.training_size),
                "testing_size": str(self.policy.testing_size),
                "step_size": str(self.policy.step_size),
                "gap": str(self.policy.gap),
            },
        )

    def iter_windows(self, full_range: Period) -> Iterator[Window]:
        """
        Lazily yield windows in chronological order.

        Each call starts over, so the sequence is restartable.
        """
        policy = self.policy
        if full_range.end <= full_range.start:
            return

        i = 0
        while True:
            # Offsets are computed from the index, not accumulated
            offset = policy.step_size * i
            if policy.mode == WindowMode.ANCHORED:
                train_start = full_range.start
                train_end = full_range.start + policy.training_size + offset
            else:
                train_start = full_range.start + offset
                train_end = train_start + policy.training_size

            test_start = train_end + policy.gap
            test_end = test_start + policy.testing_size

            if test_end > full_range.end:
                return

            window = Window(
                index=i,
                training=Period(train_start, train_end),
                testing=Period(test_start, test_end),
            )
            window.validate()
            yield window
            i += 1

    def generate(self, full_range: Period) -> List[Window]:
        """
        Generate all windows for a date range.

        Args:
            full_range: Complete historical range available

        Returns:
            List of windows ordered by index (possibly empty)
        """
        windows = list(self.iter_windows(full_range))

        if windows:
            logger.info(
                f"Generated {len(windows)} {self.policy.mode.value} windows for {full_range}"
            )
        else:
            logger.warning(f"Range {full_range} is too short for a single window")

        return windows


def generate_windows(
    full_range: Period,
    policy: Union[WindowPolicy, Mapping[str, Any]],
) -> List[Window]:
    """Generate walk-forward windows for `full_range` under `policy`."""
    return WindowGenerator(policy).generate(full_range)
