"""Exceptions raised by the walk-forward engine.

Three kinds of problems exist:
- configuration errors, raised synchronously before any window runs
- collaborator failures, raised after a window's optimizer or runner fails,
  carrying the results of the windows that did complete
- numeric degeneracies (no trades, zero variance, zero training metric),
  which never raise and resolve to documented defaults instead
"""

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from validation.results import WindowResult


class WalkForwardError(Exception):
    """Base class for all walk-forward engine errors."""


class ConfigurationError(WalkForwardError, ValueError):
    """Invalid windowing policy, parameter space or run configuration."""


class LeakageError(ConfigurationError):
    """A window's testing interval starts before its training interval ends."""


class CancelledError(WalkForwardError):
    """Raised inside collaborators when a run's cancellation token fires."""


class WindowExecutionError(WalkForwardError):
    """
    A collaborator failed while processing a window; the run was aborted.

    Attributes:
        window_index: Index of the window that failed
        phase: "optimize" or "backtest"
        partial_results: Completed WindowResults with index below window_index,
            in index order
    """

    def __init__(
        self,
        window_index: int,
        phase: str,
        partial_results: Sequence["WindowResult"] = (),
        message: Optional[str] = None,
    ):
        self.window_index = window_index
        self.phase = phase
        self.partial_results: Tuple["WindowResult", ...] = tuple(partial_results)
        super().__init__(
            message
            or f"Window {window_index} failed during {phase} "
            f"({len(self.partial_results)} window(s) completed)"
        )
