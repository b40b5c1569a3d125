"""Cooperative cancellation for walk-forward runs."""

import threading

from validation.errors import CancelledError


class CancellationToken:
    """
    Thread-safe cancellation flag shared by a run and its collaborators.

    The orchestrator checks the token between windows; collaborators
    should call `raise_if_cancelled()` at convenient points (for example
    between candidate evaluations).
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise CancelledError if cancellation was requested."""
        if self._event.is_set():
            raise CancelledError("Walk-forward run was cancelled")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
