"""
Cooperative cancellation for generation runs.

A token is created per run and threaded explicitly into every operation that
can suspend. Work checks it at batch boundaries and right before each request;
callbacks registered with on_cancel let an in-flight request be aborted.
"""

from typing import Callable, List

from openrouter_wrapper import Cancelled


class CancellationToken:
    """Shared, checkable cancel signal for one generation run."""

    def __init__(self):
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []

    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Trigger the token. Idempotent; callbacks run once, on the first call."""
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for cancellation.

        Runs immediately if the token already fired.

        Returns:
            A function that unregisters the callback
        """
        if self._cancelled:
            callback()
            return lambda: None

        self._callbacks.append(callback)

        def unregister():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise Cancelled("Aborted by user.")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
