"""
Cancellation signal for retried operations.

An ``AbortController`` owns an ``AbortSignal``; the signal is handed to
``wrap``/``retry`` and observed by the execution engine before the first
attempt and while waiting between attempts. Aborting never interrupts an
attempt that is already running: pass the same signal to the operation if it
must be interruptible.

Signals are not thread-safe. Abort them from the event loop's thread (use
``loop.call_soon_threadsafe(controller.abort)`` from elsewhere).
"""

import asyncio
from typing import Callable

import structlog

from retrychain.exceptions import AbortError

logger = structlog.get_logger(__name__)

AbortCallback = Callable[[BaseException], object]


def _as_exception(reason: object) -> BaseException:
    if reason is None:
        return AbortError()
    if isinstance(reason, BaseException):
        return reason
    return AbortError(f"The operation was aborted: {reason}", reason=reason)


class AbortSignal:
    """
    Read side of a cancellation token.

    Attributes:
        aborted: Whether the signal has fired
        reason: Exception raised to callers once aborted (None until then)
    """

    def __init__(self) -> None:
        self.aborted = False
        self.reason: BaseException | None = None
        self._callbacks: list[AbortCallback] = []

    def __repr__(self) -> str:
        state = f"aborted reason={self.reason!r}" if self.aborted else "pending"
        return f"<AbortSignal {state}>"

    def subscribe(self, callback: AbortCallback) -> Callable[[], None]:
        """
        Register a callback invoked with the reason when the signal aborts.

        If the signal is already aborted the callback runs immediately.

        Returns:
            A function that removes the callback; safe to call more than once.
        """
        if self.aborted:
            callback(self.reason)  # type: ignore[arg-type]
            return lambda: None

        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def throw_if_aborted(self) -> None:
        """Raise the abort reason if the signal has fired."""
        if self.aborted:
            raise self.reason  # type: ignore[misc]

    def _abort(self, reason: object) -> None:
        if self.aborted:
            return

        self.aborted = True
        self.reason = _as_exception(reason)
        callbacks, self._callbacks = self._callbacks, []

        logger.debug("Signal aborted", reason=repr(self.reason), listeners=len(callbacks))

        for callback in callbacks:
            callback(self.reason)

    @classmethod
    def timeout(cls, ms: float) -> "AbortSignal":
        """
        Create a signal that aborts itself after ``ms`` milliseconds.

        Must be called from within a running event loop.
        """
        controller = AbortController()
        loop = asyncio.get_running_loop()
        loop.call_later(
            ms / 1000,
            controller.abort,
            AbortError(f"The operation timed out after {ms}ms"),
        )
        return controller.signal


class AbortController:
    """Write side of a cancellation token."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: object = None) -> None:
        """
        Abort the signal. Only the first call has any effect.

        Args:
            reason: Exception to raise in waiting callers. ``None`` becomes an
                ``AbortError``; any other non-exception value is wrapped in one.
        """
        self.signal._abort(reason)
