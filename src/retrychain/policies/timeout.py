"""Elapsed-time ceiling."""

from typing import Optional

from retrychain.core import RetryPolicy, RetryState, give_up


class Timeout:
    """
    Give up retrying after ``after`` milliseconds.

    This is a soft timeout: an attempt that is already running always
    completes, only scheduling another attempt is refused. The check is
    ``elapsed > after - state.delay``, i.e. the deadline is pulled in by the
    last committed delay. To cancel attempts mid-flight the operation itself
    must observe an abort signal (see ``AbortSignal.timeout``).
    """

    def __init__(self, after: float = 30_000):
        self.after = after

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        if state.elapsed > self.after - state.delay or next is None:
            give_up(state)
        return next(state)

    def __repr__(self) -> str:
        return f"Timeout(after={self.after})"
