"""Attempt ceiling."""

from typing import Optional

from retrychain.core import RetryPolicy, RetryState, give_up


class Breaker:
    """
    Stop retrying once ``max`` attempts have failed.

    Below the ceiling the decision is delegated unchanged to ``next``; with
    nothing to delegate to, the breaker fails closed.
    """

    def __init__(self, max: int = 10):
        self.max = max

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        if state.attempt >= self.max or next is None:
            give_up(state)
        return next(state)

    def __repr__(self) -> str:
        return f"Breaker(max={self.max})"
