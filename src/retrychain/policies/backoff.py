"""Exponential backoff."""

from typing import Optional

from retrychain.core import RetryPolicy, RetryState
from retrychain.exceptions import PolicyConfigurationError


class Backoff:
    """
    Exponentially increasing delay, meant to terminate a chain.

    The first retry waits ``delay`` ms, each following retry ``exp`` times
    longer, capped at ``max``. Using ``exp=1`` gives a constant delay. The
    value returned by ``next`` (if any) is ignored; ``next`` is still called
    so side effects further down the chain keep running.
    """

    def __init__(self, delay: float = 150, exp: float = 2, max: float = 30_000):
        if delay <= 0:
            raise PolicyConfigurationError(f"delay must be a positive number, got {delay}")
        if exp <= 0:
            raise PolicyConfigurationError(f"exp must be a positive number, got {exp}")

        self.delay = delay
        self.exp = exp
        self.max = max

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        if next is not None:
            next(state)

        # attempt is 1-based after the first failure
        try:
            delay = self.delay * self.exp ** (state.attempt - 1)
        except OverflowError:
            return self.max
        return min(self.max, delay)

    def __repr__(self) -> str:
        return f"Backoff(delay={self.delay}, exp={self.exp}, max={self.max})"
