"""Immediate first retry."""

from typing import Optional

from retrychain.core import RetryPolicy, RetryState, give_up


class FastTrack:
    """Run the first re-attempt immediately, delegating to ``next`` afterwards."""

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        if next is None:
            give_up(state)

        delay = next(state)
        return 0 if state.attempt == 1 else delay

    def __repr__(self) -> str:
        return "FastTrack()"
