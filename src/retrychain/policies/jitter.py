"""
Jitter strategies for spreading retries over time.

``Jitter``, ``FullJitter`` and ``EqualJitter`` randomize the delay computed
by the next policy in the chain. ``DecorrelatedJitter`` and ``PollyJitter``
compute their own delay and only call ``next`` for its side effects.

See https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
"""

import math
import random
import weakref
from typing import Optional

from retrychain.core import RetryPolicy, RetryState, give_up


class Jitter:
    """
    Randomize the delay returned by ``next``.

    For a delay ``d`` the result is ``d + d * spread * random() + d * offset``:
    ``offset`` shifts the random window (as a proportion of ``d``) and
    ``spread`` sets its size. With a 7s delay, ``offset=-0.5`` shifts the
    window left by 3.5s and ``spread=0.5`` adds between 0 and 3.5s.

    Args:
        offset: Window shift as a proportion of the delay (default 0.25)
        spread: Window size as a proportion of the delay (default -0.5)
    """

    def __init__(self, offset: float = 0.25, spread: float = -0.5):
        self.offset = offset
        self.spread = spread

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        if next is None:
            give_up(state)

        delay = next(state)
        jitter = delay * self.spread * random.random()
        shift = delay * self.offset
        return delay + jitter + shift

    def __repr__(self) -> str:
        return f"{type(self).__name__}(offset={self.offset}, spread={self.spread})"


class FullJitter(Jitter):
    """Uniform random delay in ``[0, d]``."""

    def __init__(self) -> None:
        super().__init__(offset=-1, spread=1)


class EqualJitter(Jitter):
    """Uniform random delay in ``[d/2, d]``."""

    def __init__(self) -> None:
        super().__init__(offset=-0.5, spread=0.5)


class DecorrelatedJitter:
    """
    AWS "decorrelated jitter" backoff.

    Each delay is drawn between ``initial`` and three times the previous
    delay (capped at ``max``), which keeps clients from retrying in lockstep.
    ``PollyJitter`` distributes delays more evenly and is usually preferable.
    """

    def __init__(self, initial: float = 150, max: float = 30_000):
        self.initial = initial
        self.max = max

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        if next is not None:
            next(state)

        past = self.initial if state.attempt == 1 else state.delay
        top = min(self.max, past * 3)
        return random.random() * (top - self.initial) + self.initial

    def __repr__(self) -> str:
        return f"DecorrelatedJitter(initial={self.initial}, max={self.max})"


POLLY_P_FACTOR = 4
POLLY_RP_SCALING_FACTOR = 1 / 1.4


class PollyJitter:
    """
    Exponential backoff with jitter, after Polly's "DecorrelatedJitterBackoffV2".

    Delays follow a smooth exponential curve around a median first delay of
    ``initial`` ms, with bounded variance between retries. This mitigates
    correlated retry storms in high-throughput fleets.

    The curve position reached by each operation is kept in a weak side
    table keyed by its ``RetryState``, so one instance can serve many
    concurrent operations and entries disappear with their operation.

    See https://github.com/App-vNext/Polly/issues/530
    """

    def __init__(self, initial: float = 150, max: float = 30_000):
        self.initial = initial
        self.max = max
        self._factors: "weakref.WeakKeyDictionary[RetryState, float]" = weakref.WeakKeyDictionary()

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        if next is not None:
            next(state)

        t = state.attempt - 1 + random.random()
        prev = self._factors.get(state, 0)
        try:
            curr = 2**t * math.tanh(math.sqrt(POLLY_P_FACTOR * t))
        except OverflowError:
            # Beyond float range the curve is flat at the cap
            return self.max
        self._factors[state] = curr
        return min(self.max, (curr - prev) * POLLY_RP_SCALING_FACTOR * self.initial)

    def __repr__(self) -> str:
        return f"PollyJitter(initial={self.initial}, max={self.max})"
