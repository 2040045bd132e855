"""
Retry-with-backoff for asyncio operations.

An operation that may fail is re-invoked according to a policy: a callable
that, after each failure, returns how long to wait before the next attempt
or raises to give up. Policies are small composable units joined into a
chain with ``join``.

Usage:
    >>> from retrychain import retry, wrap, join, Breaker, Backoff
    >>> user = await retry(lambda: fetch_user(42), {"max_attempts": 3})
    >>> fetch_user = wrap(_fetch_user, join(Breaker(max=5), Backoff(delay=100)))
"""

from retrychain.abort import AbortController, AbortSignal
from retrychain.api import RetryingFunction, retry, retrying, wrap
from retrychain.core import PolicyChain, RetryPolicy, RetryState, give_up, join, run, wait
from retrychain.exceptions import (
    AbortError,
    PolicyConfigurationError,
    RetryChainError,
    RetryError,
)
from retrychain.logging_config import configure_logging
from retrychain.policies import (
    Backoff,
    BrandError,
    Breaker,
    DecorrelatedJitter,
    Default,
    DefaultOptions,
    EqualJitter,
    FastTrack,
    FullJitter,
    Jitter,
    Logger,
    PollyJitter,
    Timeout,
)

__version__ = "0.1.0"

__all__ = [
    "AbortController",
    "AbortError",
    "AbortSignal",
    "Backoff",
    "BrandError",
    "Breaker",
    "DecorrelatedJitter",
    "Default",
    "DefaultOptions",
    "EqualJitter",
    "FastTrack",
    "FullJitter",
    "Jitter",
    "Logger",
    "PolicyChain",
    "PolicyConfigurationError",
    "PollyJitter",
    "RetryChainError",
    "RetryError",
    "RetryPolicy",
    "RetryState",
    "RetryingFunction",
    "Timeout",
    "configure_logging",
    "give_up",
    "join",
    "retry",
    "retrying",
    "run",
    "wait",
    "wrap",
]
