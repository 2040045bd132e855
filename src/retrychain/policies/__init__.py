"""
Retry policy units.

Each unit handles one concern and can be composed with ``join`` in any
order. The outermost unit sees every failure first; the innermost usually
produces the delay.

Main Components:
    - Backoff: exponential delay
    - Jitter, FullJitter, EqualJitter: randomize the delay of the next unit
    - DecorrelatedJitter, PollyJitter: self-contained jittered backoff
    - Breaker: attempt ceiling
    - Timeout: elapsed-time ceiling (soft)
    - FastTrack: immediate first retry
    - Logger: structured logging of attempts and terminal failures
    - BrandError: aggregate all failures into a RetryError
    - Default: Logger, Timeout, Breaker, FastTrack, PollyJitter combined
"""

from retrychain.policies.backoff import Backoff
from retrychain.policies.brand_error import BrandError
from retrychain.policies.breaker import Breaker
from retrychain.policies.default import Default, DefaultOptions
from retrychain.policies.fast_track import FastTrack
from retrychain.policies.jitter import (
    DecorrelatedJitter,
    EqualJitter,
    FullJitter,
    Jitter,
    PollyJitter,
)
from retrychain.policies.logger import Logger
from retrychain.policies.timeout import Timeout

__all__ = [
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
    "PollyJitter",
    "Timeout",
]
