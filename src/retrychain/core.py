"""
Retry state, policy protocol, and the execution engine.

A policy is any callable ``(state, next=None) -> float`` returning the delay
in milliseconds before the next attempt, or raising to give up. Policies are
composed with ``join`` into a chain where each unit decides whether and how
to delegate to the rest of the chain.

Usage:
    >>> policy = join(Breaker(max=3), Backoff(delay=100))
    >>> result = await run(lambda: fetch_user(42), policy)
"""

import asyncio
import time
from dataclasses import dataclass, field
from functools import reduce
from typing import Awaitable, Callable, Iterable, NoReturn, Optional, Protocol, TypeVar, Union

import structlog

from retrychain.abort import AbortSignal
from retrychain.exceptions import PolicyConfigurationError, RetryError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(eq=False)
class RetryState:
    """
    Mutable record shared by all attempts of one operation call.

    A fresh instance is created on every call of a wrapped function. States
    compare and hash by identity so policies can key side tables by them.

    Attributes:
        attempt: Number of failed attempts so far (0 before the first failure)
        delay: Delay in ms committed before the most recent retry
        elapsed: Milliseconds since the first attempt started
        error: Failure of the most recent attempt
        errors: Every failure so far, oldest first
        start: Wall-clock time (epoch ms) of the first attempt
    """

    attempt: int = 0
    delay: float = 0
    elapsed: float = 0
    error: Optional[Exception] = None
    errors: list[Exception] = field(default_factory=list)
    start: float = field(default_factory=lambda: time.time() * 1000)
    _origin: float = field(default_factory=time.monotonic, init=False, repr=False)

    def record_failure(self, error: Exception) -> None:
        """Account for one failed attempt. Must run before the policy is consulted."""
        self.attempt += 1
        self.elapsed = max(self.elapsed, (time.monotonic() - self._origin) * 1000)
        self.error = error
        self.errors.append(error)


class RetryPolicy(Protocol):
    """
    Protocol for retry policies.

    Called after each failed attempt with the current state and, when the
    policy is part of a chain, the remainder of that chain. Return the delay
    in milliseconds before the next attempt, or raise to stop retrying; the
    raised exception reaches the caller unchanged.
    """

    def __call__(self, state: RetryState, next: Optional["RetryPolicy"] = None) -> float:
        ...


PolicyTree = Union[RetryPolicy, Iterable["PolicyTree"]]


def give_up(state: RetryState) -> NoReturn:
    """
    Stop retrying by re-raising the most recent operation failure.

    Raises:
        Exception: ``state.error``, or a ``RetryError`` when no failure has
            been recorded yet
    """
    if state.error is None:
        raise RetryError(state.errors, "Gave up before any failure was recorded")
    raise state.error


class PolicyChain:
    """
    One link of a joined policy chain.

    Calling the link calls ``policy(state, next)``. Any ``next`` passed by the
    caller is ignored: the chain already knows its continuation.
    """

    def __init__(self, policy: RetryPolicy, next: RetryPolicy):
        self.policy = policy
        self.next = next

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        return self.policy(state, self.next)

    def __iter__(self):
        yield self.policy
        if isinstance(self.next, PolicyChain):
            yield from self.next
        else:
            yield self.next

    def __repr__(self) -> str:
        return "join(" + ", ".join(repr(policy) for policy in self) + ")"


def _flatten(policies: Iterable[PolicyTree]) -> list[RetryPolicy]:
    flat: list[RetryPolicy] = []
    for policy in policies:
        if isinstance(policy, (list, tuple)):
            flat.extend(_flatten(policy))
        else:
            flat.append(policy)
    return flat


def join(*policies: PolicyTree) -> RetryPolicy:
    """
    Join retry policies into a single policy.

    Nested lists and tuples are flattened depth-first. The first policy is the
    outermost one and receives the second as ``next``, and so on; the last
    policy receives no ``next``.

    Args:
        *policies: At least two policies, possibly grouped in sequences

    Returns:
        A policy equivalent to ``policies[0](state, policies[1])`` for two units

    Raises:
        PolicyConfigurationError: Fewer than two policies after flattening
    """
    flat = _flatten(policies)

    if len(flat) < 2:
        raise PolicyConfigurationError(
            f"join() needs at least 2 policies, got {len(flat)}; pass a single policy directly"
        )

    for policy in flat:
        if not callable(policy):
            raise PolicyConfigurationError(f"Policy {policy!r} is not callable")

    return reduce(lambda next, policy: PolicyChain(policy, next), reversed(flat[:-1]), flat[-1])


async def wait(ms: float, signal: Optional[AbortSignal] = None) -> None:
    """
    Sleep for ``ms`` milliseconds, waking early if ``signal`` aborts.

    Raises:
        BaseException: The signal's abort reason, if it is aborted before or
            during the wait
    """
    if signal is None:
        await asyncio.sleep(ms / 1000)
        return

    signal.throw_if_aborted()

    sleeper = asyncio.ensure_future(asyncio.sleep(ms / 1000))
    unsubscribe = signal.subscribe(lambda reason: sleeper.cancel())
    try:
        await sleeper
    except asyncio.CancelledError:
        if signal.aborted:
            raise signal.reason from None  # type: ignore[misc]
        raise
    finally:
        unsubscribe()


async def run(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    signal: Optional[AbortSignal] = None,
) -> T:
    """
    Drive ``operation`` through ``policy`` until it succeeds or the policy gives up.

    Attempts never overlap: attempt N+1 starts only after attempt N failed,
    the policy returned a delay, and that delay elapsed. Only ``Exception``
    subclasses are retried; cancellation and interpreter exits propagate.

    Args:
        operation: Zero-argument coroutine function to attempt
        policy: Fully composed policy (called without ``next``)
        signal: Optional abort signal checked before the first attempt and
            while waiting between attempts

    Returns:
        The first successful result of ``operation``

    Raises:
        Exception: Whatever the policy raises to give up (by default the last
            operation failure), or the signal's abort reason
    """
    if signal is not None:
        signal.throw_if_aborted()

    state = RetryState()

    while True:
        try:
            return await operation()
        except Exception as error:
            state.record_failure(error)

        state.delay = policy(state)

        logger.debug(
            "Scheduling retry",
            attempt=state.attempt,
            delay_ms=state.delay,
            elapsed_ms=state.elapsed,
            error_type=type(state.error).__name__,
        )

        await wait(state.delay, signal)
