"""
Integration tests for the retry loop with real timers.

Nothing is patched except, where noted, the random source, so these tests
exercise the engine, the default policy, and abort signals end to end.
Delays are kept in the tens of milliseconds.

Run with: pytest tests/integration/retry/test_retry_integration.py -v
"""

import asyncio
from unittest.mock import patch

import pytest

from retrychain import (
    AbortController,
    Backoff,
    BrandError,
    Breaker,
    RetryError,
    join,
    retry,
    wrap,
)
from retrychain.exceptions import AbortError


class FlakyService:
    """Fails ``failures`` times, then answers; records every call time."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    async def __call__(self, value: str = "ok") -> str:
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise ConnectionError(f"attempt {self.calls} failed")
        return value


@pytest.mark.asyncio
@pytest.mark.slow
async def test_default_policy_recovers_from_transient_failures(quiet_options):
    """A couple of failures are absorbed and the result returned."""
    service = FlakyService(failures=2)

    assert await retry(service, quiet_options) == "ok"
    assert service.calls == 3


@pytest.mark.asyncio
@pytest.mark.slow
async def test_default_policy_gives_up_at_timeout(quiet_options):
    """A permanently failing operation is abandoned near the timeout."""
    service = FlakyService(failures=1_000)
    loop = asyncio.get_running_loop()
    started = loop.time()

    with pytest.raises(ConnectionError):
        await retry(service, quiet_options)

    assert service.calls >= 5
    assert loop.time() - started < 2


@pytest.mark.asyncio
async def test_fast_track_skips_first_delay(quiet_options):
    """With fast track and two attempts the whole operation is near instant."""
    service = FlakyService(failures=1_000)
    loop = asyncio.get_running_loop()
    started = loop.time()

    with pytest.raises(ConnectionError, match="attempt 2 failed"):
        await retry(service, {**quiet_options, "fast_track": True, "max_attempts": 2, "initial_delay": 5_000})

    assert service.calls == 2
    assert loop.time() - started < 1


@pytest.mark.asyncio
@pytest.mark.slow
async def test_abort_during_wait_stops_retrying(quiet_options):
    """Aborting mid-wait ends the loop with the abort reason."""
    service = FlakyService(failures=1_000)
    controller = AbortController()
    options = {**quiet_options, "initial_delay": 50, "timeout": 1_000}

    with patch("retrychain.policies.jitter.random.random", return_value=0.5):
        asyncio.get_running_loop().call_later(0.07, controller.abort)
        with pytest.raises(AbortError):
            await retry(service, options, controller.signal)

    assert 1 < service.calls < 5


@pytest.mark.asyncio
async def test_pre_aborted_signal_makes_no_attempt(quiet_options):
    """An operation started with an aborted signal never runs."""
    service = FlakyService(failures=0)
    controller = AbortController()
    controller.abort("shutting down")

    with pytest.raises(AbortError, match="shutting down"):
        await wrap(service, quiet_options)(controller.signal)()

    assert service.calls == 0


@pytest.mark.asyncio
async def test_concurrent_calls_keep_separate_state(quiet_options):
    """One wrapped function serves concurrent calls with independent retries."""
    first, second = FlakyService(failures=1), FlakyService(failures=2)

    async def dispatch(service, value):
        return await service(value)

    call = wrap(dispatch, {**quiet_options, "max_attempts": 3})

    results = await asyncio.gather(call(first, "a"), call(second, "b"))

    assert results == ["a", "b"]
    assert (first.calls, second.calls) == (2, 3)


@pytest.mark.asyncio
async def test_brand_error_reports_every_attempt():
    """A custom chain with BrandError surfaces the whole failure history."""
    service = FlakyService(failures=1_000)
    policy = join(BrandError(), Breaker(max=3), Backoff(delay=5))

    with pytest.raises(RetryError) as exc_info:
        await retry(service, policy)

    assert service.calls == 3
    assert [str(err) for err in exc_info.value.errors] == [
        "attempt 1 failed",
        "attempt 2 failed",
        "attempt 3 failed",
    ]
    assert isinstance(exc_info.value.__cause__, ConnectionError)
