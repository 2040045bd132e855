"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

from typing import Any, Callable

import pytest

from retrychain.config import Settings
from retrychain.core import RetryState


# Short delays and a short timeout keep real-timer tests fast; logging is
# silenced so tests only see the events they assert on.
QUIET_OPTIONS: dict[str, Any] = {
    "initial_delay": 15,
    "timeout": 350,
    "log_warn": False,
    "log_error": False,
}


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the documented defaults, independent of the environment."""
    return Settings(
        _env_file=None,
        INITIAL_DELAY=150,
        MAX_DELAY=30_000,
        MAX_ATTEMPTS=10,
        TIMEOUT=30_000,
        FAST_TRACK=False,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
    )


@pytest.fixture
def quiet_options() -> dict[str, Any]:
    """Default policy options for fast, silent end-to-end runs."""
    return dict(QUIET_OPTIONS)


@pytest.fixture
def create_state() -> Callable[..., RetryState]:
    """Factory fixture to create a RetryState as the engine would after N failures.

    Usage:
        def test_something(create_state):
            state = create_state(attempt=3, delay=300)
    """
    def _create(attempt: int = 1, delay: float = 0, elapsed: float = 0, **kwargs: Any) -> RetryState:
        errors = kwargs.pop("errors", None)
        if errors is None:
            errors = [ValueError(f"failure {n}") for n in range(1, attempt + 1)]
        error = kwargs.pop("error", errors[-1] if errors else None)
        return RetryState(
            attempt=attempt,
            delay=delay,
            elapsed=elapsed,
            error=error,
            errors=list(errors),
            **kwargs,
        )

    return _create
