"""
Logging of retry attempts and terminal failures.

Sinks are structlog-style callables: ``sink(event, **fields)``. By default
events go to this module's structlog logger, so they follow whatever
processors and renderers the application configured.
"""

from typing import Any, Callable, Optional

import structlog

from retrychain.core import RetryPolicy, RetryState, give_up

logger = structlog.get_logger(__name__)

LogSink = Callable[..., Any]


def _default_warn(event: str, **fields: Any) -> None:
    logger.warning(event, **fields)


def _default_error(event: str, **fields: Any) -> None:
    logger.error(event, **fields)


class Logger:
    """
    Log every failed attempt and every operation the chain gives up on.

    Place it at the head of the chain. At the end of a chain it has nothing
    to delegate to and aborts every operation after the first failure.

    Args:
        warn: Sink for failed attempts (default: structlog ``warning``)
        error: Sink for terminal failures (default: structlog ``error``)
    """

    def __init__(self, warn: Optional[LogSink] = None, error: Optional[LogSink] = None):
        self.warn = warn if warn is not None else _default_warn
        self.error = error if error is not None else _default_error

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        self.warn(
            f"[retrychain] Attempt {state.attempt} failed after {state.elapsed:.0f}ms",
            attempt=state.attempt,
            elapsed_ms=state.elapsed,
            error=state.error,
        )

        try:
            if next is None:
                give_up(state)
            return next(state)
        except Exception as err:
            self.error(
                f"[retrychain] Giving up after {state.attempt} attempts and {state.elapsed:.0f}ms",
                attempt=state.attempt,
                elapsed_ms=state.elapsed,
                error=err,
            )
            raise
