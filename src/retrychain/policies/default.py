"""
The default retry policy.

Chain (outermost first):
    1. Logger: logs failed attempts and the final failure
    2. Timeout: gives up after ``timeout`` ms (soft)
    3. Breaker: gives up after ``max_attempts`` attempts
    4. FastTrack: first re-attempt runs immediately (only if ``fast_track``)
    5. PollyJitter: exponential backoff with jitter
    6. ``next_policy``: optional caller-supplied trailing stage

Unset options fall back to ``retrychain.config.settings``, whose own
defaults are: no fast track, 150ms initial delay, 30s max delay, 10 attempts,
30s timeout.
"""

from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from retrychain.config import Settings, settings as default_settings
from retrychain.core import RetryPolicy, RetryState, join
from retrychain.policies.breaker import Breaker
from retrychain.policies.fast_track import FastTrack
from retrychain.policies.jitter import PollyJitter
from retrychain.policies.logger import LogSink, Logger
from retrychain.policies.timeout import Timeout


class DefaultOptions(BaseModel):
    """Options for the default retry policy. ``None`` means "use the configured default"."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    fast_track: Optional[bool] = Field(
        default=None, description="Run the first re-attempt immediately, skipping its delay"
    )
    initial_delay: Optional[float] = Field(
        default=None, ge=0, description="Median first delay in milliseconds"
    )
    max_delay: Optional[float] = Field(
        default=None, ge=0, description="Cap for a single delay in milliseconds"
    )
    max_attempts: Optional[int] = Field(
        default=None, ge=1, description="Attempts made before giving up"
    )
    timeout: Optional[float] = Field(
        default=None, ge=0, description="Milliseconds after which no further attempt is scheduled"
    )
    log_warn: Union[bool, Callable[..., Any], None] = Field(
        default=None,
        description="Sink for failed attempts; False disables it, None/True use structlog",
    )
    log_error: Union[bool, Callable[..., Any], None] = Field(
        default=None,
        description="Sink for terminal failures; False disables it, None/True use structlog",
    )
    next_policy: Optional[Callable[..., float]] = Field(
        default=None, description="Policy appended after the built-in ones"
    )


def _noop(event: str, **fields: Any) -> None:
    pass


def _resolve_sink(sink: Union[bool, LogSink, None]) -> Optional[LogSink]:
    if sink is None or sink is True:
        return None
    if sink is False:
        return _noop
    return sink


def _pick(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


class Default:
    """
    The default retry policy, built once from ``DefaultOptions``.

    Accepts an options instance, keyword overrides, or both (keywords win):

        >>> Default(max_attempts=3, log_warn=False)
    """

    def __init__(
        self,
        options: Optional[DefaultOptions] = None,
        config: Optional[Settings] = None,
        **overrides: Any,
    ):
        if options is None:
            options = DefaultOptions(**overrides)
        elif overrides:
            options = DefaultOptions(**{**dict(options), **overrides})

        config = config if config is not None else default_settings
        self.options = options

        fast_track = _pick(options.fast_track, config.FAST_TRACK)

        self.policy = join(
            [
                Logger(
                    warn=_resolve_sink(options.log_warn),
                    error=_resolve_sink(options.log_error),
                ),
                Timeout(after=_pick(options.timeout, config.TIMEOUT)),
                Breaker(max=_pick(options.max_attempts, config.MAX_ATTEMPTS)),
                FastTrack() if fast_track else [],
                PollyJitter(
                    initial=_pick(options.initial_delay, config.INITIAL_DELAY),
                    max=_pick(options.max_delay, config.MAX_DELAY),
                ),
                [options.next_policy] if options.next_policy is not None else [],
            ]
        )

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        return self.policy(state, next)

    def __repr__(self) -> str:
        return f"Default({self.policy!r})"
