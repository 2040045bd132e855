"""
Public wrapping API.

``wrap`` turns an async function into one that retries according to a
policy, ``retry`` runs a zero-argument async function once with retries,
and ``retrying`` is the decorator form for functions and methods.

The ``policy`` argument accepted everywhere may be:
    - a policy callable, used as-is
    - a ``DefaultOptions`` instance or a mapping of its fields
    - ``None``, for the default policy with configured defaults

Usage:
    >>> from retrychain import wrap
    >>> fetch_user = wrap(_fetch_user, {"timeout": 10_000})
    >>> user = await fetch_user(42)
    >>> user = await fetch_user(controller.signal)(42)
"""

import functools
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

import structlog

from retrychain.abort import AbortSignal
from retrychain.core import RetryPolicy, run
from retrychain.policies.default import Default, DefaultOptions

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PolicyLike = Union[RetryPolicy, DefaultOptions, Mapping[str, Any], None]


def resolve_policy(policy: PolicyLike = None) -> RetryPolicy:
    """
    Turn the ``policy`` argument of the public API into a policy callable.

    Raises:
        TypeError: ``policy`` is none of the accepted forms
        pydantic.ValidationError: Invalid default policy options
    """
    if policy is None:
        return Default()
    if isinstance(policy, DefaultOptions):
        return Default(policy)
    if isinstance(policy, Mapping):
        return Default(DefaultOptions(**policy))
    if callable(policy):
        return policy
    raise TypeError(
        f"policy must be a callable, DefaultOptions, a mapping or None, not {type(policy).__name__}"
    )


class RetryingFunction:
    """
    An async function bound to a retry policy and, optionally, an abort signal.

    Calling it returns a coroutine that runs the wrapped function under the
    policy. Calling it with a single ``AbortSignal`` (and nothing else)
    returns a copy bound to that signal instead; ``with_signal`` is the
    explicit spelling for functions whose only argument is a signal.
    """

    def __init__(
        self,
        fn: Callable[..., Awaitable[Any]],
        policy: RetryPolicy,
        signal: Optional[AbortSignal] = None,
    ):
        functools.update_wrapper(self, fn)
        self.fn = fn
        self.policy = policy
        self.signal = signal

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if len(args) == 1 and not kwargs and isinstance(args[0], AbortSignal):
            return self.with_signal(args[0])
        return run(functools.partial(self.fn, *args, **kwargs), self.policy, self.signal)

    def with_signal(self, signal: Optional[AbortSignal]) -> "RetryingFunction":
        """Return a copy of this function that observes ``signal``."""
        return RetryingFunction(self.fn, self.policy, signal)

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", repr(self.fn))
        return f"<RetryingFunction {name} policy={self.policy!r}>"


def wrap(fn: Callable[..., Awaitable[T]], policy: PolicyLike = None) -> RetryingFunction:
    """
    Wrap an async function with a retry policy.

    The policy is resolved once, here, and shared by every call of the
    returned function; each call still gets its own retry state.

    Args:
        fn: Async function to retry
        policy: Policy callable, default policy options, or None

    Returns:
        A callable with ``fn``'s signature returning a coroutine
    """
    resolved = resolve_policy(policy)
    logger.debug("Wrapped function", function=getattr(fn, "__qualname__", repr(fn)), policy=repr(resolved))
    return RetryingFunction(fn, resolved)


async def retry(
    fn: Callable[[], Awaitable[T]],
    policy: PolicyLike = None,
    signal: Optional[AbortSignal] = None,
) -> T:
    """
    Run a zero-argument async function, retrying it according to ``policy``.

    Args:
        fn: Async function to run and retry, if needed
        policy: Policy callable, default policy options, or None
        signal: Optional signal to abort the retry loop

    Returns:
        The first successful result of ``fn``
    """
    return await wrap(fn, policy).with_signal(signal)()


class RetryingMethod:
    """
    Descriptor produced by ``retrying``.

    Accessed through an instance, it binds the method to that instance and
    wraps it on first access, caching the wrapped callable in the instance's
    ``__dict__``. Used on a plain function, it wraps lazily on first call.
    """

    def __init__(self, fn: Callable[..., Awaitable[Any]], policy: PolicyLike = None):
        functools.update_wrapper(self, fn)
        self.fn = fn
        self.policy = policy
        self.attrname: Optional[str] = None
        self._wrapped: Optional[RetryingFunction] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.attrname = name

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self

        wrapped = wrap(self.fn.__get__(instance, owner), self.policy)

        # Later lookups hit the instance attribute and skip the descriptor
        cache = getattr(instance, "__dict__", None)
        if cache is not None and self.attrname is not None:
            cache[self.attrname] = wrapped

        return wrapped

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self._wrapped is None:
            self._wrapped = wrap(self.fn, self.policy)
        return self._wrapped(*args, **kwargs)


def retrying(policy: PolicyLike = None) -> Callable[[Callable[..., Awaitable[Any]]], RetryingMethod]:
    """
    Decorator that retries an async function or method according to ``policy``.

    Usage:
        >>> class UserClient:
        ...     @retrying({"max_attempts": 3})
        ...     async def fetch_user(self, user_id: int) -> dict:
        ...         ...
    """

    def decorator(fn: Callable[..., Awaitable[Any]]) -> RetryingMethod:
        return RetryingMethod(fn, policy)

    return decorator
