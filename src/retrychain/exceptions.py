"""
Exceptions raised by the retry layer itself.

Operation failures are never wrapped by default: callers see the original
exception of the last attempt. The classes below cover misconfiguration,
cancellation, and the optional aggregate produced by ``BrandError``.
"""

from typing import Sequence


class RetryChainError(Exception):
    """
    Base exception for all errors raised by retrychain.

    Allows catching any library-originated error with a single except
    clause, without also catching the wrapped operation's own failures.
    """


class PolicyConfigurationError(RetryChainError, ValueError):
    """
    Raised when a policy is built with invalid parameters.

    This happens at construction time (e.g. ``Backoff(delay=0)`` or a
    ``join`` with a single policy), never while an operation is retrying.
    """


class AbortError(RetryChainError):
    """
    Default reason attached to an aborted signal.

    Raised by the execution engine when the signal is aborted before the
    first attempt or while waiting between attempts, unless the signal was
    aborted with a custom exception.
    """

    def __init__(self, message: str = "The operation was aborted", reason: object = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class RetryError(RetryChainError):
    """
    Aggregate of every failure observed during one retried operation.

    Attributes:
        errors: All failures in the order they happened
        last_error: The failure that made the policy give up (also the
            ``__cause__`` when raised by ``BrandError``)
    """

    def __init__(self, errors: Sequence[BaseException], message: str | None = None):
        self.errors = tuple(errors)
        self.last_error = self.errors[-1] if self.errors else None

        if message is None:
            message = f"Operation failed after {len(self.errors)} attempts"
            if self.last_error is not None:
                message += f". Final error: {type(self.last_error).__name__}: {self.last_error}"

        super().__init__(message)
