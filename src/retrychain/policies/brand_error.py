"""Aggregation of every failure into a single ``RetryError``."""

from typing import Optional

from retrychain.core import RetryPolicy, RetryState, give_up
from retrychain.exceptions import RetryError


class BrandError:
    """
    Replace the terminal failure with a ``RetryError`` holding the full history.

    The aggregate lists ``state.errors`` in failure order, plus the exception
    that ended the chain when it is not already the last recorded failure
    (e.g. a policy further down substituted its own error). The exception
    that ended the chain becomes ``__cause__``.
    """

    def __call__(self, state: RetryState, next: Optional[RetryPolicy] = None) -> float:
        try:
            if next is None:
                give_up(state)
            return next(state)
        except Exception as err:
            errors = list(state.errors)
            if not errors or errors[-1] is not err:
                errors.append(err)
            raise RetryError(errors) from err

    def __repr__(self) -> str:
        return "BrandError()"
