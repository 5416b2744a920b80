"""
Retry Module
Provides bounded retry with increasing backoff for source API calls.
"""

import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from doc_mirror.constants import (
    BACKOFF_STRATEGIES,
    DEFAULT_BACKOFF,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
)
from doc_mirror.exceptions import TransientFetchError

T = TypeVar('T')

# on_retry(attempt, max_attempts, error, delay)
RetryCallback = Callable[[int, int, BaseException, float], None]


class RetryPolicy:
    """Attempt ceiling plus a linear or exponential backoff schedule."""

    def __init__(self, max_attempts: int = DEFAULT_MAX_RETRIES,
                 base_delay: float = DEFAULT_RETRY_BASE_DELAY,
                 max_delay: float = DEFAULT_RETRY_MAX_DELAY,
                 strategy: str = DEFAULT_BACKOFF):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if strategy not in BACKOFF_STRATEGIES:
            raise ValueError(f"unknown backoff strategy: {strategy}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.strategy = strategy

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """
        Delay before the attempt following `attempt` (1-based).

        linear:      base * attempt
        exponential: base * 2 ** (attempt - 1)

        A server supplied Retry-After raises the delay, the cap still applies.
        """
        if self.strategy == "exponential":
            delay = self.base_delay * (2 ** (attempt - 1))
        else:
            delay = self.base_delay * attempt
        if retry_after is not None:
            delay = max(delay, retry_after)
        return min(delay, self.max_delay)

    def __repr__(self):
        return (f"RetryPolicy(max_attempts={self.max_attempts}, base_delay={self.base_delay}, "
                f"max_delay={self.max_delay}, strategy={self.strategy!r})")


def with_retry(func: Callable[..., T], *args,
               policy: Optional[RetryPolicy] = None,
               retryable: Tuple[Type[BaseException], ...] = (TransientFetchError,),
               on_retry: Optional[RetryCallback] = None,
               sleep: Callable[[float], None] = time.sleep,
               **kwargs) -> T:
    """
    Call `func` until it succeeds, a non-retryable error occurs, or the policy gives up.

    Only exceptions listed in `retryable` are retried; the last one is re-raised
    once `policy.max_attempts` attempts have failed. Anything else propagates
    immediately.

    Args:
        func: Function to call
        *args: Positional arguments for the function
        policy: Attempt ceiling and backoff (defaults to RetryPolicy())
        retryable: Exception types that warrant another attempt
        on_retry: Called after each failed attempt, before sleeping
        sleep: Sleep function, replaceable in tests
        **kwargs: Keyword arguments for the function

    Returns:
        The function's return value
    """
    policy = policy or RetryPolicy()

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return func(*args, **kwargs)
        except retryable as e:
            if attempt >= policy.max_attempts:
                if on_retry:
                    on_retry(attempt, policy.max_attempts, e, 0.0)
                raise
            delay = policy.delay_for(attempt, getattr(e, "retry_after", None))
            if on_retry:
                on_retry(attempt, policy.max_attempts, e, delay)
            sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
