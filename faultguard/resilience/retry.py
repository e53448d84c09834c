"""Retry policy implementation."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from faultguard.errors.exceptions import InvalidConfigError, RetryExhaustedError
from faultguard.logging.logger import get_logger
from faultguard.resilience.backoff import DEFAULT_BACKOFF, Backoff


T = TypeVar("T")

RetryPredicate = Callable[[BaseException], bool]


def _always_retry(error: BaseException) -> bool:
    return True


class RetryPolicy:
    """Configurable retry policy for resilient operations.

    Attempts are made one after another, never in parallel. Between
    attempts the policy sleeps for the delay computed by its backoff.
    The policy holds no mutable state and can be shared freely.

    Example:
        >>> policy = RetryPolicy(
        ...     max_attempts=3,
        ...     backoff=exponential(0.5, 2.0),
        ...     retry_on=(ConnectionError,),
        ... )
        >>> result = await policy.execute(some_async_func, arg1, arg2)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff: Backoff = DEFAULT_BACKOFF,
        jitter: float = 0.1,
        retry_on: tuple[type[BaseException], ...] = (),
        retry_if: RetryPredicate | None = None,
    ) -> None:
        """Initialize retry policy.

        Args:
            max_attempts: Total attempts, including the first one.
            backoff: Delay calculation between attempts.
            jitter: Jitter as fraction of delay (0.0-1.0).
            retry_on: Exception types to retry on. Empty means retry on any error.
            retry_if: Custom predicate deciding whether an error is retryable.
                Takes precedence over ``retry_on``.
        """
        if max_attempts < 1:
            raise InvalidConfigError("max_attempts", max_attempts, "max_attempts must be >= 1")
        if not 0.0 <= jitter <= 1.0:
            raise InvalidConfigError("jitter", jitter, "jitter must be between 0.0 and 1.0")

        self._max_attempts = max_attempts
        self._backoff = backoff
        self._jitter = jitter
        self._retry_on = tuple(retry_on)
        self._retry_predicate = self._build_predicate(self._retry_on, retry_if)

    @staticmethod
    def _build_predicate(
        retry_on: tuple[type[BaseException], ...],
        retry_if: RetryPredicate | None,
    ) -> RetryPredicate:
        if retry_if is not None:
            return retry_if
        if not retry_on:
            return _always_retry

        def matches(error: BaseException) -> bool:
            return isinstance(error, retry_on)

        return matches

    @property
    def max_attempts(self) -> int:
        """Total attempts, including the first one."""
        return self._max_attempts

    @property
    def backoff(self) -> Backoff:
        """Delay strategy between attempts."""
        return self._backoff

    @property
    def jitter(self) -> float:
        """Jitter fraction applied to each delay."""
        return self._jitter

    @property
    def retry_on(self) -> tuple[type[BaseException], ...]:
        """Exception types allowed to trigger a retry."""
        return self._retry_on

    @property
    def retry_predicate(self) -> RetryPredicate:
        """Predicate deciding whether a failure is retryable."""
        return self._retry_predicate

    def get_delay(self, attempt: int) -> float:
        """Calculate delay after the given attempt.

        Args:
            attempt: Attempt number (1-based) that just failed.

        Returns:
            Delay in seconds, jitter included.
        """
        return self._backoff.delay(attempt, self._jitter)

    def should_retry(self, error: BaseException) -> bool:
        """Check whether ``error`` is retryable under this policy."""
        return bool(self._retry_predicate(error))

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute function with retry logic.

        Args:
            func: Async function to execute.
            *args: Positional arguments for func.
            **kwargs: Keyword arguments for func.

        Returns:
            Result of the first successful attempt.

        Raises:
            RetryExhaustedError: If the last attempt failed or a failure
                was not retryable.
            asyncio.CancelledError: If the calling task is cancelled,
                including while sleeping between attempts.
        """
        logger = get_logger()

        for attempt in range(1, self._max_attempts + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt == self._max_attempts or not self.should_retry(e):
                    logger.retry_exhausted(attempt, e)
                    raise RetryExhaustedError(attempt, e) from e

                delay = self.get_delay(attempt)
                logger.retry_attempt(attempt, self._max_attempts, delay, e)

            await asyncio.sleep(delay)

        # max_attempts >= 1 guarantees the loop returns or raises
        raise AssertionError("unreachable")

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self._max_attempts}, backoff={self._backoff!r}, "
            f"jitter={self._jitter})"
        )
