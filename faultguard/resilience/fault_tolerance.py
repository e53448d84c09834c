"""Composition of retry, circuit breaker and deadline."""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, TypeVar

from faultguard.errors.exceptions import InvalidConfigError, OperationTimeoutError
from faultguard.logging.logger import get_logger
from faultguard.resilience.circuit_breaker import CircuitBreaker
from faultguard.resilience.retry import RetryPolicy


T = TypeVar("T")


def _discard_outcome(task: asyncio.Future[Any]) -> None:
    """Retrieve the outcome of an abandoned task so it is not reported as unhandled."""
    if not task.cancelled():
        task.exception()


class FaultTolerance:
    """Unified fault tolerance for a single protected resource.

    Combines an optional retry policy, an optional circuit breaker and an
    optional operation timeout. Any piece left out is a no-op.

    Execution order:
    1. Timeout (outermost), bounding everything below including retries
    2. Circuit breaker, which sees the whole retry loop as one call
    3. Retry (innermost)
    4. Actual function

    Because the breaker wraps the retry loop, a call that fails twice and
    then succeeds counts as one success, and a call that exhausts its
    retries counts as exactly one failure.

    Build one instance per protected resource and reuse it. The instance
    itself holds no per-call state; the breaker inside it is shared by
    every call.

    Example:
        >>> ft = FaultTolerance(
        ...     retry_policy=RetryPolicy(max_attempts=3, backoff=exponential(0.5, 2.0)),
        ...     circuit_breaker=CircuitBreaker(failure_threshold=5, half_open_after=30),
        ...     operation_timeout=300,
        ... )
        >>> result = await ft.execute(call_external_service, query)
    """

    def __init__(
        self,
        retry_policy: RetryPolicy | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        operation_timeout: float | None = None,
    ) -> None:
        """Initialize fault tolerance.

        Args:
            retry_policy: Retry policy applied to the raw operation.
            circuit_breaker: Breaker guarding the (retried) operation.
            operation_timeout: Wall-clock bound in seconds for the whole call.
        """
        if operation_timeout is not None and operation_timeout <= 0:
            raise InvalidConfigError(
                "operation_timeout", operation_timeout, "operation_timeout must be positive"
            )

        self._retry_policy = retry_policy
        self._circuit_breaker = circuit_breaker
        self._operation_timeout = operation_timeout

    @property
    def retry_policy(self) -> RetryPolicy | None:
        """Retry policy, or None if not configured."""
        return self._retry_policy

    @property
    def circuit_breaker(self) -> CircuitBreaker | None:
        """Circuit breaker, or None if not configured."""
        return self._circuit_breaker

    @property
    def operation_timeout(self) -> float | None:
        """Operation timeout in seconds, or None if not configured."""
        return self._operation_timeout

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute function with all configured layers.

        Args:
            func: Async function to execute.
            *args: Positional arguments.
            **kwargs: Keyword arguments.

        Returns:
            Result of function execution.

        Raises:
            OperationTimeoutError: If the whole call exceeded the timeout.
            CircuitOpenError: If the breaker rejected the call.
            RetryExhaustedError: If every retry attempt failed.
            asyncio.CancelledError: If the calling task was cancelled.
        """
        if self._operation_timeout is None:
            return await self._execute_composed(func, *args, **kwargs)

        return await self._execute_with_timeout(func, *args, **kwargs)

    async def _execute_composed(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        # Build execution chain from inside out
        current: Callable[[], Awaitable[T]] = functools.partial(func, *args, **kwargs)

        if self._retry_policy is not None:
            current = functools.partial(self._retry_policy.execute, current)

        if self._circuit_breaker is not None:
            current = functools.partial(self._circuit_breaker.execute, current)

        return await current()

    async def _execute_with_timeout(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        timeout = self._operation_timeout
        task = asyncio.ensure_future(self._execute_composed(func, *args, **kwargs))

        try:
            done, _ = await asyncio.wait({task}, timeout=timeout)
        except asyncio.CancelledError:
            task.cancel()
            task.add_done_callback(_discard_outcome)
            raise

        if task not in done:
            # Request cancellation but do not wait for the task to unwind.
            task.cancel()
            task.add_done_callback(_discard_outcome)
            get_logger().operation_timeout(timeout)
            raise OperationTimeoutError(timeout)

        # Re-raises the task's own exception (CircuitOpenError,
        # RetryExhaustedError, CancelledError or the operation's error).
        return task.result()

    def execute_sync(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Synchronous version of execute().

        Convenience method for non-async contexts.
        """
        return asyncio.run(self.execute(func, *args, **kwargs))

    def wrap(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        """Wrap a function with fault tolerance.

        Args:
            func: Async function to wrap.

        Returns:
            Wrapped function running through ``execute``.
        """
        @functools.wraps(func)
        async def wrapped(*args: Any, **kwargs: Any) -> T:
            return await self.execute(func, *args, **kwargs)
        return wrapped

    def __repr__(self) -> str:
        return (
            f"FaultTolerance(retry_policy={self._retry_policy!r}, "
            f"circuit_breaker={self._circuit_breaker!r}, "
            f"operation_timeout={self._operation_timeout})"
        )


PASSTHROUGH = FaultTolerance()
"""Executes operations directly: no retry, no circuit breaker, no timeout."""


def create_default_fault_tolerance() -> FaultTolerance:
    """Create fault tolerance with sensible defaults.

    Returns:
        FaultTolerance with retry (3 attempts, exponential backoff)
        and a 60s operation timeout.
    """
    return FaultTolerance(
        retry_policy=RetryPolicy(max_attempts=3),
        operation_timeout=60.0,
    )
