"""Circuit breaker pattern implementation."""

from __future__ import annotations

import threading
import time
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from faultguard.errors.exceptions import CircuitOpenError, InvalidConfigError
from faultguard.logging.logger import get_logger


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"      # Normal operation, requests allowed
    OPEN = "open"          # Failure mode, requests rejected
    HALF_OPEN = "half_open"  # Testing mode, one trial request at a time


T = TypeVar("T")


class CircuitBreaker:
    """Circuit breaker pattern for fault tolerance.

    Protects against cascading failures by tracking failures
    and temporarily blocking requests when threshold is reached.

    States:
        - CLOSED: Normal operation, requests pass through
        - OPEN: Too many failures, requests rejected immediately
        - HALF_OPEN: Testing if service recovered, a single trial call
          is admitted and concurrent callers are rejected

    There is no background timer. OPEN moves to HALF_OPEN lazily, the
    first time a call or a ``state`` query observes that ``half_open_after``
    seconds have passed since the last failure.

    One instance is meant to be shared by every caller of the same
    downstream resource. State and counters are updated under a short
    internal lock that is never held across an ``await``; the half-open
    gate is only ever try-acquired, so no caller waits on it.

    Example:
        >>> breaker = CircuitBreaker(failure_threshold=5, half_open_after=30)
        >>> try:
        ...     result = await breaker.execute(some_api_call)
        ... except CircuitOpenError:
        ...     # Circuit is open, use fallback
        ...     result = fallback_value
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        success_threshold: int = 1,
        half_open_after: float = 30.0,
        name: str = "default",
    ) -> None:
        """Initialize circuit breaker.

        Args:
            failure_threshold: Consecutive failures needed to open circuit.
            success_threshold: Half-open successes needed to close circuit.
            half_open_after: Seconds to wait before transitioning from open to half-open.
            name: Label used in log lines and error messages.
        """
        if failure_threshold < 1:
            raise InvalidConfigError(
                "failure_threshold", failure_threshold, "failure_threshold must be at least 1"
            )
        if success_threshold < 1:
            raise InvalidConfigError(
                "success_threshold", success_threshold, "success_threshold must be at least 1"
            )
        if half_open_after <= 0:
            raise InvalidConfigError(
                "half_open_after", half_open_after, "half_open_after must be positive"
            )

        self._failure_threshold = failure_threshold
        self._success_threshold = success_threshold
        self._half_open_after = half_open_after
        self._name = name

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: float | None = None

        # Guards single reads/writes of the fields above; never awaited.
        self._cell_lock = threading.Lock()
        # Half-open admission gate; only ever acquired with blocking=False.
        self._half_open_gate = threading.Lock()

    @property
    def name(self) -> str:
        """Breaker label."""
        return self._name

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        self._check_state_transition()
        return self._state

    @property
    def failure_count(self) -> int:
        """Current consecutive failure count."""
        return self._failure_count

    @property
    def success_count(self) -> int:
        """Successful half-open trials since the last transition to half-open."""
        return self._success_count

    @property
    def last_failure_time(self) -> float | None:
        """Monotonic timestamp of the last recorded failure."""
        return self._last_failure_time

    @property
    def failure_threshold(self) -> int:
        return self._failure_threshold

    @property
    def success_threshold(self) -> int:
        return self._success_threshold

    @property
    def half_open_after(self) -> float:
        return self._half_open_after

    @property
    def is_closed(self) -> bool:
        """Check if circuit allows requests."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute function with circuit breaker protection.

        Args:
            func: Async function to execute.
            *args: Positional arguments.
            **kwargs: Keyword arguments.

        Returns:
            Result of function execution.

        Raises:
            CircuitOpenError: If circuit is open, or a half-open trial is
                already in flight.
        """
        while True:
            self._check_state_transition()
            current = self._state

            if current == CircuitState.OPEN:
                retry_after = self._get_retry_after()
                get_logger().circuit_rejected(self._name, retry_after)
                raise CircuitOpenError(
                    f"Circuit breaker '{self._name}' is open. Retry after {retry_after:.1f}s",
                    retry_after=retry_after,
                )

            if current == CircuitState.CLOSED:
                return await self._execute_closed(func, *args, **kwargs)

            if not self._half_open_gate.acquire(blocking=False):
                get_logger().circuit_rejected(self._name)
                raise CircuitOpenError(
                    f"Circuit breaker '{self._name}' is half-open and a trial call is in progress"
                )
            try:
                if self._state != CircuitState.HALF_OPEN:
                    # Lost a race with another transition; start over.
                    continue
                return await self._execute_half_open(func, *args, **kwargs)
            finally:
                self._half_open_gate.release()

    async def _execute_closed(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._on_failure()
            raise
        self._on_success()
        return result

    async def _execute_half_open(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._on_half_open_failure()
            raise
        self._on_half_open_success()
        return result

    def record_success(self) -> None:
        """Record a successful call made outside ``execute``."""
        self._check_state_transition()
        if self._state == CircuitState.HALF_OPEN:
            self._on_half_open_success()
        else:
            self._on_success()

    def record_failure(self) -> None:
        """Record a failed call made outside ``execute``."""
        self._check_state_transition()
        if self._state == CircuitState.HALF_OPEN:
            self._on_half_open_failure()
        else:
            self._on_failure()

    def reset(self) -> None:
        """Manually reset circuit to closed state."""
        with self._cell_lock:
            previous = self._state
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._success_count = 0
            self._last_failure_time = None
        if previous != CircuitState.CLOSED:
            get_logger().circuit_transition(self._name, previous.value, CircuitState.CLOSED.value)

    def _compare_and_set(self, expected: CircuitState, new: CircuitState) -> bool:
        """Move from ``expected`` to ``new`` only if still in ``expected``."""
        with self._cell_lock:
            if self._state != expected:
                return False
            self._state = new
            if new == CircuitState.HALF_OPEN:
                self._success_count = 0
        get_logger().circuit_transition(self._name, expected.value, new.value)
        return True

    def _set_state(self, new: CircuitState) -> None:
        with self._cell_lock:
            previous = self._state
            self._state = new
        if previous != new:
            get_logger().circuit_transition(self._name, previous.value, new.value)

    def _on_success(self) -> None:
        with self._cell_lock:
            self._failure_count = 0

    def _on_failure(self) -> None:
        with self._cell_lock:
            self._failure_count += 1
            failures = self._failure_count
            self._last_failure_time = time.monotonic()

        if failures >= self._failure_threshold:
            self._set_state(CircuitState.OPEN)

    def _on_half_open_success(self) -> None:
        with self._cell_lock:
            self._success_count += 1
            successes = self._success_count
            if successes >= self._success_threshold:
                self._failure_count = 0

        if successes >= self._success_threshold:
            self._set_state(CircuitState.CLOSED)

    def _on_half_open_failure(self) -> None:
        with self._cell_lock:
            self._last_failure_time = time.monotonic()
            self._success_count = 0
        self._set_state(CircuitState.OPEN)

    def _check_state_transition(self) -> None:
        """Move OPEN to HALF_OPEN once the cool-down has elapsed."""
        if self._state == CircuitState.OPEN and self._should_attempt_reset():
            self._compare_and_set(CircuitState.OPEN, CircuitState.HALF_OPEN)

    def _should_attempt_reset(self) -> bool:
        """Check if enough time has passed to attempt reset."""
        last_failure = self._last_failure_time
        if last_failure is None:
            return False
        return time.monotonic() > last_failure + self._half_open_after

    def _get_retry_after(self) -> float:
        """Get seconds until circuit might go half-open."""
        last_failure = self._last_failure_time
        if last_failure is None:
            return 0.0
        elapsed = time.monotonic() - last_failure
        return max(0.0, self._half_open_after - elapsed)

    def __repr__(self) -> str:
        return (
            f"CircuitBreaker(name={self._name!r}, state={self._state.value}, "
            f"failures={self._failure_count}/{self._failure_threshold})"
        )
