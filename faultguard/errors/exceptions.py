"""FaultGuard exception hierarchy.

All exceptions inherit from FaultGuardError for easy catching.
Each exception includes a `retryable` flag to indicate if the operation can be retried.

Cancellation is never represented here: ``asyncio.CancelledError`` always
reaches the caller as itself.
"""

from __future__ import annotations


class FaultGuardError(Exception):
    """Base exception for all FaultGuard errors."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


# Configuration Errors
class ConfigurationError(FaultGuardError):
    """Configuration-related errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class InvalidConfigError(ConfigurationError, ValueError):
    """Invalid configuration value."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid config for '{field}': {value}. {reason}")
        self.field = field
        self.value = value
        self.reason = reason


# Execution outcomes
class OperationTimeoutError(FaultGuardError):
    """The protected call, including every retry, exceeded its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Operation timed out after {timeout}s", retryable=True)
        self.timeout = timeout


class CircuitOpenError(FaultGuardError):
    """Raised when circuit is open and request is rejected."""

    def __init__(
        self,
        message: str = "Circuit breaker is open",
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, retryable=True)
        self.retry_after = retry_after


class RetryExhaustedError(FaultGuardError):
    """All retry attempts failed.

    The last underlying failure is available as ``last_cause`` and is also
    chained as ``__cause__``.
    """

    def __init__(self, attempts: int, last_cause: BaseException | None) -> None:
        super().__init__(f"Retry exhausted after {attempts} attempts", retryable=False)
        self.attempts = attempts
        self.last_cause = last_cause
        self.__cause__ = last_cause
