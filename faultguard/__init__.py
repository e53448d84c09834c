"""FaultGuard - Fault tolerance for calls to unreliable services.

FaultGuard wraps async operations (model calls, tool execution, database
I/O) with retry-with-backoff, a circuit breaker and an overall deadline.

Example:
    >>> from faultguard import CircuitBreaker, FaultTolerance, RetryPolicy
    >>> ft = FaultTolerance(
    ...     retry_policy=RetryPolicy(max_attempts=3),
    ...     circuit_breaker=CircuitBreaker(failure_threshold=5),
    ...     operation_timeout=30.0,
    ... )
    >>> result = await ft.execute(client.complete, messages)
"""

__version__ = "0.1.0"

# Resilience exports
from faultguard.resilience import (
    DEFAULT_BACKOFF,
    PASSTHROUGH,
    Backoff,
    CircuitBreaker,
    CircuitState,
    Exponential,
    FaultTolerance,
    Fixed,
    RetryPolicy,
    create_default_fault_tolerance,
    exponential,
    fixed,
)

# Config exports
from faultguard.core.config import (
    BackoffConfig,
    CircuitBreakerConfig,
    FaultToleranceSettings,
    RetryConfig,
)

# Error exports
from faultguard.errors.exceptions import (
    CircuitOpenError,
    ConfigurationError,
    FaultGuardError,
    InvalidConfigError,
    OperationTimeoutError,
    RetryExhaustedError,
)

# Logging exports
from faultguard.logging import configure_logging, get_logger

__all__ = [
    # Version
    "__version__",
    # Backoff
    "Backoff",
    "Fixed",
    "Exponential",
    "fixed",
    "exponential",
    "DEFAULT_BACKOFF",
    # Components
    "RetryPolicy",
    "CircuitBreaker",
    "CircuitState",
    "FaultTolerance",
    "PASSTHROUGH",
    "create_default_fault_tolerance",
    # Config
    "BackoffConfig",
    "RetryConfig",
    "CircuitBreakerConfig",
    "FaultToleranceSettings",
    # Errors
    "FaultGuardError",
    "ConfigurationError",
    "InvalidConfigError",
    "OperationTimeoutError",
    "CircuitOpenError",
    "RetryExhaustedError",
    # Logging
    "configure_logging",
    "get_logger",
]
