"""Exception hierarchy for FaultGuard."""

from faultguard.errors.exceptions import (
    CircuitOpenError,
    ConfigurationError,
    FaultGuardError,
    InvalidConfigError,
    OperationTimeoutError,
    RetryExhaustedError,
)

__all__ = [
    "FaultGuardError",
    "ConfigurationError",
    "InvalidConfigError",
    "OperationTimeoutError",
    "CircuitOpenError",
    "RetryExhaustedError",
]
