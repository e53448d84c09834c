"""Core configuration for FaultGuard."""

from faultguard.core.config import (
    BackoffConfig,
    CircuitBreakerConfig,
    FaultToleranceSettings,
    RetryConfig,
)

__all__ = [
    "BackoffConfig",
    "RetryConfig",
    "CircuitBreakerConfig",
    "FaultToleranceSettings",
]
