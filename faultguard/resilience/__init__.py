"""Resilience module for FaultGuard.

Provides backoff strategies, retry policies, circuit breakers and the
FaultTolerance wrapper composing them under an operation timeout.
"""

from faultguard.resilience.backoff import (
    DEFAULT_BACKOFF,
    Backoff,
    Exponential,
    Fixed,
    exponential,
    fixed,
)
from faultguard.resilience.retry import RetryPolicy
from faultguard.resilience.circuit_breaker import (
    CircuitState,
    CircuitBreaker,
)
from faultguard.resilience.fault_tolerance import (
    PASSTHROUGH,
    FaultTolerance,
    create_default_fault_tolerance,
)

__all__ = [
    # Backoff
    "Backoff",
    "Fixed",
    "Exponential",
    "fixed",
    "exponential",
    "DEFAULT_BACKOFF",
    # Retry
    "RetryPolicy",
    # Circuit Breaker
    "CircuitState",
    "CircuitBreaker",
    # Orchestration
    "FaultTolerance",
    "PASSTHROUGH",
    "create_default_fault_tolerance",
]
