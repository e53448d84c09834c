"""Configuration classes for FaultGuard.

This module provides declarative configuration models that build the
resilience components, and a settings class that reads them from the
environment.
"""

from __future__ import annotations

import importlib
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from faultguard.logging.logger import LogLevel, configure_logging
from faultguard.resilience.backoff import DEFAULT_MAX_DELAY, Backoff, Exponential, Fixed
from faultguard.resilience.circuit_breaker import CircuitBreaker
from faultguard.resilience.fault_tolerance import FaultTolerance
from faultguard.resilience.retry import RetryPolicy


def _resolve_exception(value: Any) -> Any:
    """Turn a dotted path such as ``"httpx.ConnectError"`` into the class."""
    if not isinstance(value, str):
        return value
    module_name, _, attr = value.rpartition(".")
    module = importlib.import_module(module_name or "builtins")
    return getattr(module, attr)


class BackoffConfig(BaseModel):
    """Configuration for the delay between retries.

    Example:
        >>> config = BackoffConfig(kind="fixed", delay=0.25)
        >>> config.build().delay(1)
        0.25
    """

    kind: Literal["fixed", "exponential"] = Field(
        default="exponential",
        description="Backoff curve",
    )
    delay: float = Field(
        default=0.5,
        ge=0,
        description="Constant delay in seconds (fixed backoff)",
    )
    initial_delay: float = Field(
        default=0.5,
        ge=0,
        description="Delay before the first retry in seconds (exponential backoff)",
    )
    multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Growth factor per attempt (exponential backoff)",
    )
    max_delay: float = Field(
        default=DEFAULT_MAX_DELAY,
        ge=0,
        description="Maximum delay between retries in seconds (exponential backoff)",
    )

    def build(self) -> Backoff:
        if self.kind == "fixed":
            return Fixed(self.delay)
        return Exponential(self.initial_delay, self.multiplier, self.max_delay)


class RetryConfig(BaseModel):
    """Configuration for retry behavior.

    ``retry_on`` accepts exception classes or dotted import paths, so it
    can be supplied from the environment.

    Example:
        >>> config = RetryConfig(
        ...     max_attempts=5,
        ...     retry_on=("builtins.ConnectionError",),
        ... )
    """

    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts including the first one",
    )
    backoff: BackoffConfig = Field(default_factory=BackoffConfig)
    jitter: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Fractional randomization of each delay",
    )
    retry_on: tuple[type[BaseException], ...] = Field(
        default=(),
        description="Exception types that should trigger retry. Empty retries on anything.",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("retry_on", mode="before")
    @classmethod
    def _import_exception_paths(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return tuple(_resolve_exception(item) for item in value)
        return value

    def build(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            backoff=self.backoff.build(),
            jitter=self.jitter,
            retry_on=self.retry_on,
        )


class CircuitBreakerConfig(BaseModel):
    """Configuration for a circuit breaker."""

    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures to trip the breaker",
    )
    success_threshold: int = Field(
        default=1,
        ge=1,
        description="Consecutive half-open successes to close the breaker",
    )
    half_open_after: float = Field(
        default=30.0,
        gt=0,
        description="Cool-down in seconds before probing recovery",
    )
    name: str = Field(default="default", description="Breaker label for logs")

    def build(self) -> CircuitBreaker:
        return CircuitBreaker(
            failure_threshold=self.failure_threshold,
            success_threshold=self.success_threshold,
            half_open_after=self.half_open_after,
            name=self.name,
        )


class FaultToleranceSettings(BaseSettings):
    """Fault tolerance settings loaded from environment variables.

    Variables use the ``FAULTGUARD_`` prefix and ``__`` for nesting, e.g.
    ``FAULTGUARD_RETRY__MAX_ATTEMPTS=5`` or
    ``FAULTGUARD_CIRCUIT_BREAKER__HALF_OPEN_AFTER=10``.

    Every call to :meth:`build` creates a new circuit breaker, so build
    once per protected resource. When ``log_level`` is set (for example
    ``FAULTGUARD_LOG_LEVEL=debug``), :meth:`build` also reconfigures the
    process-wide logger at that level.
    """

    model_config = SettingsConfigDict(
        env_prefix="FAULTGUARD_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    retry_enabled: bool = True
    retry: RetryConfig = Field(default_factory=RetryConfig)

    circuit_breaker_enabled: bool = False
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)

    operation_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Overall wall-clock bound in seconds, retries included",
    )

    log_level: LogLevel | None = Field(
        default=None,
        description="Logger level applied on build; None leaves logging untouched",
    )

    def build(self) -> FaultTolerance:
        if self.log_level is not None:
            configure_logging(level=self.log_level)
        return FaultTolerance(
            retry_policy=self.retry.build() if self.retry_enabled else None,
            circuit_breaker=(
                self.circuit_breaker.build() if self.circuit_breaker_enabled else None
            ),
            operation_timeout=self.operation_timeout,
        )
