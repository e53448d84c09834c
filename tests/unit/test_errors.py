"""Unit tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from faultguard.errors.exceptions import (
    CircuitOpenError,
    ConfigurationError,
    FaultGuardError,
    InvalidConfigError,
    OperationTimeoutError,
    RetryExhaustedError,
)


class TestExceptions:
    """Tests for FaultGuard exceptions."""

    @pytest.mark.parametrize(
        "error",
        [
            OperationTimeoutError(1.0),
            CircuitOpenError(),
            RetryExhaustedError(3, ValueError("x")),
            InvalidConfigError("field", 1, "reason"),
        ],
    )
    def test_all_inherit_from_base(self, error: Exception) -> None:
        """Every error can be caught as FaultGuardError."""
        assert isinstance(error, FaultGuardError)

    def test_operation_timeout(self) -> None:
        """OperationTimeoutError carries the exceeded timeout."""
        error = OperationTimeoutError(0.1)

        assert error.timeout == 0.1
        assert str(error) == "Operation timed out after 0.1s"
        assert error.retryable is True

    def test_circuit_open_default_message(self) -> None:
        """CircuitOpenError has a default message and no retry hint."""
        error = CircuitOpenError()

        assert str(error) == "Circuit breaker is open"
        assert error.retry_after is None

    def test_circuit_open_custom(self) -> None:
        """CircuitOpenError accepts a message and retry hint."""
        error = CircuitOpenError("upstream down", retry_after=4.5)

        assert str(error) == "upstream down"
        assert error.retry_after == 4.5

    def test_retry_exhausted(self) -> None:
        """RetryExhaustedError keeps attempts and chains the last cause."""
        cause = ConnectionError("down")
        error = RetryExhaustedError(3, cause)

        assert error.attempts == 3
        assert error.last_cause is cause
        assert error.__cause__ is cause
        assert str(error) == "Retry exhausted after 3 attempts"
        assert error.retryable is False

    def test_invalid_config_is_value_error(self) -> None:
        """InvalidConfigError can be caught as ValueError and ConfigurationError."""
        error = InvalidConfigError("max_attempts", 0, "max_attempts must be >= 1")

        assert isinstance(error, ValueError)
        assert isinstance(error, ConfigurationError)
        assert error.field == "max_attempts"
        assert error.value == 0
        assert "max_attempts must be >= 1" in str(error)
