"""Unit tests for CircuitBreaker."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from faultguard.errors.exceptions import CircuitOpenError, InvalidConfigError
from faultguard.resilience.circuit_breaker import CircuitBreaker, CircuitState


async def _fail() -> str:
    raise ConnectionError("fail")


async def _ok() -> str:
    return "ok"


async def _trip(breaker: CircuitBreaker, times: int) -> None:
    for _ in range(times):
        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)


class TestCircuitBreakerConfig:
    """Tests for CircuitBreaker construction."""

    def test_defaults(self) -> None:
        """Should use documented defaults."""
        breaker = CircuitBreaker()

        assert breaker.failure_threshold == 5
        assert breaker.success_threshold == 1
        assert breaker.half_open_after == 30.0
        assert breaker.name == "default"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"failure_threshold": 0},
            {"success_threshold": 0},
            {"half_open_after": 0},
            {"half_open_after": -1.0},
        ],
    )
    def test_invalid_config_rejected(self, kwargs: dict) -> None:
        """Invalid thresholds and cool-downs should be rejected."""
        with pytest.raises(InvalidConfigError):
            CircuitBreaker(**kwargs)


class TestCircuitBreakerClosed:
    """Tests for the CLOSED state."""

    def test_initial_state_closed(self) -> None:
        """Should start in closed state."""
        breaker = CircuitBreaker()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert breaker.is_closed is True

    @pytest.mark.asyncio
    async def test_closed_state_allows_calls(self) -> None:
        """Closed breaker runs the operation and returns its result."""
        breaker = CircuitBreaker()

        assert await breaker.execute(_ok) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failure_propagates_unchanged(self) -> None:
        """Operation errors reach the caller as themselves."""
        breaker = CircuitBreaker()

        with pytest.raises(ConnectionError, match="fail"):
            await breaker.execute(_fail)

        assert breaker.failure_count == 1
        assert breaker.last_failure_time is not None

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self) -> None:
        """Success should reset failure count in closed state."""
        breaker = CircuitBreaker(failure_threshold=3)

        await _trip(breaker, 2)
        assert breaker.failure_count == 2

        await breaker.execute(_ok)

        assert breaker.failure_count == 0
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_failure_threshold(self) -> None:
        """Should open after failure threshold."""
        breaker = CircuitBreaker(failure_threshold=5)

        await _trip(breaker, 5)

        assert breaker.state == CircuitState.OPEN
        assert breaker.failure_count == 5
        assert breaker.is_closed is False


class TestCircuitBreakerOpen:
    """Tests for the OPEN state."""

    @pytest.mark.asyncio
    async def test_rejects_without_invoking(self) -> None:
        """Open breaker rejects calls and never runs the operation."""
        breaker = CircuitBreaker(failure_threshold=5, half_open_after=10.0)
        await _trip(breaker, 5)
        calls = [0]

        async def func() -> str:
            calls[0] += 1
            return "ok"

        with pytest.raises(CircuitOpenError) as exc_info:
            await breaker.execute(func)

        assert calls[0] == 0
        assert exc_info.value.retry_after is not None
        assert 0.0 < exc_info.value.retry_after <= 10.0

    @pytest.mark.asyncio
    async def test_half_open_after_timeout(self) -> None:
        """Should report half-open once the cool-down has elapsed."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=0.05)
        await _trip(breaker, 1)

        assert breaker.state == CircuitState.OPEN

        await asyncio.sleep(0.08)

        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.success_count == 0

    @pytest.mark.asyncio
    async def test_stays_open_before_cool_down(self) -> None:
        """No transition happens while the cool-down is running."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=10.0)
        await _trip(breaker, 1)

        time.sleep(0.01)

        assert breaker.state == CircuitState.OPEN


class TestCircuitBreakerHalfOpen:
    """Tests for the HALF_OPEN state."""

    @pytest.mark.asyncio
    async def test_successful_trial_closes(self) -> None:
        """A successful trial closes the breaker and clears failures."""
        breaker = CircuitBreaker(failure_threshold=2, success_threshold=1, half_open_after=0.05)
        await _trip(breaker, 2)
        await asyncio.sleep(0.08)

        assert breaker.state == CircuitState.HALF_OPEN
        assert await breaker.execute(_ok) == "ok"

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_failed_trial_reopens(self) -> None:
        """A failing trial moves the breaker straight back to open."""
        breaker = CircuitBreaker(failure_threshold=2, half_open_after=0.05)
        await _trip(breaker, 2)
        await asyncio.sleep(0.08)
        first_failure = breaker.last_failure_time

        with pytest.raises(ConnectionError):
            await breaker.execute(_fail)

        assert breaker.state == CircuitState.OPEN
        assert breaker.last_failure_time > first_failure
        with pytest.raises(CircuitOpenError):
            await breaker.execute(_ok)

    @pytest.mark.asyncio
    async def test_success_threshold_requires_several_trials(self) -> None:
        """Breaker stays half-open until success_threshold trials succeed."""
        breaker = CircuitBreaker(failure_threshold=1, success_threshold=2, half_open_after=0.05)
        await _trip(breaker, 1)
        await asyncio.sleep(0.08)

        await breaker.execute(_ok)
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.success_count == 1

        await breaker.execute(_ok)
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_concurrent_trial_rejected(self) -> None:
        """Only one trial is admitted; a concurrent caller fails fast."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=0.05)
        await _trip(breaker, 1)
        await asyncio.sleep(0.08)

        started = asyncio.Event()
        release = asyncio.Event()
        trial_calls = [0]

        async def slow_trial() -> str:
            trial_calls[0] += 1
            started.set()
            await release.wait()
            return "trial"

        first = asyncio.ensure_future(breaker.execute(slow_trial))
        await started.wait()

        start = time.monotonic()
        with pytest.raises(CircuitOpenError):
            await breaker.execute(slow_trial)
        assert time.monotonic() - start < 0.5

        release.set()
        assert await first == "trial"
        assert trial_calls[0] == 1
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_cancelled_trial_releases_gate(self) -> None:
        """A cancelled trial leaves the breaker half-open and the gate free."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=0.05)
        await _trip(breaker, 1)
        await asyncio.sleep(0.08)

        async def hang() -> str:
            await asyncio.sleep(3600)
            return "never"

        task = asyncio.ensure_future(breaker.execute(hang))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert breaker.state == CircuitState.HALF_OPEN
        assert await breaker.execute(_ok) == "ok"
        assert breaker.state == CircuitState.CLOSED


class TestCircuitBreakerReset:
    """Tests for manual reset and manual recording."""

    @pytest.mark.asyncio
    async def test_reset_closes_open_breaker(self) -> None:
        """reset() returns to closed with counters cleared."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=10.0)
        await _trip(breaker, 1)

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert breaker.success_count == 0
        assert breaker.last_failure_time is None
        assert await breaker.execute(_ok) == "ok"

    def test_record_failure_opens(self) -> None:
        """Manual failure recording counts toward the threshold."""
        breaker = CircuitBreaker(failure_threshold=3)

        for _ in range(3):
            breaker.record_failure()

        assert breaker.state == CircuitState.OPEN

    def test_record_success_resets(self) -> None:
        """Manual success recording resets the failure count."""
        breaker = CircuitBreaker(failure_threshold=3)

        breaker.record_failure()
        breaker.record_failure()
        breaker.record_success()

        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_record_success_after_cool_down_closes(self) -> None:
        """Manual recording sees the lazy half-open transition first."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=0.05)
        breaker.record_failure()
        await asyncio.sleep(0.08)

        breaker.record_success()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_record_failure_after_cool_down_reopens(self) -> None:
        """A manual failure after the cool-down counts as a failed trial."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=0.05)
        breaker.record_failure()
        first_failure = breaker.last_failure_time
        await asyncio.sleep(0.08)

        breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.last_failure_time > first_failure


class _ResettingGate:
    """Half-open gate that closes the breaker right before it is taken."""

    def __init__(self, breaker: CircuitBreaker) -> None:
        self._breaker = breaker
        self._lock = threading.Lock()
        self.acquired = 0

    def acquire(self, blocking: bool = True) -> bool:
        self._breaker.reset()
        self.acquired += 1
        return self._lock.acquire(blocking)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()


class TestCircuitBreakerStateRace:
    """Tests for a state change between the state read and the gate."""

    @pytest.mark.asyncio
    async def test_moved_state_is_re_evaluated(self) -> None:
        """A call that finds the breaker closed behind the gate runs as a closed call."""
        breaker = CircuitBreaker(failure_threshold=1, half_open_after=0.05)
        await _trip(breaker, 1)
        await asyncio.sleep(0.08)
        gate = _ResettingGate(breaker)
        breaker._half_open_gate = gate  # type: ignore[assignment]
        calls = [0]

        async def counted() -> str:
            calls[0] += 1
            return "ok"

        assert await breaker.execute(counted) == "ok"

        assert calls[0] == 1
        assert gate.acquired == 1
        assert not gate.locked()
        assert breaker.state == CircuitState.CLOSED
        assert breaker.success_count == 0
