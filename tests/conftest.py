"""Pytest configuration and fixtures for FaultGuard tests."""

from __future__ import annotations

import asyncio
from io import StringIO

import pytest
from rich.console import Console

from faultguard.logging import logger as logger_module
from faultguard.logging.logger import configure_logging


class FlakyService:
    """Fake downstream service that fails N times then succeeds."""

    def __init__(
        self,
        fail_count: int = 0,
        error: type[Exception] = ConnectionError,
        result: str = "ok",
    ) -> None:
        self._fail_count = fail_count
        self._error = error
        self._result = result
        self.call_count = 0

    async def call(self, *args: object, **kwargs: object) -> str:
        self.call_count += 1
        if self.call_count <= self._fail_count:
            raise self._error(f"Temporary failure #{self.call_count}")
        return self._result


class AlwaysFailService:
    """Fake downstream service that always fails."""

    def __init__(self, error: type[Exception] = ConnectionError) -> None:
        self._error = error
        self.call_count = 0

    async def call(self) -> str:
        self.call_count += 1
        raise self._error(f"Permanent failure #{self.call_count}")


class HangingService:
    """Fake downstream service that never answers."""

    def __init__(self) -> None:
        self.call_count = 0
        self.cancelled = False

    async def call(self) -> str:
        self.call_count += 1
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return "never"


@pytest.fixture(autouse=True)
def silent_logging():
    """Keep the global logger quiet unless a test captures it."""
    previous = logger_module._logger
    configure_logging(enabled=False)
    yield
    logger_module._logger = previous


@pytest.fixture
def log_output() -> StringIO:
    """Route the global logger to an in-memory console at debug level."""
    output = StringIO()
    console = Console(file=output, force_terminal=False, width=200)
    configure_logging(level="debug", console=console, show_timestamps=False)
    return output


@pytest.fixture
def flaky_service_factory():
    """Factory fixture for creating services with custom failure counts."""

    def _factory(
        fail_count: int = 0,
        error: type[Exception] = ConnectionError,
        result: str = "ok",
    ) -> FlakyService:
        return FlakyService(fail_count=fail_count, error=error, result=result)

    return _factory
