"""FaultGuard logger implementation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from rich.console import Console
from rich.markup import escape


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Get numeric rank for comparison."""
        ranks = {"debug": 0, "info": 1, "warning": 2, "error": 3}
        return ranks[self.value]


class FaultGuardLogger:
    """Structured logger for FaultGuard.

    Provides Rich-formatted logging for retries, circuit breaker
    transitions and deadline expiries.

    Example:
        >>> logger = FaultGuardLogger(level=LogLevel.DEBUG)
        >>> logger.info("Calling provider", provider="openai")
        >>> logger.circuit_transition("openai", "closed", "open")
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        console: Console | None = None,
        show_timestamps: bool = True,
        show_level: bool = True,
        enabled: bool = True,
    ) -> None:
        """Initialize logger.

        Args:
            level: Minimum log level to display.
            console: Rich console instance (created if None).
            show_timestamps: Whether to show timestamps.
            show_level: Whether to show log level.
            enabled: Whether logging is enabled.
        """
        self._level = level
        self._console = console or Console(stderr=True)
        self._show_timestamps = show_timestamps
        self._show_level = show_level
        self._enabled = enabled

    @property
    def level(self) -> LogLevel:
        """Current log level."""
        return self._level

    @level.setter
    def level(self, value: LogLevel) -> None:
        self._level = value

    @property
    def enabled(self) -> bool:
        """Whether logging is enabled."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def _should_log(self, level: LogLevel) -> bool:
        return self._enabled and level.rank >= self._level.rank

    def _format_prefix(self, level: LogLevel) -> str:
        """Format log prefix with timestamp and level."""
        parts = []

        if self._show_timestamps:
            timestamp = datetime.now().strftime("%H:%M:%S")
            parts.append(f"[dim]{timestamp}[/]")

        if self._show_level:
            level_colors = {
                LogLevel.DEBUG: "dim",
                LogLevel.INFO: "blue",
                LogLevel.WARNING: "yellow",
                LogLevel.ERROR: "red bold",
            }
            color = level_colors.get(level, "white")
            parts.append(f"[{color}]{level.value.upper():7}[/]")

        return " ".join(parts)

    def _log(self, level: LogLevel, message: str, **context: Any) -> None:
        if not self._should_log(level):
            return

        prefix = self._format_prefix(level)

        if context:
            context_str = " ".join(f"[dim]{k}=[/]{v}" for k, v in context.items())
            message = f"{message} {context_str}"

        self._console.print(f"{prefix} {message}")

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message, **context)

    # Resilience-specific logging methods

    def retry_attempt(
        self,
        attempt: int,
        max_attempts: int,
        delay: float,
        error: BaseException,
    ) -> None:
        """Log a failed attempt that will be retried."""
        if not self._should_log(LogLevel.DEBUG):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.DEBUG)} "
            f"  [dim]Retry:[/] attempt {attempt}/{max_attempts} failed "
            f"({type(error).__name__}: {escape(str(error))}), retrying in {delay:.3f}s"
        )

    def retry_exhausted(self, attempts: int, error: BaseException) -> None:
        """Log the end of a retry sequence without success."""
        if not self._should_log(LogLevel.WARNING):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.WARNING)} "
            f"[bold yellow]↻ Retry[/] gave up after {attempts} attempt(s): "
            f"{type(error).__name__}: {escape(str(error))}"
        )

    def circuit_transition(self, name: str, old_state: str, new_state: str) -> None:
        """Log a circuit breaker state change."""
        level = LogLevel.WARNING if new_state == "open" else LogLevel.INFO
        if not self._should_log(level):
            return

        colors = {"closed": "green", "open": "red", "half_open": "yellow"}
        color = colors.get(new_state, "white")

        self._console.print(
            f"{self._format_prefix(level)} "
            f"[bold {color}]◆ Circuit {escape(name)}[/] {old_state} → {new_state}"
        )

    def circuit_rejected(self, name: str, retry_after: float | None = None) -> None:
        """Log a call rejected by an open circuit."""
        if not self._should_log(LogLevel.DEBUG):
            return

        retry = f" (retry after {retry_after:.1f}s)" if retry_after else ""

        self._console.print(
            f"{self._format_prefix(LogLevel.DEBUG)} "
            f"  [dim]Circuit {escape(name)}:[/] call rejected{retry}"
        )

    def operation_timeout(self, timeout: float) -> None:
        """Log a deadline expiry."""
        if not self._should_log(LogLevel.WARNING):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.WARNING)} "
            f"[bold red]✗ Timeout[/] operation exceeded {timeout}s"
        )


# Process-wide logger; components look it up on every event.
_logger: FaultGuardLogger | None = None


def get_logger() -> FaultGuardLogger:
    """Return the logger used by every retry policy, breaker and deadline."""
    global _logger
    if _logger is None:
        _logger = FaultGuardLogger()
    return _logger


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    enabled: bool = True,
    show_timestamps: bool = True,
    show_level: bool = True,
    console: Console | None = None,
) -> FaultGuardLogger:
    """Replace the process-wide logger.

    Components resolve the logger at event time, so breakers and policies
    built before this call report through the new one.

    Args:
        level: Minimum level, as a LogLevel or its name ("debug", "warning").
        enabled: Whether events are printed at all.
        show_timestamps: Prefix lines with the wall-clock time.
        show_level: Prefix lines with the level name.
        console: Rich console to print to (stderr if None).

    Returns:
        The new logger.

    Example:
        >>> configure_logging(level="debug", show_timestamps=False)
    """
    global _logger
    _logger = FaultGuardLogger(
        level=LogLevel(level.lower()),
        console=console,
        show_timestamps=show_timestamps,
        show_level=show_level,
        enabled=enabled,
    )
    return _logger


def disable_logging() -> None:
    """Silence resilience events until :func:`enable_logging` is called."""
    get_logger().enabled = False


def enable_logging() -> None:
    get_logger().enabled = True
