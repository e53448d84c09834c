"""Logging module for FaultGuard.

Provides structured logging with Rich console support.
"""

from faultguard.logging.logger import (
    FaultGuardLogger,
    LogLevel,
    configure_logging,
    disable_logging,
    enable_logging,
    get_logger,
)

__all__ = [
    "LogLevel",
    "FaultGuardLogger",
    "get_logger",
    "configure_logging",
    "disable_logging",
    "enable_logging",
]
