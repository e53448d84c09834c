"""Backoff strategies for retry delays.

A backoff is one of two immutable value types, :class:`Fixed` or
:class:`Exponential`, grouped under the ``Backoff`` union. Both compute
the wait before a retry as a pure function of the 1-based attempt number
and a jitter fraction.

Example:
    >>> backoff = exponential(0.5, 2.0)
    >>> backoff.delay(3)
    2.0
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Union

from faultguard.errors.exceptions import InvalidConfigError

# Default cap for exponential growth: 5 minutes.
DEFAULT_MAX_DELAY = 300.0


def _apply_jitter(delay: float, jitter: float) -> float:
    """Randomize a delay by up to +/- ``jitter`` of its value.

    Without jitter the delay is returned untouched. Otherwise the offset is
    drawn in whole milliseconds and the result never goes below zero.
    """
    if jitter <= 0.0:
        return delay

    delay_ms = round(delay * 1000)
    fraction = min(jitter, 1.0)
    max_jitter_ms = int(delay_ms * fraction)
    offset = random.randint(-max_jitter_ms, max_jitter_ms)
    return max(0, delay_ms + offset) / 1000


@dataclass(frozen=True)
class Fixed:
    """Constant delay between attempts.

    Attributes:
        delay_seconds: Seconds to wait before every retry.
    """

    delay_seconds: float

    def __post_init__(self) -> None:
        if self.delay_seconds < 0:
            raise InvalidConfigError(
                "delay_seconds", self.delay_seconds, "delay_seconds must be non-negative"
            )

    def delay(self, attempt: int, jitter: float = 0.0) -> float:
        """Calculate the wait before the retry following ``attempt``.

        Args:
            attempt: Attempt number (1-based). Ignored for fixed delays.
            jitter: Jitter fraction (0.0-1.0).

        Returns:
            Delay in seconds.
        """
        return _apply_jitter(self.delay_seconds, jitter)


@dataclass(frozen=True)
class Exponential:
    """Exponentially growing delay, capped at ``max_delay``.

    Delay is ``initial_delay * multiplier ** (attempt - 1)``, capped at
    ``max_delay``.
    """

    initial_delay: float
    multiplier: float
    max_delay: float = DEFAULT_MAX_DELAY

    def __post_init__(self) -> None:
        if self.initial_delay < 0:
            raise InvalidConfigError(
                "initial_delay", self.initial_delay, "initial_delay must be non-negative"
            )
        if self.multiplier < 1.0:
            raise InvalidConfigError("multiplier", self.multiplier, "multiplier must be >= 1.0")
        if self.max_delay < 0:
            raise InvalidConfigError("max_delay", self.max_delay, "max_delay must be non-negative")

    def delay(self, attempt: int, jitter: float = 0.0) -> float:
        """Calculate the wait before the retry following ``attempt``.

        Args:
            attempt: Attempt number (1-based).
            jitter: Jitter fraction (0.0-1.0).

        Returns:
            Delay in seconds.
        """
        return _apply_jitter(self._capped(attempt), jitter)

    def _capped(self, attempt: int) -> float:
        if self.initial_delay == 0:
            return 0.0
        try:
            base = self.initial_delay * self.multiplier ** (attempt - 1)
        except OverflowError:
            return self.max_delay
        return min(base, self.max_delay)


Backoff = Union[Fixed, Exponential]


def fixed(delay: float) -> Fixed:
    """Create a fixed backoff of ``delay`` seconds."""
    return Fixed(delay)


def exponential(
    initial_delay: float,
    multiplier: float,
    max_delay: float = DEFAULT_MAX_DELAY,
) -> Exponential:
    """Create an exponential backoff.

    Args:
        initial_delay: Delay before the first retry, in seconds.
        multiplier: Growth factor per attempt (>= 1.0).
        max_delay: Upper bound on the delay, in seconds.
    """
    return Exponential(initial_delay, multiplier, max_delay)


DEFAULT_BACKOFF: Backoff = exponential(0.5, 2.0)
