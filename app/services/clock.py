from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of the current time for lockout and expiry decisions."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock implementation."""

    def now(self) -> datetime:
        return datetime.now(UTC)


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Return the process-wide clock."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Override the clock (for testing)."""
    global _clock
    _clock = clock
