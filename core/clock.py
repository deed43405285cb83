"""
Core Module - System Clock.

============================================================
RESPONSIBILITY
============================================================
Provides a testable clock abstraction for the monitor.

- Status records are stamped through this clock
- Alert timestamps are rendered in the configured timezone
- Mockable for deterministic testing

============================================================
DESIGN PRINCIPLES
============================================================
- Clocks return timezone-aware UTC datetimes
- Conversion to local time happens only when formatting
- Passed explicitly through the monitor context, never global

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo
import threading
import time


# Rendered like the vi-VN locale: 24h time, then day/month/year
LOCAL_TIME_FORMAT = "%H:%M:%S %d/%m/%Y"


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the monitor clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    @abstractmethod
    def monotonic(self) -> float:
        """Get a monotonic reading in seconds, for measuring latency."""
        pass


# ============================================================
# SYSTEM CLOCK
# ============================================================

class SystemClock(ClockProtocol):
    """
    Production clock using actual system time.

    All times are in UTC.
    """

    def now(self) -> datetime:
        """Get current UTC datetime."""
        return datetime.now(timezone.utc)

    def monotonic(self) -> float:
        """Get a monotonic reading in seconds."""
        return time.perf_counter()


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.

    Allows time manipulation for deterministic tests.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        """
        Initialize mock clock.

        Args:
            initial_time: Starting time (defaults to current UTC)
        """
        self._time = initial_time or datetime.now(timezone.utc)
        self._monotonic = 0.0
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Get current (mocked) datetime."""
        with self._lock:
            return self._time

    def monotonic(self) -> float:
        """Get current (mocked) monotonic reading."""
        with self._lock:
            return self._monotonic

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            delta = timedelta(seconds=seconds, **kwargs)
            self._time = self._time + delta
            self._monotonic += delta.total_seconds()


# ============================================================
# TIMESTAMP UTILITIES
# ============================================================

def format_local(dt: datetime, tz_name: str) -> str:
    """Render a datetime in the given IANA timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ZoneInfo(tz_name)).strftime(LOCAL_TIME_FORMAT)


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "LOCAL_TIME_FORMAT",
    "format_local",
]
