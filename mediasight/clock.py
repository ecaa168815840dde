"""
Time source abstraction.

The engine never reads wall-clock time directly; components take a Clock so
tests can pin timestamps.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


class Clock(ABC):
    """Source of timezone-aware UTC timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    Deterministic clock for tests and replays.

    Returns the same instant until advanced explicitly.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        if self._current.tzinfo is None:
            self._current = self._current.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 0.0, milliseconds: float = 0.0) -> datetime:
        """Move the clock forward and return the new instant."""
        self._current = self._current + timedelta(seconds=seconds, milliseconds=milliseconds)
        return self._current

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._current = instant
