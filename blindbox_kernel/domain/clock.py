"""
Clock -- injectable time source.

Services stamp ``created_at`` (checkout) and ``opened_at`` (open) through a
Clock handed to them at construction, never through ``datetime.now()``.
SystemClock is the only place the wall clock is read.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of timezone-aware UTC timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock frozen at ``start`` (2024-01-01 12:00 UTC by default).

    ``now()`` keeps returning the same instant until ``advance()`` moves it.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._current = start or self.DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        """Move the clock forward and return the new time."""
        self._current += timedelta(seconds=seconds)
        return self._current
