"""
Clock -- injectable time source.

Responsibility:
    Services stamp ``submitted_at``, history ``occurred_at`` and ledger
    ``applied_at`` from a Clock received by constructor injection, never
    from ``datetime.now()`` directly.

Architecture position:
    Kernel > Domain -- pure core; SystemClock is the one sanctioned I/O
    boundary for time.

Audit relevance:
    Queue ordering (FIFO by ``submitted_at``) and history ordering depend on
    these timestamps, so tests drive them with DeterministicClock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...


class SystemClock(Clock):
    """Production clock returning the real UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value on repeated calls until ``advance()``,
    ``tick()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._current = time

    def advance(self, seconds: float = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._current = self._current + timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Advance by 1 second and return new time."""
        self.advance(1)
        return self._current
