"""
Injectable time source for report stamps and lifecycle audit fields.

Responsibility:
    Every timestamp paytrack writes (``MonthlyReport.generated_at``,
    ``finalized_at``, ``submitted_at``) is read from a ``Clock`` handed to the
    service that writes it.  Nothing below the action boundary calls
    ``datetime.now()``.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place wall-clock time
    enters the system.

Invariants:
    - ``now()`` is always timezone-aware and expressed in UTC.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

DEFAULT_TEST_INSTANT = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current instant."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date of ``now()`` in UTC."""
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests and replays.

    The instant only moves when asked to: ``advance()`` shifts it, ``tick()``
    shifts it by one second and returns the result (handy for giving rows
    created in one test strictly increasing ``created_at`` values), and
    ``set_time()`` jumps to a new instant.
    """

    def __init__(self, instant: datetime | None = None):
        self._instant = (instant or DEFAULT_TEST_INSTANT).astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._instant

    def set_time(self, instant: datetime) -> None:
        self._instant = instant.astimezone(timezone.utc)

    def advance(self, seconds: int = 1) -> None:
        self._instant += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        self.advance(1)
        return self._instant
