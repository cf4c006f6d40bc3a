# mentormesh/services/clock.py
from datetime import date, datetime

from mentormesh.models.base import utcnow


class Clock:
    """
    Time source for every "is this in the past?" decision.

    Slots carry naive wall-clock values, so `now()` is naive as well.
    Tests swap this out through FastAPI's dependency_overrides.
    """

    def now(self) -> datetime:
        return utcnow()

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """A clock frozen at one instant."""

    def __init__(self, moment: datetime):
        self._moment = moment

    def now(self) -> datetime:
        return self._moment


_clock = Clock()


def get_clock() -> Clock:
    """FastAPI dependency returning the process-wide clock."""
    return _clock
