"""Time and identity helpers shared by lab booking tests."""

from datetime import datetime, timedelta, timezone
from typing import Dict

from labhub.domain.time_range import TimeRange
from labhub.principal import LabPrincipal

# Tuesday 08:00 UTC; the March cycle runs 2026-03-01 .. 2026-04-01
FROZEN_NOW = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that tests can move around."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """A UTC instant in March 2026."""
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


def span(day: int, start_hour: int, end_hour: int) -> TimeRange:
    return TimeRange(at(day, start_hour), at(day, end_hour))


def as_user(principal: LabPrincipal) -> Dict[str, str]:
    return {"X-Test-User": principal.user_id}
