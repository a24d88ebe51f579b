# backend/labhub/domain/time_range.py
"""
Half-open time range value type.

A ``TimeRange`` covers ``[start, end)``: a range ending at T and another
starting at T do not overlap, so back-to-back bookings are allowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..core.constants import HOURS_PRECISION
from ..core.exceptions import ValidationException


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC; naive values are rejected."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValidationException(
            "Timestamps must include a timezone offset",
            details={"value": value.isoformat()},
        )
    return value.astimezone(timezone.utc)


def hours_between(start: datetime, end: datetime) -> float:
    """Length of ``[start, end)`` in hours at ledger precision."""
    return round((end - start).total_seconds() / 3600, HOURS_PRECISION)


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = ensure_utc(self.start)
        end = ensure_utc(self.end)
        if end <= start:
            raise ValidationException(
                "ends_at must be after starts_at",
                details={"starts_at": start.isoformat(), "ends_at": end.isoformat()},
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and self.end > other.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_hours(self) -> float:
        return hours_between(self.start, self.end)

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"
