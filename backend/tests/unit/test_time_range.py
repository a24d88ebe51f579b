from datetime import datetime, timedelta, timezone

import pytest

from labhub.core.exceptions import ValidationException
from labhub.domain.time_range import TimeRange, ensure_utc, hours_between
from tests.helpers.lab_time import at, span


class TestTimeRange:
    def test_back_to_back_ranges_do_not_overlap(self) -> None:
        morning = span(12, 9, 12)
        afternoon = span(12, 12, 15)

        assert not morning.overlaps(afternoon)
        assert not afternoon.overlaps(morning)

    def test_partial_and_nested_ranges_overlap(self) -> None:
        booked = span(12, 9, 12)

        assert booked.overlaps(span(12, 11, 13))
        assert booked.overlaps(span(12, 8, 10))
        assert booked.overlaps(span(12, 10, 11))
        assert span(12, 8, 14).overlaps(booked)

    def test_end_must_follow_start(self) -> None:
        with pytest.raises(ValidationException):
            TimeRange(at(12, 10), at(12, 10))
        with pytest.raises(ValidationException):
            TimeRange(at(12, 11), at(12, 10))

    def test_naive_datetimes_are_rejected(self) -> None:
        with pytest.raises(ValidationException):
            TimeRange(datetime(2026, 3, 12, 9), datetime(2026, 3, 12, 10))

    def test_offsets_are_normalized_to_utc(self) -> None:
        nairobi = timezone(timedelta(hours=3))
        time_range = TimeRange(
            datetime(2026, 3, 12, 12, tzinfo=nairobi), datetime(2026, 3, 12, 15, tzinfo=nairobi)
        )

        assert time_range.start == at(12, 9)
        assert time_range.start.tzinfo == timezone.utc
        assert time_range.duration_hours == 3.0

    def test_contains_is_half_open(self) -> None:
        time_range = span(12, 9, 12)

        assert time_range.contains(at(12, 9))
        assert time_range.contains(at(12, 11, 59))
        assert not time_range.contains(at(12, 12))

    def test_duration_hours_handles_fractions(self) -> None:
        assert TimeRange(at(12, 9), at(12, 10, 30)).duration_hours == 1.5
        assert hours_between(at(12, 9), at(12, 9, 20)) == 0.33


class TestEnsureUtc:
    def test_rejects_naive(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            ensure_utc(datetime(2026, 3, 12, 9))

        assert "timezone" in exc_info.value.message

    def test_converts_offset(self) -> None:
        value = datetime(2026, 3, 12, 4, tzinfo=timezone(timedelta(hours=-5)))

        assert ensure_utc(value) == at(12, 9)
