"""Tests for the half-open time window value objects and interval arithmetic."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from fieldops.domain.scheduling.value_objects import (
    TimeWindow,
    WorkingHours,
    intersect_windows,
    merge_windows,
    subtract_windows,
    to_naive_utc,
)
from fieldops.tests.factories import at


class TestTimeWindow:
    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            TimeWindow(at(10), at(9))

    def test_overlap_is_half_open(self):
        morning = TimeWindow(at(9), at(12))
        assert morning.overlaps_with(TimeWindow(at(11), at(13)))
        assert morning.overlaps_with(TimeWindow(at(10), at(11)))
        # Back-to-back windows share no instant
        assert not morning.overlaps_with(TimeWindow(at(12), at(14)))
        assert not TimeWindow(at(12), at(14)).overlaps_with(morning)

    def test_empty_window_overlaps_nothing(self):
        empty = TimeWindow(at(10), at(10))
        assert empty.is_empty
        assert not empty.overlaps_with(TimeWindow(at(9), at(11)))
        assert not TimeWindow(at(9), at(11)).overlaps_with(empty)

    def test_contains_excludes_end(self):
        window = TimeWindow(at(9), at(10))
        assert window.contains(at(9))
        assert not window.contains(at(10))

    def test_intersection(self):
        window = TimeWindow(at(9), at(12)).intersection_with(TimeWindow(at(11), at(14)))
        assert window == TimeWindow(at(11), at(12))
        assert TimeWindow(at(9), at(10)).intersection_with(TimeWindow(at(10), at(11))) is None

    def test_days_spanning_midnight(self):
        window = TimeWindow(at(22), at(2, day=1))
        assert window.days() == [date(2030, 1, 7), date(2030, 1, 8)]
        # Ending exactly at midnight stays on one day
        assert TimeWindow(at(22), at(0, day=1)).days() == [date(2030, 1, 7)]

    def test_whole_days_widens_to_midnight(self):
        assert TimeWindow(at(12), at(3, day=1)).whole_days() == TimeWindow(at(0), at(0, day=2))
        assert TimeWindow(at(12), at(0, day=1)).whole_days() == TimeWindow(at(0), at(0, day=1))

    def test_duration_minutes(self):
        assert TimeWindow(at(9), at(10, 30)).duration_minutes() == 90


class TestIntervalArithmetic:
    def test_merge_coalesces_touching_and_overlapping(self):
        merged = merge_windows(
            [
                TimeWindow(at(13), at(14)),
                TimeWindow(at(9), at(10)),
                TimeWindow(at(10), at(11)),
                TimeWindow(at(10, 30), at(12)),
            ]
        )
        assert merged == [TimeWindow(at(9), at(12)), TimeWindow(at(13), at(14))]

    def test_subtract_splits_window(self):
        remaining = subtract_windows(
            [TimeWindow(at(8), at(17))],
            [TimeWindow(at(10), at(11)), TimeWindow(at(13), at(14))],
        )
        assert remaining == [
            TimeWindow(at(8), at(10)),
            TimeWindow(at(11), at(13)),
            TimeWindow(at(14), at(17)),
        ]

    def test_subtract_everything(self):
        assert subtract_windows([TimeWindow(at(9), at(10))], [TimeWindow(at(8), at(11))]) == []

    def test_intersect_sets(self):
        result = intersect_windows(
            [TimeWindow(at(8), at(12)), TimeWindow(at(13), at(18))],
            [TimeWindow(at(10), at(14))],
        )
        assert result == [TimeWindow(at(10), at(12)), TimeWindow(at(13), at(14))]


class TestWorkingHours:
    def test_parse_and_round_trip(self):
        hours = WorkingHours.parse({"start": "08:00", "end": "17:00"})
        assert hours.start == time(8) and hours.end == time(17)
        assert hours.to_dict() == {"start": "08:00", "end": "17:00"}

    def test_parse_none(self):
        assert WorkingHours.parse(None) is None
        assert WorkingHours.parse({}) is None

    @pytest.mark.parametrize(
        "data", [{"start": "17:00", "end": "08:00"}, {"start": "nine"}, {"start": "xx", "end": "yy"}]
    )
    def test_parse_rejects_invalid(self, data):
        with pytest.raises(ValueError):
            WorkingHours.parse(data)

    def test_windows_within_clips_each_day(self):
        hours = WorkingHours(time(8), time(17))
        windows = hours.windows_within(TimeWindow(at(12), at(10, day=1)))
        assert windows == [TimeWindow(at(12), at(17)), TimeWindow(at(8, day=1), at(10, day=1))]


def test_to_naive_utc_converts_aware_values():
    aware = datetime(2030, 1, 7, 10, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_naive_utc(aware) == datetime(2030, 1, 7, 8, 0)
    assert to_naive_utc(datetime(2030, 1, 7, 8, 0)) == datetime(2030, 1, 7, 8, 0)
