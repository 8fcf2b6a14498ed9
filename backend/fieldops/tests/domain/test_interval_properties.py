"""
Property-Based Testing for Interval Arithmetic

Using Hypothesis to generate window sets on a minute grid and checking the
half-open overlap rule and the merge/subtract/intersect invariants the
availability index depends on.
"""

from datetime import datetime, timedelta

from hypothesis import given, settings, strategies as st

from fieldops.domain.scheduling.value_objects import (
    TimeWindow,
    intersect_windows,
    merge_windows,
    subtract_windows,
)

BASE = datetime(2030, 1, 7)
HORIZON_MINUTES = 24 * 60


@st.composite
def windows(draw, allow_empty: bool = True):
    """Generate windows on a one-minute grid within a single day."""
    start = draw(st.integers(min_value=0, max_value=HORIZON_MINUTES - 1))
    length = draw(st.integers(min_value=0 if allow_empty else 1, max_value=8 * 60))
    end = min(start + length, HORIZON_MINUTES)
    return TimeWindow(BASE + timedelta(minutes=start), BASE + timedelta(minutes=end))


window_sets = st.lists(windows(), max_size=8)


def covered_minutes(items: list[TimeWindow]) -> set[int]:
    minutes = set()
    for window in items:
        first = int((window.start_time - BASE).total_seconds() // 60)
        last = int((window.end_time - BASE).total_seconds() // 60)
        minutes.update(range(first, last))
    return minutes


def assert_canonical(items: list[TimeWindow]) -> None:
    for window in items:
        assert not window.is_empty
    for left, right in zip(items, items[1:]):
        assert left.end_time < right.start_time


class TestOverlapProperties:
    @given(a=windows(), b=windows())
    @settings(max_examples=300, deadline=None)
    def test_overlap_is_symmetric(self, a, b):
        assert a.overlaps_with(b) == b.overlaps_with(a)

    @given(a=windows(), b=windows())
    @settings(max_examples=300, deadline=None)
    def test_overlap_matches_shared_minutes(self, a, b):
        shared = covered_minutes([a]) & covered_minutes([b])
        assert a.overlaps_with(b) == bool(shared)

    @given(a=windows(allow_empty=False), b=windows(allow_empty=False))
    @settings(max_examples=200, deadline=None)
    def test_intersection_lies_inside_both(self, a, b):
        overlap = a.intersection_with(b)
        if overlap is None:
            assert not a.overlaps_with(b)
        else:
            assert a.contains_window(overlap)
            assert b.contains_window(overlap)


class TestIntervalSetProperties:
    @given(items=window_sets)
    @settings(max_examples=200, deadline=None)
    def test_merge_preserves_coverage(self, items):
        merged = merge_windows(items)

        assert_canonical(merged)
        assert covered_minutes(merged) == covered_minutes(items)

    @given(base=window_sets, removed=window_sets)
    @settings(max_examples=200, deadline=None)
    def test_subtract_is_set_difference(self, base, removed):
        remaining = subtract_windows(base, removed)

        assert_canonical(remaining)
        assert covered_minutes(remaining) == covered_minutes(base) - covered_minutes(removed)
        for window in remaining:
            assert not any(window.overlaps_with(cut) for cut in removed)

    @given(left=window_sets, right=window_sets)
    @settings(max_examples=200, deadline=None)
    def test_intersect_is_set_intersection(self, left, right):
        shared = intersect_windows(left, right)

        assert_canonical(shared)
        assert covered_minutes(shared) == covered_minutes(left) & covered_minutes(right)
