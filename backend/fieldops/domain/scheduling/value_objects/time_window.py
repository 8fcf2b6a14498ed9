"""
Time Window Value Objects

Half-open time intervals ``[start, end)`` used for schedule events, crew
availability, planning horizons and working hours, plus the interval-set
arithmetic the availability index is built on.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone


def to_naive_utc(value: datetime) -> datetime:
    """Normalise a datetime to naive UTC, the representation stored in the database."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TimeWindow:
    """
    A half-open interval ``[start_time, end_time)``.

    Two windows overlap iff ``a.start < b.end and b.start < a.end``. An empty
    (zero-length) window overlaps nothing, and back-to-back windows where one
    ends exactly when the other starts do not overlap.
    """

    __slots__ = ("_start_time", "_end_time")

    def __init__(self, start_time: datetime, end_time: datetime) -> None:
        """
        Initialize a TimeWindow.

        Args:
            start_time: Inclusive start
            end_time: Exclusive end

        Raises:
            ValueError: If end is before start
        """
        if end_time < start_time:
            raise ValueError("End time must not be before start time")
        self._start_time = start_time
        self._end_time = end_time

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def end_time(self) -> datetime:
        return self._end_time

    @property
    def is_empty(self) -> bool:
        return self._start_time == self._end_time

    @property
    def duration(self) -> timedelta:
        return self._end_time - self._start_time

    def duration_minutes(self) -> int:
        """Get duration of the time window in whole minutes."""
        return int(self.duration.total_seconds() // 60)

    def overlaps_with(self, other: "TimeWindow") -> bool:
        """
        Check if this window overlaps another under the half-open rule.

        Args:
            other: Other time window to check

        Returns:
            True if windows share at least one instant
        """
        if self.is_empty or other.is_empty:
            return False
        return (
            self._start_time < other._end_time and other._start_time < self._end_time
        )

    def contains_window(self, other: "TimeWindow") -> bool:
        """Check if ``other`` lies entirely inside this window."""
        return self._start_time <= other._start_time and other._end_time <= self._end_time

    def contains(self, time_point: datetime) -> bool:
        """Check if an instant lies inside the window (end excluded)."""
        return self._start_time <= time_point < self._end_time

    def intersection_with(self, other: "TimeWindow") -> "TimeWindow | None":
        """
        Get intersection with another time window.

        Returns:
            Intersection time window or None if no overlap
        """
        if not self.overlaps_with(other):
            return None
        return TimeWindow(
            max(self._start_time, other._start_time),
            min(self._end_time, other._end_time),
        )

    def whole_days(self) -> "TimeWindow":
        """Widen the window to midnight boundaries of the calendar days it touches."""
        days = self.days()
        return TimeWindow(
            datetime.combine(days[0], time.min),
            datetime.combine(days[-1] + timedelta(days=1), time.min),
        )

    def days(self) -> list[date]:
        """Calendar days touched by the window."""
        if self.is_empty:
            return [self._start_time.date()]
        current = self._start_time.date()
        last = (self._end_time - timedelta(microseconds=1)).date()
        result = []
        while current <= last:
            result.append(current)
            current += timedelta(days=1)
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeWindow):
            return False
        return (
            self._start_time == other._start_time and self._end_time == other._end_time
        )

    def __lt__(self, other: "TimeWindow") -> bool:
        return (self._start_time, self._end_time) < (other._start_time, other._end_time)

    def __hash__(self) -> int:
        return hash((self._start_time, self._end_time))

    def __str__(self) -> str:
        return f"[{self._start_time.isoformat()}, {self._end_time.isoformat()})"

    def __repr__(self) -> str:
        return f"TimeWindow(start_time={self._start_time!r}, end_time={self._end_time!r})"


class WorkingHours:
    """Daily working hours, e.g. 08:00-17:00, applied to every calendar day."""

    __slots__ = ("start", "end")

    def __init__(self, start: time, end: time) -> None:
        if end <= start:
            raise ValueError("Working hours must end after they start")
        self.start = start
        self.end = end

    @classmethod
    def parse(cls, data: dict | None) -> "WorkingHours | None":
        """
        Build working hours from a ``{"start": "HH:MM", "end": "HH:MM"}`` mapping.

        Returns None when no working hours are declared.
        """
        if not data:
            return None
        try:
            start = time.fromisoformat(str(data["start"]))
            end = time.fromisoformat(str(data["end"]))
        except (KeyError, ValueError) as e:
            raise ValueError(f"Invalid working hours {data!r}: {e}") from e
        return cls(start, end)

    def window_on(self, day: date) -> TimeWindow:
        return TimeWindow(datetime.combine(day, self.start), datetime.combine(day, self.end))

    def windows_within(self, window: TimeWindow) -> list[TimeWindow]:
        """Working-hour intervals clipped to ``window``."""
        result = []
        for day in window.days():
            clipped = self.window_on(day).intersection_with(window)
            if clipped is not None:
                result.append(clipped)
        return result

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.strftime("%H:%M"), "end": self.end.strftime("%H:%M")}


def merge_windows(windows: Iterable[TimeWindow]) -> list[TimeWindow]:
    """Sort windows and coalesce overlapping or touching ones."""
    ordered = sorted(w for w in windows if not w.is_empty)
    merged: list[TimeWindow] = []
    for window in ordered:
        if merged and window.start_time <= merged[-1].end_time:
            last = merged[-1]
            merged[-1] = TimeWindow(last.start_time, max(last.end_time, window.end_time))
        else:
            merged.append(window)
    return merged


def subtract_windows(
    base: Iterable[TimeWindow], removed: Iterable[TimeWindow]
) -> list[TimeWindow]:
    """
    Remove every interval in ``removed`` from the interval set ``base``.

    Both inputs may be unsorted and overlapping; the result is sorted and
    non-overlapping.
    """
    remaining = merge_windows(base)
    for cut in merge_windows(removed):
        next_remaining = []
        for window in remaining:
            if not window.overlaps_with(cut):
                next_remaining.append(window)
                continue
            if window.start_time < cut.start_time:
                next_remaining.append(TimeWindow(window.start_time, cut.start_time))
            if cut.end_time < window.end_time:
                next_remaining.append(TimeWindow(cut.end_time, window.end_time))
        remaining = next_remaining
    return remaining


def intersect_windows(
    left: Iterable[TimeWindow], right: Iterable[TimeWindow]
) -> list[TimeWindow]:
    """Intersection of two interval sets."""
    result = []
    right_merged = merge_windows(right)
    for window in merge_windows(left):
        for other in right_merged:
            overlap = window.intersection_with(other)
            if overlap is not None:
                result.append(overlap)
    return merge_windows(result)
