"""
Availability Index

An in-memory calendar per crew member holding committed schedule events,
tentative reservations and declared availability/blackout windows. Both
explicit scheduling and the optimizer's slot search read from it.
"""

import bisect
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from uuid import UUID

from fieldops.domain.scheduling.value_objects import (
    AvailabilityType,
    TimeWindow,
    WorkingHours,
    intersect_windows,
    merge_windows,
    subtract_windows,
)


@dataclass(order=True, frozen=True)
class Booking:
    """A span of crew time; ``event_id`` is None for a tentative reservation."""

    window: TimeWindow
    event_id: UUID | None = field(default=None, compare=False)

    @property
    def is_tentative(self) -> bool:
        return self.event_id is None


class AvailabilityIndex:
    """
    Sorted interval sets keyed by crew member id.

    A crew member with no declared "available" windows is assumed available
    at any time not covered by a blackout or a booking.
    """

    def __init__(self) -> None:
        self._bookings: dict[UUID, list[Booking]] = defaultdict(list)
        self._available: dict[UUID, list[TimeWindow]] = defaultdict(list)
        self._blackouts: dict[UUID, list[TimeWindow]] = defaultdict(list)

    @classmethod
    def build(cls, events: Iterable = (), availability: Iterable = ()) -> "AvailabilityIndex":
        """
        Build an index from schedule events and availability records.

        Args:
            events: Objects with ``id``, ``start_time``, ``end_time`` and
                ``assigned_crew_ids``; callers pass only active events
            availability: Objects with ``crew_member_id``, ``start_time``,
                ``end_time`` and ``availability_type``
        """
        index = cls()
        for event in events:
            window = TimeWindow(event.start_time, event.end_time)
            for crew_id in event.assigned_crew_ids:
                index.add_booking(crew_id, window, event.id)
        for record in availability:
            index.declare(
                record.crew_member_id,
                TimeWindow(record.start_time, record.end_time),
                record.availability_type,
            )
        return index

    def add_booking(self, crew_id: UUID, window: TimeWindow, event_id: UUID | None) -> None:
        bisect.insort(self._bookings[crew_id], Booking(window, event_id))

    def declare(
        self, crew_id: UUID, window: TimeWindow, availability_type: AvailabilityType
    ) -> None:
        target = (
            self._available
            if availability_type == AvailabilityType.AVAILABLE
            else self._blackouts
        )
        bisect.insort(target[crew_id], window)

    def conflicting_events(self, crew_id: UUID, start: datetime, end: datetime) -> list[Booking]:
        """Bookings of ``crew_id`` overlapping ``[start, end)``."""
        window = TimeWindow(start, end)
        result = []
        for booking in self._bookings.get(crew_id, []):
            if booking.window.start_time >= end:
                break
            if booking.window.overlaps_with(window):
                result.append(booking)
        return result

    def is_available(self, crew_id: UUID, start: datetime, end: datetime) -> bool:
        """
        True iff the window fits the crew member's declared availability and
        does not touch a blackout or an existing booking.
        """
        window = TimeWindow(start, end)
        available = self._available.get(crew_id)
        if available and not any(w.contains_window(window) for w in merge_windows(available)):
            return False
        if any(b.overlaps_with(window) for b in self._blackouts.get(crew_id, [])):
            return False
        return not self.conflicting_events(crew_id, start, end)

    def reserve(self, crew_id: UUID, start: datetime, end: datetime) -> Booking:
        """Tentatively book crew time so later searches in the same run see it."""
        booking = Booking(TimeWindow(start, end), None)
        bisect.insort(self._bookings[crew_id], booking)
        return booking

    def free_slots(
        self,
        crew_id: UUID,
        window_start: datetime,
        window_end: datetime,
        working_hours: WorkingHours | None = None,
    ) -> list[TimeWindow]:
        """Free intervals of ``crew_id`` inside the planning window, in time order."""
        horizon = TimeWindow(window_start, window_end)
        free = [horizon]

        available = self._available.get(crew_id)
        if available:
            free = intersect_windows(free, available)
        if working_hours is not None:
            free = intersect_windows(free, working_hours.windows_within(horizon))

        busy = list(self._blackouts.get(crew_id, []))
        busy.extend(b.window for b in self._bookings.get(crew_id, []))
        return subtract_windows(free, busy)

    def committed_minutes_on(self, crew_id: UUID, day: date) -> int:
        """Minutes booked for ``crew_id`` on a calendar day, reservations included."""
        day_window = TimeWindow(
            datetime.combine(day, time.min), datetime.combine(day + timedelta(days=1), time.min)
        )
        total = 0
        for booking in self._bookings.get(crew_id, []):
            overlap = booking.window.intersection_with(day_window)
            if overlap is not None:
                total += overlap.duration_minutes()
        return total

    def earliest_slot(
        self,
        crew_id: UUID,
        duration: timedelta,
        window_start: datetime,
        window_end: datetime,
        working_hours: WorkingHours | None = None,
        max_minutes_per_day: int | None = None,
    ) -> TimeWindow | None:
        """
        Earliest free interval of ``duration`` inside the planning window.

        Args:
            crew_id: Crew member to search
            duration: Required length
            window_start: Planning window start
            window_end: Planning window end
            working_hours: Daily hours the slot must fall inside
            max_minutes_per_day: Cap on booked minutes per calendar day,
                counting the slot itself

        Returns:
            The slot, or None if nothing fits
        """
        for slot in self.free_slots(crew_id, window_start, window_end, working_hours):
            start = slot.start_time
            while start + duration <= slot.end_time:
                candidate = TimeWindow(start, start + duration)
                if max_minutes_per_day is None or self._fits_daily_cap(
                    crew_id, candidate, max_minutes_per_day
                ):
                    return candidate
                # The cap is per calendar day; retry from the next midnight
                start = datetime.combine(start.date() + timedelta(days=1), time.min)
        return None

    def _fits_daily_cap(self, crew_id: UUID, candidate: TimeWindow, cap: int) -> bool:
        for day in candidate.days():
            day_window = TimeWindow(
                datetime.combine(day, time.min),
                datetime.combine(day + timedelta(days=1), time.min),
            )
            overlap = candidate.intersection_with(day_window)
            minutes = overlap.duration_minutes() if overlap else 0
            if self.committed_minutes_on(crew_id, day) + minutes > cap:
                return False
        return True
