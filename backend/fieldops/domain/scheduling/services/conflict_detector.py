"""
Conflict Detector

Finds double-bookings of crew members. Two events conflict iff they share at
least one crew member and their windows overlap under the half-open rule
``a.start < b.end and b.start < a.end``. Only planned, confirmed and in
progress events hold crew time.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from fieldops.domain.scheduling.repositories import (
    CrewAvailabilityRepository,
    ScheduleEventRepository,
)
from fieldops.domain.scheduling.value_objects import TimeWindow
from fieldops.domain.shared.base import DomainService
from fieldops.models import ScheduleEvent

from .availability_index import AvailabilityIndex


@dataclass(frozen=True)
class ConflictPair:
    """Two active events that double-book at least one crew member."""

    first: ScheduleEvent
    second: ScheduleEvent
    shared_crew_ids: tuple[UUID, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "crew_double_booking",
            "events": [self.first.summary(), self.second.summary()],
            "conflicting_crew_ids": [str(c) for c in self.shared_crew_ids],
        }


class ConflictDetector(DomainService):
    """Crew double-booking and availability checks against persisted state."""

    def __init__(
        self,
        events: ScheduleEventRepository,
        availability: CrewAvailabilityRepository,
    ) -> None:
        self._events = events
        self._availability = availability

    def find_conflicts(
        self,
        tenant_id: UUID,
        crew_ids: Iterable[UUID],
        start: datetime,
        end: datetime,
        exclude_event_id: UUID | None = None,
    ) -> list[ScheduleEvent]:
        """
        Active events that would be double-booked by ``[start, end)``.

        Args:
            tenant_id: Owning tenant
            crew_ids: Crew members of the proposed event
            start: Proposed start
            end: Proposed end
            exclude_event_id: The event being updated, if any

        Returns:
            Conflicting events ordered by start time; empty for a zero-length window
        """
        crew = set(crew_ids)
        if not crew or end <= start:
            return []

        window = TimeWindow(start, end)
        candidates = self._events.list_active_for_crew(
            tenant_id, crew, start, end, exclude_event_id=exclude_event_id
        )
        return [
            event
            for event in candidates
            if event.id != exclude_event_id
            and event.status.is_active
            and crew.intersection(event.assigned_crew_ids)
            and event.window.overlaps_with(window)
        ]

    def unavailable_crew(
        self,
        tenant_id: UUID,
        crew_ids: Iterable[UUID],
        start: datetime,
        end: datetime,
    ) -> list[UUID]:
        """Crew members whose declared availability excludes ``[start, end)``."""
        crew = sorted(set(crew_ids))
        if not crew or end <= start:
            return []

        # Load every declared window: having any "available" window at all
        # changes the default for the crew member
        index = AvailabilityIndex.build(
            availability=self._availability.list_for_crew(tenant_id, crew)
        )
        return [c for c in crew if not index.is_available(c, start, end)]

    def find_all_conflicts(self, tenant_id: UUID, since: datetime) -> list[ConflictPair]:
        """
        Sweep every active event not yet ended by ``since`` for double-bookings.

        Events are visited in start order; for each crew member the sweep keeps
        the events still running at the current start, so containment and
        chained overlaps are all reported.
        """
        events = sorted(
            (e for e in self._events.list_active_since(tenant_id, since) if e.start_time < e.end_time),
            key=lambda e: (e.start_time, e.end_time, str(e.id)),
        )

        running: dict[UUID, list[ScheduleEvent]] = defaultdict(list)
        shared: dict[tuple[UUID, UUID], set[UUID]] = defaultdict(set)
        pairs: dict[tuple[UUID, UUID], tuple[ScheduleEvent, ScheduleEvent]] = {}

        for event in events:
            for crew_id in event.assigned_crew_ids:
                still_running = [e for e in running[crew_id] if e.end_time > event.start_time]
                for earlier in still_running:
                    key = (earlier.id, event.id)
                    pairs[key] = (earlier, event)
                    shared[key].add(crew_id)
                still_running.append(event)
                running[crew_id] = still_running

        return [
            ConflictPair(first, second, tuple(sorted(shared[key], key=str)))
            for key, (first, second) in pairs.items()
        ]
