"""Tests for crew double-booking detection."""

import random
from datetime import timedelta
from uuid import uuid4

import pytest

from fieldops.domain.scheduling.services.conflict_detector import ConflictDetector
from fieldops.domain.scheduling.value_objects import AvailabilityType, EventStatus
from fieldops.tests.factories import CrewFactory, EventFactory, at

from .fakes import InMemoryAvailability, InMemoryEvents


@pytest.fixture
def tenant_id():
    return uuid4()


@pytest.fixture
def events():
    return InMemoryEvents()


@pytest.fixture
def availability():
    return InMemoryAvailability()


@pytest.fixture
def detector(events, availability):
    return ConflictDetector(events, availability)


class TestFindConflicts:
    def test_overlap_on_shared_crew(self, detector, events, tenant_id):
        crew_id = uuid4()
        existing = events.add(
            EventFactory.create_event([crew_id], at(9), at(12), tenant_id=tenant_id)
        )

        conflicts = detector.find_conflicts(tenant_id, [crew_id], at(11), at(13))

        assert [e.id for e in conflicts] == [existing.id]

    def test_back_to_back_is_not_a_conflict(self, detector, events, tenant_id):
        crew_id = uuid4()
        events.add(EventFactory.create_event([crew_id], at(9), at(12), tenant_id=tenant_id))

        assert detector.find_conflicts(tenant_id, [crew_id], at(12), at(14)) == []

    def test_different_crew_no_conflict(self, detector, events, tenant_id):
        events.add(EventFactory.create_event([uuid4()], at(9), at(12), tenant_id=tenant_id))
        assert detector.find_conflicts(tenant_id, [uuid4()], at(9), at(12)) == []

    @pytest.mark.parametrize("status", [EventStatus.COMPLETED, EventStatus.CANCELLED])
    def test_inactive_events_hold_no_crew_time(self, detector, events, tenant_id, status):
        crew_id = uuid4()
        events.add(
            EventFactory.create_event([crew_id], at(9), at(12), status=status, tenant_id=tenant_id)
        )
        assert detector.find_conflicts(tenant_id, [crew_id], at(10), at(11)) == []

    def test_excluded_event_is_ignored(self, detector, events, tenant_id):
        crew_id = uuid4()
        existing = events.add(
            EventFactory.create_event([crew_id], at(9), at(12), tenant_id=tenant_id)
        )
        assert (
            detector.find_conflicts(
                tenant_id, [crew_id], at(10), at(13), exclude_event_id=existing.id
            )
            == []
        )

    def test_other_tenant_is_invisible(self, detector, events, tenant_id):
        crew_id = uuid4()
        events.add(EventFactory.create_event([crew_id], at(9), at(12)))
        assert detector.find_conflicts(tenant_id, [crew_id], at(9), at(12)) == []

    def test_empty_window_conflicts_with_nothing(self, detector, events, tenant_id):
        crew_id = uuid4()
        events.add(EventFactory.create_event([crew_id], at(9), at(12), tenant_id=tenant_id))
        assert detector.find_conflicts(tenant_id, [crew_id], at(10), at(10)) == []


class TestUnavailableCrew:
    def test_blackout_makes_member_unavailable(self, detector, availability, tenant_id):
        crew_id, other_id = uuid4(), uuid4()
        availability.windows.append(
            CrewFactory.create_window(
                crew_id, at(8), at(18), AvailabilityType.BLACKOUT, tenant_id=tenant_id
            )
        )

        assert detector.unavailable_crew(tenant_id, [crew_id, other_id], at(9), at(10)) == [
            crew_id
        ]

    def test_outside_declared_availability(self, detector, availability, tenant_id):
        crew_id = uuid4()
        # Declared only for the next day; the far window still changes the default
        availability.windows.append(
            CrewFactory.create_window(crew_id, at(8, day=1), at(17, day=1), tenant_id=tenant_id)
        )

        assert detector.unavailable_crew(tenant_id, [crew_id], at(9), at(10)) == [crew_id]
        assert detector.unavailable_crew(tenant_id, [crew_id], at(9, day=1), at(10, day=1)) == []


class TestFindAllConflicts:
    def test_containment_and_chains_are_reported(self, detector, events, tenant_id):
        crew_id = uuid4()
        outer = events.add(EventFactory.create_event([crew_id], at(8), at(17), tenant_id=tenant_id))
        inner = events.add(EventFactory.create_event([crew_id], at(9), at(10), tenant_id=tenant_id))
        late = events.add(EventFactory.create_event([crew_id], at(16), at(18), tenant_id=tenant_id))

        pairs = detector.find_all_conflicts(tenant_id, at(0))

        found = {(p.first.id, p.second.id) for p in pairs}
        assert found == {(outer.id, inner.id), (outer.id, late.id)}
        assert pairs[0].to_dict()["conflicting_crew_ids"] == [str(crew_id)]

    def test_ended_events_are_not_swept(self, detector, events, tenant_id):
        crew_id = uuid4()
        events.add(EventFactory.create_event([crew_id], at(8), at(10), tenant_id=tenant_id))
        events.add(EventFactory.create_event([crew_id], at(9), at(11), tenant_id=tenant_id))
        assert detector.find_all_conflicts(tenant_id, at(12)) == []

    def test_sweep_matches_pairwise_check(self, detector, events, tenant_id):
        """Property: the sweep finds exactly the overlapping same-crew pairs."""
        rng = random.Random(20300107)
        crew = [uuid4() for _ in range(4)]
        for _ in range(40):
            start = at(6) + timedelta(minutes=15 * rng.randint(0, 60))
            end = start + timedelta(minutes=15 * rng.randint(1, 16))
            events.add(
                EventFactory.create_event(
                    rng.sample(crew, rng.randint(1, 2)), start, end, tenant_id=tenant_id
                )
            )

        swept = {frozenset((p.first.id, p.second.id)) for p in detector.find_all_conflicts(tenant_id, at(0))}
        expected = {
            frozenset((a.id, b.id))
            for i, a in enumerate(events.events)
            for b in events.events[i + 1 :]
            if set(a.assigned_crew_ids) & set(b.assigned_crew_ids)
            and a.window.overlaps_with(b.window)
        }
        assert swept == expected
