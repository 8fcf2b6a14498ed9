"""Tests for the per-crew availability index."""

from datetime import date, timedelta
from uuid import uuid4

from fieldops.domain.scheduling.services.availability_index import AvailabilityIndex
from fieldops.domain.scheduling.value_objects import (
    AvailabilityType,
    TimeWindow,
    WorkingHours,
)
from fieldops.tests.factories import CrewFactory, EventFactory, at


class TestIsAvailable:
    def test_undeclared_member_is_available(self):
        index = AvailabilityIndex()
        assert index.is_available(uuid4(), at(9), at(17))

    def test_booking_blocks_overlap_but_not_adjacent(self):
        crew_id = uuid4()
        index = AvailabilityIndex.build(events=[EventFactory.create_event([crew_id], at(9), at(12))])

        assert not index.is_available(crew_id, at(11), at(13))
        assert index.is_available(crew_id, at(12), at(14))
        assert index.is_available(crew_id, at(7), at(9))

    def test_blackout_blocks(self):
        crew_id = uuid4()
        index = AvailabilityIndex.build(
            availability=[
                CrewFactory.create_window(crew_id, at(0), at(0, day=1), AvailabilityType.BLACKOUT)
            ]
        )
        assert not index.is_available(crew_id, at(10), at(11))
        assert index.is_available(crew_id, at(10, day=1), at(11, day=1))

    def test_declared_available_windows_restrict(self):
        crew_id = uuid4()
        index = AvailabilityIndex.build(
            availability=[CrewFactory.create_window(crew_id, at(8), at(12))]
        )
        assert index.is_available(crew_id, at(9), at(11))
        assert not index.is_available(crew_id, at(11), at(13))
        assert not index.is_available(crew_id, at(9, day=1), at(10, day=1))

    def test_adjacent_available_windows_are_merged(self):
        crew_id = uuid4()
        index = AvailabilityIndex.build(
            availability=[
                CrewFactory.create_window(crew_id, at(8), at(12)),
                CrewFactory.create_window(crew_id, at(12), at(16)),
            ]
        )
        assert index.is_available(crew_id, at(11), at(13))


class TestSlotSearch:
    def test_free_slots_around_bookings(self):
        crew_id = uuid4()
        index = AvailabilityIndex()
        index.add_booking(crew_id, TimeWindow(at(10), at(11)), uuid4())
        index.reserve(crew_id, at(13), at(14))

        slots = index.free_slots(crew_id, at(8), at(17))

        assert slots == [
            TimeWindow(at(8), at(10)),
            TimeWindow(at(11), at(13)),
            TimeWindow(at(14), at(17)),
        ]

    def test_earliest_slot_respects_working_hours(self):
        crew_id = uuid4()
        index = AvailabilityIndex()
        hours = WorkingHours.parse({"start": "08:00", "end": "17:00"})

        slot = index.earliest_slot(crew_id, timedelta(hours=2), at(0), at(0, day=2), hours)

        assert slot == TimeWindow(at(8), at(10))

    def test_earliest_slot_skips_too_short_gaps(self):
        crew_id = uuid4()
        index = AvailabilityIndex()
        index.add_booking(crew_id, TimeWindow(at(9), at(10)), uuid4())

        slot = index.earliest_slot(crew_id, timedelta(hours=2), at(8), at(17))

        assert slot == TimeWindow(at(10), at(12))

    def test_earliest_slot_none_when_nothing_fits(self):
        index = AvailabilityIndex()
        assert index.earliest_slot(uuid4(), timedelta(hours=3), at(8), at(10)) is None

    def test_daily_cap_moves_to_next_day(self):
        crew_id = uuid4()
        index = AvailabilityIndex()
        index.add_booking(crew_id, TimeWindow(at(8), at(14)), uuid4())

        slot = index.earliest_slot(
            crew_id, timedelta(hours=3), at(0), at(0, day=3), max_minutes_per_day=8 * 60
        )

        assert slot == TimeWindow(at(0, day=1), at(3, day=1))

    def test_committed_minutes_include_reservations(self):
        crew_id = uuid4()
        index = AvailabilityIndex()
        index.add_booking(crew_id, TimeWindow(at(8), at(10)), uuid4())
        index.reserve(crew_id, at(23), at(1, day=1))

        assert index.committed_minutes_on(crew_id, date(2030, 1, 7)) == 180
        assert index.committed_minutes_on(crew_id, date(2030, 1, 8)) == 60

    def test_free_slots_exclude_blackouts(self):
        crew_id = uuid4()
        index = AvailabilityIndex.build(
            availability=[
                CrewFactory.create_window(crew_id, at(12), at(13), AvailabilityType.BLACKOUT)
            ]
        )
        assert index.free_slots(crew_id, at(8), at(17)) == [
            TimeWindow(at(8), at(12)),
            TimeWindow(at(13), at(17)),
        ]
