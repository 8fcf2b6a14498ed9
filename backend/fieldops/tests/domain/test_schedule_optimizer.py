"""Tests for the greedy schedule optimizer."""

import random
import threading
from uuid import UUID

import pytest

from fieldops.domain.scheduling.services.availability_index import AvailabilityIndex
from fieldops.domain.scheduling.services.schedule_optimizer import (
    ScheduleOptimizer,
    UnassignableReason,
    is_qualified,
    priority_order,
)
from fieldops.domain.scheduling.value_objects import AvailabilityType, PriorityLevel
from fieldops.tests.factories import CrewFactory, EventFactory, JobFactory, at

WORKDAY = {"start": "08:00", "end": "17:00"}


def crew_with_ids(*skill_sets):
    """Crew members whose ids sort in argument order."""
    return [
        CrewFactory.create_member(
            member_id=UUID(int=i + 1), skills=skills, working_hours=WORKDAY
        )
        for i, skills in enumerate(skill_sets)
    ]


@pytest.fixture
def optimizer():
    return ScheduleOptimizer()


class TestQualification:
    def test_skill_subset(self):
        member = CrewFactory.create_member(skills=["glazing", "install"])
        assert is_qualified(member, JobFactory.create_job(required_skills=["glazing"]))
        assert is_qualified(member, JobFactory.create_job(required_skills=[]))
        assert not is_qualified(member, JobFactory.create_job(required_skills=["electrical"]))

    def test_priority_order(self):
        low = JobFactory.create_job(priority=PriorityLevel.LOW)
        emergency = JobFactory.create_job(priority=PriorityLevel.EMERGENCY)
        early_normal = JobFactory.create_job(created_at=at(0, day=-10))
        late_normal = JobFactory.create_job(created_at=at(0, day=-5))

        ordered = priority_order([low, late_normal, early_normal, emergency])

        assert ordered == [emergency, early_normal, late_normal, low]


class TestOptimize:
    def test_assigns_to_qualified_crew_only(self, optimizer):
        delivery, glazier = crew_with_ids(["delivery"], ["glazing", "install"])
        job = JobFactory.create_job(required_skills=["glazing"])

        result = optimizer.optimize([job], [delivery, glazier], AvailabilityIndex(), at(0), at(0, day=1))

        assert len(result.assignments) == 1
        assignment = result.assignments[0]
        assert assignment.crew_member_id == glazier.id
        assert (assignment.start, assignment.end) == (at(8), at(9))

    def test_no_qualified_crew(self, optimizer):
        (member,) = crew_with_ids(["delivery"])
        job = JobFactory.create_job(required_skills=["glazing"])

        result = optimizer.optimize([job], [member], AvailabilityIndex(), at(0), at(0, day=1))

        assert result.assignments == []
        assert result.reason_for(job.id) == UnassignableReason.NO_QUALIFIED_CREW

    def test_inactive_crew_is_ignored(self, optimizer):
        member = CrewFactory.create_member(skills=["glazing"], is_active=False)
        job = JobFactory.create_job(required_skills=["glazing"])

        result = optimizer.optimize([job], [member], AvailabilityIndex(), at(0), at(0, day=1))

        assert result.reason_for(job.id) == UnassignableReason.NO_QUALIFIED_CREW

    def test_blocked_jobs_wait_for_dependencies(self, optimizer):
        (member,) = crew_with_ids([])
        job = JobFactory.create_job()

        result = optimizer.optimize(
            [job], [member], AvailabilityIndex(), at(0), at(0, day=1), blocked_job_ids=[job.id]
        )

        assert result.reason_for(job.id) == UnassignableReason.DEPENDENCIES_PENDING

    def test_no_slot_in_window(self, optimizer):
        (member,) = crew_with_ids([])
        job = JobFactory.create_job(duration_minutes=240)

        result = optimizer.optimize([job], [member], AvailabilityIndex(), at(8), at(10))

        assert result.reason_for(job.id) == UnassignableReason.NO_AVAILABLE_SLOT

    def test_existing_bookings_and_blackouts_are_respected(self, optimizer):
        (member,) = crew_with_ids([])
        index = AvailabilityIndex.build(
            events=[EventFactory.create_event([member.id], at(8), at(10))],
            availability=[
                CrewFactory.create_window(member.id, at(10), at(12), AvailabilityType.BLACKOUT)
            ],
        )
        job = JobFactory.create_job(duration_minutes=120)

        result = optimizer.optimize([job], [member], index, at(0), at(0, day=1))

        assert (result.assignments[0].start, result.assignments[0].end) == (at(12), at(14))

    def test_later_jobs_see_earlier_proposals(self, optimizer):
        (member,) = crew_with_ids([])
        urgent = JobFactory.create_job(priority=PriorityLevel.URGENT, duration_minutes=120)
        normal = JobFactory.create_job(duration_minutes=120)

        result = optimizer.optimize([normal, urgent], [member], AvailabilityIndex(), at(0), at(0, day=1))

        by_job = {a.job_id: a for a in result.assignments}
        assert (by_job[urgent.id].start, by_job[urgent.id].end) == (at(8), at(10))
        assert (by_job[normal.id].start, by_job[normal.id].end) == (at(10), at(12))

    def test_first_crew_by_id_wins_ties(self, optimizer):
        first, second = crew_with_ids(["install"], ["install"])
        job = JobFactory.create_job(required_skills=["install"])

        result = optimizer.optimize([job], [second, first], AvailabilityIndex(), at(0), at(0, day=1))

        assert result.assignments[0].crew_member_id == first.id

    def test_daily_hours_cap(self, optimizer):
        member = CrewFactory.create_member(max_hours_per_day=2)
        jobs = [JobFactory.create_job(duration_minutes=120) for _ in range(2)]

        result = optimizer.optimize(jobs, [member], AvailabilityIndex(), at(0), at(0, day=2))

        days = sorted(a.start.date() for a in result.assignments)
        assert len(days) == 2 and days[0] != days[1]

    def test_deterministic(self):
        crew = crew_with_ids(["a"], ["a", "b"], ["b"])
        jobs = [
            JobFactory.create_job(required_skills=skills, duration_minutes=90)
            for skills in (["a"], ["b"], ["a", "b"], [], ["a"])
        ]
        runs = [
            ScheduleOptimizer().optimize(jobs, crew, AvailabilityIndex(), at(0), at(0, day=2))
            for _ in range(2)
        ]
        assert runs[0].assignments == runs[1].assignments

    def test_cancel_signal_stops_between_jobs(self, optimizer):
        (member,) = crew_with_ids([])
        cancel = threading.Event()
        cancel.set()

        result = optimizer.optimize(
            [JobFactory.create_job()], [member], AvailabilityIndex(), at(0), at(0, day=1),
            cancel_event=cancel,
        )

        assert result.cancelled
        assert result.assignments == []
        assert result.jobs_considered == 0

    def test_time_budget_stops_run(self):
        ticks = iter(range(100))
        optimizer = ScheduleOptimizer(clock=lambda: float(next(ticks)))
        (member,) = crew_with_ids([])
        jobs = [JobFactory.create_job() for _ in range(5)]

        result = optimizer.optimize(
            jobs, [member], AvailabilityIndex(), at(0), at(0, day=1), time_budget_seconds=2.5
        )

        assert result.cancelled
        assert 0 < result.jobs_considered < len(jobs)


def test_unqualified_jobs_never_assigned():
    """Property: a job no active member is qualified for is always reported unassignable."""
    rng = random.Random(7)
    skills = ["delivery", "glazing", "install", "electrical", "plumbing"]
    for _ in range(25):
        crew = [
            CrewFactory.create_member(
                skills=rng.sample(skills, rng.randint(0, 3)), is_active=rng.random() > 0.2
            )
            for _ in range(rng.randint(1, 4))
        ]
        jobs = [
            JobFactory.create_job(
                required_skills=rng.sample(skills, rng.randint(0, 2)),
                duration_minutes=rng.choice([30, 60, 120]),
            )
            for _ in range(rng.randint(1, 6))
        ]

        result = ScheduleOptimizer().optimize(
            jobs, crew, AvailabilityIndex(), at(0), at(0, day=3)
        )

        active = [c for c in crew if c.is_active]
        assigned = {a.job_id: a.crew_member_id for a in result.assignments}
        members = {c.id: c for c in crew}
        for job in jobs:
            if not any(is_qualified(c, job) for c in active):
                assert job.id not in assigned
                assert result.reason_for(job.id) == UnassignableReason.NO_QUALIFIED_CREW
            elif job.id in assigned:
                assert is_qualified(members[assigned[job.id]], job)
                assert members[assigned[job.id]].is_active
