"""Tests for job and schedule event status transitions."""

import itertools

import pytest

from fieldops.domain.scheduling.services.status_machine import (
    EVENT_TRANSITIONS,
    JOB_TRANSITIONS,
    StatusMachine,
    can_transition_event,
    can_transition_job,
)
from fieldops.domain.scheduling.value_objects import EventStatus, JobStatus
from fieldops.domain.shared.exceptions import InvalidTransitionError
from fieldops.tests.factories import EventFactory, JobFactory, at

from .fakes import InMemoryStatusLogs


@pytest.fixture
def logs():
    return InMemoryStatusLogs(), InMemoryStatusLogs()


@pytest.fixture
def machine(logs):
    job_logs, event_logs = logs
    return StatusMachine(job_logs, event_logs)


class TestJobTransitions:
    @pytest.mark.parametrize(
        "current, new",
        [
            (JobStatus.PLANNED, JobStatus.SCHEDULED),
            (JobStatus.SCHEDULED, JobStatus.IN_PROGRESS),
            (JobStatus.IN_PROGRESS, JobStatus.COMPLETED),
            (JobStatus.IN_PROGRESS, JobStatus.ON_HOLD),
            (JobStatus.ON_HOLD, JobStatus.PLANNED),
            (JobStatus.ON_HOLD, JobStatus.IN_PROGRESS),
            (JobStatus.PLANNED, JobStatus.CANCELLED),
        ],
    )
    def test_allowed(self, current, new):
        assert can_transition_job(current, new)

    @pytest.mark.parametrize(
        "current, new",
        [
            (JobStatus.PLANNED, JobStatus.COMPLETED),
            (JobStatus.PLANNED, JobStatus.IN_PROGRESS),
            (JobStatus.SCHEDULED, JobStatus.PLANNED),
            (JobStatus.ON_HOLD, JobStatus.COMPLETED),
        ],
    )
    def test_forbidden(self, current, new):
        assert not can_transition_job(current, new)

    def test_terminal_states_have_no_exit(self):
        for terminal, target in itertools.product(
            [JobStatus.COMPLETED, JobStatus.CANCELLED], list(JobStatus)
        ):
            assert not can_transition_job(terminal, target)

    def test_every_status_has_a_rule(self):
        assert set(JOB_TRANSITIONS) == set(JobStatus)
        assert set(EVENT_TRANSITIONS) == set(EventStatus)

    def test_transition_appends_one_history_row(self, machine, logs):
        job_logs, _ = logs
        job = JobFactory.create_job(status=JobStatus.SCHEDULED)

        entry = machine.transition(job, JobStatus.IN_PROGRESS, "dispatcher", reason="Crew on site")

        assert job.status == JobStatus.IN_PROGRESS
        assert job_logs.entries == [entry]
        assert entry.previous_status == JobStatus.SCHEDULED
        assert entry.new_status == JobStatus.IN_PROGRESS
        assert entry.changed_by == "dispatcher"
        assert entry.reason == "Crew on site"

    def test_rejected_transition_changes_nothing(self, machine, logs):
        job_logs, _ = logs
        job = JobFactory.create_job(status=JobStatus.PLANNED)

        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.transition(job, JobStatus.COMPLETED, "dispatcher")

        assert job.status == JobStatus.PLANNED
        assert job_logs.entries == []
        assert exc_info.value.current_status == "planned"
        assert exc_info.value.attempted_status == "completed"

    def test_record_job_created(self, machine, logs):
        job_logs, _ = logs
        job = JobFactory.create_job()
        entry = machine.record_job_created(job, "dispatcher")
        assert entry.previous_status is None
        assert entry.new_status == JobStatus.PLANNED
        assert len(job_logs.entries) == 1


class TestEventTransitions:
    def test_planned_event_can_start_directly(self):
        assert can_transition_event(EventStatus.PLANNED, EventStatus.IN_PROGRESS)

    def test_completed_needs_in_progress(self):
        assert not can_transition_event(EventStatus.CONFIRMED, EventStatus.COMPLETED)
        assert can_transition_event(EventStatus.IN_PROGRESS, EventStatus.COMPLETED)

    def test_transition_event_records_history(self, machine, logs):
        _, event_logs = logs
        event = EventFactory.create_event([], at(9), at(10))

        machine.transition_event(event, EventStatus.CONFIRMED, "dispatcher")

        assert event.status == EventStatus.CONFIRMED
        assert [e.new_status for e in event_logs.entries] == [EventStatus.CONFIRMED]

    def test_cancelled_event_is_final(self, machine):
        event = EventFactory.create_event([], at(9), at(10), status=EventStatus.CANCELLED)
        with pytest.raises(InvalidTransitionError):
            machine.transition_event(event, EventStatus.PLANNED, "dispatcher")
