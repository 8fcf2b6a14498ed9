"""
Status Machine

Validates and records job and schedule event status transitions. A
successful transition mutates the entity and appends exactly one history row
inside the caller's transaction; a rejected one changes nothing.
"""

from fieldops.core.observability import get_logger, record_status_transition
from fieldops.domain.scheduling.repositories import (
    EventStatusLogRepository,
    JobStatusLogRepository,
)
from fieldops.domain.scheduling.value_objects import EventStatus, JobStatus
from fieldops.domain.shared.base import DomainService, utcnow
from fieldops.domain.shared.exceptions import InvalidTransitionError
from fieldops.models import EventStatusLog, Job, JobStatusLog, ScheduleEvent

logger = get_logger(__name__)

_JOB_INTERRUPTIONS = {JobStatus.ON_HOLD, JobStatus.CANCELLED}

JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PLANNED: frozenset({JobStatus.SCHEDULED} | _JOB_INTERRUPTIONS),
    JobStatus.SCHEDULED: frozenset({JobStatus.IN_PROGRESS} | _JOB_INTERRUPTIONS),
    JobStatus.IN_PROGRESS: frozenset({JobStatus.COMPLETED} | _JOB_INTERRUPTIONS),
    JobStatus.ON_HOLD: frozenset(
        {
            JobStatus.PLANNED,
            JobStatus.SCHEDULED,
            JobStatus.IN_PROGRESS,
            JobStatus.CANCELLED,
        }
    ),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}

EVENT_TRANSITIONS: dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.PLANNED: frozenset(
        {EventStatus.CONFIRMED, EventStatus.IN_PROGRESS, EventStatus.CANCELLED}
    ),
    EventStatus.CONFIRMED: frozenset({EventStatus.IN_PROGRESS, EventStatus.CANCELLED}),
    EventStatus.IN_PROGRESS: frozenset({EventStatus.COMPLETED, EventStatus.CANCELLED}),
    EventStatus.COMPLETED: frozenset(),
    EventStatus.CANCELLED: frozenset(),
}


def can_transition_job(current: JobStatus, new: JobStatus) -> bool:
    return new in JOB_TRANSITIONS[current]


def can_transition_event(current: EventStatus, new: EventStatus) -> bool:
    return new in EVENT_TRANSITIONS[current]


class StatusMachine(DomainService):
    """
    Records status transitions for jobs and schedule events.

    The caller loads the entity (under a row lock for jobs) and owns the
    transaction; this service never commits.
    """

    def __init__(
        self,
        job_logs: JobStatusLogRepository,
        event_logs: EventStatusLogRepository,
    ) -> None:
        self._job_logs = job_logs
        self._event_logs = event_logs

    def record_job_created(self, job: Job, actor: str, reason: str = "Job created") -> JobStatusLog:
        """Write the initial history row for a new job."""
        entry = JobStatusLog(
            tenant_id=job.tenant_id,
            job_id=job.id,
            previous_status=None,
            new_status=job.status,
            reason=reason,
            changed_by=actor,
            changed_at=utcnow(),
        )
        record_status_transition("job", None, job.status.value)
        return self._job_logs.add(entry)

    def transition(
        self,
        job: Job,
        new_status: JobStatus,
        actor: str,
        reason: str | None = None,
        notes: str | None = None,
    ) -> JobStatusLog:
        """
        Move a job to ``new_status``.

        Args:
            job: Job loaded for update in the current transaction
            new_status: Target status
            actor: User or subsystem performing the change
            reason: Short reason stored in the history row
            notes: Free-form notes stored in the history row

        Returns:
            The appended history row

        Raises:
            InvalidTransitionError: If ``new_status`` is not reachable from the
                job's current status
        """
        previous = job.status
        if not can_transition_job(previous, new_status):
            raise InvalidTransitionError("job", job.id, previous.value, new_status.value)

        job.status = new_status
        entry = JobStatusLog(
            tenant_id=job.tenant_id,
            job_id=job.id,
            previous_status=previous,
            new_status=new_status,
            reason=reason,
            notes=notes,
            changed_by=actor,
            changed_at=utcnow(),
        )
        self._job_logs.add(entry)

        record_status_transition("job", previous.value, new_status.value)
        logger.info(
            "Job status changed",
            job_id=str(job.id),
            previous_status=previous.value,
            new_status=new_status.value,
            changed_by=actor,
        )
        return entry

    def record_event_created(self, event: ScheduleEvent, actor: str) -> EventStatusLog:
        entry = EventStatusLog(
            tenant_id=event.tenant_id,
            event_id=event.id,
            job_id=event.job_id,
            previous_status=None,
            new_status=event.status,
            reason="Schedule event created",
            changed_by=actor,
            changed_at=utcnow(),
        )
        record_status_transition("event", None, event.status.value)
        return self._event_logs.add(entry)

    def transition_event(
        self,
        event: ScheduleEvent,
        new_status: EventStatus,
        actor: str,
        reason: str | None = None,
        notes: str | None = None,
    ) -> EventStatusLog:
        """Move a schedule event to ``new_status``; same contract as ``transition``."""
        previous = event.status
        if not can_transition_event(previous, new_status):
            raise InvalidTransitionError(
                "event", event.id, previous.value, new_status.value
            )

        event.status = new_status
        entry = EventStatusLog(
            tenant_id=event.tenant_id,
            event_id=event.id,
            job_id=event.job_id,
            previous_status=previous,
            new_status=new_status,
            reason=reason,
            notes=notes,
            changed_by=actor,
            changed_at=utcnow(),
        )
        self._event_logs.add(entry)

        record_status_transition("event", previous.value, new_status.value)
        logger.info(
            "Schedule event status changed",
            event_id=str(event.id),
            job_id=str(event.job_id),
            previous_status=previous.value,
            new_status=new_status.value,
            changed_by=actor,
        )
        return entry
