"""
Job orchestration service coordinating every scheduling use case.

Each public operation opens a unit of work, loads state through the
repositories (row-locking where a decision depends on current state), runs
the domain checks, persists the mutation together with its status history and
commits. Domain events recorded along the way reach the automation engine
only after the commit.
"""

import threading
from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from uuid import UUID, uuid4

import pydantic

from fieldops.core.config import settings
from fieldops.core.locks import crew_locks, dependency_graph_locks, job_number_locks
from fieldops.core.observability import (
    CONFLICTS_DETECTED,
    get_logger,
    monitor_performance,
    trace_operation,
)
from fieldops.domain.scheduling.gateways import NotificationGateway, Quote, QuoteGateway
from fieldops.domain.scheduling.repositories import JobFilters
from fieldops.domain.scheduling.services.availability_index import AvailabilityIndex
from fieldops.domain.scheduling.services.conflict_detector import ConflictDetector
from fieldops.domain.scheduling.services.dependency_graph import DependencyGraph
from fieldops.domain.scheduling.services.schedule_optimizer import ScheduleOptimizer
from fieldops.domain.scheduling.value_objects import (
    DeliveryStatus,
    JobStatus,
    TaskStatus,
    TimeWindow,
    TriggerType,
    to_naive_utc,
)
from fieldops.domain.shared.base import DomainEvent, utcnow
from fieldops.domain.shared.exceptions import (
    CrewMemberNotFoundError,
    DependencyNotFoundError,
    DependencyNotSatisfiedError,
    DomainError,
    EventNotFoundError,
    JobClosedError,
    JobInUseError,
    JobNotFoundError,
    QuoteNotFoundError,
    SchedulingConflictError,
    ServiceWindowNotFoundError,
    TaskNotFoundError,
    TimeEntryNotFoundError,
    TriggerNotFoundError,
    ValidationError,
)
from fieldops.domain.shared.unit_of_work import AbstractUnitOfWork
from fieldops.models import (
    AutomationTrigger,
    AutomationTriggerCreate,
    AutomationTriggerUpdate,
    CrewAvailability,
    CrewAvailabilityCreate,
    CrewMember,
    CrewMemberCreate,
    CrewMemberPublic,
    CrewMemberUpdate,
    EventStatusLog,
    ExternalEventIn,
    Job,
    JobCreate,
    JobDependency,
    JobDependencyCreate,
    JobFromQuote,
    JobMessage,
    JobMessageCreate,
    JobPublic,
    JobsPublic,
    JobStatusLog,
    JobStatusUpdate,
    JobTask,
    JobTaskCreate,
    JobTaskUpdate,
    JobUpdate,
    ScheduleEvent,
    ScheduleEventCreate,
    ScheduleEventPublic,
    ScheduleEventUpdate,
    ServiceWindow,
    ServiceWindowCreate,
    ServiceWindowUpdate,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from fieldops.models.automation import check_action_config
from fieldops.models.service_window import check_window_bounds

from ..dtos import (
    CommitResultOut,
    CompletionReport,
    CrewUtilization,
    ExternalEventAccepted,
    OptimizeRequest,
    OptimizeResponse,
    ProposedAssignmentOut,
    ScheduleOverview,
    UnassignableJobOut,
    UtilizationReport,
)
from .job_events import change_job_status, emit, job_context, status_machine

logger = get_logger(__name__)

# Fields an update may leave out but never clear
_REQUIRED_JOB_FIELDS = frozenset(
    {
        "customer_id",
        "title",
        "priority",
        "estimated_duration_minutes",
        "required_skills",
        "required_equipment",
        "completion_percentage",
    }
)
_REQUIRED_EVENT_FIELDS = frozenset(
    {
        "start_time",
        "end_time",
        "all_day",
        "assigned_crew_ids",
        "travel_time_minutes",
        "buffer_time_minutes",
    }
)
_REQUIRED_TASK_FIELDS = frozenset(
    {"title", "status", "sort_order", "required_skills", "assigned_crew_ids"}
)
_REQUIRED_CREW_FIELDS = frozenset(
    {"name", "skills", "max_hours_per_day", "max_hours_per_week", "is_active"}
)
_REQUIRED_ENTRY_FIELDS = frozenset(
    {"start_time", "break_minutes", "travel_minutes", "billable"}
)
_REQUIRED_TRIGGER_FIELDS = frozenset({"name", "action_type", "action_config", "is_active"})
_REQUIRED_WINDOW_FIELDS = frozenset(
    {
        "title",
        "start_time",
        "end_time",
        "timezone",
        "exclude_dates",
        "contact_required",
        "is_active",
    }
)


def _changes(model: pydantic.BaseModel, required: frozenset[str], **dump: Any) -> dict[str, Any]:
    """Fields explicitly set on an update model, minus nulls for required fields."""
    return {
        k: v
        for k, v in model.model_dump(exclude_unset=True, **dump).items()
        if v is not None or k not in required
    }


def _event_context(event: ScheduleEvent) -> dict[str, Any]:
    return {
        "id": str(event.id),
        "start_time": event.start_time.isoformat(),
        "end_time": event.end_time.isoformat(),
        "status": event.status.value,
        "assigned_crew_ids": [str(c) for c in event.assigned_crew_ids],
    }


class JobOrchestrator:
    """
    Application service for job scheduling use cases.

    Args:
        uow_factory: Creates a unit of work per operation
        quotes: Source of accepted quotes for job conversion
        notifications: Delivery channel for customer messages
        optimizer: Slot assignment heuristic
        clock: Current naive UTC time
    """

    def __init__(
        self,
        uow_factory: Callable[[], AbstractUnitOfWork],
        quotes: QuoteGateway,
        notifications: NotificationGateway,
        optimizer: ScheduleOptimizer | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._quotes = quotes
        self._notifications = notifications
        self._optimizer = optimizer or ScheduleOptimizer()
        self._clock = clock

    # Lookups
    @staticmethod
    def _job(
        uow: AbstractUnitOfWork, tenant_id: UUID, job_id: UUID, for_update: bool = False
    ) -> Job:
        job = (
            uow.jobs.get_for_update(tenant_id, job_id)
            if for_update
            else uow.jobs.get(tenant_id, job_id)
        )
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    @staticmethod
    def _crew_member(uow: AbstractUnitOfWork, tenant_id: UUID, crew_member_id: UUID) -> CrewMember:
        member = uow.crew.get(tenant_id, crew_member_id)
        if member is None:
            raise CrewMemberNotFoundError(crew_member_id)
        return member

    # Jobs
    def _next_job_number(self, uow: AbstractUnitOfWork, tenant_id: UUID) -> str:
        prefix = f"JOB-{self._clock().year}-"
        last = uow.jobs.last_job_number(tenant_id, prefix)
        sequence = int(last.rsplit("-", 1)[1]) + 1 if last else 1
        return f"{prefix}{sequence:04d}"

    def _insert_job(
        self,
        uow: AbstractUnitOfWork,
        tenant_id: UUID,
        data: JobCreate,
        actor: str,
        source_quote_id: UUID | None = None,
        reason: str = "Job created",
    ) -> Job:
        job = Job.model_validate(
            data,
            update={
                "tenant_id": tenant_id,
                "job_number": self._next_job_number(uow, tenant_id),
                "source_quote_id": source_quote_id,
                "created_by": actor,
            },
        )
        uow.jobs.add(job)
        status_machine(uow).record_job_created(job, actor, reason)
        emit(uow, job, TriggerType.JOB_CREATED, created_by=actor)
        return job

    @monitor_performance("create_job")
    def create_job(self, tenant_id: UUID, data: JobCreate, actor: str) -> Job:
        """
        Create a job in PLANNED status with the next job number of the year.

        The per-tenant sequence lock is held until the insert has committed.
        """
        with job_number_locks.hold([tenant_id]), self._uow_factory() as uow:
            job = self._insert_job(uow, tenant_id, data, actor)

        logger.info("Job created", job_id=str(job.id), job_number=job.job_number)
        return job

    @monitor_performance("create_job_from_quote")
    def create_job_from_quote(
        self, tenant_id: UUID, quote_id: UUID, overrides: JobFromQuote, actor: str
    ) -> Job:
        """
        Convert an accepted quote into a job with one task per line item.

        Raises:
            QuoteNotFoundError: If the quote is missing or not accepted
        """
        quote = self._quotes.get_accepted_quote(tenant_id, quote_id)
        if quote is None:
            raise QuoteNotFoundError(quote_id)

        data = self._job_from_quote(quote, overrides)
        with job_number_locks.hold([tenant_id]), self._uow_factory() as uow:
            job = self._insert_job(
                uow,
                tenant_id,
                data,
                actor,
                source_quote_id=quote.id,
                reason=f"Job created from quote {quote.quote_number}",
            )
            for index, item in enumerate(quote.line_items):
                uow.tasks.add(
                    JobTask(
                        tenant_id=tenant_id,
                        job_id=job.id,
                        title=(item.description or f"Line item {index + 1}")[:200],
                        description=f"Quantity: {item.quantity} @ ${item.unit_price} each",
                        estimated_minutes=settings.DEFAULT_TASK_MINUTES,
                        sort_order=index,
                        source_line_item_id=item.id,
                    )
                )

        logger.info(
            "Job created from quote",
            job_id=str(job.id),
            quote_id=str(quote.id),
            tasks=len(quote.line_items),
        )
        return job

    @staticmethod
    def _job_from_quote(quote: Quote, overrides: JobFromQuote) -> JobCreate:
        try:
            return JobCreate.model_validate(
                {
                    "customer_id": quote.customer_id,
                    "title": overrides.title or f"Job for Quote {quote.quote_number}",
                    "description": overrides.description or quote.notes,
                    "address": overrides.address or quote.address,
                    "priority": overrides.priority,
                    "estimated_duration_minutes": overrides.estimated_duration_minutes,
                    "required_skills": overrides.required_skills,
                    "required_equipment": overrides.required_equipment,
                    "notes": overrides.notes,
                }
            )
        except pydantic.ValidationError as e:
            raise ValidationError("quote_id", quote.id, str(e)) from e

    def get_job(self, tenant_id: UUID, job_id: UUID) -> Job:
        with self._uow_factory() as uow:
            return self._job(uow, tenant_id, job_id)

    def list_jobs(
        self, tenant_id: UUID, filters: JobFilters, page: int = 1, limit: int = 20
    ) -> JobsPublic:
        with self._uow_factory() as uow:
            items, total = uow.jobs.search(tenant_id, filters, (page - 1) * limit, limit)
        return JobsPublic.paginate(
            [JobPublic.model_validate(j) for j in items], total, page, limit
        )

    @monitor_performance("update_job")
    def update_job(self, tenant_id: UUID, job_id: UUID, data: JobUpdate, actor: str) -> Job:
        """Update job details. Status is changed only through ``transition_job_status``."""
        with self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id, for_update=True)
            previous_percentage = job.completion_percentage
            job.sqlmodel_update(_changes(data, _REQUIRED_JOB_FIELDS))
            uow.jobs.add(job)

            if job.completion_percentage != previous_percentage:
                emit(
                    uow,
                    job,
                    TriggerType.COMPLETION_PERCENTAGE,
                    previous_percentage=previous_percentage,
                    completion_percentage=job.completion_percentage,
                    changed_by=actor,
                )
        return job

    @monitor_performance("transition_job_status")
    def transition_job_status(
        self, tenant_id: UUID, job_id: UUID, data: JobStatusUpdate, actor: str
    ) -> Job:
        """
        Move a job to a new status and append its history row.

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidTransitionError: If the transition is not allowed
        """
        with self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id, for_update=True)
            change_job_status(uow, job, data.status, actor, data.reason, data.notes)
        return job

    def job_status_history(self, tenant_id: UUID, job_id: UUID) -> list[JobStatusLog]:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            return uow.job_status_logs.list_for_job(tenant_id, job_id)

    @monitor_performance("delete_job")
    def delete_job(self, tenant_id: UUID, job_id: UUID, actor: str) -> None:
        """
        Hard delete a job that nothing references.

        Its dependency edges, job-scoped triggers and job-scoped service
        windows go with it; status history is kept.

        Raises:
            JobInUseError: If events, tasks, time entries or messages reference the job
        """
        with self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id, for_update=True)
            references = {
                "schedule_events": uow.events.count_for_job(tenant_id, job_id),
                "tasks": uow.tasks.count_for_job(tenant_id, job_id),
                "time_entries": uow.time_entries.count_for_job(tenant_id, job_id),
                "messages": uow.messages.count_for_job(tenant_id, job_id),
            }
            in_use = {k: v for k, v in references.items() if v}
            if in_use:
                raise JobInUseError(job_id, in_use)

            for edge in uow.dependencies.list_touching(tenant_id, job_id):
                uow.dependencies.delete(edge)
            for trigger in uow.triggers.list_for_job(tenant_id, job_id):
                uow.triggers.delete(trigger)
            for window in uow.service_windows.search(tenant_id, job_id=job_id, active_only=False):
                uow.service_windows.delete(window)
            uow.jobs.delete(job)

        logger.info("Job deleted", job_id=str(job_id), job_number=job.job_number, deleted_by=actor)

    # Tasks
    def list_tasks(self, tenant_id: UUID, job_id: UUID) -> list[JobTask]:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            return uow.tasks.list_for_job(tenant_id, job_id)

    def _check_task_crew(self, uow: AbstractUnitOfWork, tenant_id: UUID, crew_ids: list[UUID]) -> None:
        found = {m.id for m in uow.crew.list_by_ids(tenant_id, crew_ids)}
        for crew_id in crew_ids:
            if crew_id not in found:
                raise CrewMemberNotFoundError(crew_id)

    @monitor_performance("create_task")
    def create_task(self, tenant_id: UUID, job_id: UUID, data: JobTaskCreate) -> JobTask:
        with self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id)
            self._check_task_crew(uow, tenant_id, data.assigned_crew_ids)
            task = JobTask.model_validate(data, update={"tenant_id": tenant_id, "job_id": job.id})
            uow.tasks.add(task)
        return task

    @monitor_performance("update_task")
    def update_task(
        self, tenant_id: UUID, job_id: UUID, task_id: UUID, data: JobTaskUpdate
    ) -> JobTask:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            task = uow.tasks.get(tenant_id, job_id, task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            changes = _changes(data, _REQUIRED_TASK_FIELDS)
            if "assigned_crew_ids" in changes:
                self._check_task_crew(uow, tenant_id, changes["assigned_crew_ids"])
            task.sqlmodel_update(changes)
            uow.tasks.add(task)
        return task

    @monitor_performance("delete_task")
    def delete_task(self, tenant_id: UUID, job_id: UUID, task_id: UUID) -> None:
        with self._uow_factory() as uow:
            task = uow.tasks.get(tenant_id, job_id, task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            uow.tasks.delete(task)

    # Schedule events
    @staticmethod
    def _event_shape(
        start: datetime,
        end: datetime,
        crew_ids: list[UUID],
        lead_crew_member_id: UUID | None,
    ) -> list[UUID]:
        if end <= start:
            raise ValidationError("end_time", end, "must be after start_time")
        crew = sorted(set(crew_ids))
        if not crew:
            raise ValidationError(
                "assigned_crew_ids", crew_ids, "at least one crew member is required"
            )
        if lead_crew_member_id is not None and lead_crew_member_id not in crew:
            raise ValidationError(
                "lead_crew_member_id",
                lead_crew_member_id,
                "lead crew member must be one of the assigned crew",
            )
        return crew

    @staticmethod
    def _lock_crew(uow: AbstractUnitOfWork, tenant_id: UUID, crew_ids: list[UUID]) -> None:
        members = {m.id: m for m in uow.crew.lock(tenant_id, crew_ids)}
        for crew_id in crew_ids:
            member = members.get(crew_id)
            if member is None:
                raise CrewMemberNotFoundError(crew_id)
            if not member.is_active:
                raise ValidationError("assigned_crew_ids", crew_id, "crew member is inactive")

    def _check_crew_time(
        self,
        uow: AbstractUnitOfWork,
        tenant_id: UUID,
        job_id: UUID,
        event_id: UUID,
        crew_ids: list[UUID],
        start: datetime,
        end: datetime,
        allow_override: bool,
        actor: str,
        exclude_event_id: UUID | None = None,
    ) -> None:
        """
        Reject double-bookings and windows outside declared availability.

        Raises:
            SchedulingConflictError: Unless ``allow_override`` is set, in which
                case the override is logged as an audited exception
        """
        detector = ConflictDetector(uow.events, uow.availability)
        conflicts = detector.find_conflicts(
            tenant_id, crew_ids, start, end, exclude_event_id=exclude_event_id
        )
        unavailable = detector.unavailable_crew(tenant_id, crew_ids, start, end)
        if not conflicts and not unavailable:
            return

        if allow_override:
            CONFLICTS_DETECTED.labels(outcome="overridden").inc()
            logger.warning(
                "Scheduling conflict overridden",
                actor=actor,
                job_id=str(job_id),
                event_id=str(event_id),
                conflicting_event_ids=[str(e.id) for e in conflicts],
                unavailable_crew_ids=[str(c) for c in unavailable],
            )
            return

        CONFLICTS_DETECTED.labels(outcome="rejected").inc()
        raise SchedulingConflictError([e.summary() for e in conflicts], unavailable)

    @staticmethod
    def _refresh_envelope(uow: AbstractUnitOfWork, job: Job) -> None:
        """Keep the job's scheduled window equal to the span of its active events."""
        active = [e for e in uow.events.list_for_job(job.tenant_id, job.id) if e.status.is_active]
        job.scheduled_start = min((e.start_time for e in active), default=None)
        job.scheduled_end = max((e.end_time for e in active), default=None)
        uow.jobs.add(job)

    def list_events(self, tenant_id: UUID, job_id: UUID) -> list[ScheduleEvent]:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            return uow.events.list_for_job(tenant_id, job_id)

    def event_status_history(
        self, tenant_id: UUID, job_id: UUID, event_id: UUID
    ) -> list[EventStatusLog]:
        with self._uow_factory() as uow:
            if uow.events.get(tenant_id, job_id, event_id) is None:
                raise EventNotFoundError(event_id)
            return uow.event_status_logs.list_for_event(tenant_id, event_id)

    @monitor_performance("create_schedule_event")
    def create_event(
        self, tenant_id: UUID, job_id: UUID, data: ScheduleEventCreate, actor: str
    ) -> ScheduleEvent:
        """
        Commit crew and a time window to a job.

        Crew locks for the sorted crew set are held across the conflict check
        and the commit.

        Raises:
            JobNotFoundError: If the job does not exist
            JobClosedError: If the job is completed or cancelled
            CrewMemberNotFoundError: If an assigned crew member does not exist
            DependencyNotSatisfiedError: If a prerequisite job is not completed
            SchedulingConflictError: If the window double-books or falls
                outside a crew member's availability
        """
        crew_ids = self._event_shape(
            data.start_time, data.end_time, data.assigned_crew_ids, data.lead_crew_member_id
        )
        event_id = uuid4()

        with crew_locks.hold(crew_ids), self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id, for_update=True)
            if job.status.is_terminal:
                raise JobClosedError(job.id, job.status.value)
            self._lock_crew(uow, tenant_id, crew_ids)

            blocking = DependencyGraph(uow.jobs, uow.dependencies).blocking_prerequisites(
                tenant_id, job.id
            )
            if blocking:
                raise DependencyNotSatisfiedError(job.id, [j.id for j in blocking])

            self._check_crew_time(
                uow,
                tenant_id,
                job.id,
                event_id,
                crew_ids,
                data.start_time,
                data.end_time,
                data.allow_override,
                actor,
            )

            event = ScheduleEvent.model_validate(
                data.model_dump(exclude={"allow_override"}),
                update={
                    "id": event_id,
                    "tenant_id": tenant_id,
                    "job_id": job.id,
                    "assigned_crew_ids": crew_ids,
                    "created_by": actor,
                },
            )
            uow.events.add(event)
            status_machine(uow).record_event_created(event, actor)

            if job.status == JobStatus.PLANNED:
                change_job_status(
                    uow, job, JobStatus.SCHEDULED, actor, reason="Schedule event created"
                )
            self._refresh_envelope(uow, job)
            emit(uow, job, TriggerType.SCHEDULE_CREATED, event=_event_context(event))

        logger.info(
            "Schedule event created",
            job_id=str(job_id),
            event_id=str(event.id),
            crew_count=len(crew_ids),
            overridden=data.allow_override,
        )
        return event

    @monitor_performance("update_schedule_event")
    def update_event(
        self,
        tenant_id: UUID,
        job_id: UUID,
        event_id: UUID,
        data: ScheduleEventUpdate,
        actor: str,
    ) -> ScheduleEvent:
        """
        Reschedule, reassign or change the status of a schedule event.

        A changed window or crew set is re-validated like a new event unless
        the event ends up inactive. The crew locks must cover the event's
        stored crew as re-read under the lock; if a concurrent reassignment
        widened it, the locks are retaken over the larger set.
        """
        requested = set(data.assigned_crew_ids or [])
        with self._uow_factory() as uow:
            current = uow.events.get(tenant_id, job_id, event_id)
            if current is None:
                raise EventNotFoundError(event_id)
            lock_ids = set(current.assigned_crew_ids) | requested

        while True:
            with crew_locks.hold(lock_ids), self._uow_factory() as uow:
                job = self._job(uow, tenant_id, job_id, for_update=True)
                event = uow.events.get(tenant_id, job_id, event_id)
                if event is None:
                    raise EventNotFoundError(event_id)
                needed = set(event.assigned_crew_ids) | requested
                if needed <= lock_ids:
                    self._apply_event_update(uow, job, event, data, actor)
                    return event
            logger.info(
                "Event crew changed before lock, retrying",
                event_id=str(event_id),
                added_crew=sorted(str(c) for c in needed - lock_ids),
            )
            lock_ids |= needed

    def _apply_event_update(
        self,
        uow: AbstractUnitOfWork,
        job: Job,
        event: ScheduleEvent,
        data: ScheduleEventUpdate,
        actor: str,
    ) -> None:
        tenant_id = job.tenant_id
        changes = _changes(
            data,
            _REQUIRED_EVENT_FIELDS,
            exclude={"status", "status_reason", "allow_override"},
        )
        start = changes.get("start_time", event.start_time)
        end = changes.get("end_time", event.end_time)
        crew_ids = self._event_shape(
            start,
            end,
            changes.get("assigned_crew_ids", event.assigned_crew_ids),
            changes.get("lead_crew_member_id", event.lead_crew_member_id),
        )
        if "assigned_crew_ids" in changes:
            changes["assigned_crew_ids"] = crew_ids

        final_status = data.status or event.status
        moved = (
            start != event.start_time
            or end != event.end_time
            or set(crew_ids) != set(event.assigned_crew_ids)
        )
        if moved and final_status.is_active:
            self._lock_crew(uow, tenant_id, crew_ids)
            self._check_crew_time(
                uow,
                tenant_id,
                job.id,
                event.id,
                crew_ids,
                start,
                end,
                data.allow_override,
                actor,
                exclude_event_id=event.id,
            )

        event.sqlmodel_update(changes)
        if data.status is not None and data.status != event.status:
            previous = event.status
            status_machine(uow).transition_event(
                event, data.status, actor, reason=data.status_reason
            )
            emit(
                uow,
                job,
                TriggerType.EVENT_STATUS_CHANGE,
                event=_event_context(event),
                previous_status=previous.value,
                new_status=data.status.value,
                changed_by=actor,
            )
        uow.events.add(event)
        self._refresh_envelope(uow, job)

        if changes:
            emit(
                uow,
                job,
                TriggerType.SCHEDULE_UPDATED,
                event=_event_context(event),
                changed_fields=sorted(changes),
            )

    @monitor_performance("delete_schedule_event")
    def delete_event(self, tenant_id: UUID, job_id: UUID, event_id: UUID, actor: str) -> None:
        with self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id, for_update=True)
            event = uow.events.get(tenant_id, job_id, event_id)
            if event is None:
                raise EventNotFoundError(event_id)
            uow.events.delete(event)
            self._refresh_envelope(uow, job)

        logger.info(
            "Schedule event deleted", job_id=str(job_id), event_id=str(event_id), deleted_by=actor
        )

    # Time entries
    def _check_time_entry(
        self,
        uow: AbstractUnitOfWork,
        tenant_id: UUID,
        job_id: UUID,
        crew_member_id: UUID,
        task_id: UUID | None,
        start: datetime,
        end: datetime | None,
    ) -> None:
        self._crew_member(uow, tenant_id, crew_member_id)
        if task_id is not None and uow.tasks.get(tenant_id, job_id, task_id) is None:
            raise TaskNotFoundError(task_id)
        if end is not None and end <= start:
            raise ValidationError("end_time", end, "must be after start_time")

    def list_time_entries(self, tenant_id: UUID, job_id: UUID) -> list[TimeEntry]:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            return uow.time_entries.list_for_job(tenant_id, job_id)

    @monitor_performance("create_time_entry")
    def create_time_entry(
        self, tenant_id: UUID, job_id: UUID, data: TimeEntryCreate, actor: str
    ) -> TimeEntry:
        """Record time worked; starting an entry counts as the crew arriving on site."""
        with self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id)
            self._check_time_entry(
                uow, tenant_id, job.id, data.crew_member_id, data.task_id,
                data.start_time, data.end_time,
            )
            entry = TimeEntry.model_validate(data, update={"tenant_id": tenant_id, "job_id": job.id})
            uow.time_entries.add(entry)
            emit(
                uow,
                job,
                TriggerType.CREW_ARRIVAL,
                time_entry={
                    "id": str(entry.id),
                    "crew_member_id": str(entry.crew_member_id),
                    "task_id": str(entry.task_id) if entry.task_id else None,
                    "start_time": entry.start_time.isoformat(),
                },
                recorded_by=actor,
            )
        return entry

    @monitor_performance("update_time_entry")
    def update_time_entry(
        self, tenant_id: UUID, job_id: UUID, entry_id: UUID, data: TimeEntryUpdate
    ) -> TimeEntry:
        with self._uow_factory() as uow:
            entry = uow.time_entries.get(tenant_id, job_id, entry_id)
            if entry is None:
                raise TimeEntryNotFoundError(entry_id)
            changes = _changes(data, _REQUIRED_ENTRY_FIELDS)
            self._check_time_entry(
                uow,
                tenant_id,
                job_id,
                entry.crew_member_id,
                changes.get("task_id", entry.task_id),
                changes.get("start_time", entry.start_time),
                changes.get("end_time", entry.end_time),
            )
            entry.sqlmodel_update(changes)
            uow.time_entries.add(entry)
        return entry

    @monitor_performance("delete_time_entry")
    def delete_time_entry(self, tenant_id: UUID, job_id: UUID, entry_id: UUID) -> None:
        with self._uow_factory() as uow:
            entry = uow.time_entries.get(tenant_id, job_id, entry_id)
            if entry is None:
                raise TimeEntryNotFoundError(entry_id)
            uow.time_entries.delete(entry)

    # Service windows
    def list_service_windows(
        self,
        tenant_id: UUID,
        customer_id: UUID | None = None,
        job_id: UUID | None = None,
        active_only: bool = True,
        on_date: date | None = None,
    ) -> list[ServiceWindow]:
        """Service windows, newest first; ``on_date`` keeps those open that day."""
        with self._uow_factory() as uow:
            windows = uow.service_windows.search(tenant_id, customer_id, job_id, active_only)
        if on_date is not None:
            windows = [w for w in windows if w.applies_on(on_date)]
        return windows

    def _check_window_job(
        self, uow: AbstractUnitOfWork, tenant_id: UUID, job_id: UUID | None, customer_id: UUID
    ) -> None:
        if job_id is None:
            return
        job = self._job(uow, tenant_id, job_id)
        if job.customer_id != customer_id:
            raise ValidationError("job_id", job_id, "job belongs to a different customer")

    @monitor_performance("create_service_window")
    def create_service_window(self, tenant_id: UUID, data: ServiceWindowCreate) -> ServiceWindow:
        with self._uow_factory() as uow:
            self._check_window_job(uow, tenant_id, data.job_id, data.customer_id)
            window = ServiceWindow.model_validate(data, update={"tenant_id": tenant_id})
            uow.service_windows.add(window)

        logger.info(
            "Service window created",
            window_id=str(window.id),
            customer_id=str(window.customer_id),
        )
        return window

    @monitor_performance("update_service_window")
    def update_service_window(
        self, tenant_id: UUID, window_id: UUID, data: ServiceWindowUpdate
    ) -> ServiceWindow:
        with self._uow_factory() as uow:
            window = uow.service_windows.get(tenant_id, window_id)
            if window is None:
                raise ServiceWindowNotFoundError(window_id)
            changes = _changes(data, _REQUIRED_WINDOW_FIELDS)
            window.sqlmodel_update(changes)
            try:
                check_window_bounds(
                    window.start_time, window.end_time, window.valid_from, window.valid_to
                )
            except ValueError as e:
                raise ValidationError("service_window", sorted(changes), str(e)) from e
            uow.service_windows.add(window)
        return window

    @monitor_performance("delete_service_window")
    def delete_service_window(self, tenant_id: UUID, window_id: UUID) -> None:
        with self._uow_factory() as uow:
            window = uow.service_windows.get(tenant_id, window_id)
            if window is None:
                raise ServiceWindowNotFoundError(window_id)
            uow.service_windows.delete(window)

    # Customer communication
    def list_messages(self, tenant_id: UUID, job_id: UUID) -> list[JobMessage]:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            return uow.messages.list_for_job(tenant_id, job_id)

    @monitor_performance("send_job_message")
    def send_message(
        self, tenant_id: UUID, job_id: UUID, data: JobMessageCreate, actor: str
    ) -> JobMessage:
        """
        Record an outbound message and hand it to the notification gateway.

        The message is committed as PENDING before delivery is attempted. A
        gateway failure marks it FAILED and is not raised to the caller.
        """
        with self._uow_factory() as uow:
            job = self._job(uow, tenant_id, job_id)
            message = JobMessage.model_validate(
                data, update={"tenant_id": tenant_id, "job_id": job.id, "created_by": actor}
            )
            uow.messages.add(message)

        try:
            self._notifications.send(
                tenant_id,
                message.channel.value,
                message.recipient,
                message.subject or f"{job.job_number}: {job.title}",
                message.content,
                {
                    "job_id": str(job.id),
                    "job_number": job.job_number,
                    "message_id": str(message.id),
                    "template": message.template_used,
                },
            )
        except Exception as e:
            logger.error(
                "Job message delivery failed",
                message_id=str(message.id),
                job_id=str(job.id),
                error=str(e),
                exc_info=True,
            )
            message.delivery_status = DeliveryStatus.FAILED
            message.delivery_error = str(e)
        else:
            message.delivery_status = DeliveryStatus.SENT
            message.sent_at = self._clock()

        with self._uow_factory() as uow:
            uow.messages.add(message)

        logger.info(
            "Job message processed",
            message_id=str(message.id),
            job_id=str(job.id),
            channel=message.channel.value,
            delivery_status=message.delivery_status.value,
        )
        return message

    # Crew
    def list_crew_members(self, tenant_id: UUID, active_only: bool = True) -> list[CrewMember]:
        with self._uow_factory() as uow:
            return uow.crew.list_members(tenant_id, active_only=active_only)

    @monitor_performance("create_crew_member")
    def create_crew_member(self, tenant_id: UUID, data: CrewMemberCreate) -> CrewMember:
        with self._uow_factory() as uow:
            member = CrewMember.model_validate(data, update={"tenant_id": tenant_id})
            uow.crew.add(member)
        return member

    @monitor_performance("update_crew_member")
    def update_crew_member(
        self, tenant_id: UUID, crew_member_id: UUID, data: CrewMemberUpdate
    ) -> CrewMember:
        with crew_locks.hold([crew_member_id]), self._uow_factory() as uow:
            member = self._crew_member(uow, tenant_id, crew_member_id)
            member.sqlmodel_update(_changes(data, _REQUIRED_CREW_FIELDS))
            uow.crew.add(member)
        return member

    @monitor_performance("deactivate_crew_member")
    def deactivate_crew_member(self, tenant_id: UUID, crew_member_id: UUID) -> CrewMember:
        """Soft delete: the member keeps their history but is never assigned again."""
        with crew_locks.hold([crew_member_id]), self._uow_factory() as uow:
            member = self._crew_member(uow, tenant_id, crew_member_id)
            member.is_active = False
            uow.crew.add(member)
        logger.info("Crew member deactivated", crew_member_id=str(crew_member_id))
        return member

    def list_availability(
        self,
        tenant_id: UUID,
        crew_member_id: UUID,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CrewAvailability]:
        with self._uow_factory() as uow:
            self._crew_member(uow, tenant_id, crew_member_id)
            return uow.availability.list_for_crew(
                tenant_id,
                [crew_member_id],
                to_naive_utc(start) if start else None,
                to_naive_utc(end) if end else None,
            )

    @monitor_performance("add_crew_availability")
    def add_availability(
        self, tenant_id: UUID, crew_member_id: UUID, data: CrewAvailabilityCreate
    ) -> CrewAvailability:
        """
        Declare an availability or blackout window.

        Raises:
            ValidationError: If the window is empty or overlaps another
                declared window of the same crew member
        """
        if data.end_time <= data.start_time:
            raise ValidationError("end_time", data.end_time, "must be after start_time")

        with crew_locks.hold([crew_member_id]), self._uow_factory() as uow:
            member = self._crew_member(uow, tenant_id, crew_member_id)
            window = TimeWindow(data.start_time, data.end_time)
            clashes = [
                w
                for w in uow.availability.list_for_crew(
                    tenant_id, [member.id], data.start_time, data.end_time
                )
                if w.window.overlaps_with(window)
            ]
            if clashes:
                raise ValidationError(
                    "start_time",
                    data.start_time,
                    "overlaps an existing availability window",
                    details={"overlapping_ids": [str(w.id) for w in clashes]},
                )
            record = CrewAvailability.model_validate(
                data, update={"tenant_id": tenant_id, "crew_member_id": member.id}
            )
            uow.availability.add(record)
        return record

    # Dependencies
    def list_dependencies(self, tenant_id: UUID, job_id: UUID) -> list[JobDependency]:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            return uow.dependencies.list_for_dependent(tenant_id, job_id)

    @monitor_performance("add_dependency")
    def add_dependency(
        self, tenant_id: UUID, job_id: UUID, data: JobDependencyCreate
    ) -> JobDependency:
        """
        Make ``job_id`` wait for ``data.prerequisite_job_id``.

        The tenant's graph is locked for the cycle check and the insert.
        """
        with dependency_graph_locks.hold([tenant_id]), self._uow_factory() as uow:
            graph = DependencyGraph(uow.jobs, uow.dependencies)
            edge = graph.add_dependency(
                tenant_id,
                job_id,
                data.prerequisite_job_id,
                data.dependency_type,
                data.description,
            )
        return edge

    @monitor_performance("remove_dependency")
    def remove_dependency(self, tenant_id: UUID, job_id: UUID, dependency_id: UUID) -> None:
        with dependency_graph_locks.hold([tenant_id]), self._uow_factory() as uow:
            edge = uow.dependencies.get(tenant_id, dependency_id)
            if edge is None or edge.dependent_job_id != job_id:
                raise DependencyNotFoundError(dependency_id)
            uow.dependencies.delete(edge)

    def can_schedule(self, tenant_id: UUID, job_id: UUID) -> bool:
        with self._uow_factory() as uow:
            self._job(uow, tenant_id, job_id)
            return DependencyGraph(uow.jobs, uow.dependencies).can_schedule(tenant_id, job_id)

    # Automation triggers
    def list_triggers(
        self,
        tenant_id: UUID,
        trigger_type: TriggerType | None = None,
        job_id: UUID | None = None,
        is_active: bool | None = None,
    ) -> list[AutomationTrigger]:
        with self._uow_factory() as uow:
            return uow.triggers.search(tenant_id, trigger_type, job_id, is_active)

    @monitor_performance("create_trigger")
    def create_trigger(
        self, tenant_id: UUID, data: AutomationTriggerCreate, actor: str
    ) -> AutomationTrigger:
        with self._uow_factory() as uow:
            if data.job_id is not None:
                self._job(uow, tenant_id, data.job_id)
            trigger = AutomationTrigger.model_validate(
                data, update={"tenant_id": tenant_id, "created_by": actor}
            )
            uow.triggers.add(trigger)
        return trigger

    @monitor_performance("update_trigger")
    def update_trigger(
        self, tenant_id: UUID, trigger_id: UUID, data: AutomationTriggerUpdate
    ) -> AutomationTrigger:
        with self._uow_factory() as uow:
            trigger = uow.triggers.get(tenant_id, trigger_id)
            if trigger is None:
                raise TriggerNotFoundError(trigger_id)
            changes = _changes(data, _REQUIRED_TRIGGER_FIELDS)
            action_type = changes.get("action_type", trigger.action_type)
            action_config = changes.get("action_config", trigger.action_config)
            try:
                check_action_config(action_type, action_config or {})
            except ValueError as e:
                raise ValidationError("action_config", action_config, str(e)) from e
            trigger.sqlmodel_update(changes)
            uow.triggers.add(trigger)
        return trigger

    @monitor_performance("delete_trigger")
    def delete_trigger(self, tenant_id: UUID, trigger_id: UUID) -> None:
        with self._uow_factory() as uow:
            trigger = uow.triggers.get(tenant_id, trigger_id)
            if trigger is None:
                raise TriggerNotFoundError(trigger_id)
            uow.triggers.delete(trigger)

    @monitor_performance("ingest_external_event")
    def ingest_external_event(
        self, tenant_id: UUID, data: ExternalEventIn
    ) -> ExternalEventAccepted:
        """Feed an externally sourced event to the automation engine."""
        occurred_at = to_naive_utc(data.occurred_at) if data.occurred_at else self._clock()
        with self._uow_factory() as uow:
            context: dict[str, Any] = {}
            if data.job_id is not None:
                context.update(job_context(self._job(uow, tenant_id, data.job_id)))
            context.update(data.context)
            event = DomainEvent(
                tenant_id=tenant_id,
                job_id=data.job_id,
                trigger_type=data.trigger_type,
                context=context,
                occurred_at=occurred_at,
            )
            uow.collect(event)

        return ExternalEventAccepted(
            event_id=event.event_id,
            trigger_type=event.trigger_type.value,
            job_id=event.job_id,
            occurred_at=event.occurred_at,
        )

    # Scheduling views
    def schedule_overview(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> ScheduleOverview:
        start, end = to_naive_utc(start), to_naive_utc(end)
        if end <= start:
            raise ValidationError("end_date", end, "must be after start_date")

        with self._uow_factory() as uow:
            jobs = uow.jobs.list_scheduled_between(tenant_id, start, end)
            events = uow.events.list_starting_between(tenant_id, start, end)
            crew = uow.crew.list_members(tenant_id)
            unscheduled = uow.jobs.list_unscheduled(tenant_id)

        return ScheduleOverview(
            start_date=start,
            end_date=end,
            jobs=[JobPublic.model_validate(j) for j in jobs],
            events=[ScheduleEventPublic.model_validate(e) for e in events],
            crew_members=[CrewMemberPublic.model_validate(c) for c in crew],
            summary={
                "total_jobs": len(jobs),
                "total_events": len(events),
                "active_crew_members": len(crew),
                "unscheduled_jobs": len(unscheduled),
            },
        )

    def schedule_conflicts(self, tenant_id: UUID) -> list[dict[str, Any]]:
        """Double-bookings among active events that have not ended yet."""
        with self._uow_factory() as uow:
            pairs = ConflictDetector(uow.events, uow.availability).find_all_conflicts(
                tenant_id, self._clock()
            )
        return [pair.to_dict() for pair in pairs]

    @monitor_performance("optimize_schedule")
    def optimize(
        self,
        tenant_id: UUID,
        request: OptimizeRequest,
        actor: str,
        cancel_event: threading.Event | None = None,
    ) -> OptimizeResponse:
        """
        Propose assignments for unscheduled jobs and optionally commit them.

        Committing goes through ``create_event`` one proposal at a time, so
        each is re-validated and reported individually.
        """
        with self._uow_factory() as uow:
            jobs = uow.jobs.list_unscheduled(tenant_id)
            if request.job_ids is not None:
                wanted = set(request.job_ids)
                jobs = [j for j in jobs if j.id in wanted]
            crew = uow.crew.list_members(tenant_id)
            # Daily caps count bookings anywhere on a touched day
            days = TimeWindow(request.start_date, request.end_date).whole_days()
            index = AvailabilityIndex.build(
                events=uow.events.list_active_between(tenant_id, days.start_time, days.end_time),
                availability=uow.availability.list_for_crew(tenant_id, [c.id for c in crew]),
            )
            graph = DependencyGraph(uow.jobs, uow.dependencies)
            blocked = [j.id for j in jobs if not graph.can_schedule(tenant_id, j.id)]

        budget = request.max_time_seconds or settings.OPTIMIZER_TIME_BUDGET_SECONDS
        with trace_operation(
            "schedule.optimize",
            {"tenant_id": str(tenant_id), "jobs": len(jobs), "crew": len(crew)},
        ):
            result = self._optimizer.optimize(
                jobs,
                crew,
                index,
                request.start_date,
                request.end_date,
                blocked_job_ids=blocked,
                cancel_event=cancel_event,
                time_budget_seconds=budget,
            )

        committed: list[CommitResultOut] = []
        if request.commit:
            titles = {j.id: j.title for j in jobs}
            for proposal in result.assignments:
                try:
                    event = self.create_event(
                        tenant_id,
                        proposal.job_id,
                        ScheduleEventCreate(
                            title=titles.get(proposal.job_id),
                            start_time=proposal.start,
                            end_time=proposal.end,
                            assigned_crew_ids=[proposal.crew_member_id],
                            lead_crew_member_id=proposal.crew_member_id,
                        ),
                        actor,
                    )
                except DomainError as e:
                    committed.append(
                        CommitResultOut(
                            job_id=proposal.job_id,
                            crew_member_id=proposal.crew_member_id,
                            status="failed",
                            error=e.to_dict(),
                        )
                    )
                else:
                    committed.append(
                        CommitResultOut(
                            job_id=proposal.job_id,
                            crew_member_id=proposal.crew_member_id,
                            status="created",
                            event_id=event.id,
                        )
                    )

        return OptimizeResponse(
            assignments=[
                ProposedAssignmentOut(
                    job_id=a.job_id, crew_member_id=a.crew_member_id, start=a.start, end=a.end
                )
                for a in result.assignments
            ],
            unassignable=[
                UnassignableJobOut(job_id=u.job_id, reason=u.reason.value)
                for u in result.unassignable
            ],
            cancelled=result.cancelled,
            jobs_considered=result.jobs_considered,
            duration_seconds=result.duration_seconds,
            committed=committed,
        )

    # Reports
    def utilization_report(
        self,
        tenant_id: UUID,
        start: datetime,
        end: datetime,
        crew_member_id: UUID | None = None,
    ) -> UtilizationReport:
        """Worked and billable hours from time entries started in the period."""
        start, end = to_naive_utc(start), to_naive_utc(end)
        with self._uow_factory() as uow:
            entries = uow.time_entries.list_started_between(
                tenant_id, start, end, crew_member_id=crew_member_id
            )
            names = {
                m.id: m.name
                for m in uow.crew.list_by_ids(tenant_id, {e.crew_member_id for e in entries})
            }

        per_crew: dict[UUID, CrewUtilization] = {}
        for entry in entries:
            hours = entry.worked_minutes() / 60
            row = per_crew.setdefault(
                entry.crew_member_id,
                CrewUtilization(
                    crew_member_id=entry.crew_member_id,
                    name=names.get(entry.crew_member_id),
                    total_hours=0.0,
                    billable_hours=0.0,
                    entries=0,
                ),
            )
            row.total_hours += hours
            row.entries += 1
            if entry.billable:
                row.billable_hours += hours

        total = sum(r.total_hours for r in per_crew.values())
        billable = sum(r.billable_hours for r in per_crew.values())
        for row in per_crew.values():
            row.total_hours = round(row.total_hours, 2)
            row.billable_hours = round(row.billable_hours, 2)

        return UtilizationReport(
            start_date=start,
            end_date=end,
            total_hours=round(total, 2),
            billable_hours=round(billable, 2),
            utilization_rate=round(billable / total * 100, 2) if total else 0.0,
            by_crew_member=sorted(per_crew.values(), key=lambda r: str(r.crew_member_id)),
        )

    def completion_report(self, tenant_id: UUID, start: datetime, end: datetime) -> CompletionReport:
        """
        Completion metrics for jobs created in the period.

        A completed job is on time when its completion was recorded no later
        than its scheduled end.
        """
        start, end = to_naive_utc(start), to_naive_utc(end)
        with self._uow_factory() as uow:
            jobs = uow.jobs.list_created_between(tenant_id, start, end)
            tasks = uow.tasks.list_for_jobs(tenant_id, [j.id for j in jobs])
            completed_at: dict[UUID, datetime] = {}
            for job in jobs:
                if job.status != JobStatus.COMPLETED:
                    continue
                done = [
                    log.changed_at
                    for log in uow.job_status_logs.list_for_job(tenant_id, job.id)
                    if log.new_status == JobStatus.COMPLETED
                ]
                if done:
                    completed_at[job.id] = done[-1]

        by_status: dict[str, int] = {}
        for job in jobs:
            by_status[job.status.value] = by_status.get(job.status.value, 0) + 1

        on_time = sum(
            1
            for job in jobs
            if job.id in completed_at
            and job.scheduled_end is not None
            and completed_at[job.id] <= job.scheduled_end
        )
        durations = [
            (completed_at[job.id] - job.created_at).total_seconds() / 3600
            for job in jobs
            if job.id in completed_at
        ]
        completed = by_status.get(JobStatus.COMPLETED.value, 0)
        done_tasks = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)

        return CompletionReport(
            start_date=start,
            end_date=end,
            total_jobs=len(jobs),
            completed_jobs=completed,
            cancelled_jobs=by_status.get(JobStatus.CANCELLED.value, 0),
            on_time_jobs=on_time,
            completion_rate=round(completed / len(jobs) * 100, 2) if jobs else 0.0,
            on_time_rate=round(on_time / completed * 100, 2) if completed else 0.0,
            task_completion_rate=round(done_tasks / len(tasks) * 100, 2) if tasks else 0.0,
            average_completion_hours=(
                round(sum(durations) / len(durations), 2) if durations else None
            ),
            by_status=by_status,
        )
