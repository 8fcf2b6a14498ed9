"""
Jobs API Routes.

Job lifecycle, tasks, schedule events, time tracking, dependencies, customer
service windows and customer messages. Domain errors propagate to the
exception handlers registered on the application.
"""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from fieldops.api.deps import ActorDep, OrchestratorDep, TenantDep
from fieldops.api.envelope import Envelope, Message, ok
from fieldops.domain.scheduling.repositories import JobFilters
from fieldops.domain.scheduling.value_objects import JobStatus, PriorityLevel, to_naive_utc
from fieldops.models import (
    EventStatusLogPublic,
    JobCreate,
    JobDependencyCreate,
    JobDependencyPublic,
    JobFromQuote,
    JobMessageCreate,
    JobMessagePublic,
    JobPublic,
    JobsPublic,
    JobStatusLogPublic,
    JobStatusUpdate,
    JobTaskCreate,
    JobTaskPublic,
    JobTaskUpdate,
    JobUpdate,
    ScheduleEventCreate,
    ScheduleEventPublic,
    ScheduleEventUpdate,
    ServiceWindowCreate,
    ServiceWindowPublic,
    ServiceWindowUpdate,
    TimeEntryCreate,
    TimeEntryPublic,
    TimeEntryUpdate,
)

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=Envelope[JobsPublic], summary="List jobs")
def list_jobs(
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    status_filter: JobStatus | None = Query(None, alias="status"),
    customer_id: UUID | None = Query(None),
    priority: PriorityLevel | None = Query(None),
    search: str | None = Query(None, description="Search title, job number or description"),
    start_date: datetime | None = Query(None, description="Scheduled start on or after"),
    end_date: datetime | None = Query(None, description="Scheduled start on or before"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    filters = JobFilters(
        status=status_filter,
        customer_id=customer_id,
        priority=priority,
        search=search,
        start_date=to_naive_utc(start_date) if start_date else None,
        end_date=to_naive_utc(end_date) if end_date else None,
    )
    return ok(orchestrator.list_jobs(tenant_id, filters, page, limit))


@router.post(
    "",
    response_model=Envelope[JobPublic],
    status_code=status.HTTP_201_CREATED,
    summary="Create job",
)
def create_job(
    job_in: JobCreate, tenant_id: TenantDep, actor: ActorDep, orchestrator: OrchestratorDep
):
    return ok(orchestrator.create_job(tenant_id, job_in, actor))


@router.post(
    "/from-quote/{quote_id}",
    response_model=Envelope[JobPublic],
    status_code=status.HTTP_201_CREATED,
    summary="Create job from an accepted quote",
)
def create_job_from_quote(
    quote_id: UUID,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
    overrides: JobFromQuote | None = None,
):
    return ok(
        orchestrator.create_job_from_quote(
            tenant_id, quote_id, overrides or JobFromQuote(), actor
        )
    )


# Service windows
@router.get("/service-windows", response_model=Envelope[list[ServiceWindowPublic]])
def list_service_windows(
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    customer_id: UUID | None = Query(None),
    job_id: UUID | None = Query(None),
    include_inactive: bool = Query(False),
    on_date: date | None = Query(None, description="Only windows open on this day"),
):
    return ok(
        orchestrator.list_service_windows(
            tenant_id, customer_id, job_id, not include_inactive, on_date
        )
    )


@router.post(
    "/service-windows",
    response_model=Envelope[ServiceWindowPublic],
    status_code=status.HTTP_201_CREATED,
)
def create_service_window(
    window_in: ServiceWindowCreate, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    return ok(orchestrator.create_service_window(tenant_id, window_in))


@router.put("/service-windows/{window_id}", response_model=Envelope[ServiceWindowPublic])
def update_service_window(
    window_id: UUID,
    window_in: ServiceWindowUpdate,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.update_service_window(tenant_id, window_id, window_in))


@router.delete("/service-windows/{window_id}", response_model=Envelope[Message])
def delete_service_window(window_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    orchestrator.delete_service_window(tenant_id, window_id)
    return ok(Message(message="Service window deleted"))


@router.get("/{job_id}", response_model=Envelope[JobPublic])
def get_job(job_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.get_job(tenant_id, job_id))


@router.put("/{job_id}", response_model=Envelope[JobPublic])
def update_job(
    job_id: UUID,
    job_in: JobUpdate,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.update_job(tenant_id, job_id, job_in, actor))


@router.delete("/{job_id}", response_model=Envelope[Message])
def delete_job(
    job_id: UUID, tenant_id: TenantDep, actor: ActorDep, orchestrator: OrchestratorDep
):
    orchestrator.delete_job(tenant_id, job_id, actor)
    return ok(Message(message="Job deleted"))


@router.patch("/{job_id}/status", response_model=Envelope[JobPublic])
def update_job_status(
    job_id: UUID,
    status_in: JobStatusUpdate,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.transition_job_status(tenant_id, job_id, status_in, actor))


@router.get("/{job_id}/status-history", response_model=Envelope[list[JobStatusLogPublic]])
def job_status_history(job_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.job_status_history(tenant_id, job_id))


# Tasks
@router.get("/{job_id}/tasks", response_model=Envelope[list[JobTaskPublic]])
def list_tasks(job_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.list_tasks(tenant_id, job_id))


@router.post(
    "/{job_id}/tasks",
    response_model=Envelope[JobTaskPublic],
    status_code=status.HTTP_201_CREATED,
)
def create_task(
    job_id: UUID, task_in: JobTaskCreate, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    return ok(orchestrator.create_task(tenant_id, job_id, task_in))


@router.put("/{job_id}/tasks/{task_id}", response_model=Envelope[JobTaskPublic])
def update_task(
    job_id: UUID,
    task_id: UUID,
    task_in: JobTaskUpdate,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.update_task(tenant_id, job_id, task_id, task_in))


@router.delete("/{job_id}/tasks/{task_id}", response_model=Envelope[Message])
def delete_task(
    job_id: UUID, task_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    orchestrator.delete_task(tenant_id, job_id, task_id)
    return ok(Message(message="Task deleted"))


# Schedule events
@router.get("/{job_id}/events", response_model=Envelope[list[ScheduleEventPublic]])
def list_events(job_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.list_events(tenant_id, job_id))


@router.post(
    "/{job_id}/events",
    response_model=Envelope[ScheduleEventPublic],
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Crew double-booked, unavailable or job blocked"}},
)
def create_event(
    job_id: UUID,
    event_in: ScheduleEventCreate,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.create_event(tenant_id, job_id, event_in, actor))


@router.put("/{job_id}/events/{event_id}", response_model=Envelope[ScheduleEventPublic])
def update_event(
    job_id: UUID,
    event_id: UUID,
    event_in: ScheduleEventUpdate,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.update_event(tenant_id, job_id, event_id, event_in, actor))


@router.get(
    "/{job_id}/events/{event_id}/status-history",
    response_model=Envelope[list[EventStatusLogPublic]],
)
def event_status_history(
    job_id: UUID, event_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    return ok(orchestrator.event_status_history(tenant_id, job_id, event_id))


@router.delete("/{job_id}/events/{event_id}", response_model=Envelope[Message])
def delete_event(
    job_id: UUID,
    event_id: UUID,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    orchestrator.delete_event(tenant_id, job_id, event_id, actor)
    return ok(Message(message="Schedule event deleted"))


# Time tracking
@router.get("/{job_id}/time-entries", response_model=Envelope[list[TimeEntryPublic]])
def list_time_entries(job_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.list_time_entries(tenant_id, job_id))


@router.post(
    "/{job_id}/time-entries",
    response_model=Envelope[TimeEntryPublic],
    status_code=status.HTTP_201_CREATED,
)
def create_time_entry(
    job_id: UUID,
    entry_in: TimeEntryCreate,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.create_time_entry(tenant_id, job_id, entry_in, actor))


@router.put("/{job_id}/time-entries/{entry_id}", response_model=Envelope[TimeEntryPublic])
def update_time_entry(
    job_id: UUID,
    entry_id: UUID,
    entry_in: TimeEntryUpdate,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.update_time_entry(tenant_id, job_id, entry_id, entry_in))


@router.delete("/{job_id}/time-entries/{entry_id}", response_model=Envelope[Message])
def delete_time_entry(
    job_id: UUID, entry_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    orchestrator.delete_time_entry(tenant_id, job_id, entry_id)
    return ok(Message(message="Time entry deleted"))


# Dependencies
@router.get("/{job_id}/dependencies", response_model=Envelope[list[JobDependencyPublic]])
def list_dependencies(job_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.list_dependencies(tenant_id, job_id))


@router.post(
    "/{job_id}/dependencies",
    response_model=Envelope[JobDependencyPublic],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Dependency would create a cycle"}},
)
def add_dependency(
    job_id: UUID,
    dependency_in: JobDependencyCreate,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.add_dependency(tenant_id, job_id, dependency_in))


@router.delete("/{job_id}/dependencies/{dependency_id}", response_model=Envelope[Message])
def remove_dependency(
    job_id: UUID, dependency_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    orchestrator.remove_dependency(tenant_id, job_id, dependency_id)
    return ok(Message(message="Dependency removed"))


# Customer communication
@router.get("/{job_id}/messages", response_model=Envelope[list[JobMessagePublic]])
def list_messages(job_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.list_messages(tenant_id, job_id))


@router.post(
    "/{job_id}/messages",
    response_model=Envelope[JobMessagePublic],
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    job_id: UUID,
    message_in: JobMessageCreate,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.send_message(tenant_id, job_id, message_in, actor))
