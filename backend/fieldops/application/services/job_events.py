"""
Job status changes and domain event emission shared by the orchestrator and
the automation action handlers.
"""

from typing import Any

from fieldops.domain.scheduling.services.status_machine import StatusMachine
from fieldops.domain.scheduling.value_objects import JobStatus, TriggerType
from fieldops.domain.shared.base import DomainEvent
from fieldops.domain.shared.unit_of_work import AbstractUnitOfWork
from fieldops.models import Job, JobStatusLog


def status_machine(uow: AbstractUnitOfWork) -> StatusMachine:
    return StatusMachine(uow.job_status_logs, uow.event_status_logs)


def job_context(job: Job) -> dict[str, Any]:
    """The job fields trigger conditions can refer to as ``job.<field>``."""
    return {
        "job": {
            "id": str(job.id),
            "job_number": job.job_number,
            "title": job.title,
            "status": job.status.value,
            "priority": job.priority.value,
            "customer_id": str(job.customer_id),
            "completion_percentage": job.completion_percentage,
            "required_skills": list(job.required_skills or []),
        }
    }


def emit(
    uow: AbstractUnitOfWork,
    job: Job,
    trigger_type: TriggerType,
    chain_depth: int = 0,
    **context: Any,
) -> DomainEvent:
    """Record a domain event about ``job`` for dispatch after commit."""
    payload = job_context(job)
    payload.update(context)
    event = DomainEvent(
        tenant_id=job.tenant_id,
        job_id=job.id,
        trigger_type=trigger_type,
        context=payload,
        chain_depth=chain_depth,
    )
    uow.collect(event)
    return event


def change_job_status(
    uow: AbstractUnitOfWork,
    job: Job,
    new_status: JobStatus,
    actor: str,
    reason: str | None = None,
    notes: str | None = None,
    chain_depth: int = 0,
) -> JobStatusLog:
    """
    Transition a job loaded for update and queue the status_change event.

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    previous = job.status
    entry = status_machine(uow).transition(job, new_status, actor, reason, notes)
    if new_status == JobStatus.COMPLETED:
        job.completion_percentage = 100
    emit(
        uow,
        job,
        TriggerType.STATUS_CHANGE,
        chain_depth=chain_depth,
        previous_status=previous.value,
        new_status=new_status.value,
        reason=reason,
        changed_by=actor,
    )
    return entry
