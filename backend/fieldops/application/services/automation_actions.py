"""
Automation action handlers.

One handler per action type. Handlers run inside the unit of work the engine
opened for the trigger; raising rolls back the action and marks the
execution failed.
"""

from datetime import timedelta
from string import Template
from typing import Any

from fieldops.core.config import settings
from fieldops.core.observability import get_logger
from fieldops.domain.scheduling.gateways import (
    InvoiceGateway,
    NotificationGateway,
    PurchasingGateway,
)
from fieldops.domain.scheduling.services.automation_engine import ActionHandler, ActionRequest
from fieldops.domain.scheduling.value_objects import ActionType, JobStatus
from fieldops.domain.shared.base import utcnow
from fieldops.domain.shared.exceptions import JobNotFoundError
from fieldops.models import Job, JobTask

from .job_events import change_job_status

logger = get_logger(__name__)

AUTOMATION_ACTOR = "automation"


def flatten_context(context: dict[str, Any], prefix: str = "") -> dict[str, str]:
    """
    Flatten nested context into template names.

    ``{"job": {"title": "x", "job_number": "J-1"}}`` becomes
    ``{"job_title": "x", "job_number": "J-1"}``: a key that already starts
    with its parent's name is not prefixed twice. Top-level keys win over
    flattened ones of the same name.
    """
    flat: dict[str, str] = {}
    nested: dict[str, str] = {}
    for key, value in context.items():
        key = str(key)
        name = key if not prefix or key.startswith(f"{prefix}_") else f"{prefix}_{key}"
        if isinstance(value, dict):
            nested.update(flatten_context(value, name))
        elif value is not None:
            flat[name] = str(value)
    return {**nested, **flat}


def render(template: str | None, context: dict[str, Any]) -> str:
    if not template:
        return ""
    return Template(template).safe_substitute(flatten_context(context))


class AutomationActions:
    """Action handlers bound to the external collaborators they call."""

    def __init__(
        self,
        notifications: NotificationGateway,
        invoices: InvoiceGateway,
        purchasing: PurchasingGateway,
    ) -> None:
        self._notifications = notifications
        self._invoices = invoices
        self._purchasing = purchasing

    def registry(self) -> dict[ActionType, ActionHandler]:
        return {
            ActionType.SEND_NOTIFICATION: self.send_notification,
            ActionType.ESCALATE_ISSUE: self.escalate_issue,
            ActionType.CREATE_TASK: self.create_task,
            ActionType.SCHEDULE_FOLLOWUP: self.schedule_followup,
            ActionType.UPDATE_STATUS: self.update_status,
            ActionType.GENERATE_INVOICE: self.generate_invoice,
            ActionType.ORDER_MATERIALS: self.order_materials,
        }

    @staticmethod
    def _job(request: ActionRequest, for_update: bool = False) -> Job:
        if request.job_id is None:
            raise ValueError(f"{request.trigger.action_type.value} needs a job")
        repo = request.uow.jobs
        job = (
            repo.get_for_update(request.tenant_id, request.job_id)
            if for_update
            else repo.get(request.tenant_id, request.job_id)
        )
        if job is None:
            raise JobNotFoundError(request.job_id)
        return job

    @staticmethod
    def _metadata(request: ActionRequest, **extra: Any) -> dict[str, Any]:
        metadata = {
            "trigger_id": str(request.trigger.id),
            "trigger_name": request.trigger.name,
            "job_id": str(request.job_id) if request.job_id else None,
        }
        metadata.update(extra)
        return metadata

    def send_notification(self, request: ActionRequest) -> None:
        config = request.config
        self._notifications.send(
            request.tenant_id,
            config.get("channel", "email"),
            config.get("recipient"),
            render(config.get("subject", request.trigger.name), request.context),
            render(config.get("message") or config.get("body"), request.context),
            self._metadata(request),
        )

    def escalate_issue(self, request: ActionRequest) -> None:
        config = request.config
        subject = render(config.get("subject", request.trigger.name), request.context)
        self._notifications.send(
            request.tenant_id,
            config.get("channel", "email"),
            config.get("escalate_to") or config.get("recipient"),
            f"[ESCALATION] {subject}",
            render(config.get("message") or config.get("body"), request.context),
            self._metadata(request, priority=config.get("priority", "high"), escalation=True),
        )
        logger.warning(
            "Issue escalated by automation",
            trigger_id=str(request.trigger.id),
            job_id=str(request.job_id) if request.job_id else None,
        )

    def create_task(self, request: ActionRequest) -> None:
        job = self._job(request)
        config = request.config
        request.uow.tasks.add(
            JobTask(
                tenant_id=request.tenant_id,
                job_id=job.id,
                title=render(config["title"], request.context)[:200],
                description=render(config.get("description"), request.context) or None,
                estimated_minutes=config.get("estimated_minutes", settings.DEFAULT_TASK_MINUTES),
                sort_order=request.uow.tasks.count_for_job(request.tenant_id, job.id),
                required_skills=config.get("required_skills", []),
            )
        )

    def schedule_followup(self, request: ActionRequest) -> None:
        job = self._job(request)
        config = request.config
        days_after = int(config.get("days_after", 1))
        if days_after < 0:
            raise ValueError("days_after must not be negative")
        request.uow.tasks.add(
            JobTask(
                tenant_id=request.tenant_id,
                job_id=job.id,
                title=render(config.get("title", "Follow-up"), request.context)[:200],
                description=render(config.get("description"), request.context) or None,
                estimated_minutes=config.get("estimated_minutes", settings.DEFAULT_TASK_MINUTES),
                sort_order=request.uow.tasks.count_for_job(request.tenant_id, job.id),
                due_at=utcnow() + timedelta(days=days_after),
            )
        )

    def update_status(self, request: ActionRequest) -> None:
        job = self._job(request, for_update=True)
        change_job_status(
            request.uow,
            job,
            JobStatus(request.config["status"]),
            AUTOMATION_ACTOR,
            reason=request.config.get("reason", f"Automation: {request.trigger.name}"),
            notes=request.config.get("notes"),
            chain_depth=request.chain_depth + 1,
        )

    def generate_invoice(self, request: ActionRequest) -> None:
        job = self._job(request)
        self._invoices.request_invoice(request.tenant_id, job.id, dict(request.config))

    def order_materials(self, request: ActionRequest) -> None:
        job = self._job(request)
        items = request.config.get("items", [])
        if not isinstance(items, list):
            raise ValueError("order_materials items must be a list")
        self._purchasing.order_materials(request.tenant_id, job.id, items)
