"""Automation trigger management and external event ingress."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from fieldops.api.deps import ActorDep, OrchestratorDep, TenantDep
from fieldops.api.envelope import Envelope, Message, ok
from fieldops.application.dtos import ExternalEventAccepted
from fieldops.domain.scheduling.value_objects import TriggerType
from fieldops.models import (
    AutomationTriggerCreate,
    AutomationTriggerPublic,
    AutomationTriggerUpdate,
    ExternalEventIn,
)

router = APIRouter(prefix="/automation", tags=["automation"])


@router.get("/triggers", response_model=Envelope[list[AutomationTriggerPublic]])
def list_triggers(
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    trigger_type: TriggerType | None = Query(None),
    job_id: UUID | None = Query(None),
    is_active: bool | None = Query(None),
):
    return ok(orchestrator.list_triggers(tenant_id, trigger_type, job_id, is_active))


@router.post(
    "/triggers",
    response_model=Envelope[AutomationTriggerPublic],
    status_code=status.HTTP_201_CREATED,
)
def create_trigger(
    trigger_in: AutomationTriggerCreate,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.create_trigger(tenant_id, trigger_in, actor))


@router.put("/triggers/{trigger_id}", response_model=Envelope[AutomationTriggerPublic])
def update_trigger(
    trigger_id: UUID,
    trigger_in: AutomationTriggerUpdate,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.update_trigger(tenant_id, trigger_id, trigger_in))


@router.delete("/triggers/{trigger_id}", response_model=Envelope[Message])
def delete_trigger(trigger_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    orchestrator.delete_trigger(tenant_id, trigger_id)
    return ok(Message(message="Trigger deleted"))


@router.post(
    "/events",
    response_model=Envelope[ExternalEventAccepted],
    status_code=status.HTTP_202_ACCEPTED,
    summary="Ingest an external event",
)
def ingest_event(event_in: ExternalEventIn, tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.ingest_external_event(tenant_id, event_in))
