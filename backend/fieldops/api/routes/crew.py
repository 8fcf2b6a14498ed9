"""Crew member and availability routes."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from fieldops.api.deps import OrchestratorDep, TenantDep
from fieldops.api.envelope import Envelope, ok
from fieldops.models import (
    CrewAvailabilityCreate,
    CrewAvailabilityPublic,
    CrewMemberCreate,
    CrewMemberPublic,
    CrewMemberUpdate,
)

router = APIRouter(prefix="/crew", tags=["crew"])


@router.get("/members", response_model=Envelope[list[CrewMemberPublic]])
def list_crew_members(
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    include_inactive: bool = Query(False),
):
    return ok(orchestrator.list_crew_members(tenant_id, active_only=not include_inactive))


@router.post(
    "/members",
    response_model=Envelope[CrewMemberPublic],
    status_code=status.HTTP_201_CREATED,
)
def create_crew_member(
    member_in: CrewMemberCreate, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    return ok(orchestrator.create_crew_member(tenant_id, member_in))


@router.put("/members/{crew_member_id}", response_model=Envelope[CrewMemberPublic])
def update_crew_member(
    crew_member_id: UUID,
    member_in: CrewMemberUpdate,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.update_crew_member(tenant_id, crew_member_id, member_in))


@router.delete(
    "/members/{crew_member_id}",
    response_model=Envelope[CrewMemberPublic],
    summary="Deactivate crew member",
)
def deactivate_crew_member(
    crew_member_id: UUID, tenant_id: TenantDep, orchestrator: OrchestratorDep
):
    return ok(orchestrator.deactivate_crew_member(tenant_id, crew_member_id))


@router.get(
    "/members/{crew_member_id}/availability",
    response_model=Envelope[list[CrewAvailabilityPublic]],
)
def list_availability(
    crew_member_id: UUID,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
):
    return ok(orchestrator.list_availability(tenant_id, crew_member_id, start_date, end_date))


@router.post(
    "/members/{crew_member_id}/availability",
    response_model=Envelope[CrewAvailabilityPublic],
    status_code=status.HTTP_201_CREATED,
)
def add_availability(
    crew_member_id: UUID,
    window_in: CrewAvailabilityCreate,
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
):
    return ok(orchestrator.add_availability(tenant_id, crew_member_id, window_in))
