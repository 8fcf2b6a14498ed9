"""
Schedule Routes

Cross-job views of the schedule and the optimizer endpoint.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Query

from fieldops.api.deps import ActorDep, OrchestratorDep, TenantDep
from fieldops.api.envelope import Envelope, ok
from fieldops.application.dtos import OptimizeRequest, OptimizeResponse, ScheduleOverview

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("/overview", response_model=Envelope[ScheduleOverview])
def schedule_overview(
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
):
    return ok(orchestrator.schedule_overview(tenant_id, start_date, end_date))


@router.get(
    "/conflicts",
    response_model=Envelope[list[dict[str, Any]]],
    summary="Double-bookings among current and future events",
)
def schedule_conflicts(tenant_id: TenantDep, orchestrator: OrchestratorDep):
    return ok(orchestrator.schedule_conflicts(tenant_id))


@router.post("/optimize", response_model=Envelope[OptimizeResponse])
def optimize_schedule(
    request: OptimizeRequest,
    tenant_id: TenantDep,
    actor: ActorDep,
    orchestrator: OrchestratorDep,
):
    """
    Propose crew and time slots for unscheduled jobs.

    With ``commit`` set, each proposal is created as a schedule event and the
    per-proposal outcome is returned alongside the proposals.
    """
    return ok(orchestrator.optimize(tenant_id, request, actor))
