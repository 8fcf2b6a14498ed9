from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query

from fieldops.api.deps import OrchestratorDep, TenantDep
from fieldops.api.envelope import Envelope, ok
from fieldops.application.dtos import CompletionReport, UtilizationReport

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/utilization", response_model=Envelope[UtilizationReport])
def utilization_report(
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    crew_member_id: UUID | None = Query(None),
):
    return ok(orchestrator.utilization_report(tenant_id, start_date, end_date, crew_member_id))


@router.get("/completion", response_model=Envelope[CompletionReport])
def completion_report(
    tenant_id: TenantDep,
    orchestrator: OrchestratorDep,
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
):
    return ok(orchestrator.completion_report(tenant_id, start_date, end_date))
