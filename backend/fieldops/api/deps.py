"""
API Dependencies

Tenant and actor resolution from request headers, plus injection of the
database session and the job orchestrator.
"""

from collections.abc import Generator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session

from fieldops.application.services.job_orchestrator import JobOrchestrator
from fieldops.core.db import engine
from fieldops.core.observability import set_tenant_id, set_user_id
from fieldops.infrastructure.container import get_container

DEFAULT_ACTOR = "system"


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def get_tenant_id(
    x_tenant_id: Annotated[str | None, Header(description="Owning tenant (UUID)")] = None,
) -> UUID:
    """Resolve the tenant every query and mutation is scoped to."""
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"type": "tenant_required", "message": "X-Tenant-ID header is required"},
        )
    try:
        tenant_id = UUID(x_tenant_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"type": "tenant_required", "message": "X-Tenant-ID must be a UUID"},
        )
    set_tenant_id(str(tenant_id))
    return tenant_id


def get_actor(
    x_user_id: Annotated[str | None, Header(description="Acting user")] = None,
) -> str:
    actor = (x_user_id or "").strip() or DEFAULT_ACTOR
    set_user_id(actor)
    return actor


def get_orchestrator() -> JobOrchestrator:
    return get_container().orchestrator


SessionDep = Annotated[Session, Depends(get_db)]
TenantDep = Annotated[UUID, Depends(get_tenant_id)]
ActorDep = Annotated[str, Depends(get_actor)]
OrchestratorDep = Annotated[JobOrchestrator, Depends(get_orchestrator)]
