"""
Health Check API Routes

Liveness and readiness checks. Neither needs a tenant.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from fieldops.api.deps import SessionDep
from fieldops.core.db import ping
from fieldops.core.observability import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/health", summary="Liveness check")
def health() -> dict:
    return {"success": True, "data": {"status": "healthy"}}


@router.get("/health/ready", summary="Readiness check")
def ready(session: SessionDep) -> JSONResponse:
    """Report ready only when the database answers a round-trip."""
    try:
        ping(session)
    except SQLAlchemyError as e:
        logger.error("Readiness check failed", error=str(e))
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "error": {
                    "type": "persistence",
                    "message": "Database unavailable",
                    "details": {},
                },
            },
        )
    return JSONResponse(
        status_code=200,
        content={"success": True, "data": {"status": "ready", "database": "ok"}},
    )
