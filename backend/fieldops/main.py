import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from fieldops.api.envelope import error
from fieldops.api.main import api_router
from fieldops.core.config import settings
from fieldops.core.db import init_db
from fieldops.core.observability import (
    REQUEST_COUNT,
    REQUEST_DURATION,
    get_logger,
    initialize_observability,
    set_correlation_id,
    set_user_id,
)
from fieldops.domain.shared.exceptions import (
    CyclicDependencyError,
    DependencyNotSatisfiedError,
    DomainError,
    InvalidTransitionError,
    JobClosedError,
    JobInUseError,
    NotFoundError,
    PersistenceError,
    SchedulingConflictError,
    ValidationError,
)
from fieldops.infrastructure.container import get_container

logger = get_logger(__name__)

# First match wins
ERROR_STATUS_CODES: list[tuple[type[DomainError], int]] = [
    (NotFoundError, 404),
    (ValidationError, 400),
    (CyclicDependencyError, 400),
    (SchedulingConflictError, 409),
    (InvalidTransitionError, 409),
    (DependencyNotSatisfiedError, 409),
    (JobClosedError, 409),
    (JobInUseError, 409),
    (PersistenceError, 503),
]


def status_code_for(exc: DomainError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 400


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Bind request context for logging and record per-route request metrics."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))
        if actor := request.headers.get("X-User-ID"):
            set_user_id(actor)

        started = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        except Exception:
            logger.exception("Unhandled error", method=request.method, path=request.url.path)
            raise
        finally:
            # Route template, not the raw path
            route = request.scope.get("route")
            endpoint = getattr(route, "path", request.url.path)
            elapsed = time.perf_counter() - started
            REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=status).inc()
            REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(elapsed)
            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=int(status),
                duration_seconds=round(elapsed, 4),
            )


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    initialize_observability()
    init_db()
    logger.info(
        "FieldOps API ready",
        environment=settings.ENVIRONMENT,
        automation_dispatch_mode=settings.AUTOMATION_DISPATCH_MODE,
    )
    try:
        yield
    finally:
        # Only a built container owns a worker pool
        if get_container.cache_info().currsize:
            get_container().shutdown()
        logger.info("FieldOps API stopped")


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        enable_tracing=True,
        traces_sample_rate=1.0 if settings.ENVIRONMENT == "staging" else 0.1,
        environment=settings.ENVIRONMENT,
    )

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    FieldOps - Field-Service Job Scheduling API

    Jobs, crew, schedule events and automation for field-service businesses.

    ## Features

    * **Conflict-free scheduling**: crew double-bookings and unavailable windows are rejected
    * **Job lifecycle**: validated status transitions with a complete history
    * **Dependencies**: prerequisite jobs gate scheduling, cycles are refused
    * **Optimizer**: greedy crew and slot proposals for unscheduled jobs
    * **Automation**: condition-matched triggers with an idempotent execution ledger
    """,
    version="1.0.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_code_for(exc)
    if isinstance(exc, PersistenceError):
        logger.error("Persistence failure", path=request.url.path, error=exc.message)
    else:
        logger.info(
            "Request rejected",
            path=request.url.path,
            error_type=exc.error_type.value,
            status_code=status_code,
        )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": exc.to_dict()}),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            error("validation", "Request validation failed", {"errors": errors})
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        body = error(exc.detail.get("type", "http_error"), exc.detail.get("message", ""))
    else:
        body = error("http_error", str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


app.add_middleware(ObservabilityMiddleware)

if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
