"""
Observability Infrastructure

Structured logging, Prometheus metrics and OpenTelemetry tracing for the
scheduling engine. Every log record is stamped with the request's
correlation id, acting user and tenant.
"""

import contextlib
import contextvars
import functools
import logging
import sys
import time
import uuid
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from prometheus_client import Counter, Histogram, start_http_server

from .config import settings

F = TypeVar("F", bound=Callable[..., Any])

_request_context: dict[str, contextvars.ContextVar[str]] = {
    key: contextvars.ContextVar(key, default="")
    for key in ("correlation_id", "user_id", "tenant_id")
}

# HTTP
REQUEST_COUNT = Counter(
    "fieldops_http_requests_total", "HTTP requests served", ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "fieldops_http_request_duration_seconds", "HTTP request latency", ["method", "endpoint"]
)

# Orchestrator operations
SCHEDULING_OPERATIONS = Counter(
    "fieldops_scheduling_operations_total",
    "Orchestrator operations by outcome",
    ["operation_type", "status"],
)
SCHEDULING_DURATION = Histogram(
    "fieldops_scheduling_operation_duration_seconds",
    "Latency of successful orchestrator operations",
    ["operation_type"],
)

# Scheduling engine
CONFLICTS_DETECTED = Counter(
    "fieldops_conflicts_detected_total",
    "Crew double-bookings found while validating an event",
    ["outcome"],  # rejected | overridden
)
STATUS_TRANSITIONS = Counter(
    "fieldops_status_transitions_total",
    "Job and schedule event status changes",
    ["entity", "from_status", "to_status"],
)
TRIGGER_EXECUTIONS = Counter(
    "fieldops_trigger_executions_total",
    "Automation trigger firings",
    ["trigger_type", "action_type", "status"],
)
OPTIMIZER_RUNS = Counter(
    "fieldops_optimizer_runs_total", "Schedule optimizer runs", ["outcome"]  # completed | cancelled
)
OPTIMIZER_DURATION = Histogram(
    "fieldops_optimizer_run_duration_seconds", "Schedule optimizer wall time"
)


class CorrelationIdProcessor:
    """Stamp correlation, user and tenant ids from the request context onto each entry."""

    def __call__(self, logger: Any, name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key, var in _request_context.items():
            value = var.get()
            if value:
                event_dict.setdefault(key, value)
        return event_dict


def setup_structured_logging() -> None:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            CorrelationIdProcessor(),
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.LOG_SQL else logging.WARNING
    )


def setup_tracing() -> None:
    if settings.ENABLE_TRACING:
        trace.set_tracer_provider(TracerProvider())


def setup_metrics() -> None:
    """Serve the Prometheus registry on METRICS_PORT."""
    if settings.ENABLE_METRICS:
        start_http_server(settings.METRICS_PORT)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to the current context, generating one if absent."""
    correlation_id = correlation_id or str(uuid.uuid4())
    _request_context["correlation_id"].set(correlation_id)
    return correlation_id


def set_user_id(user_id: str) -> None:
    _request_context["user_id"].set(user_id)


def set_tenant_id(tenant_id: str) -> None:
    _request_context["tenant_id"].set(tenant_id)


def get_correlation_id() -> str:
    return _request_context["correlation_id"].get()


def record_status_transition(entity: str, from_status: str | None, to_status: str) -> None:
    STATUS_TRANSITIONS.labels(
        entity=entity, from_status=from_status or "none", to_status=to_status
    ).inc()


def monitor_performance(operation_type: str):
    """
    Time an orchestrator operation, count its outcome and log the result.

    Domain errors are logged at info without a traceback since they are
    ordinary rejections (conflicts, invalid transitions). Anything else
    carries exc_info.
    """

    def decorator(func: F) -> F:
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                SCHEDULING_OPERATIONS.labels(operation_type=operation_type, status="error").inc()
                logger.info(
                    "Operation failed",
                    operation=operation_type,
                    duration_seconds=time.perf_counter() - started,
                    error_type=getattr(e, "error_type", type(e).__name__),
                    error=str(e),
                    exc_info=not hasattr(e, "error_type"),
                )
                raise

            elapsed = time.perf_counter() - started
            SCHEDULING_OPERATIONS.labels(operation_type=operation_type, status="success").inc()
            SCHEDULING_DURATION.labels(operation_type=operation_type).observe(elapsed)
            logger.info("Operation completed", operation=operation_type, duration_seconds=elapsed)
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


@contextlib.contextmanager
def trace_operation(
    operation_name: str,
    attributes: dict[str, str | int | float] | None = None,
) -> Iterator[trace.Span]:
    """Open a span tagged with the current correlation id; failures mark it as errored."""
    tracer = trace.get_tracer("fieldops")
    with tracer.start_as_current_span(operation_name, attributes=attributes or {}) as span:
        span.set_attribute("correlation_id", get_correlation_id())
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def initialize_observability() -> None:
    setup_structured_logging()
    setup_tracing()
    setup_metrics()
    get_logger("fieldops.observability").info(
        "Observability initialized",
        log_format=settings.LOG_FORMAT,
        metrics_port=settings.METRICS_PORT if settings.ENABLE_METRICS else None,
        tracing=settings.ENABLE_TRACING,
    )
