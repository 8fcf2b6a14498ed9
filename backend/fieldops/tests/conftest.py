import os

# Settings and the default engine are built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "local"
os.environ["AUTOMATION_DISPATCH_MODE"] = "inline"
os.environ["ENABLE_METRICS"] = "false"
os.environ["ENABLE_TRACING"] = "false"
os.environ.pop("SENTRY_DSN", None)

from collections.abc import Generator  # noqa: E402
from dataclasses import dataclass, field  # noqa: E402
from typing import Any  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import Engine  # noqa: E402
from sqlmodel import Session  # noqa: E402

from fieldops.api.deps import get_db, get_orchestrator  # noqa: E402
from fieldops.core.db import build_engine, init_db  # noqa: E402
from fieldops.domain.scheduling.gateways import Quote  # noqa: E402
from fieldops.infrastructure.container import ServiceContainer, build_container  # noqa: E402
from fieldops.main import app  # noqa: E402


class RecordingNotificationGateway:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    def send(self, tenant_id, channel, recipient, subject, body, metadata) -> None:
        self.sent.append(
            {
                "tenant_id": tenant_id,
                "channel": channel,
                "recipient": recipient,
                "subject": subject,
                "body": body,
                "metadata": metadata,
            }
        )


class RecordingInvoiceGateway:
    def __init__(self) -> None:
        self.requests: list[tuple[UUID, UUID, dict[str, Any]]] = []

    def request_invoice(self, tenant_id, job_id, config) -> None:
        self.requests.append((tenant_id, job_id, config))


class RecordingPurchasingGateway:
    def __init__(self) -> None:
        self.orders: list[tuple[UUID, UUID, list[dict[str, Any]]]] = []

    def order_materials(self, tenant_id, job_id, items) -> None:
        self.orders.append((tenant_id, job_id, items))


class InMemoryQuoteGateway:
    def __init__(self) -> None:
        self.quotes: dict[tuple[UUID, UUID], Quote] = {}

    def add(self, quote: Quote) -> Quote:
        self.quotes[(quote.tenant_id, quote.id)] = quote
        return quote

    def get_accepted_quote(self, tenant_id, quote_id) -> Quote | None:
        return self.quotes.get((tenant_id, quote_id))


@dataclass
class Gateways:
    quotes: InMemoryQuoteGateway = field(default_factory=InMemoryQuoteGateway)
    notifications: RecordingNotificationGateway = field(
        default_factory=RecordingNotificationGateway
    )
    invoices: RecordingInvoiceGateway = field(default_factory=RecordingInvoiceGateway)
    purchasing: RecordingPurchasingGateway = field(default_factory=RecordingPurchasingGateway)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """A fresh in-memory database per test."""
    test_engine = build_engine("sqlite://")
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine):
    return lambda: Session(engine, expire_on_commit=False)


@pytest.fixture
def gateways() -> Gateways:
    return Gateways()


@pytest.fixture
def container(session_factory, gateways: Gateways) -> Generator[ServiceContainer, None, None]:
    services = build_container(
        session_factory=session_factory,
        quotes=gateways.quotes,
        notifications=gateways.notifications,
        invoices=gateways.invoices,
        purchasing=gateways.purchasing,
        dispatch_mode="inline",
    )
    yield services
    services.shutdown()


@pytest.fixture
def uow_factory(container: ServiceContainer):
    return container.uow_factory


@pytest.fixture
def orchestrator(container: ServiceContainer):
    return container.orchestrator


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def client(engine: Engine, container: ServiceContainer) -> Generator[TestClient, None, None]:
    """API client bound to the test database; the app lifespan is not run."""

    def override_db() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_orchestrator] = lambda: container.orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers(tenant_id: UUID) -> dict[str, str]:
    return {"X-Tenant-ID": str(tenant_id), "X-User-ID": "dispatcher@example.com"}
