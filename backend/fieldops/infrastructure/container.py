"""
Service wiring.

Builds the automation dispatcher, the unit-of-work factory that feeds it, the
automation engine with its action handlers and the job orchestrator, in the
order their dependencies require.
"""

from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache, partial

from sqlmodel import Session

from fieldops.application.services.automation_actions import AutomationActions
from fieldops.application.services.job_orchestrator import JobOrchestrator
from fieldops.core.config import settings
from fieldops.domain.scheduling.gateways import (
    InvoiceGateway,
    NotificationGateway,
    PurchasingGateway,
    QuoteGateway,
)
from fieldops.domain.scheduling.services.automation_engine import AutomationEngine

from .database.unit_of_work import SqlModelUnitOfWork, default_session_factory
from .events.automation_dispatcher import AutomationDispatcher
from .gateways import (
    LoggingInvoiceGateway,
    LoggingNotificationGateway,
    LoggingPurchasingGateway,
    LoggingQuoteGateway,
)


@dataclass
class ServiceContainer:
    dispatcher: AutomationDispatcher
    engine: AutomationEngine
    orchestrator: JobOrchestrator
    uow_factory: Callable[[], SqlModelUnitOfWork]

    def shutdown(self) -> None:
        self.dispatcher.shutdown(wait=True)


def build_container(
    session_factory: Callable[[], Session] = default_session_factory,
    quotes: QuoteGateway | None = None,
    notifications: NotificationGateway | None = None,
    invoices: InvoiceGateway | None = None,
    purchasing: PurchasingGateway | None = None,
    dispatch_mode: str | None = None,
) -> ServiceContainer:
    """Wire the services; gateways default to the logging implementations."""
    dispatcher = AutomationDispatcher(
        mode=dispatch_mode or settings.AUTOMATION_DISPATCH_MODE,
        max_workers=settings.AUTOMATION_MAX_WORKERS,
        max_chain_depth=settings.AUTOMATION_MAX_CHAIN_DEPTH,
    )
    uow_factory = partial(SqlModelUnitOfWork, session_factory, dispatcher.dispatch)

    notifications = notifications or LoggingNotificationGateway()
    actions = AutomationActions(
        notifications,
        invoices or LoggingInvoiceGateway(),
        purchasing or LoggingPurchasingGateway(),
    )
    engine = AutomationEngine(uow_factory, actions.registry())
    dispatcher.bind(engine)

    orchestrator = JobOrchestrator(uow_factory, quotes or LoggingQuoteGateway(), notifications)
    return ServiceContainer(
        dispatcher=dispatcher,
        engine=engine,
        orchestrator=orchestrator,
        uow_factory=uow_factory,
    )


@lru_cache
def get_container() -> ServiceContainer:
    return build_container()
