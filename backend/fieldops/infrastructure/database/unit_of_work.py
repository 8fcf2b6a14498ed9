"""
Unit of Work implementation for managing transactions across repositories.

Leaving the context commits, an exception rolls back. Domain events collected
during the unit are handed to the event sink only after the commit succeeds,
so automation never sees a mutation that was rolled back.
"""

from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from fieldops.core.db import engine
from fieldops.core.observability import get_logger
from fieldops.domain.shared.base import DomainEvent
from fieldops.domain.shared.exceptions import PersistenceError
from fieldops.domain.shared.unit_of_work import AbstractUnitOfWork

from .repositories import (
    SqlAutomationTriggerRepository,
    SqlCrewAvailabilityRepository,
    SqlCrewMemberRepository,
    SqlEventStatusLogRepository,
    SqlJobDependencyRepository,
    SqlJobMessageRepository,
    SqlJobRepository,
    SqlJobStatusLogRepository,
    SqlJobTaskRepository,
    SqlScheduleEventRepository,
    SqlServiceWindowRepository,
    SqlTimeEntryRepository,
    SqlTriggerExecutionRepository,
)

logger = get_logger(__name__)

EventSink = Callable[[DomainEvent], None]


def default_session_factory() -> Session:
    # Objects stay readable after commit; responses are built from them
    return Session(engine, expire_on_commit=False)


class SqlModelUnitOfWork(AbstractUnitOfWork):
    """
    SQLModel-based implementation of Unit of Work pattern.

    Args:
        session_factory: Creates the session for this unit
        event_sink: Receives each collected domain event after commit
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = default_session_factory,
        event_sink: EventSink | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._event_sink = event_sink
        self._session: Session | None = None
        self._events: list[DomainEvent] = []
        self._hooks: list[Callable[[], None]] = []

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work used outside its context")
        return self._session

    def __enter__(self) -> "SqlModelUnitOfWork":
        self._session = self._session_factory()
        self._events = []
        self._hooks = []
        self._init_repositories(self._session)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is not None:
                self.rollback()
            else:
                self.commit()
        finally:
            if self._session is not None:
                self._session.close()
                self._session = None

    def _init_repositories(self, session: Session) -> None:
        self.jobs = SqlJobRepository(session)
        self.tasks = SqlJobTaskRepository(session)
        self.job_status_logs = SqlJobStatusLogRepository(session)
        self.events = SqlScheduleEventRepository(session)
        self.event_status_logs = SqlEventStatusLogRepository(session)
        self.crew = SqlCrewMemberRepository(session)
        self.availability = SqlCrewAvailabilityRepository(session)
        self.dependencies = SqlJobDependencyRepository(session)
        self.triggers = SqlAutomationTriggerRepository(session)
        self.executions = SqlTriggerExecutionRepository(session)
        self.time_entries = SqlTimeEntryRepository(session)
        self.service_windows = SqlServiceWindowRepository(session)
        self.messages = SqlJobMessageRepository(session)

    def commit(self) -> None:
        """
        Commit the current transaction and run the after-commit work.

        Raises:
            PersistenceError: If the commit fails; nothing is dispatched
        """
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            self._events.clear()
            self._hooks.clear()
            logger.error("Failed to commit transaction", error=str(e))
            raise PersistenceError("commit", e) from e

        events, self._events = self._events, []
        hooks, self._hooks = self._hooks, []
        if self._event_sink is not None:
            for event in events:
                self._event_sink(event)
        for hook in hooks:
            hook()

    def rollback(self) -> None:
        self._events.clear()
        self._hooks.clear()
        try:
            self.session.rollback()
        except SQLAlchemyError as e:
            raise PersistenceError("rollback", e) from e

    def collect(self, event: DomainEvent) -> None:
        self._events.append(event)

    def after_commit(self, hook: Callable[[], None]) -> None:
        self._hooks.append(hook)
