"""
Unit of Work Interface

Groups the scheduling repositories under one transaction. Domain events
collected during the unit are dispatched only after a successful commit.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from fieldops.domain.scheduling.repositories import (
    AutomationTriggerRepository,
    CrewAvailabilityRepository,
    CrewMemberRepository,
    EventStatusLogRepository,
    JobDependencyRepository,
    JobMessageRepository,
    JobRepository,
    JobStatusLogRepository,
    JobTaskRepository,
    ScheduleEventRepository,
    ServiceWindowRepository,
    TimeEntryRepository,
    TriggerExecutionRepository,
)

from .base import DomainEvent


class AbstractUnitOfWork(ABC):
    """
    Abstract base class for Unit of Work pattern.

    Used as a context manager: leaving the block normally commits, leaving it
    with an exception rolls back.
    """

    jobs: JobRepository
    tasks: JobTaskRepository
    job_status_logs: JobStatusLogRepository
    events: ScheduleEventRepository
    event_status_logs: EventStatusLogRepository
    crew: CrewMemberRepository
    availability: CrewAvailabilityRepository
    dependencies: JobDependencyRepository
    triggers: AutomationTriggerRepository
    executions: TriggerExecutionRepository
    time_entries: TimeEntryRepository
    service_windows: ServiceWindowRepository
    messages: JobMessageRepository

    @abstractmethod
    def __enter__(self) -> "AbstractUnitOfWork":
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit the transaction, then run the after-commit hooks."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard the transaction and every collected event."""
        pass

    @abstractmethod
    def collect(self, event: DomainEvent) -> None:
        """Queue a domain event for dispatch after commit."""
        pass

    @abstractmethod
    def after_commit(self, hook: Callable[[], None]) -> None:
        """Run ``hook`` once the current transaction has committed."""
        pass
