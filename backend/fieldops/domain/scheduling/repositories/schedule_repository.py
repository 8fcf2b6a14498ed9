"""
Schedule Repository Interfaces

Defines the contracts for schedule event and event status history data access.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from fieldops.models import EventStatusLog, ScheduleEvent


class ScheduleEventRepository(ABC):
    """
    Abstract repository interface for ScheduleEvent entities.

    "Active" always means planned, confirmed or in progress: the statuses
    that hold crew time.
    """

    @abstractmethod
    def get(self, tenant_id: UUID, job_id: UUID, event_id: UUID) -> ScheduleEvent | None:
        pass

    @abstractmethod
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[ScheduleEvent]:
        pass

    @abstractmethod
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        pass

    @abstractmethod
    def list_active_for_crew(
        self,
        tenant_id: UUID,
        crew_ids: Iterable[UUID],
        start: datetime,
        end: datetime,
        exclude_event_id: UUID | None = None,
    ) -> list[ScheduleEvent]:
        """
        Active events sharing a crew member and overlapping ``[start, end)``.

        Args:
            tenant_id: Owning tenant
            crew_ids: Crew members to check
            start: Window start (inclusive)
            end: Window end (exclusive)
            exclude_event_id: Event being updated, ignored in the result

        Returns:
            Events ordered by start time

        Raises:
            PersistenceError: If retrieval operation fails
        """
        pass

    @abstractmethod
    def list_active_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[ScheduleEvent]:
        """Active events overlapping ``[start, end)``, ordered by start time."""
        pass

    @abstractmethod
    def list_active_since(self, tenant_id: UUID, since: datetime) -> list[ScheduleEvent]:
        """Active events that have not ended by ``since``."""
        pass

    @abstractmethod
    def list_starting_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[ScheduleEvent]:
        """Events of any status starting inside ``[start, end)``."""
        pass

    @abstractmethod
    def add(self, event: ScheduleEvent) -> ScheduleEvent:
        pass

    @abstractmethod
    def delete(self, event: ScheduleEvent) -> None:
        pass


class EventStatusLogRepository(ABC):
    """Append-only schedule event status history."""

    @abstractmethod
    def add(self, entry: EventStatusLog) -> EventStatusLog:
        pass

    @abstractmethod
    def list_for_event(self, tenant_id: UUID, event_id: UUID) -> list[EventStatusLog]:
        pass
