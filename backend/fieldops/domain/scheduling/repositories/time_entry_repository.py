"""Time entry repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from fieldops.models import TimeEntry


class TimeEntryRepository(ABC):
    @abstractmethod
    def get(self, tenant_id: UUID, job_id: UUID, entry_id: UUID) -> TimeEntry | None:
        pass

    @abstractmethod
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[TimeEntry]:
        pass

    @abstractmethod
    def list_for_jobs(self, tenant_id: UUID, job_ids: list[UUID]) -> list[TimeEntry]:
        pass

    @abstractmethod
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        pass

    @abstractmethod
    def list_started_between(
        self,
        tenant_id: UUID,
        start: datetime,
        end: datetime,
        crew_member_id: UUID | None = None,
    ) -> list[TimeEntry]:
        pass

    @abstractmethod
    def add(self, entry: TimeEntry) -> TimeEntry:
        pass

    @abstractmethod
    def delete(self, entry: TimeEntry) -> None:
        pass
