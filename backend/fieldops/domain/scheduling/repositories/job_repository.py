"""
Job Repository Interfaces

Defines the contracts for job, task and job status history data access.
Every method is scoped by tenant; a row belonging to another tenant is
indistinguishable from a missing one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from fieldops.domain.scheduling.value_objects import JobStatus, PriorityLevel
from fieldops.models import Job, JobStatusLog, JobTask


@dataclass(frozen=True)
class JobFilters:
    """Optional filters for job listings."""

    status: JobStatus | None = None
    customer_id: UUID | None = None
    priority: PriorityLevel | None = None
    search: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class JobRepository(ABC):
    """
    Abstract repository interface for Job entities.

    Defines the contract that infrastructure layer must implement
    for job persistence and retrieval operations.
    """

    @abstractmethod
    def get(self, tenant_id: UUID, job_id: UUID) -> Job | None:
        """
        Retrieve a job by its ID.

        Args:
            tenant_id: Owning tenant
            job_id: Unique job identifier

        Returns:
            Job or None if not found

        Raises:
            PersistenceError: If retrieval operation fails
        """
        pass

    @abstractmethod
    def get_for_update(self, tenant_id: UUID, job_id: UUID) -> Job | None:
        """
        Retrieve a job and lock its row until the transaction ends.

        Used wherever the current status is read before a transition.
        """
        pass

    @abstractmethod
    def search(
        self, tenant_id: UUID, filters: JobFilters, offset: int, limit: int
    ) -> tuple[list[Job], int]:
        """Return one page of jobs matching ``filters`` and the total match count."""
        pass

    @abstractmethod
    def list_by_ids(self, tenant_id: UUID, job_ids: list[UUID]) -> list[Job]:
        pass

    @abstractmethod
    def list_unscheduled(self, tenant_id: UUID) -> list[Job]:
        """Planned jobs without a scheduled window: the optimizer's input."""
        pass

    @abstractmethod
    def list_scheduled_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[Job]:
        """Jobs whose scheduled window intersects ``[start, end)``."""
        pass

    @abstractmethod
    def list_created_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[Job]:
        pass

    @abstractmethod
    def last_job_number(self, tenant_id: UUID, prefix: str) -> str | None:
        """Highest job number starting with ``prefix`` for the tenant."""
        pass

    @abstractmethod
    def add(self, job: Job) -> Job:
        pass

    @abstractmethod
    def delete(self, job: Job) -> None:
        pass


class JobTaskRepository(ABC):
    """Abstract repository interface for tasks within a job."""

    @abstractmethod
    def get(self, tenant_id: UUID, job_id: UUID, task_id: UUID) -> JobTask | None:
        pass

    @abstractmethod
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[JobTask]:
        """Tasks ordered by ``sort_order``."""
        pass

    @abstractmethod
    def list_for_jobs(self, tenant_id: UUID, job_ids: list[UUID]) -> list[JobTask]:
        pass

    @abstractmethod
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        pass

    @abstractmethod
    def add(self, task: JobTask) -> JobTask:
        pass

    @abstractmethod
    def delete(self, task: JobTask) -> None:
        pass


class JobStatusLogRepository(ABC):
    """Append-only job status history. There is no update or delete."""

    @abstractmethod
    def add(self, entry: JobStatusLog) -> JobStatusLog:
        pass

    @abstractmethod
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[JobStatusLog]:
        """History in the order it was written."""
        pass
