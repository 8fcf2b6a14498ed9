"""Job message repository interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from fieldops.models import JobMessage


class JobMessageRepository(ABC):
    @abstractmethod
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[JobMessage]:
        """Messages of one job, newest first."""
        pass

    @abstractmethod
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        pass

    @abstractmethod
    def add(self, message: JobMessage) -> JobMessage:
        pass
