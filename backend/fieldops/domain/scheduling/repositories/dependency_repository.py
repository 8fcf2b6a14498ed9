"""Job dependency repository interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from fieldops.models import JobDependency


class JobDependencyRepository(ABC):
    """Edges of the per-tenant dependency graph."""

    @abstractmethod
    def get(self, tenant_id: UUID, dependency_id: UUID) -> JobDependency | None:
        pass

    @abstractmethod
    def list_all(self, tenant_id: UUID) -> list[JobDependency]:
        pass

    @abstractmethod
    def list_for_dependent(self, tenant_id: UUID, job_id: UUID) -> list[JobDependency]:
        """Edges where ``job_id`` waits on another job."""
        pass

    @abstractmethod
    def list_touching(self, tenant_id: UUID, job_id: UUID) -> list[JobDependency]:
        """Edges where ``job_id`` is either end."""
        pass

    @abstractmethod
    def add(self, dependency: JobDependency) -> JobDependency:
        pass

    @abstractmethod
    def delete(self, dependency: JobDependency) -> None:
        pass
