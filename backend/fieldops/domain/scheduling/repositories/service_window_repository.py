"""Service window repository interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from fieldops.models import ServiceWindow


class ServiceWindowRepository(ABC):
    @abstractmethod
    def get(self, tenant_id: UUID, window_id: UUID) -> ServiceWindow | None:
        pass

    @abstractmethod
    def search(
        self,
        tenant_id: UUID,
        customer_id: UUID | None = None,
        job_id: UUID | None = None,
        active_only: bool = True,
    ) -> list[ServiceWindow]:
        """Windows matching the filters, newest first."""
        pass

    @abstractmethod
    def add(self, window: ServiceWindow) -> ServiceWindow:
        pass

    @abstractmethod
    def delete(self, window: ServiceWindow) -> None:
        pass
