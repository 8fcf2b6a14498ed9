"""Service window repository implementation."""

from uuid import UUID

from sqlmodel import col, select

from fieldops.domain.scheduling.repositories import ServiceWindowRepository
from fieldops.models import ServiceWindow

from .base import BaseRepository, read_operation, write_operation


class SqlServiceWindowRepository(BaseRepository, ServiceWindowRepository):
    @read_operation("get service window")
    def get(self, tenant_id: UUID, window_id: UUID) -> ServiceWindow | None:
        statement = select(ServiceWindow).where(
            ServiceWindow.tenant_id == tenant_id, ServiceWindow.id == window_id
        )
        return self.session.exec(statement).first()

    @read_operation("search service windows")
    def search(
        self,
        tenant_id: UUID,
        customer_id: UUID | None = None,
        job_id: UUID | None = None,
        active_only: bool = True,
    ) -> list[ServiceWindow]:
        statement = select(ServiceWindow).where(ServiceWindow.tenant_id == tenant_id)
        if customer_id is not None:
            statement = statement.where(ServiceWindow.customer_id == customer_id)
        if job_id is not None:
            statement = statement.where(ServiceWindow.job_id == job_id)
        if active_only:
            statement = statement.where(col(ServiceWindow.is_active).is_(True))
        statement = statement.order_by(col(ServiceWindow.created_at).desc())
        return list(self.session.exec(statement).all())

    @write_operation("save service window")
    def add(self, window: ServiceWindow) -> ServiceWindow:
        return self._save(window)

    @write_operation("delete service window")
    def delete(self, window: ServiceWindow) -> None:
        self._remove(window)
