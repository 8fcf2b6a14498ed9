"""Job message repository implementation."""

from uuid import UUID

from sqlmodel import col, func, select

from fieldops.domain.scheduling.repositories import JobMessageRepository
from fieldops.models import JobMessage

from .base import BaseRepository, read_operation, write_operation


class SqlJobMessageRepository(BaseRepository, JobMessageRepository):
    @read_operation("list job messages")
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[JobMessage]:
        statement = (
            select(JobMessage)
            .where(JobMessage.tenant_id == tenant_id, JobMessage.job_id == job_id)
            .order_by(col(JobMessage.created_at).desc())
        )
        return list(self.session.exec(statement).all())

    @read_operation("count job messages")
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        statement = (
            select(func.count())
            .select_from(JobMessage)
            .where(JobMessage.tenant_id == tenant_id, JobMessage.job_id == job_id)
        )
        return self.session.exec(statement).one()

    @write_operation("save job message")
    def add(self, message: JobMessage) -> JobMessage:
        return self._save(message)
