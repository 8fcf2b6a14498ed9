"""Job dependency repository implementation."""

from uuid import UUID

from sqlmodel import col, or_, select

from fieldops.domain.scheduling.repositories import JobDependencyRepository
from fieldops.models import JobDependency

from .base import BaseRepository, read_operation, write_operation


class SqlJobDependencyRepository(BaseRepository, JobDependencyRepository):
    @read_operation("get dependency")
    def get(self, tenant_id: UUID, dependency_id: UUID) -> JobDependency | None:
        statement = select(JobDependency).where(
            JobDependency.tenant_id == tenant_id, JobDependency.id == dependency_id
        )
        return self.session.exec(statement).first()

    @read_operation("list dependencies")
    def list_all(self, tenant_id: UUID) -> list[JobDependency]:
        statement = select(JobDependency).where(JobDependency.tenant_id == tenant_id)
        return list(self.session.exec(statement).all())

    @read_operation("list job prerequisites")
    def list_for_dependent(self, tenant_id: UUID, job_id: UUID) -> list[JobDependency]:
        statement = (
            select(JobDependency)
            .where(
                JobDependency.tenant_id == tenant_id,
                JobDependency.dependent_job_id == job_id,
            )
            .order_by(col(JobDependency.created_at))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list job dependency edges")
    def list_touching(self, tenant_id: UUID, job_id: UUID) -> list[JobDependency]:
        statement = select(JobDependency).where(
            JobDependency.tenant_id == tenant_id,
            or_(
                JobDependency.dependent_job_id == job_id,
                JobDependency.prerequisite_job_id == job_id,
            ),
        )
        return list(self.session.exec(statement).all())

    @write_operation("save dependency")
    def add(self, dependency: JobDependency) -> JobDependency:
        return self._save(dependency)

    @write_operation("delete dependency")
    def delete(self, dependency: JobDependency) -> None:
        self._remove(dependency)
