"""Time entry repository implementation."""

from datetime import datetime
from uuid import UUID

from sqlmodel import col, func, select

from fieldops.domain.scheduling.repositories import TimeEntryRepository
from fieldops.models import TimeEntry

from .base import BaseRepository, read_operation, write_operation


class SqlTimeEntryRepository(BaseRepository, TimeEntryRepository):
    @read_operation("get time entry")
    def get(self, tenant_id: UUID, job_id: UUID, entry_id: UUID) -> TimeEntry | None:
        statement = select(TimeEntry).where(
            TimeEntry.tenant_id == tenant_id,
            TimeEntry.job_id == job_id,
            TimeEntry.id == entry_id,
        )
        return self.session.exec(statement).first()

    @read_operation("list time entries")
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[TimeEntry]:
        statement = (
            select(TimeEntry)
            .where(TimeEntry.tenant_id == tenant_id, TimeEntry.job_id == job_id)
            .order_by(col(TimeEntry.start_time))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list time entries for jobs")
    def list_for_jobs(self, tenant_id: UUID, job_ids: list[UUID]) -> list[TimeEntry]:
        if not job_ids:
            return []
        statement = select(TimeEntry).where(
            TimeEntry.tenant_id == tenant_id, col(TimeEntry.job_id).in_(list(job_ids))
        )
        return list(self.session.exec(statement).all())

    @read_operation("count time entries")
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        statement = (
            select(func.count())
            .select_from(TimeEntry)
            .where(TimeEntry.tenant_id == tenant_id, TimeEntry.job_id == job_id)
        )
        return self.session.exec(statement).one()

    @read_operation("list time entries by start")
    def list_started_between(
        self,
        tenant_id: UUID,
        start: datetime,
        end: datetime,
        crew_member_id: UUID | None = None,
    ) -> list[TimeEntry]:
        statement = select(TimeEntry).where(
            TimeEntry.tenant_id == tenant_id,
            col(TimeEntry.start_time) >= start,
            col(TimeEntry.start_time) <= end,
        )
        if crew_member_id is not None:
            statement = statement.where(TimeEntry.crew_member_id == crew_member_id)
        return list(self.session.exec(statement.order_by(col(TimeEntry.start_time))).all())

    @write_operation("save time entry")
    def add(self, entry: TimeEntry) -> TimeEntry:
        return self._save(entry)

    @write_operation("delete time entry")
    def delete(self, entry: TimeEntry) -> None:
        self._remove(entry)
