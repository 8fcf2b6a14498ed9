"""
Job repository implementations providing tenant-scoped CRUD and the queries
the orchestrator and reports need.
"""

from datetime import datetime
from uuid import UUID

from sqlmodel import col, func, or_, select

from fieldops.domain.scheduling.repositories import (
    JobFilters,
    JobRepository,
    JobStatusLogRepository,
    JobTaskRepository,
)
from fieldops.domain.scheduling.value_objects import JobStatus
from fieldops.models import Job, JobStatusLog, JobTask

from .base import BaseRepository, read_operation, write_operation


class SqlJobRepository(BaseRepository, JobRepository):
    """SQLModel implementation of the job repository."""

    @read_operation("get job")
    def get(self, tenant_id: UUID, job_id: UUID) -> Job | None:
        statement = select(Job).where(Job.tenant_id == tenant_id, Job.id == job_id)
        return self.session.exec(statement).first()

    @write_operation("lock job")
    def get_for_update(self, tenant_id: UUID, job_id: UUID) -> Job | None:
        statement = (
            select(Job)
            .where(Job.tenant_id == tenant_id, Job.id == job_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.exec(statement).first()

    @read_operation("search jobs")
    def search(
        self, tenant_id: UUID, filters: JobFilters, offset: int, limit: int
    ) -> tuple[list[Job], int]:
        conditions = [Job.tenant_id == tenant_id]
        if filters.status is not None:
            conditions.append(Job.status == filters.status)
        if filters.customer_id is not None:
            conditions.append(Job.customer_id == filters.customer_id)
        if filters.priority is not None:
            conditions.append(Job.priority == filters.priority)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            conditions.append(
                or_(
                    col(Job.title).ilike(pattern),
                    col(Job.job_number).ilike(pattern),
                    col(Job.description).ilike(pattern),
                )
            )
        if filters.start_date is not None:
            conditions.append(col(Job.scheduled_start) >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(col(Job.scheduled_start) <= filters.end_date)

        total = self.session.exec(
            select(func.count()).select_from(Job).where(*conditions)
        ).one()
        statement = (
            select(Job)
            .where(*conditions)
            .order_by(col(Job.created_at).desc(), col(Job.id))
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.exec(statement).all()), total

    @read_operation("list jobs by id")
    def list_by_ids(self, tenant_id: UUID, job_ids: list[UUID]) -> list[Job]:
        if not job_ids:
            return []
        statement = select(Job).where(
            Job.tenant_id == tenant_id, col(Job.id).in_(list(job_ids))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list unscheduled jobs")
    def list_unscheduled(self, tenant_id: UUID) -> list[Job]:
        statement = select(Job).where(
            Job.tenant_id == tenant_id,
            Job.status == JobStatus.PLANNED,
            col(Job.scheduled_start).is_(None),
        )
        return list(self.session.exec(statement).all())

    @read_operation("list scheduled jobs")
    def list_scheduled_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[Job]:
        statement = (
            select(Job)
            .where(
                Job.tenant_id == tenant_id,
                col(Job.scheduled_start) < end,
                col(Job.scheduled_end) > start,
            )
            .order_by(col(Job.scheduled_start))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list jobs by creation date")
    def list_created_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[Job]:
        statement = (
            select(Job)
            .where(
                Job.tenant_id == tenant_id,
                col(Job.created_at) >= start,
                col(Job.created_at) < end,
            )
            .order_by(col(Job.created_at))
        )
        return list(self.session.exec(statement).all())

    @read_operation("find last job number")
    def last_job_number(self, tenant_id: UUID, prefix: str) -> str | None:
        # Longer numbers sort after shorter ones once a sequence passes 9999
        statement = (
            select(Job.job_number)
            .where(Job.tenant_id == tenant_id, col(Job.job_number).startswith(prefix))
            .order_by(func.length(Job.job_number).desc(), col(Job.job_number).desc())
            .limit(1)
        )
        return self.session.exec(statement).first()

    @write_operation("save job")
    def add(self, job: Job) -> Job:
        return self._save(job)

    @write_operation("delete job")
    def delete(self, job: Job) -> None:
        self._remove(job)


class SqlJobTaskRepository(BaseRepository, JobTaskRepository):
    @read_operation("get task")
    def get(self, tenant_id: UUID, job_id: UUID, task_id: UUID) -> JobTask | None:
        statement = select(JobTask).where(
            JobTask.tenant_id == tenant_id,
            JobTask.job_id == job_id,
            JobTask.id == task_id,
        )
        return self.session.exec(statement).first()

    @read_operation("list tasks")
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[JobTask]:
        statement = (
            select(JobTask)
            .where(JobTask.tenant_id == tenant_id, JobTask.job_id == job_id)
            .order_by(col(JobTask.sort_order), col(JobTask.created_at))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list tasks for jobs")
    def list_for_jobs(self, tenant_id: UUID, job_ids: list[UUID]) -> list[JobTask]:
        if not job_ids:
            return []
        statement = select(JobTask).where(
            JobTask.tenant_id == tenant_id, col(JobTask.job_id).in_(list(job_ids))
        )
        return list(self.session.exec(statement).all())

    @read_operation("count tasks")
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        statement = (
            select(func.count())
            .select_from(JobTask)
            .where(JobTask.tenant_id == tenant_id, JobTask.job_id == job_id)
        )
        return self.session.exec(statement).one()

    @write_operation("save task")
    def add(self, task: JobTask) -> JobTask:
        return self._save(task)

    @write_operation("delete task")
    def delete(self, task: JobTask) -> None:
        self._remove(task)


class SqlJobStatusLogRepository(BaseRepository, JobStatusLogRepository):
    @write_operation("append job status log")
    def add(self, entry: JobStatusLog) -> JobStatusLog:
        return self._save(entry)

    @read_operation("list job status history")
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[JobStatusLog]:
        statement = (
            select(JobStatusLog)
            .where(JobStatusLog.tenant_id == tenant_id, JobStatusLog.job_id == job_id)
            .order_by(col(JobStatusLog.changed_at), col(JobStatusLog.id))
        )
        return list(self.session.exec(statement).all())
