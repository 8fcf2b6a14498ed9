"""Job, task and job status history models."""

import math
import uuid
from datetime import datetime

from pydantic import field_validator
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from fieldops.domain.scheduling.value_objects import JobStatus, PriorityLevel, TaskStatus

from .base import StringSet, UTCDateTime, UUIDList, normalize_string_set, utcnow


class JobBase(SQLModel):
    """Base job fields."""

    customer_id: uuid.UUID = Field(index=True)
    title: str = Field(min_length=3, max_length=200)
    description: str | None = Field(default=None)
    address: str | None = Field(default=None, max_length=500)
    priority: PriorityLevel = Field(
        default=PriorityLevel.NORMAL, description="Job priority level"
    )
    estimated_duration_minutes: int = Field(default=60, ge=15, le=2880)
    required_skills: list[str] = Field(default_factory=list, sa_type=StringSet)
    required_equipment: list[str] = Field(default_factory=list, sa_type=StringSet)
    notes: str | None = Field(default=None)

    @field_validator("required_skills", "required_equipment", mode="before")
    @classmethod
    def _normalize_sets(cls, v):
        return normalize_string_set(v)


class Job(JobBase, table=True):
    """
    Job table model.

    A unit of field work for a customer. Status changes only through the
    status machine; every change is mirrored by a JobStatusLog row.
    """

    __tablename__ = "jobs"
    __table_args__ = (UniqueConstraint("tenant_id", "job_number"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_number: str = Field(max_length=20, index=True)
    status: JobStatus = Field(default=JobStatus.PLANNED, index=True)
    scheduled_start: datetime | None = Field(sa_type=UTCDateTime, default=None, index=True)
    scheduled_end: datetime | None = Field(sa_type=UTCDateTime, default=None)
    completion_percentage: int = Field(default=0, ge=0, le=100)
    source_quote_id: uuid.UUID | None = Field(default=None)
    created_by: str = Field(default="system", max_length=100)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )


class JobCreate(JobBase):
    """Job creation model."""

    pass


class JobUpdate(SQLModel):
    """Job update model. Status changes go through the status endpoint."""

    customer_id: uuid.UUID | None = Field(default=None)
    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None)
    address: str | None = Field(default=None, max_length=500)
    priority: PriorityLevel | None = Field(default=None)
    estimated_duration_minutes: int | None = Field(default=None, ge=15, le=2880)
    required_skills: list[str] | None = Field(default=None)
    required_equipment: list[str] | None = Field(default=None)
    completion_percentage: int | None = Field(default=None, ge=0, le=100)
    notes: str | None = Field(default=None)

    @field_validator("required_skills", "required_equipment", mode="before")
    @classmethod
    def _normalize_sets(cls, v):
        return None if v is None else normalize_string_set(v)


class JobFromQuote(SQLModel):
    """Overrides applied when converting an accepted quote into a job."""

    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None)
    address: str | None = Field(default=None, max_length=500)
    priority: PriorityLevel = Field(default=PriorityLevel.NORMAL)
    estimated_duration_minutes: int = Field(default=60, ge=15, le=2880)
    required_skills: list[str] = Field(default_factory=list)
    required_equipment: list[str] = Field(default_factory=list)
    notes: str | None = Field(default=None)


class JobPublic(JobBase):
    id: uuid.UUID
    tenant_id: uuid.UUID
    job_number: str
    status: JobStatus
    scheduled_start: datetime | None
    scheduled_end: datetime | None
    completion_percentage: int
    source_quote_id: uuid.UUID | None
    created_by: str
    created_at: datetime
    updated_at: datetime


class JobsPublic(SQLModel):
    items: list[JobPublic]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def paginate(cls, items: list, total: int, page: int, limit: int) -> "JobsPublic":
        return cls(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if limit else 0,
        )


class JobStatusUpdate(SQLModel):
    status: JobStatus
    reason: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None)


class JobStatusLog(SQLModel, table=True):
    """
    Append-only job status history.

    ``job_id`` has no foreign key; history rows survive a hard-deleted job.
    """

    __tablename__ = "job_status_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID = Field(index=True)
    previous_status: JobStatus | None = Field(default=None)
    new_status: JobStatus
    reason: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None)
    changed_by: str = Field(max_length=100)
    changed_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow, index=True)


class JobStatusLogPublic(SQLModel):
    id: uuid.UUID
    job_id: uuid.UUID
    previous_status: JobStatus | None
    new_status: JobStatus
    reason: str | None
    notes: str | None
    changed_by: str
    changed_at: datetime


# Tasks
class JobTaskBase(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None)
    estimated_minutes: int | None = Field(default=None, ge=0)
    sort_order: int = Field(default=0, ge=0)
    required_skills: list[str] = Field(default_factory=list, sa_type=StringSet)
    assigned_crew_ids: list[uuid.UUID] = Field(default_factory=list, sa_type=UUIDList)
    due_at: datetime | None = Field(sa_type=UTCDateTime, default=None)

    @field_validator("required_skills", mode="before")
    @classmethod
    def _normalize_skills(cls, v):
        return normalize_string_set(v)


class JobTask(JobTaskBase, table=True):
    """A step of work inside a job."""

    __tablename__ = "job_tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID = Field(foreign_key="jobs.id", index=True)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    actual_minutes: int | None = Field(default=None, ge=0)
    source_line_item_id: uuid.UUID | None = Field(default=None)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )


class JobTaskCreate(JobTaskBase):
    pass


class JobTaskUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None)
    status: TaskStatus | None = Field(default=None)
    estimated_minutes: int | None = Field(default=None, ge=0)
    actual_minutes: int | None = Field(default=None, ge=0)
    sort_order: int | None = Field(default=None, ge=0)
    required_skills: list[str] | None = Field(default=None)
    assigned_crew_ids: list[uuid.UUID] | None = Field(default=None)
    due_at: datetime | None = Field(default=None)

    @field_validator("required_skills", mode="before")
    @classmethod
    def _normalize_skills(cls, v):
        return None if v is None else normalize_string_set(v)


class JobTaskPublic(JobTaskBase):
    id: uuid.UUID
    job_id: uuid.UUID
    status: TaskStatus
    actual_minutes: int | None
    source_line_item_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime
