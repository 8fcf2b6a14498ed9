"""Time tracking models."""

import uuid
from datetime import datetime

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from fieldops.domain.scheduling.value_objects import to_naive_utc

from .base import UTCDateTime, utcnow


class TimeEntryBase(SQLModel):
    crew_member_id: uuid.UUID = Field(index=True)
    task_id: uuid.UUID | None = Field(default=None)
    start_time: datetime = Field(sa_type=UTCDateTime, index=True)
    end_time: datetime | None = Field(sa_type=UTCDateTime, default=None)
    break_minutes: int = Field(default=0, ge=0)
    travel_minutes: int = Field(default=0, ge=0)
    work_description: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    billable: bool = Field(default=True)
    hourly_rate: float | None = Field(default=None, ge=0)

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _as_naive_utc(cls, v: datetime | None) -> datetime | None:
        return None if v is None else to_naive_utc(v)


class TimeEntry(TimeEntryBase, table=True):
    """Time worked by one crew member on a job. An open entry has no end time."""

    __tablename__ = "time_entries"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID = Field(foreign_key="jobs.id", index=True)
    crew_member_id: uuid.UUID = Field(foreign_key="crew_members.id", index=True)
    task_id: uuid.UUID | None = Field(default=None, foreign_key="job_tasks.id")
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )

    def worked_minutes(self) -> float:
        """Minutes worked net of breaks; open entries count as zero."""
        if self.end_time is None:
            return 0.0
        gross = (self.end_time - self.start_time).total_seconds() / 60
        return max(0.0, gross - self.break_minutes)


class TimeEntryCreate(TimeEntryBase):
    pass


class TimeEntryUpdate(SQLModel):
    task_id: uuid.UUID | None = Field(default=None)
    start_time: datetime | None = Field(default=None)
    end_time: datetime | None = Field(default=None)
    break_minutes: int | None = Field(default=None, ge=0)
    travel_minutes: int | None = Field(default=None, ge=0)
    work_description: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    billable: bool | None = Field(default=None)
    hourly_rate: float | None = Field(default=None, ge=0)

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _as_naive_utc(cls, v: datetime | None) -> datetime | None:
        return None if v is None else to_naive_utc(v)


class TimeEntryPublic(TimeEntryBase):
    id: uuid.UUID
    job_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
