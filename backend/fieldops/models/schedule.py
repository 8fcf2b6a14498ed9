"""Schedule event models."""

import uuid
from datetime import datetime

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from fieldops.domain.scheduling.value_objects import EventStatus, TimeWindow, to_naive_utc

from .base import UTCDateTime, UUIDList, utcnow


class ScheduleEventBase(SQLModel):
    """Base schedule event fields."""

    title: str | None = Field(default=None, max_length=200)
    start_time: datetime = Field(sa_type=UTCDateTime, index=True)
    end_time: datetime = Field(sa_type=UTCDateTime, index=True)
    all_day: bool = Field(default=False)
    assigned_crew_ids: list[uuid.UUID] = Field(default_factory=list, sa_type=UUIDList)
    lead_crew_member_id: uuid.UUID | None = Field(default=None)
    travel_time_minutes: int = Field(default=0, ge=0)
    buffer_time_minutes: int = Field(default=0, ge=0)
    notes: str | None = Field(default=None)

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _as_naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class ScheduleEvent(ScheduleEventBase, table=True):
    """
    Schedule event table model.

    A commitment of crew members to a job for ``[start_time, end_time)``.
    """

    __tablename__ = "schedule_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID = Field(foreign_key="jobs.id", index=True)
    status: EventStatus = Field(default=EventStatus.PLANNED, index=True)
    created_by: str = Field(default="system", max_length=100)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start_time, self.end_time)

    def summary(self) -> dict:
        """Compact description used in conflict reports and error details."""
        return {
            "id": str(self.id),
            "job_id": str(self.job_id),
            "title": self.title,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "status": self.status.value,
            "assigned_crew_ids": [str(c) for c in self.assigned_crew_ids],
        }


class ScheduleEventCreate(ScheduleEventBase):
    allow_override: bool = Field(
        default=False,
        description="Bypass conflict and availability checks; the override is audited",
    )


class ScheduleEventUpdate(SQLModel):
    title: str | None = Field(default=None, max_length=200)
    start_time: datetime | None = Field(default=None)
    end_time: datetime | None = Field(default=None)
    all_day: bool | None = Field(default=None)
    assigned_crew_ids: list[uuid.UUID] | None = Field(default=None)
    lead_crew_member_id: uuid.UUID | None = Field(default=None)
    travel_time_minutes: int | None = Field(default=None, ge=0)
    buffer_time_minutes: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None)
    status: EventStatus | None = Field(default=None)
    status_reason: str | None = Field(default=None, max_length=500)
    allow_override: bool = Field(default=False)

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _as_naive_utc(cls, v: datetime | None) -> datetime | None:
        return None if v is None else to_naive_utc(v)


class ScheduleEventPublic(ScheduleEventBase):
    id: uuid.UUID
    job_id: uuid.UUID
    status: EventStatus
    created_by: str
    created_at: datetime
    updated_at: datetime


class EventStatusLog(SQLModel, table=True):
    """Append-only schedule event status history."""

    __tablename__ = "event_status_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    event_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID = Field(index=True)
    previous_status: EventStatus | None = Field(default=None)
    new_status: EventStatus
    reason: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None)
    changed_by: str = Field(max_length=100)
    changed_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)


class EventStatusLogPublic(SQLModel):
    id: uuid.UUID
    event_id: uuid.UUID
    previous_status: EventStatus | None
    new_status: EventStatus
    reason: str | None
    notes: str | None
    changed_by: str
    changed_at: datetime
