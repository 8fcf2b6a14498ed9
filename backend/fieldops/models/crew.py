"""Crew member and availability models."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import field_validator
from sqlalchemy import JSON
from sqlmodel import Field, SQLModel

from fieldops.domain.scheduling.value_objects import (
    AvailabilityType,
    TimeWindow,
    WorkingHours,
    to_naive_utc,
)

from .base import StringSet, UTCDateTime, normalize_string_set, utcnow


def _validate_working_hours(v: Any) -> dict[str, str] | None:
    hours = WorkingHours.parse(v)
    return hours.to_dict() if hours else None


class CrewMemberBase(SQLModel):
    """Base crew member fields."""

    name: str = Field(min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    skills: list[str] = Field(default_factory=list, sa_type=StringSet)
    working_hours: dict[str, str] | None = Field(
        default=None,
        sa_type=JSON,
        description='Daily working hours, e.g. {"start": "08:00", "end": "17:00"}',
    )
    max_hours_per_day: int = Field(default=8, ge=1, le=24)
    max_hours_per_week: int = Field(default=40, ge=1, le=168)

    @field_validator("skills", mode="before")
    @classmethod
    def _normalize_skills(cls, v):
        return normalize_string_set(v)

    @field_validator("working_hours", mode="before")
    @classmethod
    def _check_working_hours(cls, v):
        return _validate_working_hours(v)


class CrewMember(CrewMemberBase, table=True):
    """
    Crew member table model.

    Soft deleted through ``is_active``; inactive members are never assigned.
    """

    __tablename__ = "crew_members"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )

    def parsed_working_hours(self) -> WorkingHours | None:
        return WorkingHours.parse(self.working_hours)


class CrewMemberCreate(CrewMemberBase):
    pass


class CrewMemberUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    skills: list[str] | None = Field(default=None)
    working_hours: dict[str, str] | None = Field(default=None)
    max_hours_per_day: int | None = Field(default=None, ge=1, le=24)
    max_hours_per_week: int | None = Field(default=None, ge=1, le=168)
    is_active: bool | None = Field(default=None)

    @field_validator("skills", mode="before")
    @classmethod
    def _normalize_skills(cls, v):
        return None if v is None else normalize_string_set(v)

    @field_validator("working_hours", mode="before")
    @classmethod
    def _check_working_hours(cls, v):
        return _validate_working_hours(v)


class CrewMemberPublic(CrewMemberBase):
    id: uuid.UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CrewAvailabilityBase(SQLModel):
    start_time: datetime = Field(sa_type=UTCDateTime)
    end_time: datetime = Field(sa_type=UTCDateTime)
    availability_type: AvailabilityType = Field(default=AvailabilityType.AVAILABLE)
    reason: str | None = Field(default=None, max_length=255)

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def _as_naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class CrewAvailability(CrewAvailabilityBase, table=True):
    """A declared availability or blackout window for one crew member."""

    __tablename__ = "crew_availability"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    crew_member_id: uuid.UUID = Field(foreign_key="crew_members.id", index=True)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start_time, self.end_time)


class CrewAvailabilityCreate(CrewAvailabilityBase):
    pass


class CrewAvailabilityPublic(CrewAvailabilityBase):
    id: uuid.UUID
    crew_member_id: uuid.UUID
    created_at: datetime
