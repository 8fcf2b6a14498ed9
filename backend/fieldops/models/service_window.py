"""Customer service window models."""

import uuid
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator, model_validator
from sqlalchemy import JSON
from sqlmodel import Field, SQLModel
from typing_extensions import Self

from fieldops.domain.scheduling.value_objects import TimeWindow, WorkingHours, to_naive_utc

from .base import DateList, UTCDateTime, utcnow


def _check_timezone(v: str | None) -> str | None:
    if v is None:
        return v
    try:
        ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone {v!r}") from e
    return v


def check_window_bounds(
    start_time: time | None, end_time: time | None, valid_from: date | None, valid_to: date | None
) -> None:
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise ValueError("end_time must be after start_time")
    if valid_from is not None and valid_to is not None and valid_to <= valid_from:
        raise ValueError("valid_to must be after valid_from")


class ServiceWindowBase(SQLModel):
    """Base service window fields."""

    customer_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID | None = Field(default=None)
    title: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    day_of_week: int | None = Field(
        default=None, ge=0, le=6, description="0 is Monday; null applies every day"
    )
    start_time: time = Field(description="Local clock time the site opens")
    end_time: time = Field(description="Local clock time the site closes")
    timezone: str = Field(default="UTC", max_length=64)
    valid_from: date | None = Field(default=None)
    valid_to: date | None = Field(default=None)
    exclude_dates: list[date] = Field(default_factory=list, sa_type=DateList)
    access_instructions: str | None = Field(default=None, max_length=1000)
    contact_required: bool = Field(default=False)
    gate_codes: dict[str, Any] | None = Field(default=None, sa_type=JSON)
    parking_instructions: str | None = Field(default=None, max_length=500)

    @field_validator("timezone", mode="after")
    @classmethod
    def _known_timezone(cls, v):
        return _check_timezone(v)


class ServiceWindow(ServiceWindowBase, table=True):
    """
    Service window table model.

    Recurring local hours during which a customer site accepts crews,
    optionally scoped to one job.
    """

    __tablename__ = "service_windows"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID | None = Field(default=None, foreign_key="jobs.id", index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )

    def applies_on(self, day: date) -> bool:
        if not self.is_active or day in self.exclude_dates:
            return False
        if self.valid_from is not None and day < self.valid_from:
            return False
        if self.valid_to is not None and day > self.valid_to:
            return False
        return self.day_of_week is None or day.weekday() == self.day_of_week

    def window_on(self, day: date) -> TimeWindow | None:
        """The window on ``day`` as naive UTC, or None when the site is closed."""
        if not self.applies_on(day):
            return None
        local = WorkingHours(self.start_time, self.end_time).window_on(day)
        zone = ZoneInfo(self.timezone)
        return TimeWindow(
            to_naive_utc(local.start_time.replace(tzinfo=zone)),
            to_naive_utc(local.end_time.replace(tzinfo=zone)),
        )


class ServiceWindowCreate(ServiceWindowBase):
    @model_validator(mode="after")
    def _check_window(self) -> Self:
        check_window_bounds(self.start_time, self.end_time, self.valid_from, self.valid_to)
        return self


class ServiceWindowUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_time: time | None = Field(default=None)
    end_time: time | None = Field(default=None)
    timezone: str | None = Field(default=None, max_length=64)
    valid_from: date | None = Field(default=None)
    valid_to: date | None = Field(default=None)
    exclude_dates: list[date] | None = Field(default=None)
    access_instructions: str | None = Field(default=None, max_length=1000)
    contact_required: bool | None = Field(default=None)
    gate_codes: dict[str, Any] | None = Field(default=None)
    parking_instructions: str | None = Field(default=None, max_length=500)
    is_active: bool | None = Field(default=None)

    @field_validator("timezone", mode="after")
    @classmethod
    def _known_timezone(cls, v):
        return _check_timezone(v)


class ServiceWindowPublic(ServiceWindowBase):
    id: uuid.UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime
