"""Request and response models for scheduling, reporting and event ingress."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator
from typing_extensions import Self

from fieldops.domain.scheduling.value_objects import to_naive_utc
from fieldops.models import CrewMemberPublic, JobPublic, ScheduleEventPublic


class OptimizeRequest(BaseModel):
    """Parameters of one optimizer run."""

    start_date: datetime
    end_date: datetime
    job_ids: list[UUID] | None = Field(
        default=None, description="Restrict the run to these unscheduled jobs"
    )
    commit: bool = Field(
        default=False, description="Create schedule events for the proposals"
    )
    max_time_seconds: float | None = Field(default=None, gt=0, le=300)

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def _as_naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def _check_window(self) -> Self:
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ProposedAssignmentOut(BaseModel):
    job_id: UUID
    crew_member_id: UUID
    start: datetime
    end: datetime


class UnassignableJobOut(BaseModel):
    job_id: UUID
    reason: str


class CommitResultOut(BaseModel):
    job_id: UUID
    crew_member_id: UUID
    status: Literal["created", "failed"]
    event_id: UUID | None = None
    error: dict[str, Any] | None = None


class OptimizeResponse(BaseModel):
    assignments: list[ProposedAssignmentOut]
    unassignable: list[UnassignableJobOut]
    cancelled: bool
    jobs_considered: int
    duration_seconds: float
    committed: list[CommitResultOut] = Field(default_factory=list)


class ScheduleOverview(BaseModel):
    start_date: datetime
    end_date: datetime
    jobs: list[JobPublic]
    events: list[ScheduleEventPublic]
    crew_members: list[CrewMemberPublic]
    summary: dict[str, int]


class CrewUtilization(BaseModel):
    crew_member_id: UUID
    name: str | None
    total_hours: float
    billable_hours: float
    entries: int


class UtilizationReport(BaseModel):
    start_date: datetime
    end_date: datetime
    total_hours: float
    billable_hours: float
    utilization_rate: float = Field(description="Billable share of worked hours, percent")
    by_crew_member: list[CrewUtilization]


class CompletionReport(BaseModel):
    start_date: datetime
    end_date: datetime
    total_jobs: int
    completed_jobs: int
    cancelled_jobs: int
    on_time_jobs: int
    completion_rate: float
    on_time_rate: float
    task_completion_rate: float
    average_completion_hours: float | None
    by_status: dict[str, int]


class ExternalEventAccepted(BaseModel):
    event_id: UUID
    trigger_type: str
    job_id: UUID | None
    occurred_at: datetime
