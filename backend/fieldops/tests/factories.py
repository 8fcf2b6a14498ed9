"""
Test data factories.

Plain (unsaved) model instances for domain tests and create payloads for the
orchestrator and API tests. Dates sit in the first week of January 2030 so
nothing is ever in the past.
"""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from fieldops.domain.scheduling.value_objects import (
    AvailabilityType,
    EventStatus,
    JobStatus,
    PriorityLevel,
)
from fieldops.models import (
    CrewAvailability,
    CrewMember,
    CrewMemberCreate,
    Job,
    JobCreate,
    ScheduleEvent,
    ScheduleEventCreate,
)

MONDAY = datetime(2030, 1, 7)


def at(hour: int, minute: int = 0, day: int = 0) -> datetime:
    """Naive UTC instant ``day`` days after Monday 2030-01-07."""
    return MONDAY + timedelta(days=day, hours=hour, minutes=minute)


class JobFactory:
    """Factory for creating test jobs."""

    _sequence = 0

    @classmethod
    def create_job(
        cls,
        tenant_id: UUID | None = None,
        title: str = "Install kitchen window",
        priority: PriorityLevel = PriorityLevel.NORMAL,
        status: JobStatus = JobStatus.PLANNED,
        duration_minutes: int = 60,
        required_skills: list[str] | None = None,
        created_at: datetime | None = None,
    ) -> Job:
        cls._sequence += 1
        return Job(
            tenant_id=tenant_id or uuid4(),
            customer_id=uuid4(),
            job_number=f"JOB-2030-{cls._sequence:04d}",
            title=title,
            priority=priority,
            status=status,
            estimated_duration_minutes=duration_minutes,
            required_skills=sorted(required_skills or []),
            created_at=created_at or MONDAY - timedelta(days=7),
        )

    @staticmethod
    def job_create(
        title: str = "Install kitchen window",
        priority: PriorityLevel = PriorityLevel.NORMAL,
        duration_minutes: int = 60,
        required_skills: list[str] | None = None,
    ) -> JobCreate:
        return JobCreate(
            customer_id=uuid4(),
            title=title,
            priority=priority,
            estimated_duration_minutes=duration_minutes,
            required_skills=required_skills or [],
        )


class CrewFactory:
    """Factory for creating test crew members and availability windows."""

    @staticmethod
    def create_member(
        tenant_id: UUID | None = None,
        name: str = "Alex Fitter",
        skills: list[str] | None = None,
        working_hours: dict[str, str] | None = None,
        max_hours_per_day: int = 8,
        is_active: bool = True,
        member_id: UUID | None = None,
    ) -> CrewMember:
        return CrewMember(
            id=member_id or uuid4(),
            tenant_id=tenant_id or uuid4(),
            name=name,
            skills=sorted(skills or []),
            working_hours=working_hours,
            max_hours_per_day=max_hours_per_day,
            is_active=is_active,
        )

    @staticmethod
    def member_create(
        name: str = "Alex Fitter",
        skills: list[str] | None = None,
        working_hours: dict[str, str] | None = None,
    ) -> CrewMemberCreate:
        return CrewMemberCreate(name=name, skills=skills or [], working_hours=working_hours)

    @staticmethod
    def create_window(
        crew_member_id: UUID,
        start: datetime,
        end: datetime,
        availability_type: AvailabilityType = AvailabilityType.AVAILABLE,
        tenant_id: UUID | None = None,
    ) -> CrewAvailability:
        return CrewAvailability(
            tenant_id=tenant_id or uuid4(),
            crew_member_id=crew_member_id,
            start_time=start,
            end_time=end,
            availability_type=availability_type,
        )


class EventFactory:
    """Factory for creating test schedule events."""

    @staticmethod
    def create_event(
        crew_ids: list[UUID],
        start: datetime,
        end: datetime,
        status: EventStatus = EventStatus.PLANNED,
        tenant_id: UUID | None = None,
        job_id: UUID | None = None,
    ) -> ScheduleEvent:
        return ScheduleEvent(
            tenant_id=tenant_id or uuid4(),
            job_id=job_id or uuid4(),
            start_time=start,
            end_time=end,
            assigned_crew_ids=list(crew_ids),
            status=status,
        )

    @staticmethod
    def event_create(
        crew_ids: list[UUID],
        start: datetime,
        end: datetime,
        allow_override: bool = False,
        lead_crew_member_id: UUID | None = None,
    ) -> ScheduleEventCreate:
        return ScheduleEventCreate(
            start_time=start,
            end_time=end,
            assigned_crew_ids=list(crew_ids),
            lead_crew_member_id=lead_crew_member_id,
            allow_override=allow_override,
        )
