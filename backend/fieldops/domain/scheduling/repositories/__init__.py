"""Repository interfaces for the scheduling domain."""

from .automation_repository import AutomationTriggerRepository, TriggerExecutionRepository
from .crew_repository import CrewAvailabilityRepository, CrewMemberRepository
from .dependency_repository import JobDependencyRepository
from .job_repository import JobFilters, JobRepository, JobStatusLogRepository, JobTaskRepository
from .message_repository import JobMessageRepository
from .schedule_repository import EventStatusLogRepository, ScheduleEventRepository
from .service_window_repository import ServiceWindowRepository
from .time_entry_repository import TimeEntryRepository

__all__ = [
    "AutomationTriggerRepository",
    "TriggerExecutionRepository",
    "CrewAvailabilityRepository",
    "CrewMemberRepository",
    "JobDependencyRepository",
    "JobFilters",
    "JobRepository",
    "JobStatusLogRepository",
    "JobTaskRepository",
    "JobMessageRepository",
    "EventStatusLogRepository",
    "ScheduleEventRepository",
    "ServiceWindowRepository",
    "TimeEntryRepository",
]
