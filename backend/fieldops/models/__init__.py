"""SQLModel database models for the application."""

from sqlmodel import SQLModel

from .automation import (
    AutomationTrigger,
    AutomationTriggerCreate,
    AutomationTriggerPublic,
    AutomationTriggerUpdate,
    ExternalEventIn,
    TriggerExecution,
)
from .crew import (
    CrewAvailability,
    CrewAvailabilityCreate,
    CrewAvailabilityPublic,
    CrewMember,
    CrewMemberCreate,
    CrewMemberPublic,
    CrewMemberUpdate,
)
from .dependency import JobDependency, JobDependencyCreate, JobDependencyPublic
from .job import (
    Job,
    JobCreate,
    JobFromQuote,
    JobPublic,
    JobsPublic,
    JobStatusLog,
    JobStatusLogPublic,
    JobStatusUpdate,
    JobTask,
    JobTaskCreate,
    JobTaskPublic,
    JobTaskUpdate,
    JobUpdate,
)
from .message import JobMessage, JobMessageCreate, JobMessagePublic
from .schedule import (
    EventStatusLog,
    EventStatusLogPublic,
    ScheduleEvent,
    ScheduleEventCreate,
    ScheduleEventPublic,
    ScheduleEventUpdate,
)
from .service_window import (
    ServiceWindow,
    ServiceWindowCreate,
    ServiceWindowPublic,
    ServiceWindowUpdate,
)
from .time_entry import TimeEntry, TimeEntryCreate, TimeEntryPublic, TimeEntryUpdate

__all__ = [
    "SQLModel",
    "AutomationTrigger",
    "AutomationTriggerCreate",
    "AutomationTriggerPublic",
    "AutomationTriggerUpdate",
    "ExternalEventIn",
    "TriggerExecution",
    "CrewAvailability",
    "CrewAvailabilityCreate",
    "CrewAvailabilityPublic",
    "CrewMember",
    "CrewMemberCreate",
    "CrewMemberPublic",
    "CrewMemberUpdate",
    "JobDependency",
    "JobDependencyCreate",
    "JobDependencyPublic",
    "Job",
    "JobCreate",
    "JobFromQuote",
    "JobPublic",
    "JobsPublic",
    "JobStatusLog",
    "JobStatusLogPublic",
    "JobStatusUpdate",
    "JobTask",
    "JobTaskCreate",
    "JobTaskPublic",
    "JobTaskUpdate",
    "JobUpdate",
    "JobMessage",
    "JobMessageCreate",
    "JobMessagePublic",
    "EventStatusLog",
    "EventStatusLogPublic",
    "ScheduleEvent",
    "ScheduleEventCreate",
    "ScheduleEventPublic",
    "ScheduleEventUpdate",
    "ServiceWindow",
    "ServiceWindowCreate",
    "ServiceWindowPublic",
    "ServiceWindowUpdate",
    "TimeEntry",
    "TimeEntryCreate",
    "TimeEntryPublic",
    "TimeEntryUpdate",
]
