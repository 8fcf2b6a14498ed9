"""SQLModel implementations of the scheduling repository interfaces."""

from .automation_repository import SqlAutomationTriggerRepository, SqlTriggerExecutionRepository
from .base import BaseRepository
from .crew_repository import SqlCrewAvailabilityRepository, SqlCrewMemberRepository
from .dependency_repository import SqlJobDependencyRepository
from .job_repository import SqlJobRepository, SqlJobStatusLogRepository, SqlJobTaskRepository
from .message_repository import SqlJobMessageRepository
from .schedule_repository import SqlEventStatusLogRepository, SqlScheduleEventRepository
from .service_window_repository import SqlServiceWindowRepository
from .time_entry_repository import SqlTimeEntryRepository

__all__ = [
    "BaseRepository",
    "SqlAutomationTriggerRepository",
    "SqlTriggerExecutionRepository",
    "SqlCrewAvailabilityRepository",
    "SqlCrewMemberRepository",
    "SqlJobDependencyRepository",
    "SqlJobRepository",
    "SqlJobStatusLogRepository",
    "SqlJobTaskRepository",
    "SqlJobMessageRepository",
    "SqlEventStatusLogRepository",
    "SqlScheduleEventRepository",
    "SqlServiceWindowRepository",
    "SqlTimeEntryRepository",
]
