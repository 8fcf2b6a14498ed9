"""Value objects for the scheduling domain."""

from .enums import (
    ACTIVE_EVENT_STATUSES,
    ActionType,
    AvailabilityType,
    DeliveryStatus,
    DependencyType,
    EventStatus,
    ExecutionStatus,
    JobStatus,
    MessageChannel,
    MessageDirection,
    PriorityLevel,
    TaskStatus,
    TriggerType,
)
from .time_window import (
    TimeWindow,
    WorkingHours,
    intersect_windows,
    merge_windows,
    subtract_windows,
    to_naive_utc,
)

__all__ = [
    "ACTIVE_EVENT_STATUSES",
    "ActionType",
    "AvailabilityType",
    "DeliveryStatus",
    "DependencyType",
    "EventStatus",
    "ExecutionStatus",
    "JobStatus",
    "MessageChannel",
    "MessageDirection",
    "PriorityLevel",
    "TaskStatus",
    "TriggerType",
    "TimeWindow",
    "WorkingHours",
    "intersect_windows",
    "merge_windows",
    "subtract_windows",
    "to_naive_utc",
]
