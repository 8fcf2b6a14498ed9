"""Domain enums for field-service scheduling."""

from enum import Enum


class JobStatus(str, Enum):
    """Job status enumeration."""

    PLANNED = "planned"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Check if job status represents work that is underway or booked."""
        return self in {JobStatus.SCHEDULED, JobStatus.IN_PROGRESS}

    @property
    def is_terminal(self) -> bool:
        """Check if job status is terminal (cannot transition further)."""
        return self in {JobStatus.COMPLETED, JobStatus.CANCELLED}


class EventStatus(str, Enum):
    """Schedule event status enumeration."""

    PLANNED = "planned"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        """Active events hold crew time and take part in conflict detection."""
        return self in ACTIVE_EVENT_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in {EventStatus.COMPLETED, EventStatus.CANCELLED}


ACTIVE_EVENT_STATUSES = frozenset(
    {EventStatus.PLANNED, EventStatus.CONFIRMED, EventStatus.IN_PROGRESS}
)


class TaskStatus(str, Enum):
    """Job task status enumeration."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class PriorityLevel(str, Enum):
    """Priority level enumeration."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"
    EMERGENCY = "emergency"

    @property
    def numeric_value(self) -> int:
        """Get numeric value for priority comparison."""
        priority_map = {
            PriorityLevel.LOW: 1,
            PriorityLevel.NORMAL: 2,
            PriorityLevel.HIGH: 3,
            PriorityLevel.URGENT: 4,
            PriorityLevel.EMERGENCY: 5,
        }
        return priority_map[self]

    def is_higher_than(self, other: "PriorityLevel") -> bool:
        """Check if this priority is higher than another."""
        return self.numeric_value > other.numeric_value


class AvailabilityType(str, Enum):
    """Kind of a declared crew availability window."""

    AVAILABLE = "available"
    BLACKOUT = "blackout"


class DependencyType(str, Enum):
    """Reason a job must wait for another job."""

    SEQUENTIAL = "sequential"
    MATERIAL_DELIVERY = "material_delivery"
    SITE_PREPARATION = "site_preparation"
    PERMIT_APPROVAL = "permit_approval"
    QUALITY_INSPECTION = "quality_inspection"


class TriggerType(str, Enum):
    """Domain events an automation trigger can listen for."""

    STATUS_CHANGE = "status_change"
    JOB_CREATED = "job_created"
    SCHEDULE_CREATED = "schedule_created"
    SCHEDULE_UPDATED = "schedule_updated"
    EVENT_STATUS_CHANGE = "event_status_change"
    COMPLETION_PERCENTAGE = "completion_percentage"
    CREW_ARRIVAL = "crew_arrival"
    TIME_BASED = "time_based"
    CUSTOMER_ACTION = "customer_action"
    MATERIAL_DELIVERY = "material_delivery"
    EXTERNAL_EVENT = "external_event"

    @property
    def is_external(self) -> bool:
        """External trigger types are fired through the event ingress endpoint."""
        return self in {
            TriggerType.TIME_BASED,
            TriggerType.CUSTOMER_ACTION,
            TriggerType.MATERIAL_DELIVERY,
            TriggerType.EXTERNAL_EVENT,
        }


class ActionType(str, Enum):
    """Side effects an automation trigger can dispatch."""

    SEND_NOTIFICATION = "send_notification"
    UPDATE_STATUS = "update_status"
    CREATE_TASK = "create_task"
    SCHEDULE_FOLLOWUP = "schedule_followup"
    GENERATE_INVOICE = "generate_invoice"
    ORDER_MATERIALS = "order_materials"
    ESCALATE_ISSUE = "escalate_issue"


class ExecutionStatus(str, Enum):
    """Outcome of a single trigger firing."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class MessageChannel(str, Enum):
    """Delivery channel of a customer message."""

    EMAIL = "email"
    SMS = "sms"
    PUSH_NOTIFICATION = "push_notification"


class MessageDirection(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"


class DeliveryStatus(str, Enum):
    """Delivery state of an outbound message."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
