"""
Domain Exceptions

Custom exceptions for business rule violations in job scheduling. Every error
carries a discriminating ``ErrorType`` so the API layer can map it to an HTTP
status and render it in the error envelope.
"""

from enum import Enum
from typing import Any
from uuid import UUID


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    INVALID_TRANSITION = "invalid_transition"
    CYCLIC_DEPENDENCY = "cyclic_dependency"
    DEPENDENCY_NOT_SATISFIED = "dependency_not_satisfied"
    JOB_CLOSED = "job_closed"
    JOB_IN_USE = "job_in_use"
    PERSISTENCE = "persistence"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when domain validation rules are violated."""

    def __init__(
        self,
        field_name: str,
        value: Any,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value

        full_message = f"Validation failed for field '{field_name}': {message}"
        details = dict(details or {})
        details.update(
            {
                "field": field_name,
                "value": str(value) if value is not None else None,
            }
        )
        super().__init__(full_message, ErrorType.VALIDATION, details)


# Not-found exceptions
class NotFoundError(DomainError):
    """Base class for missing entities. Lookups are always tenant scoped."""

    entity_type = "entity"

    def __init__(self, entity_id: UUID | str) -> None:
        details = {f"{self.entity_type}_id": str(entity_id), "entity_type": self.entity_type}
        label = self.entity_type.replace("_", " ").capitalize()
        super().__init__(f"{label} not found: {entity_id}", ErrorType.NOT_FOUND, details)
        self.entity_id = entity_id


class JobNotFoundError(NotFoundError):
    entity_type = "job"


class TaskNotFoundError(NotFoundError):
    entity_type = "task"


class EventNotFoundError(NotFoundError):
    entity_type = "event"


class CrewMemberNotFoundError(NotFoundError):
    entity_type = "crew_member"


class DependencyNotFoundError(NotFoundError):
    entity_type = "dependency"


class TriggerNotFoundError(NotFoundError):
    entity_type = "trigger"


class TimeEntryNotFoundError(NotFoundError):
    entity_type = "time_entry"


class ServiceWindowNotFoundError(NotFoundError):
    entity_type = "service_window"


class QuoteNotFoundError(NotFoundError):
    """Raised when a quote does not exist or has not been accepted."""

    entity_type = "quote"


# Scheduling exceptions
class SchedulingConflictError(DomainError):
    """Raised when crew members are double-booked or unavailable for a window."""

    def __init__(
        self,
        conflicts: list[dict[str, Any]] | None = None,
        unavailable_crew_ids: list[UUID] | None = None,
    ) -> None:
        self.conflicts = conflicts or []
        self.unavailable_crew_ids = list(unavailable_crew_ids or [])

        parts = []
        if self.conflicts:
            parts.append(f"{len(self.conflicts)} conflicting event(s)")
        if self.unavailable_crew_ids:
            parts.append(f"{len(self.unavailable_crew_ids)} unavailable crew member(s)")
        message = "Scheduling conflict detected: " + ", ".join(parts or ["unknown"])

        details = {
            "conflicts": self.conflicts,
            "unavailable_crew_ids": [str(c) for c in self.unavailable_crew_ids],
        }
        super().__init__(message, ErrorType.SCHEDULING_CONFLICT, details)


class InvalidTransitionError(DomainError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(
        self, entity_type: str, entity_id: UUID, current_status: str, attempted_status: str
    ) -> None:
        details = {
            f"{entity_type}_id": str(entity_id),
            "current_status": current_status,
            "attempted_status": attempted_status,
        }
        super().__init__(
            f"Cannot change {entity_type} {entity_id} from {current_status} to {attempted_status}",
            ErrorType.INVALID_TRANSITION,
            details,
        )
        self.entity_id = entity_id
        self.current_status = current_status
        self.attempted_status = attempted_status


# Dependency exceptions
class CyclicDependencyError(DomainError):
    """Raised when a dependency edge would close a cycle."""

    def __init__(self, dependent_job_id: UUID, prerequisite_job_id: UUID) -> None:
        details = {
            "dependent_job_id": str(dependent_job_id),
            "prerequisite_job_id": str(prerequisite_job_id),
        }
        super().__init__(
            f"Job {dependent_job_id} cannot depend on {prerequisite_job_id}: "
            "the dependency would create a cycle",
            ErrorType.CYCLIC_DEPENDENCY,
            details,
        )
        self.dependent_job_id = dependent_job_id
        self.prerequisite_job_id = prerequisite_job_id


class DependencyNotSatisfiedError(DomainError):
    """Raised when a job is scheduled before its prerequisites are completed."""

    def __init__(self, job_id: UUID, blocking_job_ids: list[UUID]) -> None:
        details = {
            "job_id": str(job_id),
            "blocking_job_ids": [str(j) for j in blocking_job_ids],
        }
        super().__init__(
            f"Job {job_id} has {len(blocking_job_ids)} incomplete prerequisite(s)",
            ErrorType.DEPENDENCY_NOT_SATISFIED,
            details,
        )
        self.job_id = job_id
        self.blocking_job_ids = blocking_job_ids


# Job lifecycle exceptions
class JobClosedError(DomainError):
    """Raised when new work is attached to a completed or cancelled job."""

    def __init__(self, job_id: UUID, status: str) -> None:
        details = {"job_id": str(job_id), "status": status}
        super().__init__(f"Job {job_id} is {status}", ErrorType.JOB_CLOSED, details)
        self.job_id = job_id
        self.status = status


class JobInUseError(DomainError):
    """Raised when deleting a job that still has events, tasks or time entries."""

    def __init__(self, job_id: UUID, references: dict[str, int]) -> None:
        details = {"job_id": str(job_id), "references": references}
        super().__init__(
            f"Job {job_id} is referenced by other records and cannot be deleted",
            ErrorType.JOB_IN_USE,
            details,
        )
        self.job_id = job_id
        self.references = references


# Repository exceptions
class PersistenceError(DomainError):
    """Raised when the database cannot complete an operation."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        details = {
            "operation": operation,
            "cause": type(cause).__name__ if cause else None,
        }
        super().__init__(
            f"Persistence failure during {operation}", ErrorType.PERSISTENCE, details
        )
        self.operation = operation
        self.cause = cause
