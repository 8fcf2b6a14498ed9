"""Base classes shared by the domain layer."""

from abc import ABC
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..scheduling.value_objects.enums import TriggerType


def utcnow() -> datetime:
    """Current time as naive UTC, matching the stored representation."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DomainEvent(BaseModel):
    """
    A fact about a job that automation triggers can react to.

    Events are recorded during a unit of work and handed to the automation
    dispatcher only once the transaction has committed.
    """

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_at: datetime = Field(default_factory=utcnow)
    tenant_id: UUID
    job_id: UUID | None = None
    trigger_type: TriggerType
    context: dict[str, Any] = Field(default_factory=dict)
    chain_depth: int = 0


class DomainService(ABC):
    """Base class for domain services (business logic that doesn't belong to a single entity)."""

    pass
