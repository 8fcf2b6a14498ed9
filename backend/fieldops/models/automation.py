"""Automation trigger and execution ledger models."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import field_validator, model_validator
from sqlalchemy import JSON
from sqlmodel import Field, SQLModel
from typing_extensions import Self

from fieldops.domain.scheduling.services.trigger_conditions import validate_conditions
from fieldops.domain.scheduling.value_objects import (
    ActionType,
    ExecutionStatus,
    JobStatus,
    TriggerType,
)

from .base import UTCDateTime, utcnow

# Keys an action handler cannot run without
REQUIRED_ACTION_CONFIG: dict[ActionType, tuple[str, ...]] = {
    ActionType.UPDATE_STATUS: ("status",),
    ActionType.CREATE_TASK: ("title",),
}


def check_action_config(action_type: ActionType, config: dict[str, Any]) -> None:
    missing = [k for k in REQUIRED_ACTION_CONFIG.get(action_type, ()) if k not in config]
    if missing:
        raise ValueError(
            f"action_config for {action_type.value} requires: {', '.join(missing)}"
        )
    if action_type == ActionType.UPDATE_STATUS:
        try:
            JobStatus(config["status"])
        except ValueError:
            allowed = ", ".join(s.value for s in JobStatus)
            raise ValueError(
                f"action_config status {config['status']!r} is not one of: {allowed}"
            ) from None


class AutomationTriggerBase(SQLModel):
    """Base automation trigger fields."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None)
    job_id: uuid.UUID | None = Field(
        default=None, description="Scope to one job; null makes the trigger global"
    )
    trigger_type: TriggerType = Field(index=True)
    conditions: dict[str, Any] | None = Field(default=None, sa_type=JSON)
    action_type: ActionType
    action_config: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    is_active: bool = Field(default=True)

    @field_validator("conditions", mode="after")
    @classmethod
    def _check_conditions(cls, v):
        validate_conditions(v)
        return v


class AutomationTrigger(AutomationTriggerBase, table=True):
    """
    Automation trigger table model.

    ``trigger_count`` only ever increases; it counts successful claims of the
    execution ledger, whatever the action outcome.
    """

    __tablename__ = "automation_triggers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID | None = Field(default=None, foreign_key="jobs.id", index=True)
    last_triggered: datetime | None = Field(sa_type=UTCDateTime, default=None)
    trigger_count: int = Field(default=0, ge=0)
    created_by: str = Field(default="system", max_length=100)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    updated_at: datetime = Field(
        sa_type=UTCDateTime,
        default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow}
    )


class AutomationTriggerCreate(AutomationTriggerBase):
    @model_validator(mode="after")
    def _check_action(self) -> Self:
        check_action_config(self.action_type, self.action_config)
        return self


class AutomationTriggerUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None)
    conditions: dict[str, Any] | None = Field(default=None)
    action_type: ActionType | None = Field(default=None)
    action_config: dict[str, Any] | None = Field(default=None)
    is_active: bool | None = Field(default=None)

    @field_validator("conditions", mode="after")
    @classmethod
    def _check_conditions(cls, v):
        validate_conditions(v)
        return v


class AutomationTriggerPublic(AutomationTriggerBase):
    id: uuid.UUID
    last_triggered: datetime | None
    trigger_count: int
    created_by: str
    created_at: datetime
    updated_at: datetime


class TriggerExecution(SQLModel, table=True):
    """
    Idempotency ledger: one row per claimed trigger firing.

    The unique ``idempotency_key`` is what stops a retried evaluation from
    dispatching the same action twice.
    """

    __tablename__ = "trigger_executions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    idempotency_key: str = Field(max_length=255, unique=True, index=True)
    trigger_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID | None = Field(default=None, index=True)
    status: ExecutionStatus = Field(default=ExecutionStatus.RUNNING)
    error: str | None = Field(default=None)
    started_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    finished_at: datetime | None = Field(sa_type=UTCDateTime, default=None)


class ExternalEventIn(SQLModel):
    """An externally sourced event fed into the automation engine."""

    trigger_type: TriggerType
    job_id: uuid.UUID | None = Field(default=None)
    context: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime | None = Field(
        default=None, description="Source timestamp; part of the idempotency key"
    )

    @field_validator("trigger_type", mode="after")
    @classmethod
    def _external_only(cls, v: TriggerType) -> TriggerType:
        if not v.is_external:
            raise ValueError(f"{v.value} events are raised by the engine itself")
        return v
