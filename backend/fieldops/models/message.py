"""Customer communication models."""

import uuid
from datetime import datetime

from pydantic import model_validator
from sqlmodel import Field, SQLModel
from typing_extensions import Self

from fieldops.domain.scheduling.value_objects import (
    DeliveryStatus,
    MessageChannel,
    MessageDirection,
)

from .base import UTCDateTime, utcnow


class JobMessageBase(SQLModel):
    channel: MessageChannel
    recipient: str = Field(min_length=1, max_length=255)
    subject: str | None = Field(default=None, max_length=200)
    content: str = Field(min_length=10, max_length=5000)
    template_used: str | None = Field(default=None, max_length=100)


class JobMessage(JobMessageBase, table=True):
    """
    A message exchanged with the customer about a job.

    Outbound messages start PENDING and move to SENT or FAILED once the
    notification gateway has been called.
    """

    __tablename__ = "job_messages"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    job_id: uuid.UUID = Field(foreign_key="jobs.id", index=True)
    direction: MessageDirection = Field(default=MessageDirection.OUTBOUND)
    delivery_status: DeliveryStatus = Field(default=DeliveryStatus.PENDING)
    delivery_error: str | None = Field(default=None)
    sent_at: datetime | None = Field(sa_type=UTCDateTime, default=None)
    created_by: str = Field(max_length=100)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow, index=True)


class JobMessageCreate(JobMessageBase):
    @model_validator(mode="after")
    def _email_needs_subject(self) -> Self:
        if self.channel == MessageChannel.EMAIL and not self.subject:
            raise ValueError("subject is required for email messages")
        return self


class JobMessagePublic(JobMessageBase):
    id: uuid.UUID
    job_id: uuid.UUID
    direction: MessageDirection
    delivery_status: DeliveryStatus
    delivery_error: str | None
    sent_at: datetime | None
    created_by: str
    created_at: datetime
