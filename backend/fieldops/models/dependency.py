"""Job dependency models."""

import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from fieldops.domain.scheduling.value_objects import DependencyType

from .base import UTCDateTime, utcnow


class JobDependencyBase(SQLModel):
    prerequisite_job_id: uuid.UUID
    dependency_type: DependencyType = Field(default=DependencyType.SEQUENTIAL)
    description: str | None = Field(default=None, max_length=500)


class JobDependency(JobDependencyBase, table=True):
    """Edge ``dependent_job_id -> prerequisite_job_id``: the dependent waits."""

    __tablename__ = "job_dependencies"
    __table_args__ = (UniqueConstraint("dependent_job_id", "prerequisite_job_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(index=True)
    dependent_job_id: uuid.UUID = Field(foreign_key="jobs.id", index=True)
    prerequisite_job_id: uuid.UUID = Field(foreign_key="jobs.id", index=True)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)


class JobDependencyCreate(JobDependencyBase):
    pass


class JobDependencyPublic(JobDependencyBase):
    id: uuid.UUID
    dependent_job_id: uuid.UUID
    created_at: datetime
