"""Automation trigger and execution ledger repository implementations."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import col, or_, select

from fieldops.domain.scheduling.repositories import (
    AutomationTriggerRepository,
    TriggerExecutionRepository,
)
from fieldops.domain.scheduling.value_objects import TriggerType
from fieldops.models import AutomationTrigger, TriggerExecution

from .base import BaseRepository, read_operation, write_operation


class SqlAutomationTriggerRepository(BaseRepository, AutomationTriggerRepository):
    @read_operation("get trigger")
    def get(self, tenant_id: UUID, trigger_id: UUID) -> AutomationTrigger | None:
        statement = select(AutomationTrigger).where(
            AutomationTrigger.tenant_id == tenant_id, AutomationTrigger.id == trigger_id
        )
        return self.session.exec(statement).first()

    @read_operation("search triggers")
    def search(
        self,
        tenant_id: UUID,
        trigger_type: TriggerType | None = None,
        job_id: UUID | None = None,
        is_active: bool | None = None,
    ) -> list[AutomationTrigger]:
        statement = select(AutomationTrigger).where(AutomationTrigger.tenant_id == tenant_id)
        if trigger_type is not None:
            statement = statement.where(AutomationTrigger.trigger_type == trigger_type)
        if job_id is not None:
            statement = statement.where(AutomationTrigger.job_id == job_id)
        if is_active is not None:
            statement = statement.where(AutomationTrigger.is_active == is_active)
        statement = statement.order_by(col(AutomationTrigger.created_at))
        return list(self.session.exec(statement).all())

    @read_operation("match triggers")
    def list_matching(
        self, tenant_id: UUID, trigger_type: TriggerType, job_id: UUID | None
    ) -> list[AutomationTrigger]:
        scope = col(AutomationTrigger.job_id).is_(None)
        if job_id is not None:
            scope = or_(scope, AutomationTrigger.job_id == job_id)
        statement = (
            select(AutomationTrigger)
            .where(
                AutomationTrigger.tenant_id == tenant_id,
                AutomationTrigger.trigger_type == trigger_type,
                col(AutomationTrigger.is_active).is_(True),
                scope,
            )
            .order_by(col(AutomationTrigger.created_at), col(AutomationTrigger.id))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list job triggers")
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[AutomationTrigger]:
        statement = select(AutomationTrigger).where(
            AutomationTrigger.tenant_id == tenant_id, AutomationTrigger.job_id == job_id
        )
        return list(self.session.exec(statement).all())

    @write_operation("save trigger")
    def add(self, trigger: AutomationTrigger) -> AutomationTrigger:
        return self._save(trigger)

    @write_operation("delete trigger")
    def delete(self, trigger: AutomationTrigger) -> None:
        self._remove(trigger)


class SqlTriggerExecutionRepository(BaseRepository, TriggerExecutionRepository):
    """
    The ledger claim relies on the unique idempotency key.

    A claim is expected to be the only write in its unit of work: losing the
    race rolls the session back.
    """

    @write_operation("claim trigger execution")
    def claim(self, execution: TriggerExecution) -> bool:
        existing = self.session.exec(
            select(TriggerExecution.id).where(
                TriggerExecution.idempotency_key == execution.idempotency_key
            )
        ).first()
        if existing is not None:
            return False
        try:
            self._save(execution)
        except IntegrityError:
            self.session.rollback()
            return False
        return True

    @read_operation("get trigger execution")
    def get_by_key(self, idempotency_key: str) -> TriggerExecution | None:
        statement = select(TriggerExecution).where(
            TriggerExecution.idempotency_key == idempotency_key
        )
        return self.session.exec(statement).first()

    @read_operation("list trigger executions")
    def list_for_trigger(self, tenant_id: UUID, trigger_id: UUID) -> list[TriggerExecution]:
        statement = (
            select(TriggerExecution)
            .where(
                TriggerExecution.tenant_id == tenant_id,
                TriggerExecution.trigger_id == trigger_id,
            )
            .order_by(col(TriggerExecution.started_at))
        )
        return list(self.session.exec(statement).all())
