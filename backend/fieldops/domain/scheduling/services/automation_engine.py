"""
Automation Engine

Evaluates automation triggers against domain events. Each matching trigger is
claimed in the execution ledger under an idempotency key, its action is run in
a unit of work of its own, and the outcome is recorded. A failing action is
logged and never propagates: it cannot affect other triggers or the mutation
that raised the event.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from fieldops.core.observability import TRIGGER_EXECUTIONS, get_logger, trace_operation
from fieldops.domain.scheduling.value_objects import ActionType, ExecutionStatus, TriggerType
from fieldops.domain.shared.base import DomainService, utcnow
from fieldops.domain.shared.unit_of_work import AbstractUnitOfWork
from fieldops.models import AutomationTrigger, TriggerExecution

from .trigger_conditions import evaluate_conditions

logger = get_logger(__name__)


@dataclass
class ActionRequest:
    """Everything an action handler may use, bound to the action's unit of work."""

    uow: AbstractUnitOfWork
    tenant_id: UUID
    job_id: UUID | None
    trigger: AutomationTrigger
    config: dict[str, Any]
    context: dict[str, Any]
    chain_depth: int = 0


ActionHandler = Callable[[ActionRequest], None]


class TriggerOutcome(str, Enum):
    NOT_MATCHED = "not_matched"
    ALREADY_CLAIMED = "already_claimed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class EvaluationReport:
    outcomes: dict[UUID, TriggerOutcome] = field(default_factory=dict)

    def count(self, outcome: TriggerOutcome) -> int:
        return sum(1 for o in self.outcomes.values() if o == outcome)


def idempotency_key(trigger_id: UUID, job_id: UUID | None, event_timestamp: datetime) -> str:
    return f"{trigger_id}:{job_id}:{event_timestamp.isoformat()}"


class AutomationEngine(DomainService):
    """
    Rule engine for automation triggers.

    Args:
        uow_factory: Creates a fresh unit of work; one is opened per step so
            that the ledger claim survives a failing action
        handlers: Action handler for each action type
    """

    def __init__(
        self,
        uow_factory: Callable[[], AbstractUnitOfWork],
        handlers: Mapping[ActionType, ActionHandler],
    ) -> None:
        self._uow_factory = uow_factory
        self._handlers = dict(handlers)

    def register(self, action_type: ActionType, handler: ActionHandler) -> None:
        self._handlers[action_type] = handler

    def evaluate(
        self,
        tenant_id: UUID,
        trigger_type: TriggerType,
        job_id: UUID | None,
        context: dict[str, Any],
        event_timestamp: datetime,
        chain_depth: int = 0,
    ) -> EvaluationReport:
        """
        Fire every active trigger of ``trigger_type`` whose conditions match.

        Args:
            tenant_id: Owning tenant
            trigger_type: Kind of event that happened
            job_id: Job the event concerns; global triggers match any job
            context: Event payload the conditions are evaluated against
            event_timestamp: When the event happened; part of the idempotency key
            chain_depth: Number of automation actions that led to this event

        Returns:
            Outcome per trigger considered
        """
        report = EvaluationReport()
        attributes = {
            "tenant_id": str(tenant_id),
            "trigger_type": trigger_type.value,
            "job_id": str(job_id) if job_id else "",
            "chain_depth": chain_depth,
        }

        with trace_operation("automation.evaluate", attributes):
            with self._uow_factory() as uow:
                triggers = uow.triggers.list_matching(tenant_id, trigger_type, job_id)

            for trigger in triggers:
                try:
                    report.outcomes[trigger.id] = self._fire(
                        trigger, tenant_id, job_id, context, event_timestamp, chain_depth
                    )
                except Exception:
                    # Ledger bookkeeping itself failed; the trigger is skipped
                    logger.error(
                        "Automation trigger evaluation failed",
                        trigger_id=str(trigger.id),
                        job_id=str(job_id) if job_id else None,
                        exc_info=True,
                    )
                    report.outcomes[trigger.id] = TriggerOutcome.FAILED

        logger.info(
            "Automation evaluated",
            trigger_type=trigger_type.value,
            job_id=str(job_id) if job_id else None,
            triggers=len(report.outcomes),
            succeeded=report.count(TriggerOutcome.SUCCEEDED),
            failed=report.count(TriggerOutcome.FAILED),
        )
        return report

    def _fire(
        self,
        trigger: AutomationTrigger,
        tenant_id: UUID,
        job_id: UUID | None,
        context: dict[str, Any],
        event_timestamp: datetime,
        chain_depth: int,
    ) -> TriggerOutcome:
        if not evaluate_conditions(trigger.conditions, context):
            return TriggerOutcome.NOT_MATCHED

        key = idempotency_key(trigger.id, job_id, event_timestamp)
        with self._uow_factory() as uow:
            claimed = uow.executions.claim(
                TriggerExecution(
                    tenant_id=tenant_id,
                    idempotency_key=key,
                    trigger_id=trigger.id,
                    job_id=job_id,
                )
            )
        if not claimed:
            logger.info(
                "Automation trigger already fired for this event",
                trigger_id=str(trigger.id),
                idempotency_key=key,
            )
            return TriggerOutcome.ALREADY_CLAIMED

        try:
            with self._uow_factory() as uow:
                handler = self._handlers.get(trigger.action_type)
                if handler is None:
                    raise LookupError(f"no handler for {trigger.action_type.value}")
                handler(
                    ActionRequest(
                        uow=uow,
                        tenant_id=tenant_id,
                        job_id=job_id,
                        trigger=trigger,
                        config=dict(trigger.action_config or {}),
                        context=context,
                        chain_depth=chain_depth,
                    )
                )
                self._finish(uow, tenant_id, trigger.id, key, ExecutionStatus.SUCCEEDED)
        except Exception as e:
            logger.error(
                "Automation action failed",
                trigger_id=str(trigger.id),
                action_type=trigger.action_type.value,
                job_id=str(job_id) if job_id else None,
                error=str(e),
                exc_info=True,
            )
            with self._uow_factory() as uow:
                self._finish(uow, tenant_id, trigger.id, key, ExecutionStatus.FAILED, str(e))
            TRIGGER_EXECUTIONS.labels(
                trigger_type=trigger.trigger_type.value,
                action_type=trigger.action_type.value,
                status=ExecutionStatus.FAILED.value,
            ).inc()
            return TriggerOutcome.FAILED

        TRIGGER_EXECUTIONS.labels(
            trigger_type=trigger.trigger_type.value,
            action_type=trigger.action_type.value,
            status=ExecutionStatus.SUCCEEDED.value,
        ).inc()
        logger.info(
            "Automation action executed",
            trigger_id=str(trigger.id),
            action_type=trigger.action_type.value,
            job_id=str(job_id) if job_id else None,
        )
        return TriggerOutcome.SUCCEEDED

    @staticmethod
    def _finish(
        uow: AbstractUnitOfWork,
        tenant_id: UUID,
        trigger_id: UUID,
        key: str,
        status: ExecutionStatus,
        error: str | None = None,
    ) -> None:
        now = utcnow()
        execution = uow.executions.get_by_key(key)
        if execution is not None:
            execution.status = status
            execution.error = error
            execution.finished_at = now

        stored = uow.triggers.get(tenant_id, trigger_id)
        if stored is not None:
            stored.trigger_count += 1
            stored.last_triggered = now
