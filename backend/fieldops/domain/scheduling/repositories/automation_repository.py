"""
Automation Repository Interfaces

Defines the contracts for automation triggers and the trigger execution
ledger.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from fieldops.domain.scheduling.value_objects import TriggerType
from fieldops.models import AutomationTrigger, TriggerExecution


class AutomationTriggerRepository(ABC):
    """Abstract repository interface for AutomationTrigger entities."""

    @abstractmethod
    def get(self, tenant_id: UUID, trigger_id: UUID) -> AutomationTrigger | None:
        pass

    @abstractmethod
    def search(
        self,
        tenant_id: UUID,
        trigger_type: TriggerType | None = None,
        job_id: UUID | None = None,
        is_active: bool | None = None,
    ) -> list[AutomationTrigger]:
        pass

    @abstractmethod
    def list_matching(
        self, tenant_id: UUID, trigger_type: TriggerType, job_id: UUID | None
    ) -> list[AutomationTrigger]:
        """
        Active triggers of ``trigger_type`` that are global or scoped to ``job_id``.

        Returns:
            Triggers in creation order, so evaluation order is stable
        """
        pass

    @abstractmethod
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[AutomationTrigger]:
        """Job-scoped triggers only."""
        pass

    @abstractmethod
    def add(self, trigger: AutomationTrigger) -> AutomationTrigger:
        pass

    @abstractmethod
    def delete(self, trigger: AutomationTrigger) -> None:
        pass


class TriggerExecutionRepository(ABC):
    """The idempotency ledger. Rows are claimed once and never removed."""

    @abstractmethod
    def claim(self, execution: TriggerExecution) -> bool:
        """
        Insert ``execution`` unless its idempotency key is already taken.

        Returns:
            True if this call claimed the key, False if it was already claimed

        Raises:
            PersistenceError: If the insert fails for any other reason
        """
        pass

    @abstractmethod
    def get_by_key(self, idempotency_key: str) -> TriggerExecution | None:
        pass

    @abstractmethod
    def list_for_trigger(self, tenant_id: UUID, trigger_id: UUID) -> list[TriggerExecution]:
        pass
