"""
Automation Dispatcher

Hands committed domain events to the automation engine, either inline on the
committing thread or on a bounded thread pool. Events produced by automation
actions themselves carry a chain depth; beyond the configured maximum they are
dropped.
"""

import contextvars
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Literal

from fieldops.core.observability import get_logger
from fieldops.domain.scheduling.services.automation_engine import AutomationEngine
from fieldops.domain.shared.base import DomainEvent

logger = get_logger(__name__)


class AutomationDispatcher:
    def __init__(
        self,
        mode: Literal["inline", "background"] = "background",
        max_workers: int = 4,
        max_chain_depth: int = 3,
    ) -> None:
        self.mode = mode
        self.max_chain_depth = max_chain_depth
        self._engine: AutomationEngine | None = None
        self._executor: ThreadPoolExecutor | None = None
        if mode == "background":
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="automation"
            )

    def bind(self, engine: AutomationEngine) -> None:
        """Attach the engine; it is built after the dispatcher it depends on."""
        self._engine = engine

    def dispatch(self, event: DomainEvent) -> Future | None:
        """
        Schedule automation for a committed event.

        Returns:
            The pending evaluation in background mode, otherwise None
        """
        if event.chain_depth > self.max_chain_depth:
            logger.warning(
                "Automation chain depth exceeded, event dropped",
                trigger_type=event.trigger_type.value,
                job_id=str(event.job_id) if event.job_id else None,
                chain_depth=event.chain_depth,
                max_chain_depth=self.max_chain_depth,
            )
            return None
        if self._engine is None:
            logger.warning(
                "No automation engine bound, event dropped",
                trigger_type=event.trigger_type.value,
            )
            return None

        if self._executor is None:
            self._run(event)
            return None

        # Carry correlation ids into the worker thread
        context = contextvars.copy_context()
        return self._executor.submit(context.run, self._run, event)

    def _run(self, event: DomainEvent) -> None:
        try:
            self._engine.evaluate(
                tenant_id=event.tenant_id,
                trigger_type=event.trigger_type,
                job_id=event.job_id,
                context=event.context,
                event_timestamp=event.occurred_at,
                chain_depth=event.chain_depth,
            )
        except Exception:
            logger.error(
                "Automation dispatch failed",
                event_id=str(event.event_id),
                trigger_type=event.trigger_type.value,
                exc_info=True,
            )

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
