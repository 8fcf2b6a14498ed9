"""Tests for after-commit event dispatch."""

from uuid import uuid4

import pytest
from structlog.testing import capture_logs

from fieldops.domain.scheduling.value_objects import TriggerType
from fieldops.domain.shared.base import DomainEvent
from fieldops.infrastructure.database.unit_of_work import SqlModelUnitOfWork
from fieldops.infrastructure.events.automation_dispatcher import AutomationDispatcher
from fieldops.tests.factories import JobFactory


class RecordingEngine:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[dict] = []
        self.fail = fail

    def evaluate(self, **kwargs):
        self.calls.append(kwargs)
        if self.fail:
            raise RuntimeError("engine down")


def make_event(chain_depth: int = 0) -> DomainEvent:
    return DomainEvent(
        tenant_id=uuid4(),
        job_id=uuid4(),
        trigger_type=TriggerType.STATUS_CHANGE,
        context={"new_status": "completed"},
        chain_depth=chain_depth,
    )


class TestAutomationDispatcher:
    def test_inline_runs_on_calling_thread(self):
        dispatcher = AutomationDispatcher(mode="inline")
        engine = RecordingEngine()
        dispatcher.bind(engine)
        event = make_event()

        assert dispatcher.dispatch(event) is None

        (call,) = engine.calls
        assert call["trigger_type"] == TriggerType.STATUS_CHANGE
        assert call["event_timestamp"] == event.occurred_at
        assert call["chain_depth"] == 0

    def test_background_returns_future(self):
        dispatcher = AutomationDispatcher(mode="background", max_workers=1)
        engine = RecordingEngine()
        dispatcher.bind(engine)
        try:
            future = dispatcher.dispatch(make_event())
            future.result(timeout=5)
        finally:
            dispatcher.shutdown()

        assert len(engine.calls) == 1

    @pytest.mark.parametrize("depth, delivered", [(3, True), (4, False)])
    def test_chain_depth_limit(self, depth, delivered):
        dispatcher = AutomationDispatcher(mode="inline", max_chain_depth=3)
        engine = RecordingEngine()
        dispatcher.bind(engine)

        with capture_logs() as logs:
            dispatcher.dispatch(make_event(chain_depth=depth))

        assert bool(engine.calls) is delivered
        dropped = [e for e in logs if e["event"] == "Automation chain depth exceeded, event dropped"]
        assert bool(dropped) is not delivered

    def test_unbound_dispatcher_drops(self):
        dispatcher = AutomationDispatcher(mode="inline")
        with capture_logs() as logs:
            assert dispatcher.dispatch(make_event()) is None
        assert logs[0]["event"] == "No automation engine bound, event dropped"

    def test_engine_failure_is_logged_not_raised(self):
        dispatcher = AutomationDispatcher(mode="inline")
        dispatcher.bind(RecordingEngine(fail=True))

        with capture_logs() as logs:
            dispatcher.dispatch(make_event())

        (entry,) = [e for e in logs if e["event"] == "Automation dispatch failed"]
        assert entry["log_level"] == "error"


class TestUnitOfWorkDispatch:
    def test_events_dispatched_after_commit(self, session_factory):
        received = []
        event = make_event()

        with SqlModelUnitOfWork(session_factory, received.append) as uow:
            uow.collect(event)
            assert received == []

        assert received == [event]

    def test_rollback_discards_events_and_changes(self, session_factory):
        received = []
        job = JobFactory.create_job()

        with pytest.raises(RuntimeError):
            with SqlModelUnitOfWork(session_factory, received.append) as uow:
                uow.jobs.add(job)
                uow.collect(make_event())
                raise RuntimeError("abort")

        assert received == []
        with SqlModelUnitOfWork(session_factory) as uow:
            assert uow.jobs.get(job.tenant_id, job.id) is None

    def test_after_commit_hooks(self, session_factory):
        calls = []
        with SqlModelUnitOfWork(session_factory) as uow:
            uow.after_commit(lambda: calls.append("done"))
            assert calls == []
        assert calls == ["done"]

    def test_committed_objects_stay_readable(self, session_factory):
        job = JobFactory.create_job(title="Fit skylight")
        with SqlModelUnitOfWork(session_factory) as uow:
            uow.jobs.add(job)

        assert job.title == "Fit skylight"

    def test_use_outside_context_fails(self, session_factory):
        uow = SqlModelUnitOfWork(session_factory)
        with pytest.raises(RuntimeError):
            uow.session
