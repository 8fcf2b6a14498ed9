import threading

import pytest
from sqlalchemy import DateTime
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import SQLModel

import fieldops.models  # noqa: F401
from fieldops.core.locks import KeyedLockManager
from fieldops.domain.shared.exceptions import PersistenceError
from fieldops.infrastructure.database.repositories.base import read_operation, write_operation


def flaky(failures: int, error: Exception):
    calls = []

    def func():
        calls.append(1)
        if len(calls) <= failures:
            raise error
        return "rows"

    return func, calls


class TestReadRetries:
    def test_transient_failures_are_retried(self):
        func, calls = flaky(2, OperationalError("SELECT 1", {}, Exception("database is locked")))

        assert read_operation("list jobs")(func)() == "rows"
        assert len(calls) == 3

    def test_gives_up_after_configured_attempts(self):
        func, calls = flaky(5, OperationalError("SELECT 1", {}, Exception("gone")))

        with pytest.raises(PersistenceError) as exc_info:
            read_operation("list jobs")(func)()

        assert len(calls) == 3
        assert exc_info.value.details == {"operation": "list jobs", "cause": "OperationalError"}

    def test_other_errors_are_not_retried(self):
        func, calls = flaky(1, IntegrityError("SELECT 1", {}, Exception("constraint")))

        with pytest.raises(PersistenceError):
            read_operation("list jobs")(func)()

        assert len(calls) == 1

    def test_writes_are_never_retried(self):
        func, calls = flaky(1, OperationalError("INSERT", {}, Exception("locked")))

        with pytest.raises(PersistenceError) as exc_info:
            write_operation("add job")(func)()

        assert len(calls) == 1
        assert exc_info.value.operation == "add job"


class TestKeyedLocks:
    def test_locks_taken_in_sorted_order(self):
        locks = KeyedLockManager()
        with locks.hold(["b", "a", "b"]) as held:
            assert held == ["a", "b"]

    def test_same_key_excludes_other_threads(self):
        locks = KeyedLockManager()
        acquired = threading.Event()

        def contender():
            with locks.hold(["crew-1"]):
                acquired.set()

        with locks.hold(["crew-1"]):
            worker = threading.Thread(target=contender)
            worker.start()
            assert not acquired.wait(0.1)
        worker.join(timeout=5)
        assert acquired.is_set()

    def test_reentrant_on_same_thread(self):
        locks = KeyedLockManager()
        with locks.hold(["crew-1"]), locks.hold(["crew-1", "crew-2"]) as held:
            assert held == ["crew-1", "crew-2"]
            assert len(locks) == 2
        assert len(locks) == 0

    def test_registry_is_emptied_after_release(self):
        locks = KeyedLockManager()
        for n in range(50):
            with locks.hold([f"crew-{n}"]):
                pass
        with pytest.raises(RuntimeError), locks.hold(["crew-x"]):
            raise RuntimeError("boom")

        assert len(locks) == 0

    def test_entry_survives_while_another_thread_waits(self):
        locks = KeyedLockManager()
        waiting = threading.Event()
        done = threading.Event()

        def contender():
            waiting.set()
            with locks.hold(["crew-1"]):
                done.set()

        with locks.hold(["crew-1"]):
            worker = threading.Thread(target=contender)
            worker.start()
            waiting.wait(5)
        worker.join(timeout=5)

        assert done.is_set()
        assert len(locks) == 0


class TestTimestampColumns:
    def test_datetime_columns_are_naive(self):
        columns = [
            column
            for table in SQLModel.metadata.sorted_tables
            for column in table.columns
            if isinstance(column.type, DateTime)
        ]

        assert {column.table.name for column in columns} >= {
            "jobs",
            "schedule_events",
            "crew_availability",
            "time_entries",
        }
        for column in columns:
            assert column.type.timezone is False, f"{column.table.name}.{column.name}"

