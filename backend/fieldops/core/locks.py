"""
In-process mutual exclusion for crew timelines and per-tenant sequences.

Two requests that touch the same crew member must not both pass the conflict
check before either commits. Locks are taken in sorted key order so that
requests touching overlapping crew sets cannot deadlock.
"""

import threading
from collections.abc import Hashable, Iterable, Iterator
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class KeyedLockManager:
    """
    Registry of re-entrant locks created on first use for each key.

    An entry lives only while some caller holds or waits on it, so the
    registry stays bounded by the number of keys in flight.
    """

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: dict[Hashable, _Entry] = {}

    def _checkout(self, key: Hashable) -> _Entry:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: Hashable, entry: _Entry) -> None:
        with self._registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, keys: Iterable[Hashable]) -> Iterator[list[Hashable]]:
        """Acquire the locks for ``keys`` and hold them for the block."""
        ordered = sorted(set(keys), key=str)
        acquired: list[tuple[Hashable, _Entry]] = []
        try:
            for key in ordered:
                entry = self._checkout(key)
                try:
                    entry.lock.acquire()
                except BaseException:
                    self._checkin(key, entry)
                    raise
                acquired.append((key, entry))
            yield ordered
        finally:
            for key, entry in reversed(acquired):
                entry.lock.release()
                self._checkin(key, entry)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)


# Serializes conflict-check-then-commit sequences per crew member id
crew_locks = KeyedLockManager()
job_number_locks = KeyedLockManager()
dependency_graph_locks = KeyedLockManager()
