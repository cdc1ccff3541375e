"""KeyedLocks — per-key mutual exclusion without a pre-registered lock map.

Equal identity strings always resolve to the same lock while anyone holds or
waits on it. Entries are created on demand and dropped once the last user
leaves, so the table only ever holds keys that are in use.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

LOCK_PREFIX = "__lock#"
UPDATE_LOCK_PREFIX = "__update#"


def lock_identity(key: str) -> str:
    """Identity guarding reads and writes of *key*."""
    return LOCK_PREFIX + key


def update_lock_identity(key: str) -> str:
    """Identity guarding fetch execution (creation or refresh) for *key*."""
    return UPDATE_LOCK_PREFIX + key


class _LockEntry:
    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.refs = 0


class KeyedLocks:
    """Table of re-entrant locks keyed by identity string.

    ``_guard`` protects the table only; it is never held while a caller sits
    inside a keyed critical section.
    """

    def __init__(self) -> None:
        self._table: dict[str, _LockEntry] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, identity: str) -> Iterator[None]:
        """Block until *identity* is acquired; release on exit."""
        entry = self._checkout(identity)
        try:
            entry.lock.acquire()
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(identity, entry)

    @contextmanager
    def try_hold(self, identity: str) -> Iterator[bool]:
        """Acquire *identity* without blocking; yields whether it was acquired."""
        entry = self._checkout(identity)
        try:
            acquired = entry.lock.acquire(blocking=False)
            try:
                yield acquired
            finally:
                if acquired:
                    entry.lock.release()
        finally:
            self._checkin(identity, entry)

    def is_locked(self, identity: str) -> bool:
        """True while some thread holds or is waiting on *identity*."""
        with self._guard:
            entry = self._table.get(identity)
            return entry is not None and entry.refs > 0

    def __len__(self) -> int:
        with self._guard:
            return len(self._table)

    def _checkout(self, identity: str) -> _LockEntry:
        with self._guard:
            entry = self._table.get(identity)
            if entry is None:
                entry = self._table[identity] = _LockEntry()
            entry.refs += 1
            return entry

    def _checkin(self, identity: str, entry: _LockEntry) -> None:
        with self._guard:
            entry.refs -= 1
            if entry.refs == 0:
                del self._table[identity]
