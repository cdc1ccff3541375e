"""MemoryStore — thread-safe dict store with optional absolute expiry."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from saintmode.store.base import ObjectStore


@dataclass
class _Entry:
    value: Any
    expires_at: datetime | None  # None = never


class MemoryStore(ObjectStore):
    """In-process store. Expired entries are dropped lazily on access."""

    def __init__(self, name: str = "saintmode") -> None:
        self.name = name
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._closed = False

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live_entry(key)
            return None if entry is None else entry.value

    def set(self, key: str, value: Any, expires_at: datetime | None = None) -> None:
        with self._lock:
            self._check_open()
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def remove(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live_entry(key)
            self._entries.pop(key, None)
            return None if entry is None else entry.value

    def contains(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def items(self) -> Iterator[tuple[str, Any]]:
        """Yield live pairs from a snapshot taken when iteration starts."""
        with self._lock:
            self._check_open()
            snapshot = list(self._entries.items())
        now = datetime.now(timezone.utc)
        for key, entry in snapshot:
            if entry.expires_at is None or now < entry.expires_at:
                yield key, entry.value

    def close(self) -> None:
        with self._lock:
            self._entries.clear()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    def _live_entry(self, key: str) -> _Entry | None:
        """Return the entry if present and unexpired. Caller holds ``_lock``."""
        self._check_open()
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and datetime.now(timezone.utc) >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"MemoryStore {self.name!r} is closed")
