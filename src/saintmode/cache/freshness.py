"""FreshnessTracker — shadow store of sentinels that expire independently of values."""

from __future__ import annotations

from saintmode.models import ExpirationPolicy
from saintmode.store import MemoryStore, ObjectStore

SHADOW_KEY_PREFIX = "__shadow#"
_SENTINEL = ""


class FreshnessTracker:
    """Tracks which keys are fresh.

    A key is fresh while its sentinel lives in the shadow store; the sentinel
    carries the entry's expiration policy so the value itself can be kept
    forever. The tracker owns its shadow store and closes it on ``close()``.
    """

    def __init__(self, store: ObjectStore | None = None) -> None:
        self._store = MemoryStore(name="saintmode.shadow") if store is None else store

    @staticmethod
    def shadow_key(key: str) -> str:
        return SHADOW_KEY_PREFIX + key

    def is_fresh(self, key: str) -> bool:
        return self._store.contains(self.shadow_key(key))

    def mark_fresh(self, key: str, policy: ExpirationPolicy) -> None:
        """(Re)install the sentinel, replacing any previous window."""
        self._store.set(self.shadow_key(key), _SENTINEL, policy.absolute_expiration)

    def clear(self, key: str) -> None:
        self._store.remove(self.shadow_key(key))

    def close(self) -> None:
        self._store.close()
