"""ObjectStore abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import datetime
from typing import Any


class ObjectStore(ABC):
    """Key/value store the cache reads and writes.

    Implementations must be safe to call from several threads at once. The
    cache always writes values with ``expires_at=None``; only its internal
    freshness store uses expiring entries.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value for *key*, or ``None`` if absent/expired."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, expires_at: datetime | None = None) -> None:
        """Insert or replace *key*. ``expires_at=None`` means never expire."""
        ...

    @abstractmethod
    def remove(self, key: str) -> Any | None:
        """Delete *key* and return its previous value (``None`` if absent)."""
        ...

    @abstractmethod
    def contains(self, key: str) -> bool:
        ...

    @abstractmethod
    def items(self) -> Iterator[tuple[str, Any]]:
        """Iterate ``(key, value)`` pairs currently held."""
        ...

    def close(self) -> None:
        """Release resources. Default is a no-op."""

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains(key)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return self.items()
