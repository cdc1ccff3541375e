"""Value stores the cache can sit on."""

from saintmode.store.base import ObjectStore
from saintmode.store.memory import MemoryStore

__all__ = ["MemoryStore", "ObjectStore"]
