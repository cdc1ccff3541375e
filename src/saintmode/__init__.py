"""saintmode — in-process stale-while-revalidate cache."""

from saintmode.cache import Lookup, SaintModeCache
from saintmode.models import CacheItem, ExpirationPolicy, UpdateToken
from saintmode.store import MemoryStore, ObjectStore

__all__ = [
    "CacheItem",
    "ExpirationPolicy",
    "Lookup",
    "MemoryStore",
    "ObjectStore",
    "SaintModeCache",
    "UpdateToken",
]

__version__ = "0.1.0"
