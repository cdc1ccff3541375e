"""Stale-while-revalidate cache core."""

from saintmode.cache.engine import Lookup, SaintModeCache
from saintmode.cache.freshness import FreshnessTracker
from saintmode.cache.locks import KeyedLocks, lock_identity, update_lock_identity
from saintmode.cache.refresh import RefreshDispatcher

__all__ = [
    "FreshnessTracker",
    "KeyedLocks",
    "Lookup",
    "RefreshDispatcher",
    "SaintModeCache",
    "lock_identity",
    "update_lock_identity",
]
