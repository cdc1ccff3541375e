"""SaintModeCache — stale-while-revalidate cache over a pluggable value store."""

from __future__ import annotations

import functools
import threading
import weakref
from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any, NamedTuple, TypeVar

import structlog

from saintmode.cache.freshness import FreshnessTracker
from saintmode.cache.locks import KeyedLocks, lock_identity, update_lock_identity
from saintmode.cache.refresh import RefreshDispatcher
from saintmode.config.schema import CacheConfig
from saintmode.models import CacheItem, ExpirationPolicy, UpdateToken
from saintmode.store import MemoryStore, ObjectStore

log = structlog.get_logger("saintmode.cache")

T = TypeVar("T")

Fetch = Callable[[str, UpdateToken], Any]
PolicyLike = ExpirationPolicy | datetime | None


class Lookup(NamedTuple):
    """Result of :meth:`SaintModeCache.try_get`."""

    found: bool
    value: Any
    stale: bool


def _require_key(key: object) -> None:
    if not isinstance(key, str) or not key.strip():
        raise ValueError(f"key must be a non-empty string, got {key!r}")


def _require_fetch(fetch: object) -> None:
    if not callable(fetch):
        raise TypeError(f"fetch must be callable, got {type(fetch).__name__}")


def _coerce_policy(policy: PolicyLike) -> ExpirationPolicy | None:
    # None is resolved against the default timeout at commit time
    if policy is None:
        return None
    return ExpirationPolicy.coerce(policy)


def _release_internal(freshness: FreshnessTracker, refresher: RefreshDispatcher) -> None:
    """Release what the cache always owns. Must not reference the cache itself."""
    refresher.shutdown(wait=False)
    freshness.close()


class SaintModeCache:
    """Cache that serves stale values while refreshing them in the background.

    Values live in an :class:`ObjectStore` and never expire there; freshness
    is tracked separately by a :class:`FreshnessTracker`. A read of a stale
    entry returns the old value at once and queues at most one refresh per
    key. A read of a missing entry blocks while exactly one caller runs the
    fetch callback; concurrent callers for the same key wait and reuse its
    result.

    Args:
        store: Value store to use. When omitted the cache creates a
            :class:`MemoryStore` and closes it on :meth:`dispose`; an injected
            store is left open.
        default_timeout_s: Freshness window applied when an operation gets no
            explicit policy. ``None`` keeps such entries fresh forever.
        refresh_workers: Size of the background refresh pool.
    """

    def __init__(
        self,
        store: ObjectStore | None = None,
        default_timeout_s: float | None = None,
        refresh_workers: int = 4,
    ) -> None:
        if default_timeout_s is not None and default_timeout_s < 0:
            raise ValueError(f"default_timeout_s must be >= 0, got {default_timeout_s}")
        if refresh_workers < 1:
            raise ValueError(f"refresh_workers must be >= 1, got {refresh_workers}")

        self._owns_store = store is None
        self._store: ObjectStore = MemoryStore() if store is None else store
        self._default_timeout_s = default_timeout_s
        self._freshness = FreshnessTracker()
        self._locks = KeyedLocks()
        self._refresher = RefreshDispatcher(max_workers=refresh_workers)
        self._dispose_lock = threading.Lock()
        self._disposed = False
        # Leak guard only: releases the shadow store and pool if never disposed
        self._finalizer = weakref.finalize(
            self, _release_internal, self._freshness, self._refresher,
        )

    @classmethod
    def from_config(cls, config: CacheConfig, store: ObjectStore | None = None) -> SaintModeCache:
        return cls(
            store=store,
            default_timeout_s=config.default_timeout_s,
            refresh_workers=config.refresh_workers,
        )

    # ── Read / create ─────────────────────────────────────────

    def get_or_create(self, key: str, fetch: Fetch, policy: PolicyLike = None) -> Any:
        """Return the cached value for *key*, creating or refreshing it via *fetch*.

        * fresh: returned as is, *fetch* is not called.
        * stale: returned as is; a background refresh is queued unless one
          is already running for *key*.
        * missing: *fetch* runs on this thread while holding the key's update
          lock. If it cancels through its token, ``None`` is returned and
          nothing is cached.

        *fetch* is called as ``fetch(key, token)``. Its exceptions propagate
        on the missing path and are logged on the refresh path.
        """
        _require_key(key)
        _require_fetch(fetch)
        expiration = _coerce_policy(policy)

        found, value, stale = self.try_get(key)
        if found:
            if stale:
                self._schedule_refresh(key, fetch, expiration)
            return value
        return self._create(key, fetch, expiration)

    def try_get(self, key: str) -> Lookup:
        """Read presence, value and staleness of *key* in one critical section."""
        _require_key(key)
        self._ensure_open()
        with self._locks.hold(lock_identity(key)):
            found = self._store.contains(key)
            value = self._store.get(key) if found else None
            stale = found and not self._freshness.is_fresh(key)
        return Lookup(found, value, stale)

    def get_without_create_or_null(self, key: str, expected_type: type[T] | None = None) -> T | Any | None:
        """Snapshot read of the value store. Never fetches.

        With *expected_type*, a stored value of any other type reads as None.
        """
        _require_key(key)
        self._ensure_open()
        value = self._store.get(key)
        if expected_type is not None and not isinstance(value, expected_type):
            return None
        return value

    # ── Write / remove ────────────────────────────────────────

    def set_or_update_without_create(self, key: str, value: Any, policy: PolicyLike = None) -> None:
        """Store *value* and restart its freshness window without fetching."""
        _require_key(key)
        self._commit(key, value, _coerce_policy(policy))

    def set_item(self, item: CacheItem, policy: PolicyLike = None) -> None:
        if not isinstance(item, CacheItem):
            raise TypeError(f"item must be a CacheItem, got {type(item).__name__}")
        self.set_or_update_without_create(item.key, item.value, policy)

    def remove(self, key: str) -> Any | None:
        """Drop *key* and its freshness window; returns the removed value."""
        _require_key(key)
        self._ensure_open()
        with self._locks.hold(lock_identity(key)):
            value = self._store.remove(key)
            self._freshness.clear(key)
        log.debug("cache_entry_removed", key=key)
        return value

    # ── Predicates ────────────────────────────────────────────

    def expired(self, key: str) -> bool:
        """True when *key* has no live freshness window, whether or not a value exists."""
        _require_key(key)
        self._ensure_open()
        return not self._freshness.is_fresh(key)

    def stale(self, key: str) -> bool:
        """True when *key* has a value but no live freshness window."""
        return self.expired(key) and self.contains(key)

    def contains(self, key: str) -> bool:
        _require_key(key)
        self._ensure_open()
        return self._store.contains(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and bool(key.strip()) and self.contains(key)

    # ── Iteration ─────────────────────────────────────────────

    def items(self) -> Iterator[tuple[str, Any]]:
        """Lazily iterate ``(key, value)`` pairs held by the value store."""
        self._ensure_open()
        return self._store.items()

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return self.items()

    # ── Lifecycle ─────────────────────────────────────────────

    @property
    def default_timeout_s(self) -> float | None:
        return self._default_timeout_s

    @property
    def store(self) -> ObjectStore:
        return self._store

    @property
    def refresher(self) -> RefreshDispatcher:
        """Background refresh pool; at most one pending refresh per key."""
        return self._refresher

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Release the cache. Safe to call more than once.

        Closes the value store only if the cache created it. The shadow store
        and refresh pool are always released; queued refreshes are dropped.
        """
        with self._dispose_lock:
            if self._disposed:
                return
            self._disposed = True
        if self._owns_store:
            self._store.close()
        self._finalizer()
        log.debug("cache_disposed", owned_store=self._owns_store)

    close = dispose

    def __enter__(self) -> SaintModeCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    # ── Internals ─────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._disposed:
            raise RuntimeError("SaintModeCache is disposed")

    def _effective_policy(self, policy: ExpirationPolicy | None) -> ExpirationPolicy:
        if policy is not None:
            return policy
        if self._default_timeout_s is None:
            return ExpirationPolicy.infinite()
        return ExpirationPolicy.after(self._default_timeout_s)

    def _commit(self, key: str, value: Any, policy: ExpirationPolicy | None) -> None:
        """Write value then freshness under the key lock; the window starts now."""
        self._ensure_open()
        expiration = self._effective_policy(policy)
        with self._locks.hold(lock_identity(key)):
            self._store.set(key, value, None)
            self._freshness.mark_fresh(key, expiration)

    def _create(self, key: str, fetch: Fetch, policy: ExpirationPolicy | None) -> Any:
        with self._locks.hold(update_lock_identity(key)):
            # Another caller may have created it while we waited
            found, value, _ = self.try_get(key)
            if found:
                return value

            token = UpdateToken()
            value = fetch(key, token)
            if token.cancel_requested:
                log.debug("cache_create_cancelled", key=key)
                return None
            self._commit(key, value, token.policy if token.policy is not None else policy)
        log.debug("cache_entry_created", key=key)
        return value

    def _schedule_refresh(self, key: str, fetch: Fetch, policy: ExpirationPolicy | None) -> None:
        # The dispatcher also drops the submit while a job for key is queued
        if self._locks.is_locked(update_lock_identity(key)):
            return
        self._refresher.submit(key, functools.partial(self._refresh, key, fetch, policy))

    def _refresh(self, key: str, fetch: Fetch, policy: ExpirationPolicy | None) -> None:
        """Background refresh body; gives up if another refresh holds the key."""
        with self._locks.try_hold(update_lock_identity(key)) as acquired:
            if not acquired:
                return
            # Refreshed (or removed) since the stale read
            found, _, stale = self.try_get(key)
            if not (found and stale):
                return

            log.debug("cache_refresh_started", key=key)
            token = UpdateToken()
            value = fetch(key, token)
            if token.cancel_requested:
                log.debug("cache_refresh_cancelled", key=key)
                return
            self._commit(key, value, token.policy if token.policy is not None else policy)
        log.debug("cache_refresh_committed", key=key)
