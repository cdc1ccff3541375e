"""Concurrency tests: single-flight creation and refresh, per-key granularity."""

from __future__ import annotations

import itertools
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from saintmode import ExpirationPolicy, SaintModeCache

CALLERS = 1000
INFINITE = ExpirationPolicy.infinite()


class _Counter:
    def __init__(self) -> None:
        self._it = itertools.count(1)
        self.value = 0
        self._lock = threading.Lock()

    def bump(self) -> int:
        with self._lock:
            self.value = next(self._it)
            return self.value


class TestSingleFlightCreate:
    def test_missing_key_fetched_once(self, cache):
        counter = _Counter()
        start = threading.Event()

        def fetch(key, token):
            n = counter.bump()
            time.sleep(0.05)
            return f"value-{n}"

        def call() -> str:
            start.wait(5)
            return cache.get_or_create("key", fetch, INFINITE)

        with ThreadPoolExecutor(max_workers=64) as pool:
            futures = [pool.submit(call) for _ in range(CALLERS)]
            start.set()
            results = [f.result(timeout=30) for f in futures]

        assert counter.value == 1
        assert set(results) == {"value-1"}

    def test_cancelled_create_is_retried_by_waiters(self, cache):
        counter = _Counter()

        def fetch(key, token):
            if counter.bump() == 1:
                time.sleep(0.05)
                token.cancel()
                return "discarded"
            return "kept"

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: cache.get_or_create("key", fetch, INFINITE), range(100)))

        assert results.count(None) == 1
        assert results.count("kept") == 99
        assert counter.value == 2


class TestSingleFlightRefresh:
    def test_stale_key_refreshed_at_most_once(self, cache, wait_until):
        cache.set_or_update_without_create("key", "old", ExpirationPolicy.after(0.01))
        time.sleep(0.05)
        assert cache.stale("key")

        counter = _Counter()
        release = threading.Event()

        def fetch(key, token):
            counter.bump()
            release.wait(10)
            return "new"

        with ThreadPoolExecutor(max_workers=64) as pool:
            futures = [pool.submit(cache.get_or_create, "key", fetch, INFINITE) for _ in range(CALLERS)]
            results = [f.result(timeout=30) for f in futures]

        # Every caller got the stale value without waiting on the refresh
        assert set(results) == {"old"}

        release.set()
        assert wait_until(lambda: cache.get_without_create_or_null("key") == "new")
        time.sleep(0.05)
        assert counter.value == 1
        assert cache.stale("key") is False


class TestPerKeyGranularity:
    def test_slow_fetch_does_not_block_other_keys(self, cache):
        release = threading.Event()
        entered = threading.Event()

        def slow(key, token):
            entered.set()
            release.wait(10)
            return "slow"

        with ThreadPoolExecutor(max_workers=2) as pool:
            slow_future = pool.submit(cache.get_or_create, "a", slow)
            assert entered.wait(5)
            fast = pool.submit(cache.get_or_create, "b", lambda k, t: "fast").result(timeout=5)
            assert fast == "fast"
            assert not slow_future.done()
            release.set()
            assert slow_future.result(timeout=5) == "slow"

    def test_stale_read_not_blocked_by_running_refresh(self, cache):
        cache.set_or_update_without_create("key", "old", ExpirationPolicy.after(0.01))
        time.sleep(0.05)
        release = threading.Event()
        entered = threading.Event()

        def fetch(key, token):
            entered.set()
            release.wait(10)
            return "new"

        assert cache.get_or_create("key", fetch, INFINITE) == "old"
        assert entered.wait(5)
        # The refresh holds the key's update lock; reads and writes still go through
        assert cache.get_or_create("key", fetch, INFINITE) == "old"
        cache.set_or_update_without_create("other", 1)
        release.set()

    def test_explicit_set_racing_refresh_is_last_writer_wins(self, cache, wait_until):
        cache.set_or_update_without_create("key", "old", ExpirationPolicy.after(0.01))
        time.sleep(0.05)
        release = threading.Event()
        entered = threading.Event()

        def fetch(key, token):
            entered.set()
            release.wait(10)
            return "refreshed"

        cache.get_or_create("key", fetch, INFINITE)
        assert entered.wait(5)
        cache.set_or_update_without_create("key", "explicit", INFINITE)
        assert cache.get_without_create_or_null("key") == "explicit"
        release.set()
        # The refresh commits after the explicit set and wins
        assert wait_until(lambda: cache.get_without_create_or_null("key") == "refreshed")


class TestRefreshQueue:
    def test_stale_reads_queue_one_refresh_per_key_while_pool_busy(self, wait_until):
        with SaintModeCache(refresh_workers=1) as cache:
            for key in ("a", "b"):
                cache.set_or_update_without_create(key, "old", ExpirationPolicy.after(0.01))
            time.sleep(0.05)

            release = threading.Event()
            entered = threading.Event()
            b_calls = _Counter()

            def slow(key, token):
                entered.set()
                release.wait(10)
                return "new"

            def fetch_b(key, token):
                b_calls.bump()
                return "new"

            assert cache.get_or_create("a", slow, INFINITE) == "old"
            assert entered.wait(5)

            # The only worker is busy with "a"; "b" can only queue
            for _ in range(5000):
                assert cache.get_or_create("b", fetch_b, INFINITE) == "old"
            assert cache.refresher.is_pending("b")
            assert cache.refresher.pending_count == 2

            release.set()
            assert wait_until(lambda: cache.get_without_create_or_null("b") == "new")
            assert wait_until(lambda: cache.refresher.pending_count == 0)
            assert b_calls.value == 1

    def test_refresh_running_across_remove_restores_key(self, cache, wait_until):
        cache.set_or_update_without_create("key", "old", ExpirationPolicy.after(0.01))
        time.sleep(0.05)
        release = threading.Event()
        entered = threading.Event()

        def fetch(key, token):
            entered.set()
            release.wait(10)
            return "refreshed"

        cache.get_or_create("key", fetch, INFINITE)
        assert entered.wait(5)
        assert cache.remove("key") == "old"
        assert cache.contains("key") is False
        release.set()
        # The refresh re-checked before fetching, so its commit lands last
        assert wait_until(lambda: cache.get_without_create_or_null("key") == "refreshed")
