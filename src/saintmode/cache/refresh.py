"""RefreshDispatcher — fire-and-forget background refreshes on a bounded pool."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

import structlog

log = structlog.get_logger("saintmode.refresh")


class RefreshDispatcher:
    """Runs refresh jobs off the caller's thread.

    At most one job per key is queued or running at a time; a submit for a
    key that is still pending is dropped. A job's exception is logged here
    and never reaches the caller that triggered it.
    """

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "saintmode-refresh") -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._pending: set[str] = set()
        self._pending_lock = threading.Lock()
        self._shut_down = False

    def submit(self, key: str, job: Callable[[], None]) -> Future | None:
        """Queue *job* for *key*.

        Returns None when a job for *key* is already pending or the
        dispatcher is shut down.
        """
        if self._shut_down:
            log.warning("cache_refresh_skipped", key=key, reason="dispatcher_shut_down")
            return None
        with self._pending_lock:
            if key in self._pending:
                return None
            self._pending.add(key)
        try:
            return self._executor.submit(self._run, key, job)
        except RuntimeError:
            # shutdown() raced this submit
            self._discard(key)
            log.warning("cache_refresh_skipped", key=key, reason="dispatcher_shut_down")
            return None

    def is_pending(self, key: str) -> bool:
        with self._pending_lock:
            return key in self._pending

    @property
    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting jobs; queued jobs are dropped, running ones finish."""
        self._shut_down = True
        self._executor.shutdown(wait=wait, cancel_futures=True)

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def _run(self, key: str, job: Callable[[], None]) -> None:
        try:
            job()
        except Exception:
            log.exception("cache_refresh_failed", key=key)
        finally:
            self._discard(key)

    def _discard(self, key: str) -> None:
        with self._pending_lock:
            self._pending.discard(key)
