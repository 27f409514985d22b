"""
Bounded worker pool for concurrent drift checks.

Items run on a thread pool, and each task must hold one of the pool's
semaphore slots while it executes, so no more than ``concurrency`` tasks
are in flight even when several batches share the same pool. Cancellation
is checked before a task is scheduled and again once it holds a slot;
cancelled items still produce a result through ``on_cancel``.
"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, List, Optional, TypeVar

from ..utils import setup_logging
from .context import DetectionContext

logger = setup_logging()

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_CONCURRENCY = max(2, (os.cpu_count() or 1) * 2)

# How often a task waiting for a slot re-checks for cancellation (seconds)
_SLOT_POLL_INTERVAL = 0.05


def resolve_concurrency(value: Optional[object]) -> int:
    """Coerce a concurrency setting to a positive int, else DEFAULT_CONCURRENCY."""
    try:
        concurrency = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_CONCURRENCY
    return concurrency if concurrency > 0 else DEFAULT_CONCURRENCY


class WorkerPool:
    """Runs a function over many items with at most ``concurrency`` in flight."""

    def __init__(self, concurrency: Optional[int] = None) -> None:
        self._concurrency = resolve_concurrency(concurrency)
        self._slots = threading.BoundedSemaphore(self._concurrency)

    @property
    def concurrency(self) -> int:
        return self._concurrency

    def _acquire_slot(self, ctx: DetectionContext) -> bool:
        while not self._slots.acquire(timeout=_SLOT_POLL_INTERVAL):
            if ctx.cancelled:
                return False
        return True

    def run(
        self,
        ctx: DetectionContext,
        items: Iterable[T],
        task: Callable[[T], R],
        on_cancel: Callable[[T, str], R],
        on_error: Callable[[T, Exception], R],
    ) -> List[R]:
        """
        Execute ``task`` for every item and collect one result per item.

        Results are returned in completion order. A task that raises is
        converted with ``on_error`` and does not affect its siblings.

        Args:
            ctx: Cancellation context checked before and after taking a slot
            items: Work items
            task: Function applied to each item
            on_cancel: Builds the result for an item skipped by cancellation
            on_error: Builds the result for an item whose task raised

        Returns:
            List with exactly one result per item
        """
        results: List[R] = []
        results_lock = threading.Lock()

        def collect(result: R) -> None:
            with results_lock:
                results.append(result)

        def cancelled_result(item: T) -> R:
            return on_cancel(item, ctx.error() or "")

        def worker(item: T) -> None:
            if not self._acquire_slot(ctx):
                collect(cancelled_result(item))
                return
            try:
                if ctx.cancelled:
                    collect(cancelled_result(item))
                    return
                try:
                    result = task(item)
                except Exception as e:
                    logger.exception(f"Task failed for {item!r}: {e}")
                    result = on_error(item, e)
                collect(result)
            finally:
                self._slots.release()

        pending = list(items)
        logger.debug(
            f"Starting worker pool execution: {len(pending)} jobs, "
            f"concurrency {self._concurrency}"
        )

        with ThreadPoolExecutor(max_workers=self._concurrency) as executor:
            futures = []
            for item in pending:
                if ctx.cancelled:
                    collect(cancelled_result(item))
                    continue
                futures.append(executor.submit(worker, item))
            for future in as_completed(futures):
                future.result()

        logger.debug(f"Worker pool execution completed: {len(results)} results")
        return results
