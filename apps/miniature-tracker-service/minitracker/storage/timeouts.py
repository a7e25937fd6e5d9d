"""
Deadlines for blocking storage calls.

Blob operations run on a small worker pool so the caller can stop waiting
after ``seconds``. The worker itself is not interrupted: callers that care
about a late completion (an upload finishing after its deadline) attach a
callback to the returned future.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, Optional, TypeVar

from minitracker.errors import StorageError

log = logging.getLogger(__name__)

T = TypeVar("T")


def wait_for(future: "Future[T]", seconds: Optional[float], operation: str) -> T:
    """Return the future's result, raising a retryable ``StorageError`` past the deadline.

    ``None`` or a non-positive value waits indefinitely.
    """
    limit = seconds if seconds is not None and seconds > 0 else None
    try:
        return future.result(timeout=limit)
    except FutureTimeoutError:
        future.cancel()
        log.warning("Storage operation %s timed out after %.1fs", operation, seconds)
        raise StorageError(f"Storage operation {operation} timed out after {seconds}s") from None


class DeadlineRunner:
    """Runs callables on a bounded worker pool with an optional per-call deadline."""

    def __init__(self, seconds: Optional[float], max_workers: int = 4, name: str = "storage-io"):
        self.seconds = seconds if seconds is not None and seconds > 0 else None
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)

    def submit(self, fn: Callable[..., T], *args, **kwargs) -> "Future[T]":
        return self._executor.submit(fn, *args, **kwargs)

    def resolve(self, seconds: Optional[float] = None) -> Optional[float]:
        """Per-call deadline: ``seconds`` when given and positive, else the runner default."""
        if seconds is not None and seconds > 0:
            return seconds
        return self.seconds

    def run(self, operation: str, fn: Callable[..., T], *args, seconds: Optional[float] = None) -> T:
        limit = self.resolve(seconds)
        if limit is None:
            return fn(*args)
        return wait_for(self.submit(fn, *args), limit, operation)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
