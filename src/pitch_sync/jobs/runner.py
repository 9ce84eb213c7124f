from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)


class BackgroundRunner:
    """
    Runs jobs detached from the caller.

    ThreadPoolExecutor workers are joined at interpreter exit, so a started
    job is not cut short when the triggering call returns.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pitch-sync-job"
        )
        self._lock = threading.Lock()
        self._futures: dict[str, Future[Any]] = {}

    def submit(self, job_id: str, fn: Callable[[], Any]) -> Future[Any]:
        future = self._executor.submit(fn)
        with self._lock:
            self._futures[job_id] = future
        logger.debug("Submitted job %s", job_id)
        return future

    def wait(self, job_id: str, timeout: float | None = None) -> Any:
        with self._lock:
            future = self._futures.get(job_id)
        if future is None:
            return None
        return future.result(timeout=timeout)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
