from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from pitch_sync.core.errors import JobAlreadyRunning, JobNotFound
from pitch_sync.jobs.state import JobKind, JobState, JobStatus

logger = logging.getLogger(__name__)


class JobRegistry:
    """
    Thread-safe job id -> JobState mapping.

    A job id is reused across runs: starting it again replaces the previous
    state, unless that run is still Running.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._jobs: dict[str, JobState] = {}

    @contextmanager
    def _state(self, job_id: str) -> Iterator[JobState]:
        with self._lock:
            state = self._jobs.get(job_id)
            if state is None:
                raise JobNotFound(job_id)
            yield state

    # ---------- lifecycle ----------

    def start(
        self,
        job_id: str,
        kind: JobKind,
        *,
        stages: Sequence[str] = (),
        details: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        with self._lock:
            existing = self._jobs.get(job_id)
            if existing is not None and existing.is_running:
                raise JobAlreadyRunning(job_id)

            state = JobState(
                job_id=job_id,
                kind=kind,
                status=JobStatus.RUNNING,
                start_time=datetime.now(tz=UTC),
                details=dict(details or {}),
            )
            for name in stages:
                state.counters(name)
            self._jobs[job_id] = state
            logger.info("Job %s (%s) started", job_id, kind.value)
            return state.snapshot()

    def complete(self, job_id: str, result: Any = None) -> None:
        with self._state(job_id) as state:
            state.status = JobStatus.COMPLETED
            state.progress_percent = 100.0
            state.end_time = datetime.now(tz=UTC)
            state.current_item = None
            state.result = result
            logger.info(
                "Job %s completed with %d error(s)", job_id, state.error_count
            )

    def fail(self, job_id: str, message: str) -> None:
        with self._state(job_id) as state:
            state.status = JobStatus.FAILED
            state.end_time = datetime.now(tz=UTC)
            state.current_item = None
            state.add_error(message)
            logger.error("Job %s failed: %s", job_id, message)

    # ---------- reads ----------

    def get(self, job_id: str) -> dict[str, Any] | None:
        with self._lock:
            state = self._jobs.get(job_id)
            return state.snapshot() if state is not None else None

    def snapshot(self, job_id: str) -> dict[str, Any]:
        with self._state(job_id) as state:
            return state.snapshot()

    def snapshots(self, kind: JobKind | None = None) -> list[dict[str, Any]]:
        with self._lock:
            return [
                s.snapshot() for s in self._jobs.values() if kind is None or s.kind is kind
            ]

    def is_running(self, job_id: str) -> bool:
        with self._lock:
            state = self._jobs.get(job_id)
            return state is not None and state.is_running

    # ---------- progress ----------

    def begin_stage(self, job_id: str, stage: str, *, total: int | None = None) -> None:
        with self._state(job_id) as state:
            counters = state.counters(stage)
            counters.total = total
            state.current_stage = stage
            state.current_item = None
            self._recompute(state)
            logger.info("Job %s: stage %s (%s items)", job_id, stage, total if total is not None else "?")

    def set_current_item(self, job_id: str, item: str | None) -> None:
        with self._state(job_id) as state:
            state.current_item = item

    def record_success(self, job_id: str, stage: str, *, created: bool) -> None:
        with self._state(job_id) as state:
            counters = state.counters(stage)
            counters.processed += 1
            if created:
                counters.created += 1
            else:
                counters.updated += 1
            self._recompute(state)

    def record_error(self, job_id: str, stage: str | None, message: str) -> None:
        """Record a failure; with a stage it counts as a processed item of that stage."""
        with self._state(job_id) as state:
            state.add_error(message)
            if stage is not None:
                counters = state.counters(stage)
                counters.processed += 1
                counters.errors += 1
                self._recompute(state)

    def set_progress(self, job_id: str, percent: float) -> None:
        with self._state(job_id) as state:
            self._raise_progress(state, percent)

    def update_details(self, job_id: str, changes: Mapping[str, Any]) -> None:
        with self._state(job_id) as state:
            state.details.update(changes)

    def append_detail(self, job_id: str, key: str, value: Any) -> None:
        with self._state(job_id) as state:
            state.details.setdefault(key, []).append(value)

    @staticmethod
    def _raise_progress(state: JobState, percent: float) -> None:
        clamped = min(100.0, max(0.0, percent))
        if clamped > state.progress_percent:
            state.progress_percent = clamped

    def _recompute(self, state: JobState) -> None:
        if state.current_stage is None or not state.stage_names:
            return
        n_stages = len(state.stage_names)
        index = state.stage_names.index(state.current_stage)
        counters = state.stages[state.current_stage]
        fraction = 0.0
        if counters.total:
            fraction = min(1.0, counters.processed / counters.total)
        self._raise_progress(state, (index + fraction) / n_stages * 100.0)
