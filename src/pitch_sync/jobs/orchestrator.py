from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pitch_sync.jobs.pacing import Pacer
from pitch_sync.jobs.registry import JobRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Returns True when the item created a new canonical row, False when it updated (or confirmed) one.
ItemHandler = Callable[[T], bool]


@dataclass(frozen=True)
class Stage(Generic[T]):
    """
    One ordered phase of a job.

    `items` is called when the stage begins; failures there are not item
    failures and fail the whole job.
    """

    name: str
    items: Callable[[], Iterable[T]]
    handler: ItemHandler[T]
    label: Callable[[T], str] = field(default=str)


def format_item_error(stage: str, label: str, exc: BaseException) -> str:
    return f"{stage} {label}: {type(exc).__name__}: {exc}"


class JobOrchestrator:
    """Runs stage pipelines against a JobRegistry slot, isolating per-item failures."""

    def __init__(self, registry: JobRegistry, pacer: Pacer) -> None:
        self.registry = registry
        self.pacer = pacer

    def execute(self, job_id: str, body: Callable[[], Any]) -> Any:
        """
        Run `body` as the job `job_id` (already started in the registry).

        Completes the job with body's return value; anything escaping body
        fails the job.
        """
        try:
            result = body()
        except Exception as e:
            logger.exception("Job %s aborted", job_id)
            self.registry.fail(job_id, f"{type(e).__name__}: {e}")
            return None
        self.registry.complete(job_id, result)
        return result

    def run_stages(self, job_id: str, stages: Sequence[Stage[Any]]) -> None:
        for index, stage in enumerate(stages):
            if index > 0:
                self.pacer.between_stages()
            items = list(stage.items())
            self.registry.begin_stage(job_id, stage.name, total=len(items))
            self._process(job_id, stage.name, items, stage.handler, stage.label)
        self.registry.set_current_item(job_id, None)

    def run_batched(
        self,
        job_id: str,
        stage_name: str,
        *,
        fetch_page: Callable[[int, int], Sequence[T]],
        handler: ItemHandler[T],
        label: Callable[[T], str] = str,
        batch_size: int,
        offset: int = 0,
        max_items: int | None = None,
        total: int | None = None,
    ) -> int:
        """
        Page through a collection `batch_size` items at a time starting at `offset`.

        A page shorter than requested ends the run. Every offset visited is
        appended to details["offsets"]; details["next_offset"] is where a
        later run should resume. Returns the number of items processed.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        self.registry.begin_stage(job_id, stage_name, total=total)
        processed = 0
        first = True
        while True:
            limit = batch_size if max_items is None else min(batch_size, max_items - processed)
            if limit <= 0:
                break
            if not first:
                self.pacer.between_batches()
            first = False

            page = list(fetch_page(offset, limit))
            self.registry.append_detail(job_id, "offsets", offset)
            logger.info("Job %s: batch at offset %d (%d items)", job_id, offset, len(page))

            self._process(job_id, stage_name, page, handler, label)
            processed += len(page)
            offset += len(page)
            self.registry.update_details(job_id, {"next_offset": offset})

            if len(page) < limit:
                break

        self.registry.set_current_item(job_id, None)
        return processed

    def fan_out(
        self,
        tasks: Mapping[str, Callable[[], Any]],
        *,
        max_workers: int,
    ) -> dict[str, dict[str, Any] | None]:
        """
        Run independent jobs in parallel and wait for all of them.

        Each task is run through `execute` under its own job id, which must
        already be started. Returns each job's final snapshot.
        """
        with ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="pitch-sync-fan-out"
        ) as pool:
            futures = {
                job_id: pool.submit(self.execute, job_id, task) for job_id, task in tasks.items()
            }
            for future in futures.values():
                future.result()
        return {job_id: self.registry.get(job_id) for job_id in futures}

    def _process(
        self,
        job_id: str,
        stage_name: str,
        items: Sequence[T],
        handler: ItemHandler[T],
        label: Callable[[T], str],
    ) -> None:
        for index, item in enumerate(items):
            if index > 0:
                self.pacer.between_items()
            item_label = label(item)
            self.registry.set_current_item(job_id, item_label)
            try:
                created = handler(item)
            except Exception as e:
                logger.warning("Job %s: %s %s failed: %s", job_id, stage_name, item_label, e)
                self.registry.record_error(
                    job_id, stage_name, format_item_error(stage_name, item_label, e)
                )
                continue
            self.registry.record_success(job_id, stage_name, created=bool(created))
