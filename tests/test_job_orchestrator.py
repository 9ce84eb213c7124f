from __future__ import annotations

import threading

import pytest

from pitch_sync.jobs.orchestrator import JobOrchestrator, Stage
from pitch_sync.jobs.pacing import Pacer, PacingPolicy
from pitch_sync.jobs.registry import JobRegistry
from pitch_sync.jobs.state import JobKind


def test_failing_item_does_not_stop_the_stage(registry: JobRegistry, pacer: Pacer) -> None:
    registry.start("job", JobKind.ENRICH_DATABASE, stages=("teams",))
    handled: list[int] = []

    def handle(i: int) -> bool:
        if i == 4:
            raise RuntimeError("upstream exploded")
        handled.append(i)
        return i % 2 == 0

    JobOrchestrator(registry, pacer).run_stages(
        "job", [Stage("teams", lambda: range(1, 11), handle, label=lambda i: f"team-{i}")]
    )

    snap = registry.snapshot("job")
    assert handled == [1, 2, 3, 5, 6, 7, 8, 9, 10]
    assert snap["stats"]["teams"] == {
        "processed": 10,
        "created": 4,
        "updated": 5,
        "errors": 1,
        "total": 10,
    }
    assert snap["errors"] == ["teams team-4: RuntimeError: upstream exploded"]


def test_stages_run_in_order_with_pacing_between(registry: JobRegistry) -> None:
    sleeps: list[float] = []
    pacer = Pacer(
        policy=PacingPolicy(item_min_s=1, item_max_s=3, stage_min_s=3, stage_max_s=5),
        _sleep=sleeps.append,
        _uniform=lambda lo, hi: lo,
    )
    order: list[str] = []
    registry.start("job", JobKind.ENRICH_TEAM, stages=("a", "b"))

    JobOrchestrator(registry, pacer).run_stages(
        "job",
        [
            Stage("a", lambda: ["a1", "a2"], lambda x: bool(order.append(x))),
            Stage("b", lambda: ["b1"], lambda x: bool(order.append(x))),
        ],
    )

    assert order == ["a1", "a2", "b1"]
    # one item gap in stage a, one stage gap
    assert sleeps == [1, 3]
    assert registry.snapshot("job")["progress"] == 100.0


def test_batches_advance_by_limit_until_short_page(registry: JobRegistry, pacer: Pacer) -> None:
    items = list(range(237))
    registry.start("batched", JobKind.ENRICH_ALL_TEAMS, stages=("teams",))

    processed = JobOrchestrator(registry, pacer).run_batched(
        "batched",
        "teams",
        fetch_page=lambda offset, limit: items[offset : offset + limit],
        handler=lambda i: False,
        batch_size=50,
        total=len(items),
    )

    snap = registry.snapshot("batched")
    assert processed == 237
    assert snap["details"]["offsets"] == [0, 50, 100, 150, 200]
    assert snap["details"]["next_offset"] == 237
    assert snap["stats"]["teams"]["updated"] == 237


def test_batches_resume_from_offset_and_respect_max_items(
    registry: JobRegistry, pacer: Pacer
) -> None:
    items = list(range(237))
    registry.start("batched", JobKind.ENRICH_ALL_TEAMS, stages=("teams",))

    processed = JobOrchestrator(registry, pacer).run_batched(
        "batched",
        "teams",
        fetch_page=lambda offset, limit: items[offset : offset + limit],
        handler=lambda i: True,
        batch_size=50,
        offset=100,
        max_items=70,
    )

    assert processed == 70
    snap = registry.snapshot("batched")
    assert snap["details"]["offsets"] == [100, 150]
    assert snap["details"]["next_offset"] == 170


def test_error_enumerating_items_fails_the_job(registry: JobRegistry, pacer: Pacer) -> None:
    registry.start("job", JobKind.ENRICH_DATABASE, stages=("leagues",))
    orchestrator = JobOrchestrator(registry, pacer)

    def broken_listing():
        raise ConnectionError("database is down")

    orchestrator.execute(
        "job", lambda: orchestrator.run_stages("job", [Stage("leagues", broken_listing, bool)])
    )

    snap = registry.snapshot("job")
    assert snap["status"] == "failed"
    assert snap["errors"] == ["ConnectionError: database is down"]


def test_fan_out_runs_jobs_in_parallel(registry: JobRegistry, pacer: Pacer) -> None:
    barrier = threading.Barrier(3, timeout=5)
    for key in ("a", "b", "c"):
        registry.start(key, JobKind.POPULATE_LEAGUE)

    def task(key: str):
        def run() -> str:
            barrier.wait()
            if key == "b":
                raise ValueError("bad league")
            return key

        return run

    results = JobOrchestrator(registry, pacer).fan_out(
        {key: task(key) for key in ("a", "b", "c")}, max_workers=3
    )

    assert results["a"]["status"] == "completed"
    assert results["a"]["result"] == "a"
    assert results["b"]["status"] == "failed"
    assert results["c"]["status"] == "completed"


def test_batch_size_must_be_positive(registry: JobRegistry, pacer: Pacer) -> None:
    registry.start("job", JobKind.ENRICH_ALL_TEAMS)
    with pytest.raises(ValueError):
        JobOrchestrator(registry, pacer).run_batched(
            "job", "teams", fetch_page=lambda o, n: [], handler=bool, batch_size=0
        )
