from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

MAX_RECORDED_ERRORS = 500


class JobStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class JobKind(str, Enum):
    ENRICH_DATABASE = "enrich_database"
    ENRICH_TEAM = "enrich_team"
    ENRICH_ALL_TEAMS = "enrich_all_teams"
    POPULATE_LEAGUES = "populate_leagues"
    POPULATE_LEAGUE = "populate_league"
    SEASON_FIXTURE = "season_fixture"


@dataclass
class StageCounters:
    processed: int = 0
    updated: int = 0
    created: int = 0
    errors: int = 0
    total: int | None = None

    def to_dict(self) -> dict[str, int | None]:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "created": self.created,
            "errors": self.errors,
            "total": self.total,
        }


@dataclass
class JobState:
    """
    Process-lifetime record of one job run.

    Mutated only through JobRegistry, under its lock. Readers get `snapshot()`.
    """

    job_id: str
    kind: JobKind
    status: JobStatus = JobStatus.IDLE
    progress_percent: float = 0.0
    stage_names: list[str] = field(default_factory=list)
    stages: dict[str, StageCounters] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    error_count: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    current_stage: str | None = None
    current_item: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    result: Any = None

    @property
    def is_running(self) -> bool:
        return self.status is JobStatus.RUNNING

    def counters(self, stage: str) -> StageCounters:
        if stage not in self.stages:
            self.stages[stage] = StageCounters()
            self.stage_names.append(stage)
        return self.stages[stage]

    def add_error(self, message: str) -> None:
        self.error_count += 1
        if len(self.errors) < MAX_RECORDED_ERRORS:
            self.errors.append(message)

    def snapshot(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "kind": self.kind.value,
            "status": self.status.value,
            "is_running": self.is_running,
            "progress": round(self.progress_percent, 2),
            "stats": {name: self.stages[name].to_dict() for name in self.stage_names},
            "errors": list(self.errors),
            "error_count": self.error_count,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "current_stage": self.current_stage,
            "current_item": self.current_item,
            "details": _copy(self.details),
            "result": _copy(self.result),
        }


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_copy(v) for v in value]
    return value
