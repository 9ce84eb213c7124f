from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from functools import partial
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from pitch_sync.core.config import settings
from pitch_sync.core.errors import JobAlreadyRunning, ValidationError
from pitch_sync.ingestion.dates import parse_iso_date
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.ingest.leagues import fetch_league_seasons
from pitch_sync.ingestion.providers.sofascore.ingest.matches import (
    fetch_match,
    fetch_matches_by_date,
    fetch_matches_by_date_range,
)
from pitch_sync.ingestion.providers.sofascore.ingest.players import (
    fetch_player,
    fetch_transfers,
    search_players,
)
from pitch_sync.ingestion.providers.sofascore.ingest.season_fixture import (
    crawl_season_fixture,
    parse_season,
)
from pitch_sync.ingestion.providers.sofascore.ingest.teams import fetch_squad, fetch_team
from pitch_sync.ingestion.providers.sofascore.reference import find_competition
from pitch_sync.jobs import enrichment
from pitch_sync.jobs.enrichment import JobContext
from pitch_sync.jobs.pacing import Pacer
from pitch_sync.jobs.registry import JobRegistry
from pitch_sync.jobs.runner import BackgroundRunner
from pitch_sync.jobs.state import JobKind

logger = logging.getLogger(__name__)

_SNAPSHOT_KEYS = {
    "job_id": "jobId",
    "is_running": "isRunning",
    "error_count": "errorCount",
    "start_time": "startTime",
    "end_time": "endTime",
    "current_stage": "currentStage",
    "current_item": "currentItem",
}


class JobParams(BaseModel):
    """Caller-supplied job parameters; anything unrecognized is rejected."""

    model_config = ConfigDict(extra="forbid")

    season: str | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)
    batch_size: int = Field(default=10, ge=1)
    save: bool = False
    max_teams: int | None = Field(default=None, ge=1)
    get_players: bool = True
    matches: bool = False

    @field_validator("season")
    @classmethod
    def _season_format(cls, value: str | None) -> str | None:
        if value is None:
            return None
        parse_season(value)
        return value.strip()

    @property
    def page_size(self) -> int:
        return self.limit if self.limit is not None else self.batch_size

    @classmethod
    def parse(cls, raw: Mapping[str, Any] | None = None) -> JobParams:
        try:
            return cls.model_validate(dict(raw or {}))
        except pydantic.ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'params'}: {err['msg']}"
                for err in e.errors()
            )
            raise ValidationError(f"Invalid job parameters: {problems}") from e


def to_camel_snapshot(snapshot: Mapping[str, Any]) -> dict[str, Any]:
    return {_SNAPSHOT_KEYS.get(k, k): v for k, v in snapshot.items()}


def _public(value: Any) -> dict[str, Any]:
    return asdict(value)


def _competition_ids(keys: list[str]) -> list[str]:
    """Map reference competition names or ids onto provider ids."""
    ids: list[str] = []
    for key in keys:
        comp = find_competition(key)
        if comp is None:
            raise ValidationError(f"Unknown league {key!r}")
        ids.append(str(comp.provider_id))
    return ids


@dataclass
class JobControl:
    """
    Entry points for starting, observing and awaiting jobs, plus the
    synchronous lookups that need no job.

    `start_*` validate their parameters before anything runs and return a
    202-style handle immediately; the job itself runs on the BackgroundRunner.
    """

    session_factory: Callable[[], Session]
    client: SofaScoreClient
    registry: JobRegistry = field(default_factory=JobRegistry)
    runner: BackgroundRunner = field(
        default_factory=lambda: BackgroundRunner(max_workers=settings.job_workers)
    )
    pacer: Pacer = field(default_factory=Pacer)
    status_prefix: str = field(default_factory=lambda: settings.status_endpoint_prefix)
    max_workers: int = field(default_factory=lambda: settings.job_workers)

    @property
    def context(self) -> JobContext:
        return JobContext(
            session_factory=self.session_factory,
            client=self.client,
            registry=self.registry,
            pacer=self.pacer,
            max_workers=self.max_workers,
        )

    def status_endpoint(self, job_id: str) -> str:
        return f"{self.status_prefix.rstrip('/')}/{job_id}"

    def _handle(self, status: int, job_id: str, **extra: Any) -> dict[str, Any]:
        return {"status": status, "jobId": job_id, "statusEndpoint": self.status_endpoint(job_id), **extra}

    def _launch(
        self,
        job_id: str,
        kind: JobKind,
        body: Callable[[], Any],
        *,
        stages: tuple[str, ...] = (),
        details: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            self.registry.start(job_id, kind, stages=stages, details=details)
        except JobAlreadyRunning as e:
            logger.info("Not starting %s: %s", job_id, e)
            return self._handle(409, job_id, message=str(e))

        orchestrator = self.context.orchestrator
        self.runner.submit(job_id, partial(orchestrator.execute, job_id, body))
        return self._handle(202, job_id, message=f"{kind.value} started")

    # ---------- jobs ----------

    def start_enrich_database(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        p = JobParams.parse(params)
        job_id = "enrich-database"
        body = partial(
            enrichment.enrich_database,
            self.context,
            job_id,
            season=p.season,
            max_teams=p.max_teams,
            get_players=p.get_players,
        )
        return self._launch(
            job_id,
            JobKind.ENRICH_DATABASE,
            body,
            stages=enrichment.ENRICH_DATABASE_STAGES,
            details={"season": p.season},
        )

    def start_enrich_team(
        self, team_id: str | int, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        p = JobParams.parse(params)
        team_key = str(team_id).strip()
        if not team_key.isdigit():
            raise ValidationError(f"Invalid team id {team_id!r}")
        job_id = f"enrich-team:{team_key}"
        body = partial(
            enrichment.enrich_team,
            self.context,
            job_id,
            team_key,
            get_players=p.get_players,
        )
        return self._launch(
            job_id,
            JobKind.ENRICH_TEAM,
            body,
            stages=enrichment.ENRICH_TEAM_STAGES,
            details={"team_id": team_key},
        )

    def start_enrich_all_teams(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        p = JobParams.parse(params)
        job_id = "enrich-all-teams"
        body = partial(
            enrichment.enrich_all_teams,
            self.context,
            job_id,
            batch_size=p.page_size,
            offset=p.offset,
            max_teams=p.max_teams,
            get_players=p.get_players,
        )
        return self._launch(
            job_id,
            JobKind.ENRICH_ALL_TEAMS,
            body,
            stages=enrichment.ENRICH_ALL_TEAMS_STAGES,
            details={"batch_size": p.page_size, "start_offset": p.offset},
        )

    def start_populate_leagues(
        self,
        params: Mapping[str, Any] | None = None,
        *,
        league_ids: list[str] | None = None,
    ) -> dict[str, Any]:
        p = JobParams.parse(params)
        if league_ids is not None:
            league_ids = _competition_ids(league_ids)
        job_id = "populate-leagues"
        body = partial(
            enrichment.populate_leagues,
            self.context,
            job_id,
            season=p.season,
            league_ids=league_ids,
            include_matches=p.matches,
        )
        return self._launch(
            job_id,
            JobKind.POPULATE_LEAGUES,
            body,
            stages=enrichment.POPULATE_LEAGUES_STAGES,
            details={"season": p.season, "matches": p.matches},
        )

    def start_season_fixture(
        self, season: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        p = JobParams.parse({**dict(params or {}), "season": season})
        if p.season is None:
            raise ValidationError("A season is required")
        job_id = f"season-fixture:{p.season}"
        body = partial(self._crawl_season, job_id, p.season, p.save)
        return self._launch(
            job_id,
            JobKind.SEASON_FIXTURE,
            body,
            details={"season": p.season, "save": p.save},
        )

    def _crawl_season(self, job_id: str, season: str, save: bool) -> dict[str, Any]:
        with self.session_factory() as session:
            return crawl_season_fixture(
                self.client,
                season,
                registry=self.registry,
                job_id=job_id,
                pacer=self.pacer,
                session=session if save else None,
                save=save,
            )

    # ---------- observation ----------

    def status(self, job_id: str) -> dict[str, Any]:
        """Best-known state of `job_id`; raises JobNotFound for a job never started."""
        return to_camel_snapshot(self.registry.snapshot(job_id))

    def jobs(self, kind: JobKind | None = None) -> list[dict[str, Any]]:
        return [to_camel_snapshot(s) for s in self.registry.snapshots(kind)]

    def wait(self, job_id: str, timeout: float | None = None) -> dict[str, Any]:
        self.runner.wait(job_id, timeout=timeout)
        return self.status(job_id)

    def shutdown(self) -> None:
        self.runner.shutdown(wait=True)
        self.client.close()

    # ---------- synchronous lookups ----------

    def lookup_team(self, team_id: str | int, *, with_players: bool = False) -> dict[str, Any]:
        fetched = fetch_team(self.client, team_id)
        out: dict[str, Any] = {"team": _public(fetched.value), "fidelity": fetched.fidelity.value}
        if with_players:
            squad = fetch_squad(self.client, team_id)
            out["players"] = [_public(p) for p in squad.value]
            out["playersFidelity"] = squad.fidelity.value
        return out

    def lookup_player(
        self, player_id: str | int, *, with_transfers: bool = False
    ) -> dict[str, Any]:
        fetched = fetch_player(self.client, player_id)
        out: dict[str, Any] = {
            "player": _public(fetched.value),
            "fidelity": fetched.fidelity.value,
        }
        if with_transfers:
            out["transfers"] = [_public(t) for t in fetch_transfers(self.client, player_id)]
        return out

    def lookup_match(self, event_id: str | int, *, save: bool = False) -> dict[str, Any]:
        with self.session_factory() as session:
            fetched, saved = fetch_match(
                self.client, event_id, session=session if save else None, save=save
            )
        return {
            "match": fetched.value.to_summary(),
            "fidelity": fetched.fidelity.value,
            "saved": saved,
        }

    def matches_by_date(
        self,
        day: str,
        *,
        end: str | None = None,
        save: bool = False,
    ) -> dict[str, Any]:
        start_date = parse_iso_date(day)
        end_date = parse_iso_date(end) if end is not None else None

        with self.session_factory() as session:
            target = session if save else None
            if end_date is None:
                return fetch_matches_by_date(
                    self.client, start_date, session=target, save=save
                ).to_dict()

            days = fetch_matches_by_date_range(
                self.client, start_date, end_date, pacer=self.pacer, session=target, save=save
            )
        return {
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "totalMatches": sum(d.count for d in days),
            "days": [d.to_dict() for d in days],
        }

    def search_players(self, query: str) -> list[dict[str, Any]]:
        cleaned = (query or "").strip()
        if len(cleaned) < 2:
            raise ValidationError("Search query needs at least 2 characters")
        return [_public(p) for p in search_players(self.client, cleaned)]

    def league_seasons(self, league_id: str | int) -> list[dict[str, Any]]:
        return [_public(s) for s in fetch_league_seasons(self.client, league_id)]
