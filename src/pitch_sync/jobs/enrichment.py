from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from functools import partial
from typing import Any

from sqlalchemy.orm import Session

from pitch_sync.core.errors import JobAlreadyRunning
from pitch_sync.db.engine import unit_of_work
from pitch_sync.db.models.core.league import League
from pitch_sync.db.models.core.player import Player
from pitch_sync.db.models.core.team import Team
from pitch_sync.db.repos.core.league_repo import LeagueRepository
from pitch_sync.db.repos.core.team_repo import TeamRepository
from pitch_sync.ingestion.providers.base.errors import ProviderError, ProviderNotFound
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.ingest.leagues import (
    fetch_league,
    fetch_league_seasons,
    fetch_season_events,
    fetch_standings,
    fetch_top_scorers,
    pick_season,
)
from pitch_sync.ingestion.providers.sofascore.ingest.players import fetch_player, fetch_transfers
from pitch_sync.ingestion.providers.sofascore.ingest.teams import fetch_squad, fetch_team
from pitch_sync.ingestion.providers.sofascore.parser import (
    ApiItem,
    ParsedLeague,
    ParsedPlayer,
    ParsedSeason,
    ParsedStandingRow,
    ParsedTopScorer,
    parse_match,
)
from pitch_sync.ingestion.providers.sofascore.reference import (
    COMPETITIONS,
    ReferenceCompetition,
    reference_leagues,
)
from pitch_sync.jobs.orchestrator import JobOrchestrator, Stage, format_item_error
from pitch_sync.jobs.pacing import Pacer
from pitch_sync.jobs.registry import JobRegistry
from pitch_sync.jobs.state import JobKind, JobStatus
from pitch_sync.resolve.catalog import LeagueCatalog
from pitch_sync.resolve.resolver import EntityResolver

logger = logging.getLogger(__name__)

ENRICH_DATABASE_STAGES = ("leagues", "standings", "teams", "players", "top_scorers")
ENRICH_TEAM_STAGES = ("team", "players", "transfers")
ENRICH_ALL_TEAMS_STAGES = ("teams",)
POPULATE_LEAGUES_STAGES = ("leagues",)
POPULATE_LEAGUE_STAGES = ("league", "standings", "top_scorers", "matches")


@dataclass
class JobContext:
    """Collaborators every job needs; each job opens its own session from the factory."""

    session_factory: Callable[[], Session]
    client: SofaScoreClient
    registry: JobRegistry
    pacer: Pacer
    max_workers: int = 4

    @property
    def orchestrator(self) -> JobOrchestrator:
        return JobOrchestrator(self.registry, self.pacer)


@dataclass(frozen=True)
class EntityRef:
    """Detached handle on a stored row that can be fetched upstream."""

    id: int
    provider_id: str
    name: str

    @property
    def label(self) -> str:
        return f"{self.name} ({self.provider_id})"


def _ref_label(ref: EntityRef) -> str:
    return ref.label


def _team_refs(teams: list[Team]) -> list[EntityRef]:
    return [EntityRef(t.id, t.provider_team_id, t.name) for t in teams if t.provider_team_id]


def major_leagues(session: Session) -> list[EntityRef]:
    """Stored leagues that appear in the reference table, in reference order."""
    repo = LeagueRepository(session)
    refs: list[EntityRef] = []
    for comp in COMPETITIONS:
        league = repo.get_by_provider_id(str(comp.provider_id))
        if league is not None:
            refs.append(EntityRef(league.id, str(comp.provider_id), league.name))
    return refs


class _SeasonCache:
    """Per-job memo of the season chosen for each league."""

    def __init__(self, client: SofaScoreClient, season: str | None) -> None:
        self.client = client
        self.season = season
        self._seasons: dict[str, ParsedSeason] = {}

    def get(self, league_provider_id: str) -> ParsedSeason:
        if league_provider_id not in self._seasons:
            seasons = fetch_league_seasons(self.client, league_provider_id)
            self._seasons[league_provider_id] = pick_season(seasons, self.season)
        return self._seasons[league_provider_id]

    def label(self, league_provider_id: str) -> str:
        chosen = self.get(league_provider_id)
        return chosen.label or self.season or chosen.name or chosen.provider_id


# ---------- whole-database enrichment ----------


def enrich_database(
    ctx: JobContext,
    job_id: str,
    *,
    season: str | None = None,
    max_teams: int | None = None,
    get_players: bool = True,
) -> dict[str, Any]:
    """
    Leagues, then standings (which discover teams), then team details, squads
    and top scorers, each as its own stage.
    """
    with ctx.session_factory() as session:
        resolver = EntityResolver(session)
        catalog = LeagueCatalog(ctx.client)
        seasons = _SeasonCache(ctx.client, season)
        team_repo = TeamRepository(session)

        def league_items() -> list[ParsedLeague]:
            listing = catalog.leagues()
            ctx.registry.update_details(job_id, {"leagues_from_reference": listing.from_reference})
            return listing.leagues

        def store_league(parsed: ParsedLeague) -> bool:
            with unit_of_work(session):
                return resolver.upsert_league(parsed).created

        def store_standings(ref: EntityRef) -> bool:
            chosen = seasons.get(ref.provider_id)
            rows = fetch_standings(ctx.client, ref.provider_id, chosen.provider_id)
            label = seasons.label(ref.provider_id)
            with unit_of_work(session):
                league = session.get(League, ref.id)
                results = [resolver.upsert_standing(r, league=league, season=label) for r in rows]
            return any(r.created for r in results)

        def team_items() -> list[EntityRef]:
            limit = max_teams if max_teams is not None else team_repo.count_with_provider_id()
            return _team_refs(team_repo.page_with_provider_id(offset=0, limit=limit))

        def store_team(ref: EntityRef) -> bool:
            fetched = fetch_team(ctx.client, ref.provider_id)
            with unit_of_work(session):
                result = resolver.upsert_team(fetched.value, force_update=not fetched.degraded)
            return result.created

        def store_squad(ref: EntityRef) -> bool:
            fetched = fetch_squad(ctx.client, ref.provider_id)
            with unit_of_work(session):
                team = session.get(Team, ref.id)
                results = [
                    resolver.upsert_player(p, team=team, force_update=not fetched.degraded)
                    for p in fetched.value
                ]
            return any(r.created for r in results)

        def store_top_scorers(ref: EntityRef) -> bool:
            chosen = seasons.get(ref.provider_id)
            scorers = fetch_top_scorers(ctx.client, ref.provider_id, chosen.provider_id)
            label = seasons.label(ref.provider_id)
            with unit_of_work(session):
                league = session.get(League, ref.id)
                results = [resolver.upsert_top_scorer(s, league=league, season=label) for s in scorers]
            return any(r.created for r in results)

        stages: list[Stage[Any]] = [
            Stage("leagues", league_items, store_league, label=lambda lg: lg.name),
            Stage("standings", lambda: major_leagues(session), store_standings, label=_ref_label),
            Stage("teams", team_items, store_team, label=_ref_label),
            Stage(
                "players",
                team_items if get_players else list,
                store_squad,
                label=_ref_label,
            ),
            Stage("top_scorers", lambda: major_leagues(session), store_top_scorers, label=_ref_label),
        ]
        ctx.orchestrator.run_stages(job_id, stages)

    return {"season": season, "max_teams": max_teams, "get_players": get_players}


# ---------- single team ----------


@dataclass
class _TeamRun:
    team_id: int | None = None
    squad_degraded: bool = False
    players: list[EntityRef] = field(default_factory=list)


def enrich_team(
    ctx: JobContext,
    job_id: str,
    team_provider_id: str,
    *,
    get_players: bool = True,
    include_transfers: bool = True,
) -> dict[str, Any]:
    """
    Team details, then every squad player's details, then their transfers.

    When the squad only came back through the browser, per-player detail and
    transfer lookups are skipped.
    """
    run = _TeamRun()

    with ctx.session_factory() as session:
        resolver = EntityResolver(session)

        def store_team(provider_id: str) -> bool:
            fetched = fetch_team(ctx.client, provider_id)
            with unit_of_work(session):
                result = resolver.upsert_team(fetched.value, force_update=not fetched.degraded)
            run.team_id = result.entity.id
            return result.created

        def squad_items() -> list[ParsedPlayer]:
            if not get_players or run.team_id is None:
                return []
            fetched = fetch_squad(ctx.client, team_provider_id)
            run.squad_degraded = fetched.degraded
            ctx.registry.update_details(job_id, {"squad_fidelity": fetched.fidelity.value})
            return fetched.value

        def store_player(parsed: ParsedPlayer) -> bool:
            detailed = parsed
            degraded = run.squad_degraded
            if not degraded and parsed.provider_id:
                fetched = fetch_player(ctx.client, parsed.provider_id)
                if not fetched.degraded:
                    detailed = replace(
                        fetched.value,
                        shirt_number=fetched.value.shirt_number or parsed.shirt_number,
                        team=None,
                    )
            with unit_of_work(session):
                team = session.get(Team, run.team_id)
                result = resolver.upsert_player(detailed, team=team, force_update=not degraded)
            player = result.entity
            if player.provider_player_id:
                run.players.append(EntityRef(player.id, player.provider_player_id, player.name))
            return result.created

        def transfer_items() -> list[EntityRef]:
            if not include_transfers or run.squad_degraded:
                return []
            return list(run.players)

        def store_transfers(ref: EntityRef) -> bool:
            transfers = fetch_transfers(ctx.client, ref.provider_id)
            with unit_of_work(session):
                player = session.get(Player, ref.id)
                results = [resolver.upsert_transfer(t, player=player) for t in transfers]
            return any(r.created for r in results)

        ctx.orchestrator.run_stages(
            job_id,
            [
                Stage("team", lambda: [team_provider_id], store_team),
                Stage(
                    "players",
                    squad_items,
                    store_player,
                    label=lambda p: f"{p.name} ({p.provider_id})",
                ),
                Stage("transfers", transfer_items, store_transfers, label=_ref_label),
            ],
        )

    return {
        "team_id": team_provider_id,
        "players": len(run.players),
        "squad_degraded": run.squad_degraded,
    }


# ---------- all stored teams, in batches ----------


def enrich_all_teams(
    ctx: JobContext,
    job_id: str,
    *,
    batch_size: int = 10,
    offset: int = 0,
    max_teams: int | None = None,
    get_players: bool = False,
) -> dict[str, Any]:
    """Refresh every stored team with a provider id, resumable from `offset`."""
    with ctx.session_factory() as session:
        resolver = EntityResolver(session)
        repo = TeamRepository(session)

        remaining = max(0, repo.count_with_provider_id() - offset)
        total = remaining if max_teams is None else min(remaining, max_teams)

        def page(page_offset: int, limit: int) -> list[EntityRef]:
            return _team_refs(repo.page_with_provider_id(offset=page_offset, limit=limit))

        def handle(ref: EntityRef) -> bool:
            fetched = fetch_team(ctx.client, ref.provider_id)
            with unit_of_work(session):
                result = resolver.upsert_team(fetched.value, force_update=not fetched.degraded)
            if get_players:
                squad = fetch_squad(ctx.client, ref.provider_id)
                with unit_of_work(session):
                    team = session.get(Team, ref.id)
                    for parsed in squad.value:
                        resolver.upsert_player(parsed, team=team, force_update=not squad.degraded)
            return result.created

        processed = ctx.orchestrator.run_batched(
            job_id,
            "teams",
            fetch_page=page,
            handler=handle,
            label=_ref_label,
            batch_size=batch_size,
            offset=offset,
            max_items=max_teams,
            total=total,
        )

    return {"processed": processed, "start_offset": offset, "batch_size": batch_size}


# ---------- league population, one child job per league ----------


@dataclass
class _LeagueRun:
    league_id: int | None = None
    season: str | None = None
    season_id: str | None = None
    matches: int = 0


def _reference_league(comp: ReferenceCompetition) -> ParsedLeague:
    for parsed in reference_leagues():
        if parsed.provider_id == str(comp.provider_id):
            return parsed
    raise LookupError(comp.provider_id)


def populate_league(
    ctx: JobContext,
    job_id: str,
    comp: ReferenceCompetition,
    *,
    season: str | None = None,
    include_matches: bool = False,
) -> dict[str, Any]:
    """
    League metadata, standings (teams + memberships) and top scorers for one
    league; with `include_matches`, also every played match of the season.
    """
    run = _LeagueRun()
    provider_id = str(comp.provider_id)

    with ctx.session_factory() as session:
        resolver = EntityResolver(session)

        def store_league(c: ReferenceCompetition) -> bool:
            try:
                parsed = fetch_league(ctx.client, provider_id)
                if parsed.tier is None:
                    parsed = replace(parsed, tier=c.tier)
            except ProviderError as e:
                logger.warning("League %s metadata unavailable, using reference: %s", c.name, e)
                parsed = _reference_league(c)
            with unit_of_work(session):
                result = resolver.upsert_league(parsed)
            run.league_id = result.entity.id

            chosen = pick_season(fetch_league_seasons(ctx.client, provider_id), season)
            run.season_id = chosen.provider_id
            run.season = chosen.label or season or chosen.name or chosen.provider_id
            ctx.registry.update_details(job_id, {"season": run.season})
            return result.created

        def standing_items() -> list[ParsedStandingRow]:
            if run.league_id is None or run.season_id is None:
                return []
            try:
                return fetch_standings(ctx.client, provider_id, run.season_id)
            except ProviderNotFound:
                logger.info("No standings for %s", comp.name)
                return []

        def store_standing(row: ParsedStandingRow) -> bool:
            with unit_of_work(session):
                league = session.get(League, run.league_id)
                return resolver.upsert_standing(row, league=league, season=run.season).created

        def scorer_items() -> list[ParsedTopScorer]:
            if run.league_id is None or run.season_id is None:
                return []
            return fetch_top_scorers(ctx.client, provider_id, run.season_id)

        def store_scorer(scorer: ParsedTopScorer) -> bool:
            with unit_of_work(session):
                league = session.get(League, run.league_id)
                return resolver.upsert_top_scorer(scorer, league=league, season=run.season).created

        def match_items() -> list[ApiItem]:
            if not include_matches or run.league_id is None or run.season_id is None:
                return []
            try:
                return fetch_season_events(ctx.client, provider_id, run.season_id)
            except ProviderError as e:
                ctx.registry.record_error(job_id, None, format_item_error("matches", comp.name, e))
                return []

        def store_match(item: ApiItem) -> bool:
            parsed = parse_match(item)
            with unit_of_work(session):
                league = session.get(League, run.league_id)
                result = resolver.upsert_match(parsed, league=league, seen_at=datetime.now(tz=UTC))
            run.matches += 1
            return bool(result and result.created)

        ctx.orchestrator.run_stages(
            job_id,
            [
                Stage("league", lambda: [comp], store_league, label=lambda c: c.name),
                Stage("standings", standing_items, store_standing, label=lambda r: r.team.name),
                Stage("top_scorers", scorer_items, store_scorer, label=lambda s: s.player.name),
                Stage("matches", match_items, store_match, label=lambda e: f"event {e.get('id')}"),
            ],
        )

    return {"league": comp.name, "season": run.season, "matches": run.matches}


def populate_league_job_id(comp: ReferenceCompetition) -> str:
    return f"populate-league:{comp.provider_id}"


def populate_leagues(
    ctx: JobContext,
    job_id: str,
    *,
    season: str | None = None,
    league_ids: list[str] | None = None,
    include_matches: bool = False,
) -> dict[str, Any]:
    """
    Fan out one populate-league job per reference competition and join them.

    Each child owns its JobState slot; the parent's "leagues" stage counts a
    child as an error when it failed or could not be started.
    """
    comps = [c for c in COMPETITIONS if league_ids is None or str(c.provider_id) in league_ids]
    ctx.registry.begin_stage(job_id, "leagues", total=len(comps))

    tasks: dict[str, Callable[[], Any]] = {}
    for comp in comps:
        child_id = populate_league_job_id(comp)
        try:
            ctx.registry.start(
                child_id,
                JobKind.POPULATE_LEAGUE,
                stages=POPULATE_LEAGUE_STAGES,
                details={"parent": job_id, "league": comp.name},
            )
        except JobAlreadyRunning as e:
            ctx.registry.record_error(job_id, "leagues", f"leagues {comp.name}: {e}")
            continue
        tasks[child_id] = partial(
            populate_league, ctx, child_id, comp, season=season, include_matches=include_matches
        )

    ctx.registry.update_details(job_id, {"children": list(tasks)})
    finished = ctx.orchestrator.fan_out(tasks, max_workers=ctx.max_workers)

    for child_id, snap in finished.items():
        if snap is None or snap["status"] == JobStatus.FAILED.value:
            reason = snap["errors"][-1] if snap and snap["errors"] else "unknown failure"
            ctx.registry.record_error(job_id, "leagues", f"leagues {child_id}: {reason}")
            continue
        created = bool(snap["stats"].get("league", {}).get("created"))
        ctx.registry.record_success(job_id, "leagues", created=created)

    return {"children": list(finished)}
