from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pitch_sync.core.errors import MissingScopeError, PersistenceError, ValidationError
from pitch_sync.core.text import clean_name
from pitch_sync.db.models.core.league import League
from pitch_sync.db.models.core.player import Player
from pitch_sync.db.models.core.team import Team
from pitch_sync.db.repos.base import BaseRepository
from pitch_sync.db.repos.core.country_repo import CountryRepository
from pitch_sync.db.repos.core.league_repo import LeagueRepository
from pitch_sync.db.repos.core.match_repo import MatchRepository
from pitch_sync.db.repos.core.player_repo import PlayerRepository
from pitch_sync.db.repos.core.standing_repo import StandingRepository
from pitch_sync.db.repos.core.team_league_repo import TeamLeagueRepository
from pitch_sync.db.repos.core.team_repo import TeamRepository
from pitch_sync.db.repos.core.top_scorer_repo import TopScorerRepository
from pitch_sync.db.repos.core.transfer_repo import TransferRepository
from pitch_sync.ingestion.providers.sofascore.parser import (
    ParsedCountry,
    ParsedLeague,
    ParsedMatch,
    ParsedPlayer,
    ParsedStandingRow,
    ParsedTeam,
    ParsedTopScorer,
    ParsedTransfer,
)

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    COUNTRY = "country"
    LEAGUE = "league"
    TEAM = "team"
    PLAYER = "player"
    MATCH = "match"
    TEAM_LEAGUE = "team_league"
    STANDING = "standing"
    TOP_SCORER = "top_scorer"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class EntitySpec:
    """
    How one canonical entity is matched.

    key_fields must be non-null in the record (or scope); optional_key_fields
    take part in the natural key but may be null; scope_fields must be passed
    through `scope` whenever there is no provider id to match on.
    """

    repo_factory: Callable[[Session], BaseRepository[Any]]
    key_fields: tuple[str, ...]
    optional_key_fields: tuple[str, ...] = ()
    scope_fields: tuple[str, ...] = ()
    nullable_scope: bool = False


ENTITY_SPECS: dict[EntityKind, EntitySpec] = {
    EntityKind.COUNTRY: EntitySpec(CountryRepository, key_fields=("name",)),
    EntityKind.LEAGUE: EntitySpec(
        LeagueRepository, key_fields=("name",), scope_fields=("country_id",), nullable_scope=True
    ),
    EntityKind.TEAM: EntitySpec(
        TeamRepository, key_fields=("name",), scope_fields=("country_id",), nullable_scope=True
    ),
    EntityKind.PLAYER: EntitySpec(PlayerRepository, key_fields=("name",), scope_fields=("team_id",)),
    EntityKind.MATCH: EntitySpec(
        MatchRepository, key_fields=("home_team_id", "away_team_id", "start_time")
    ),
    EntityKind.TEAM_LEAGUE: EntitySpec(
        TeamLeagueRepository, key_fields=("team_id", "league_id", "season")
    ),
    EntityKind.STANDING: EntitySpec(
        StandingRepository, key_fields=("league_id", "team_id", "season")
    ),
    EntityKind.TOP_SCORER: EntitySpec(
        TopScorerRepository, key_fields=("league_id", "player_id", "season")
    ),
    EntityKind.TRANSFER: EntitySpec(
        TransferRepository,
        key_fields=("player_id", "to_team_id"),
        optional_key_fields=("transfer_date", "from_team_id"),
    ),
}


@dataclass(frozen=True)
class UpsertResult:
    entity: Any
    created: bool
    changed_fields: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return self.created or bool(self.changed_fields)


class EntityResolver:
    """
    Idempotent mapping of upstream records onto canonical rows.

    Matching order: provider id, then natural key within scope, then create.
    Existing rows are only filled where null unless `force_update` is set.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # ---------- generic entry point ----------

    def resolve_and_upsert(
        self,
        kind: EntityKind,
        record: Mapping[str, Any],
        scope: Mapping[str, Any] | None = None,
        *,
        force_update: bool = False,
    ) -> UpsertResult:
        spec = ENTITY_SPECS[kind]
        repo = spec.repo_factory(self.session)
        fields = self._clean_record(repo, record)
        scope = dict(scope or {})
        self._check_columns(repo, scope)

        try:
            return self._resolve(kind, spec, repo, fields, scope, force_update)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to upsert {kind.value}: {e}") from e

    def _resolve(
        self,
        kind: EntityKind,
        spec: EntitySpec,
        repo: BaseRepository[Any],
        fields: dict[str, Any],
        scope: dict[str, Any],
        force_update: bool,
    ) -> UpsertResult:
        values = {**fields, **scope}
        pid_field = repo.provider_id_field
        provider_id = values.get(pid_field) if pid_field else None

        if provider_id is not None:
            existing = repo.get_by_provider_id(provider_id)
            if existing is not None:
                return self._apply(repo, existing, values, force_update)

        if provider_id is not None and not all(f in scope for f in spec.scope_fields):
            entity = repo.add(repo.model(**{k: v for k, v in values.items() if v is not None}))
            return self._created(entity, values)

        # Rows holding a different provider id are other real-world entities.
        key = self._natural_key(kind, spec, values, scope)
        entity, created = repo.find_or_create(key, values, provider_id=provider_id)
        if created:
            return self._created(entity, values)
        return self._apply(repo, entity, values, force_update)

    @staticmethod
    def _created(entity: Any, values: Mapping[str, Any]) -> UpsertResult:
        written = tuple(sorted(k for k, v in values.items() if v is not None))
        return UpsertResult(entity=entity, created=True, changed_fields=written)

    def _apply(
        self,
        repo: BaseRepository[Any],
        entity: Any,
        values: Mapping[str, Any],
        force_update: bool,
    ) -> UpsertResult:
        changed = repo.update(entity, values, overwrite=force_update)
        return UpsertResult(entity=entity, created=False, changed_fields=tuple(changed))

    def _natural_key(
        self,
        kind: EntityKind,
        spec: EntitySpec,
        values: Mapping[str, Any],
        scope: Mapping[str, Any],
    ) -> dict[str, Any]:
        key: dict[str, Any] = {}
        for f in spec.scope_fields:
            if f not in scope or (scope[f] is None and not spec.nullable_scope):
                raise MissingScopeError(
                    f"{kind.value} without provider id needs '{f}' in scope to be matched"
                )
            key[f] = scope[f]
        for f in spec.key_fields:
            if values.get(f) is None:
                raise ValidationError(f"{kind.value} record is missing natural key field '{f}'")
            key[f] = values[f]
        for f in spec.optional_key_fields:
            key[f] = values.get(f)
        return key

    @staticmethod
    def _check_columns(repo: BaseRepository[Any], values: Mapping[str, Any]) -> None:
        columns = set(inspect(repo.model).column_attrs.keys())
        unknown = sorted(set(values) - columns)
        if unknown:
            raise ValidationError(f"Unknown {repo.model.__name__} fields: {', '.join(unknown)}")

    def _clean_record(self, repo: BaseRepository[Any], record: Mapping[str, Any]) -> dict[str, Any]:
        self._check_columns(repo, record)
        fields = dict(record)
        for f in repo.name_fields:
            value = fields.get(f)
            if value is None:
                continue
            if not isinstance(value, str) or not clean_name(value):
                raise ValidationError(f"{repo.model.__name__}.{f} must be a non-empty string")
            fields[f] = clean_name(value)
        return fields

    # ---------- cascading helpers ----------

    def upsert_country(
        self, parsed: ParsedCountry | None, *, force_update: bool = False
    ) -> UpsertResult | None:
        if parsed is None:
            return None
        return self.resolve_and_upsert(
            EntityKind.COUNTRY, parsed.to_fields(), force_update=force_update
        )

    def upsert_league(self, parsed: ParsedLeague, *, force_update: bool = False) -> UpsertResult:
        country = self.upsert_country(parsed.country)
        return self.resolve_and_upsert(
            EntityKind.LEAGUE,
            parsed.to_fields(),
            {"country_id": country.entity.id if country else None},
            force_update=force_update,
        )

    def upsert_team(self, parsed: ParsedTeam, *, force_update: bool = False) -> UpsertResult:
        country = self.upsert_country(parsed.country)
        return self.resolve_and_upsert(
            EntityKind.TEAM,
            parsed.to_fields(),
            {"country_id": country.entity.id if country else None},
            force_update=force_update,
        )

    def upsert_player(
        self,
        parsed: ParsedPlayer,
        *,
        team: Team | None = None,
        force_update: bool = False,
    ) -> UpsertResult:
        if team is None and parsed.team is not None:
            team = self.upsert_team(parsed.team).entity

        fields = parsed.to_fields()
        nationality = self.upsert_country(parsed.nationality)
        if nationality is not None:
            fields["nationality_id"] = nationality.entity.id

        scope = {"team_id": team.id} if team is not None else {}
        return self.resolve_and_upsert(
            EntityKind.PLAYER, fields, scope, force_update=force_update
        )

    def upsert_match(
        self,
        parsed: ParsedMatch,
        *,
        league: League | None = None,
        seen_at: datetime | None = None,
        force_update: bool = True,
        degraded: bool = False,
    ) -> UpsertResult | None:
        """
        Upsert a match with both teams and its competition.

        Scores and status move as a match is played, so updates overwrite by default.
        A degraded record only fills missing columns of a match already stored
        under its provider id; it never creates teams or matches, and returns
        None when the match is not stored yet.
        """
        if degraded:
            repo = MatchRepository(self.session)
            existing = repo.get_by_provider_id(parsed.provider_id)
            if existing is None:
                logger.info("Not storing degraded match %s: not known yet", parsed.provider_id)
                return None
            fields = parsed.to_fields()
            fields["source_last_seen_at"] = seen_at
            try:
                return self._apply(repo, existing, fields, force_update=False)
            except SQLAlchemyError as e:
                raise PersistenceError(f"Failed to upsert match: {e}") from e

        home = self.upsert_team(parsed.home).entity
        away = self.upsert_team(parsed.away).entity
        if league is None and parsed.league is not None:
            league = self.upsert_league(parsed.league).entity

        fields = parsed.to_fields()
        fields["league_id"] = league.id if league is not None else None
        fields["source_last_seen_at"] = seen_at
        return self.resolve_and_upsert(
            EntityKind.MATCH,
            fields,
            {"home_team_id": home.id, "away_team_id": away.id},
            force_update=force_update,
        )

    def upsert_team_league(self, team: Team, league: League, season: str) -> UpsertResult:
        return self.resolve_and_upsert(
            EntityKind.TEAM_LEAGUE,
            {"team_id": team.id, "league_id": league.id, "season": season, "status": "active"},
        )

    def upsert_standing(
        self,
        parsed: ParsedStandingRow,
        *,
        league: League,
        season: str,
        force_update: bool = True,
    ) -> UpsertResult:
        team = self.upsert_team(parsed.team).entity
        self.upsert_team_league(team, league, season)
        fields = parsed.to_fields()
        fields.update({"league_id": league.id, "team_id": team.id, "season": season})
        return self.resolve_and_upsert(EntityKind.STANDING, fields, force_update=force_update)

    def upsert_top_scorer(
        self,
        parsed: ParsedTopScorer,
        *,
        league: League,
        season: str,
        force_update: bool = True,
    ) -> UpsertResult:
        team = self.upsert_team(parsed.team).entity if parsed.team is not None else None
        player = self.upsert_player(parsed.player, team=team).entity
        fields = parsed.to_fields()
        fields.update(
            {
                "league_id": league.id,
                "player_id": player.id,
                "team_id": team.id if team is not None else None,
                "season": season,
            }
        )
        return self.resolve_and_upsert(EntityKind.TOP_SCORER, fields, force_update=force_update)

    def upsert_transfer(self, parsed: ParsedTransfer, *, player: Player) -> UpsertResult:
        to_team = self.upsert_team(parsed.to_team).entity
        from_team = (
            self.upsert_team(parsed.from_team).entity if parsed.from_team is not None else None
        )
        fields = parsed.to_fields()
        fields.update(
            {
                "player_id": player.id,
                "to_team_id": to_team.id,
                "from_team_id": from_team.id if from_team is not None else None,
            }
        )
        return self.resolve_and_upsert(EntityKind.TRANSFER, fields)
