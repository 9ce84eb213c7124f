from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pitch_sync.core.errors import MissingScopeError, ValidationError
from pitch_sync.db.enums import MatchStatusEnum
from pitch_sync.db.models.core.country import Country
from pitch_sync.db.models.core.match import Match
from pitch_sync.db.models.core.player import Player
from pitch_sync.db.models.core.team import Team
from pitch_sync.db.models.core.team_league import TeamLeague
from pitch_sync.db.repos.core.team_repo import TeamRepository
from pitch_sync.ingestion.providers.sofascore.parser import (
    ParsedCountry,
    ParsedLeague,
    ParsedMatch,
    ParsedPlayer,
    ParsedStandingRow,
    ParsedTeam,
)
from pitch_sync.resolve.resolver import EntityKind, EntityResolver


def _count(session: Session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def test_upsert_is_idempotent(session: Session) -> None:
    resolver = EntityResolver(session)
    parsed = ParsedTeam(name="Arsenal", provider_id="42", country=ParsedCountry(name="England"))

    first = resolver.upsert_team(parsed)
    second = resolver.upsert_team(parsed)

    assert first.created is True
    assert second.created is False
    assert second.changed is False
    assert second.entity.id == first.entity.id
    assert _count(session, Team) == 1
    assert _count(session, Country) == 1


def test_natural_key_match_is_case_and_whitespace_insensitive(session: Session) -> None:
    resolver = EntityResolver(session)
    created = resolver.resolve_and_upsert(
        EntityKind.TEAM, {"name": "Real  Madrid"}, {"country_id": None}
    )
    matched = resolver.resolve_and_upsert(
        EntityKind.TEAM, {"name": " real madrid", "provider_team_id": "2829"}, {"country_id": None}
    )

    assert created.entity.name == "Real Madrid"
    assert matched.created is False
    assert matched.entity.id == created.entity.id
    assert matched.entity.provider_team_id == "2829"


@pytest.mark.parametrize(
    ("stored", "incoming"),
    [("Édouard Mendy", "ÉDOUARD MENDY"), ("Çağlar Söyüncü", "ÇAĞLAR SÖYÜNCÜ")],
)
def test_non_ascii_names_match_their_stored_row(
    session: Session, stored: str, incoming: str
) -> None:
    resolver = EntityResolver(session)
    team = resolver.upsert_team(ParsedTeam(name="Al-Ahli", provider_id="34469")).entity

    first = resolver.resolve_and_upsert(EntityKind.PLAYER, {"name": stored}, {"team_id": team.id})
    again = resolver.resolve_and_upsert(EntityKind.PLAYER, {"name": stored}, {"team_id": team.id})
    other_case = resolver.resolve_and_upsert(
        EntityKind.PLAYER, {"name": incoming}, {"team_id": team.id}
    )

    assert first.created is True
    assert again.created is False
    assert other_case.entity.id == first.entity.id
    assert _count(session, Player) == 1


def test_fill_missing_keeps_existing_values_unless_forced(session: Session) -> None:
    resolver = EntityResolver(session)
    resolver.upsert_team(ParsedTeam(name="Arsenal", provider_id="42", manager="Mikel Arteta"))

    filled = resolver.upsert_team(
        ParsedTeam(name="Arsenal", provider_id="42", manager="Someone Else", stadium="Emirates")
    )
    assert filled.changed_fields == ("stadium",)
    assert filled.entity.manager == "Mikel Arteta"

    forced = resolver.upsert_team(
        ParsedTeam(name="Arsenal", provider_id="42", manager="Someone Else"), force_update=True
    )
    assert forced.changed_fields == ("manager",)
    assert forced.entity.manager == "Someone Else"
    # None never overwrites, even when forced
    assert forced.entity.stadium == "Emirates"


def test_same_name_with_different_provider_ids_stays_distinct(session: Session) -> None:
    resolver = EntityResolver(session)
    a = resolver.upsert_team(ParsedTeam(name="Nacional", provider_id="3209"))
    b = resolver.upsert_team(ParsedTeam(name="Nacional", provider_id="3006"))

    assert b.created is True
    assert a.entity.id != b.entity.id
    assert _count(session, Team) == 2


def test_natural_key_is_scoped_by_country(session: Session) -> None:
    resolver = EntityResolver(session)
    eng = resolver.upsert_country(ParsedCountry(name="England")).entity
    wal = resolver.upsert_country(ParsedCountry(name="Wales")).entity

    a = resolver.resolve_and_upsert(EntityKind.TEAM, {"name": "Newport"}, {"country_id": eng.id})
    b = resolver.resolve_and_upsert(EntityKind.TEAM, {"name": "Newport"}, {"country_id": wal.id})

    assert a.entity.id != b.entity.id


def test_player_without_provider_id_needs_team_scope(session: Session) -> None:
    resolver = EntityResolver(session)

    with pytest.raises(MissingScopeError):
        resolver.upsert_player(ParsedPlayer(name="Unknown Trialist"))

    team = resolver.upsert_team(ParsedTeam(name="Arsenal", provider_id="42")).entity
    result = resolver.upsert_player(ParsedPlayer(name="Unknown Trialist"), team=team)
    assert result.created is True
    assert result.entity.team_id == team.id


def test_player_with_provider_id_is_created_without_scope(session: Session) -> None:
    resolver = EntityResolver(session)
    result = resolver.upsert_player(
        ParsedPlayer(name="Bukayo Saka", provider_id="934235", nationality=ParsedCountry(name="England"))
    )

    assert result.created is True
    player = session.get(Player, result.entity.id)
    assert player is not None and player.nationality_id is not None


def test_unknown_fields_are_rejected(session: Session) -> None:
    resolver = EntityResolver(session)
    with pytest.raises(ValidationError):
        resolver.resolve_and_upsert(EntityKind.COUNTRY, {"name": "England", "capital": "London"})


def test_match_upsert_resolves_teams_and_league_then_updates_score(session: Session) -> None:
    resolver = EntityResolver(session)
    kickoff = datetime(2024, 10, 26, 16, 30, tzinfo=UTC)
    scheduled = ParsedMatch(
        provider_id="12436870",
        start_time=kickoff,
        home=ParsedTeam(name="Arsenal", provider_id="42"),
        away=ParsedTeam(name="Liverpool", provider_id="44"),
        league=ParsedLeague(name="Premier League", provider_id="17"),
        competition="Premier League",
    )

    first = resolver.upsert_match(scheduled)
    finished = ParsedMatch(
        provider_id="12436870",
        start_time=kickoff,
        home=scheduled.home,
        away=scheduled.away,
        status=MatchStatusEnum.FINISHED,
        home_score=2,
        away_score=2,
    )
    second = resolver.upsert_match(finished)
    session.commit()

    assert second.created is False
    assert second.entity.id == first.entity.id
    match = session.get(Match, first.entity.id)
    assert match is not None
    assert match.status is MatchStatusEnum.FINISHED
    assert (match.home_score, match.away_score) == (2, 2)
    assert match.league_id is not None
    assert _count(session, Team) == 2


def test_standing_upsert_records_league_membership(session: Session) -> None:
    resolver = EntityResolver(session)
    league = resolver.upsert_league(ParsedLeague(name="Premier League", provider_id="17")).entity
    row = ParsedStandingRow(team=ParsedTeam(name="Liverpool", provider_id="44"), position=1, points=84)

    resolver.upsert_standing(row, league=league, season="2024-2025")
    again = resolver.upsert_standing(
        ParsedStandingRow(team=row.team, position=1, points=85), league=league, season="2024-2025"
    )

    assert again.created is False
    assert again.entity.points == 85
    assert _count(session, TeamLeague) == 1


def test_repository_find_or_create_skips_rows_owned_by_another_provider_id(
    session: Session,
) -> None:
    repo = TeamRepository(session)
    key = {"name": "nacional", "country_id": None}

    owned, created = repo.find_or_create(key, {"provider_team_id": "3209"})
    assert created is True
    assert owned.provider_team_id == "3209"

    same, created = repo.find_or_create(key, provider_id="3209")
    assert (same.id, created) == (owned.id, False)

    other, created = repo.find_or_create(key, {"provider_team_id": "3006"}, provider_id="3006")
    assert created is True
    assert other.id != owned.id
    assert other.name_norm == owned.name_norm == "nacional"
