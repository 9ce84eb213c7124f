from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from pitch_sync.db.enums import MatchStatusEnum, PositionCategoryEnum
from pitch_sync.ingestion.dates import day_bounds
from pitch_sync.ingestion.providers.base.errors import ProviderParseError
from pitch_sync.ingestion.providers.sofascore.parser import (
    map_match_status,
    map_position_category,
    parse_events_for_day,
    parse_player,
    parse_squad,
    parse_standings,
    parse_team,
    parse_top_scorers,
    parse_transfers,
    season_label,
)


def _ts(*args: int) -> int:
    return int(datetime(*args, tzinfo=UTC).timestamp())


def _event(event_id: int, start: int, *, status: str = "notstarted") -> dict:
    return {
        "id": event_id,
        "startTimestamp": start,
        "status": {"type": status},
        "homeTeam": {"id": 42, "name": "Arsenal"},
        "awayTeam": {"id": 44, "name": "Liverpool"},
        "homeScore": {"current": 2},
        "awayScore": {"current": 1},
        "roundInfo": {"round": 9},
        "season": {"year": "24/25"},
        "tournament": {
            "name": "Premier League",
            "category": {"id": 1, "name": "England", "alpha2": "EN"},
            "uniqueTournament": {"id": 17, "name": "Premier League"},
        },
    }


def test_team_parsing_collects_venue_manager_and_country() -> None:
    team = parse_team(
        {
            "id": 42,
            "name": "  Arsenal ",
            "shortName": "Arsenal",
            "country": {"name": "England", "alpha2": "EN"},
            "venue": {"city": {"name": "London"}, "stadium": {"name": "Emirates", "capacity": 60704}},
            "manager": {"name": "Mikel Arteta"},
            "foundationDateTimestamp": _ts(1886, 12, 1),
        }
    )

    assert team.name == "Arsenal"
    assert team.provider_id == "42"
    assert team.country is not None and team.country.name == "England"
    assert team.stadium == "Emirates"
    assert team.stadium_capacity == 60704
    assert team.city == "London"
    assert team.manager == "Mikel Arteta"
    assert team.founded == 1886
    assert team.logo_url is not None and team.logo_url.endswith("/team/42/image")


def test_nameless_team_is_a_parse_error() -> None:
    with pytest.raises(ProviderParseError):
        parse_team({"id": 1, "name": "   "})


def test_player_fields_and_position_category() -> None:
    player = parse_player(
        {
            "id": 934235,
            "name": "Bukayo Saka",
            "slug": "bukayo-saka",
            "position": "F",
            "jerseyNumber": "7",
            "height": 178,
            "preferredFoot": "Left",
            "country": {"name": "England"},
            "dateOfBirthTimestamp": _ts(2001, 9, 5),
            "proposedMarketValueRaw": {"value": 140000000, "currency": "EUR"},
        }
    )

    assert player.position_category is PositionCategoryEnum.FORWARD
    assert player.shirt_number == 7
    assert player.birth_date == date(2001, 9, 5)
    assert player.market_value == 140_000_000
    assert player.to_fields()["position_category"] == "Forward"
    assert player.to_fields()["nationality"] == "England"


def test_squad_accepts_wrapped_and_bare_entries() -> None:
    squad = parse_squad(
        [
            {"player": {"id": 1, "name": "David Raya", "position": "G"}, "jerseyNumber": 22},
            {"id": 2, "name": "William Saliba", "position": "D"},
            {"player": {"id": 3}},
            "garbage",
        ]
    )

    assert [p.name for p in squad] == ["David Raya", "William Saliba"]
    assert squad[0].shirt_number == 22
    assert squad[1].position_category is PositionCategoryEnum.DEFENDER


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("GK", PositionCategoryEnum.GOALKEEPER),
        ("CB", PositionCategoryEnum.DEFENDER),
        ("CDM", PositionCategoryEnum.MIDFIELDER),
        ("ST", PositionCategoryEnum.FORWARD),
        ("", PositionCategoryEnum.UNKNOWN),
        (None, PositionCategoryEnum.UNKNOWN),
    ],
)
def test_position_category_mapping(raw, expected) -> None:
    assert map_position_category(raw) is expected


def test_match_status_mapping() -> None:
    assert map_match_status("finished") is MatchStatusEnum.FINISHED
    assert map_match_status("inprogress") is MatchStatusEnum.IN_PROGRESS
    assert map_match_status(None) is MatchStatusEnum.SCHEDULED
    assert map_match_status("abandoned") is MatchStatusEnum.UNKNOWN


def test_season_labels_are_expanded() -> None:
    assert season_label("24/25") == "2024-2025"
    assert season_label("2024/2025") == "2024-2025"
    assert season_label("2024") == "2024"
    assert season_label("Apertura") is None


def test_events_are_filtered_to_the_requested_day() -> None:
    day = date(2024, 10, 26)
    start_ts, end_ts = day_bounds(day)
    events = [
        _event(1, _ts(2024, 10, 25, 23, 30)),
        _event(2, _ts(2024, 10, 26, 0, 0)),
        _event(3, _ts(2024, 10, 26, 16, 30), status="finished"),
        _event(4, _ts(2024, 10, 27, 0, 0)),
        {"id": 5},
    ]

    matches = parse_events_for_day(events, start_ts=start_ts, end_ts=end_ts)

    assert [m.provider_id for m in matches] == ["2", "3"]
    finished = matches[1]
    assert finished.status is MatchStatusEnum.FINISHED
    assert finished.competition == "Premier League"
    assert finished.country == "England"
    assert finished.season == "2024-2025"
    assert finished.league is not None and finished.league.provider_id == "17"
    assert finished.league.country is not None and finished.league.country.name == "England"
    summary = finished.to_summary()
    assert summary["date"] == "2024-10-26"
    assert summary["home_team"] == "Arsenal"
    assert summary["status"] == "FINISHED"


def test_standings_rows_span_groups() -> None:
    rows = parse_standings(
        [
            {
                "name": "Premier League 24/25",
                "rows": [
                    {
                        "team": {"id": 44, "name": "Liverpool"},
                        "position": 1,
                        "matches": 38,
                        "wins": 25,
                        "draws": 9,
                        "losses": 4,
                        "scoresFor": 86,
                        "scoresAgainst": 41,
                        "points": 84,
                        "promotion": {"text": "Champions League"},
                    }
                ],
            }
        ]
    )

    assert len(rows) == 1
    fields = rows[0].to_fields()
    assert fields["goal_difference"] == 45
    assert fields["description"] == "Champions League"
    assert rows[0].group_name == "Premier League 24/25"


def test_top_scorers_rank_follows_list_order() -> None:
    scorers = parse_top_scorers(
        {
            "goals": [
                {
                    "player": {"id": 1, "name": "Mohamed Salah"},
                    "team": {"id": 44, "name": "Liverpool"},
                    "statistics": {"goals": 29, "appearances": 38},
                },
                {"player": {"id": 2, "name": "Alexander Isak"}, "statistics": {"goals": 23}},
            ]
        }
    )

    assert [(s.rank, s.player.name, s.goals) for s in scorers] == [
        (1, "Mohamed Salah", 29),
        (2, "Alexander Isak", 23),
    ]
    assert scorers[1].team is None
    assert parse_top_scorers({"assists": []}) == []


def test_transfers_without_destination_are_skipped() -> None:
    transfers = parse_transfers(
        [
            {
                "id": 99,
                "transferFrom": {"id": 3, "name": "Brentford"},
                "transferTo": {"id": 42, "name": "Arsenal"},
                "transferDateTimestamp": _ts(2023, 7, 1),
                "transferFeeRaw": {"value": 10000000, "currency": "EUR"},
                "type": 1,
            },
            {"id": 100, "transferTo": None},
        ]
    )

    assert len(transfers) == 1
    t = transfers[0]
    assert t.from_team is not None and t.from_team.name == "Brentford"
    assert t.to_team.provider_id == "42"
    assert t.transfer_date == date(2023, 7, 1)
    assert t.fee == 10_000_000
    assert t.type == "1"
