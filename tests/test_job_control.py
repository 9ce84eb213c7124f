from __future__ import annotations

import pytest
from sqlalchemy import func, select

from pitch_sync.core.errors import JobNotFound, ValidationError
from pitch_sync.db.models.core.match import Match
from pitch_sync.jobs.control import JobControl, JobParams
from pitch_sync.jobs.runner import BackgroundRunner
from pitch_sync.jobs.state import JobKind


@pytest.fixture
def control(make_client, session_factory, registry, pacer):
    client = make_client(
        {
            "team/42": {"team": {"id": 42, "name": "Arsenal"}},
            "team/42/players": {"players": []},
            "event/12345": {
                "event": {
                    "id": 12345,
                    "startTimestamp": 1729944000,
                    "homeTeam": {"id": 42, "name": "Arsenal"},
                    "awayTeam": {"id": 44, "name": "Liverpool"},
                    "homeScore": {"current": 2},
                    "awayScore": {"current": 2},
                    "status": {"type": "finished"},
                }
            },
            "search/players/saka": {"players": [{"id": 934235, "name": "Bukayo Saka"}]},
            "unique-tournament/17/seasons": {
                "seasons": [{"id": 61627, "name": "Premier League 24/25", "year": "24/25"}]
            },
        }
    )
    c = JobControl(
        session_factory=session_factory,
        client=client,
        registry=registry,
        runner=BackgroundRunner(max_workers=1),
        pacer=pacer,
        status_prefix="/api/sofascore/jobs",
        max_workers=1,
    )
    yield c
    c.shutdown()


@pytest.mark.parametrize(
    "raw",
    [
        {"season": "2024/2025"},
        {"season": "2024-2026"},
        {"limit": 0},
        {"offset": -1},
        {"batch_size": 0},
        {"max_teams": 0},
        {"teams": 5},
    ],
)
def test_invalid_params_are_rejected(raw) -> None:
    with pytest.raises(ValidationError):
        JobParams.parse(raw)


def test_params_defaults_and_page_size() -> None:
    p = JobParams.parse(None)
    assert (p.offset, p.batch_size, p.save, p.get_players) == (0, 10, False, True)
    assert p.matches is False
    assert p.page_size == 10
    assert JobParams.parse({"limit": 50, "batch_size": 5}).page_size == 50


def test_invalid_input_starts_nothing(control: JobControl) -> None:
    with pytest.raises(ValidationError):
        control.start_season_fixture("2024")
    with pytest.raises(ValidationError, match="season is required"):
        control.start_season_fixture(None)  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        control.start_enrich_team("arsenal")
    with pytest.raises(ValidationError):
        control.start_populate_leagues(league_ids=["Premier Leeg"])
    assert control.jobs() == []


def test_start_returns_202_and_job_completes(control: JobControl) -> None:
    handle = control.start_enrich_team(42)

    assert handle["status"] == 202
    assert handle["jobId"] == "enrich-team:42"
    assert handle["statusEndpoint"] == "/api/sofascore/jobs/enrich-team:42"

    status = control.wait("enrich-team:42", timeout=10)
    assert status["status"] == "completed"
    assert status["isRunning"] is False
    assert status["progress"] == 100.0
    assert status["stats"]["team"]["created"] == 1
    assert status["errors"] == []
    assert {"jobId", "startTime", "endTime", "currentStage", "errorCount"} <= set(status)


def test_second_start_while_running_gets_409(control: JobControl, registry) -> None:
    registry.start("enrich-all-teams", JobKind.ENRICH_ALL_TEAMS)

    handle = control.start_enrich_all_teams({"limit": 50})

    assert handle["status"] == 409
    assert handle["jobId"] == "enrich-all-teams"
    assert control.status("enrich-all-teams")["isRunning"] is True


def test_status_of_unknown_job(control: JobControl) -> None:
    with pytest.raises(JobNotFound):
        control.status("enrich-team:1")


def test_synchronous_lookups(control: JobControl) -> None:
    team = control.lookup_team(42, with_players=True)
    assert team["team"]["name"] == "Arsenal"
    assert team["fidelity"] == "full"
    assert team["players"] == []

    players = control.search_players(" saka ")
    assert [p["name"] for p in players] == ["Bukayo Saka"]

    seasons = control.league_seasons(17)
    assert seasons == [{"provider_id": "61627", "name": "Premier League 24/25", "label": "2024-2025"}]

    with pytest.raises(ValidationError):
        control.search_players("s")
    with pytest.raises(ValidationError):
        control.matches_by_date("26/10/2024")


def test_lookup_match_saves_on_request(control: JobControl, session_factory) -> None:
    first = control.lookup_match(12345)
    assert first["match"]["home_team"] == "Arsenal"
    assert (first["match"]["home_score"], first["match"]["away_score"]) == (2, 2)
    assert first["saved"] == 0

    assert control.lookup_match("12345", save=True)["saved"] == 1
    with session_factory() as session:
        assert session.execute(select(func.count()).select_from(Match)).scalar_one() == 1
