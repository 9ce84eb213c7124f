from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from sqlalchemy import func, select

from pitch_sync.core.errors import ValidationError
from pitch_sync.db.enums import FidelityEnum, MatchStatusEnum
from pitch_sync.db.models.core.match import Match
from pitch_sync.db.models.core.team import Team
from pitch_sync.ingestion.dates import day_bounds
from pitch_sync.ingestion.providers.sofascore.ingest.matches import (
    fetch_matches_by_date,
    fetch_matches_by_date_range,
)
from pitch_sync.ingestion.providers.sofascore.ingest.season_fixture import (
    crawl_season_fixture,
    month_blocks,
    parse_season,
    season_bounds,
)
from pitch_sync.jobs.pacing import Pacer, PacingPolicy
from pitch_sync.jobs.state import JobKind


def _events_for(day: date, competitions: list[str]) -> dict:
    start_ts, _ = day_bounds(day)
    events = []
    for i, name in enumerate(competitions):
        events.append(
            {
                "id": int(day.strftime("%Y%m%d")) * 10 + i,
                "startTimestamp": start_ts + 3600 * (12 + i),
                "homeTeam": {"id": 100 + i, "name": f"Home {i}"},
                "awayTeam": {"id": 200 + i, "name": f"Away {i}"},
                "status": {"type": "finished"},
                "tournament": {"name": name, "category": {"name": "England"}},
            }
        )
    return {"events": events}


@pytest.mark.parametrize("value", ["2024/2025", "2024-2026", "24-25", "", "2025-2024"])
def test_invalid_seasons_are_rejected(value: str) -> None:
    with pytest.raises(ValidationError):
        parse_season(value)


def test_season_bounds_run_august_to_may() -> None:
    assert parse_season("2024-2025") == (2024, 2025)
    assert season_bounds("2024-2025") == (date(2024, 8, 1), date(2025, 5, 31))


def test_month_blocks_cover_the_season_without_gaps() -> None:
    blocks = month_blocks(date(2024, 8, 1), date(2025, 5, 31))

    assert len(blocks) == 10
    assert blocks[0].start == date(2024, 8, 1)
    assert blocks[0].end == date(2024, 8, 31)
    assert blocks[6].start == date(2025, 2, 1)
    assert blocks[6].end == date(2025, 2, 28)
    assert blocks[-1].end == date(2025, 5, 31)
    for prev, nxt in zip(blocks, blocks[1:]):
        assert (nxt.start - prev.end).days == 1


def test_month_blocks_start_mid_month() -> None:
    blocks = month_blocks(date(2024, 8, 15), date(2024, 9, 10))
    assert [(b.start, b.end) for b in blocks] == [
        (date(2024, 8, 15), date(2024, 8, 31)),
        (date(2024, 9, 1), date(2024, 9, 10)),
    ]


def test_matches_by_date_persists_when_asked(make_client, session) -> None:
    day = date(2024, 10, 26)
    client = make_client(
        {"sport/football/scheduled-events/2024-10-26": _events_for(day, ["Premier League", "LaLiga"])}
    )

    result = fetch_matches_by_date(client, day, session=session, save=True)

    assert result.count == 2
    assert result.saved == 2
    assert result.competitions == ["LaLiga", "Premier League"]
    assert session.execute(select(func.count()).select_from(Match)).scalar_one() == 2
    first = session.execute(select(Match).order_by(Match.id)).scalars().first()
    assert first.start_time.replace(tzinfo=UTC) == datetime(2024, 10, 26, 12, tzinfo=UTC)


def test_degraded_day_only_fills_matches_already_stored(make_client, session) -> None:
    day = date(2024, 10, 26)
    path = "sport/football/scheduled-events/2024-10-26"
    stored = _events_for(day, ["Premier League"])
    fetch_matches_by_date(make_client({path: stored}), day, session=session, save=True)
    known_id = stored["events"][0]["id"]
    midnight, _ = day_bounds(day)

    class DayPage:
        def fetch_page(self, resource):
            return {
                "events": [
                    {
                        "id": known_id,
                        "startTimestamp": midnight,
                        "homeTeam": {"name": "Home 0"},
                        "awayTeam": {"name": "Away 0"},
                    },
                    {
                        "id": 999,
                        "startTimestamp": midnight,
                        "homeTeam": {"name": "Elsewhere"},
                        "awayTeam": {"name": "Nowhere"},
                    },
                ]
            }

        def close(self) -> None:
            pass

    client = make_client({path: 500}, browser=DayPage())
    result = fetch_matches_by_date(client, day, session=session, save=True)

    assert result.fidelity is FidelityEnum.DEGRADED
    assert (result.count, result.saved, result.errors) == (2, 1, [])

    match = session.execute(select(Match)).scalar_one()
    assert match.status is MatchStatusEnum.FINISHED
    assert match.start_time.replace(tzinfo=UTC) == datetime(2024, 10, 26, 12, tzinfo=UTC)
    assert match.home_team.provider_team_id == "100"
    assert match.away_team.provider_team_id == "200"
    assert session.execute(select(func.count()).select_from(Team)).scalar_one() == 2


def test_date_range_is_capped_at_a_month(make_client, pacer) -> None:
    with pytest.raises(ValidationError):
        fetch_matches_by_date_range(
            make_client({}), date(2024, 1, 1), date(2024, 2, 15), pacer=pacer
        )


def test_date_range_keeps_going_past_a_failing_day(make_client, pacer) -> None:
    client = make_client(
        {
            "sport/football/scheduled-events/2024-10-26": _events_for(date(2024, 10, 26), ["A"]),
            "sport/football/scheduled-events/2024-10-28": _events_for(date(2024, 10, 28), ["B"]),
        }
    )

    days = fetch_matches_by_date_range(client, date(2024, 10, 26), date(2024, 10, 28), pacer=pacer)

    assert [d.count for d in days] == [1, 0, 1]
    assert days[1].errors


def test_crawl_aggregates_by_competition_and_reports_progress(
    make_client, registry, monkeypatch
) -> None:
    routes = {
        "sport/football/scheduled-events/2024-08-17": _events_for(
            date(2024, 8, 17), ["Premier League", "Premier League", "LaLiga"]
        ),
        "sport/football/scheduled-events/2024-09-14": _events_for(
            date(2024, 9, 14), ["Premier League"]
        ),
        # a failing day is recorded and skipped
        "sport/football/scheduled-events/2024-10-05": 404,
    }
    client = make_client(routes)
    progress: list[float] = []
    real_set_progress = registry.set_progress

    def spy(job_id: str, percent: float) -> None:
        progress.append(percent)
        real_set_progress(job_id, percent)

    monkeypatch.setattr(registry, "set_progress", spy)
    sleeps: list[float] = []
    pacer = Pacer(policy=PacingPolicy(day_s=2.0, block_s=5.0), _sleep=sleeps.append)
    registry.start("season-fixture:2024-2025", JobKind.SEASON_FIXTURE)

    result = crawl_season_fixture(
        client,
        "2024-2025",
        registry=registry,
        job_id="season-fixture:2024-2025",
        pacer=pacer,
    )

    assert result["start_date"] == "2024-08-01"
    assert result["end_date"] == "2025-05-31"
    assert result["total_matches"] == 4
    assert result["leagues"]["Premier League"]["count"] == 3
    assert len(result["leagues"]["Premier League"]["matches"]) == 3
    assert result["leagues_summary"] == [
        {"name": "Premier League", "count": 3},
        {"name": "LaLiga", "count": 1},
    ]
    # every day of the season was requested, and every unknown day 404s
    assert len(client.requested) == 304
    assert len(result["errors"]) == 304 - 2

    assert progress == [pytest.approx(10.0 * (i + 1)) for i in range(10)]
    assert sleeps.count(5.0) == 9
    assert sleeps.count(2.0) == 304 - 10

    snap = registry.snapshot("season-fixture:2024-2025")
    assert snap["details"]["processed_blocks"] == 10
    assert snap["details"]["total_blocks"] == 10
    assert snap["details"]["total_matches"] == 4
