from __future__ import annotations

from typing import Any

import typer

from pitch_sync.cli.common import build_control, echo_json
from pitch_sync.core.errors import ValidationError
from pitch_sync.jobs.control import JobControl

app = typer.Typer(help="Run ingestion jobs in the foreground and print their final status.")


def _run(start: Any, control: JobControl) -> None:
    try:
        handle = start()
    except ValidationError as e:
        control.shutdown()
        raise typer.BadParameter(str(e)) from e

    try:
        if handle["status"] != 202:
            echo_json(handle)
            raise typer.Exit(code=1)
        status = control.wait(handle["jobId"])
    finally:
        control.shutdown()

    echo_json(status)
    if status["status"] == "failed":
        raise typer.Exit(code=1)


@app.command("enrich-database")
def enrich_database_cmd(
    season: str | None = typer.Option(None, "--season", help="Season as YYYY-YYYY (default: current)."),
    max_teams: int | None = typer.Option(None, "--max-teams", help="Cap on teams enriched."),
    get_players: bool = typer.Option(True, "--players/--no-players", help="Also ingest squads."),
) -> None:
    """Leagues, standings, teams, squads and top scorers for the major competitions."""
    control = build_control()
    params = {"season": season, "max_teams": max_teams, "get_players": get_players}
    _run(lambda: control.start_enrich_database(params), control)


@app.command("enrich-team")
def enrich_team_cmd(
    team_id: str = typer.Argument(..., help="SofaScore team id."),
    get_players: bool = typer.Option(True, "--players/--no-players"),
) -> None:
    """One team, its squad and the squad's transfer history."""
    control = build_control()
    _run(lambda: control.start_enrich_team(team_id, {"get_players": get_players}), control)


@app.command("enrich-all-teams")
def enrich_all_teams_cmd(
    batch_size: int = typer.Option(10, "--batch-size", help="Teams per batch."),
    offset: int = typer.Option(0, "--offset", help="Resume from this offset."),
    max_teams: int | None = typer.Option(None, "--max-teams"),
    get_players: bool = typer.Option(False, "--players/--no-players"),
) -> None:
    """Refresh every stored team that has a SofaScore id, in resumable batches."""
    control = build_control()
    params = {
        "batch_size": batch_size,
        "offset": offset,
        "max_teams": max_teams,
        "get_players": get_players,
    }
    _run(lambda: control.start_enrich_all_teams(params), control)


@app.command("populate-leagues")
def populate_leagues_cmd(
    season: str | None = typer.Option(None, "--season"),
    league_id: list[str] | None = typer.Option(
        None, "--league-id", help="Restrict to these SofaScore tournament ids (repeatable)."
    ),
    matches: bool = typer.Option(
        False, "--matches", help="Also store every played match of the season."
    ),
) -> None:
    """One parallel job per reference competition: league, standings, top scorers."""
    control = build_control()
    params = {"season": season, "matches": matches}
    _run(
        lambda: control.start_populate_leagues(params, league_ids=league_id or None),
        control,
    )


@app.command("season-fixture")
def season_fixture_cmd(
    season: str = typer.Argument(..., help="Season as YYYY-YYYY, e.g. 2024-2025."),
    save: bool = typer.Option(False, "--save", help="Persist every match found."),
) -> None:
    """Crawl a whole season day by day, grouped by competition."""
    control = build_control()
    _run(lambda: control.start_season_fixture(season, {"save": save}), control)
