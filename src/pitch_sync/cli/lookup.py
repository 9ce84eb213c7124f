from __future__ import annotations

import typer

from pitch_sync.cli.common import build_control, echo_json
from pitch_sync.core.errors import ValidationError

app = typer.Typer(help="One-off upstream lookups.")


@app.command("team")
def team_cmd(
    team_id: str = typer.Argument(...),
    players: bool = typer.Option(False, "--players", help="Include the squad."),
) -> None:
    control = build_control()
    try:
        echo_json(control.lookup_team(team_id, with_players=players))
    finally:
        control.shutdown()


@app.command("player")
def player_cmd(
    player_id: str = typer.Argument(...),
    transfers: bool = typer.Option(False, "--transfers", help="Include transfer history."),
) -> None:
    control = build_control()
    try:
        echo_json(control.lookup_player(player_id, with_transfers=transfers))
    finally:
        control.shutdown()


@app.command("match")
def match_cmd(
    event_id: str = typer.Argument(..., help="SofaScore event id."),
    save: bool = typer.Option(False, "--save"),
) -> None:
    control = build_control()
    try:
        echo_json(control.lookup_match(event_id, save=save))
    finally:
        control.shutdown()


@app.command("matches-by-date")
def matches_by_date_cmd(
    day: str = typer.Argument(..., help="YYYY-MM-DD"),
    end: str | None = typer.Option(None, "--end", help="Inclusive end date for a range."),
    save: bool = typer.Option(False, "--save"),
) -> None:
    """Scheduled football matches on a day (or range of at most 31 days)."""
    control = build_control()
    try:
        echo_json(control.matches_by_date(day, end=end, save=save))
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e
    finally:
        control.shutdown()


@app.command("search-players")
def search_players_cmd(query: str = typer.Argument(...)) -> None:
    control = build_control()
    try:
        echo_json(control.search_players(query))
    except ValidationError as e:
        raise typer.BadParameter(str(e)) from e
    finally:
        control.shutdown()


@app.command("league-seasons")
def league_seasons_cmd(league_id: str = typer.Argument(..., help="SofaScore tournament id.")) -> None:
    control = build_control()
    try:
        echo_json(control.league_seasons(league_id))
    finally:
        control.shutdown()
