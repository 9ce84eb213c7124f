from __future__ import annotations

from datetime import date
from enum import Enum
from urllib.parse import quote

from pitch_sync.core.config import settings
from pitch_sync.ingestion.providers.base.types import ResourceDescriptor


class ResourceKind(str, Enum):
    TEAM = "team"
    TEAM_PLAYERS = "team_players"
    PLAYER = "player"
    PLAYER_TRANSFERS = "player_transfers"
    PLAYER_SEARCH = "player_search"
    LEAGUE = "league"
    LEAGUE_SEASONS = "league_seasons"
    STANDINGS = "standings"
    TOP_PLAYERS = "top_players"
    LEAGUE_TAXONOMY = "league_taxonomy"
    SEASON_EVENTS = "season_events"
    SCHEDULED_EVENTS = "scheduled_events"
    EVENT = "event"


def team(team_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.TEAM.value,
        api_path=f"team/{team_id}",
        required_key="team",
        required_type=dict,
        page_path=f"team/football/_/{team_id}",
        wait_selector="h2",
        extractor=ResourceKind.TEAM.value,
    )


def team_players(team_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.TEAM_PLAYERS.value,
        api_path=f"team/{team_id}/players",
        required_key="players",
        required_type=list,
        page_path=f"team/football/_/{team_id}",
        wait_selector="a[href*='/player/']",
        extractor=ResourceKind.TEAM_PLAYERS.value,
    )


def player(player_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.PLAYER.value,
        api_path=f"player/{player_id}",
        required_key="player",
        required_type=dict,
        page_path=f"player/_/{player_id}",
        wait_selector="h2",
        extractor=ResourceKind.PLAYER.value,
    )


def player_transfers(player_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.PLAYER_TRANSFERS.value,
        api_path=f"player/{player_id}/transfer-history",
        required_key="transferHistory",
        required_type=list,
    )


def player_search(query: str) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.PLAYER_SEARCH.value,
        api_path=f"search/players/{quote(query.strip(), safe='')}",
        required_key="players",
        required_type=list,
    )


def league(unique_tournament_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.LEAGUE.value,
        api_path=f"unique-tournament/{unique_tournament_id}",
        required_key="uniqueTournament",
        required_type=dict,
    )


def league_seasons(unique_tournament_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.LEAGUE_SEASONS.value,
        api_path=f"unique-tournament/{unique_tournament_id}/seasons",
        required_key="seasons",
        required_type=list,
    )


def standings(unique_tournament_id: str | int, season_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.STANDINGS.value,
        api_path=f"unique-tournament/{unique_tournament_id}/season/{season_id}/standings/total",
        required_key="standings",
        required_type=list,
    )


def top_players(unique_tournament_id: str | int, season_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.TOP_PLAYERS.value,
        api_path=f"unique-tournament/{unique_tournament_id}/season/{season_id}/top-players/overall",
        required_key="topPlayers",
        required_type=dict,
    )


def league_taxonomy() -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.LEAGUE_TAXONOMY.value,
        api_path="sport/football/unique-tournaments",
        required_key="uniqueTournaments",
        required_type=list,
    )


def season_events(
    unique_tournament_id: str | int, season_id: str | int, page: int = 0
) -> ResourceDescriptor:
    """Finished events of a league season, newest first, one page at a time."""
    return ResourceDescriptor(
        kind=ResourceKind.SEASON_EVENTS.value,
        api_path=f"unique-tournament/{unique_tournament_id}/season/{season_id}/events/last/{page}",
        required_key="events",
        required_type=list,
    )


def scheduled_events(day: date) -> ResourceDescriptor:
    iso = day.isoformat()
    return ResourceDescriptor(
        kind=ResourceKind.SCHEDULED_EVENTS.value,
        api_path=f"sport/football/scheduled-events/{iso}",
        required_key="events",
        required_type=list,
        page_path=f"football/{iso}",
        wait_selector="a[data-id]",
        extractor=ResourceKind.SCHEDULED_EVENTS.value,
    )


def event(event_id: str | int) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.EVENT.value,
        api_path=f"event/{event_id}",
        required_key="event",
        required_type=dict,
    )


def team_image_url(team_id: str | int) -> str:
    return f"{settings.sofascore_image_base_url}/team/{team_id}/image"


def player_image_url(player_id: str | int) -> str:
    return f"{settings.sofascore_image_base_url}/player/{player_id}/image"


def league_image_url(unique_tournament_id: str | int) -> str:
    return f"{settings.sofascore_image_base_url}/unique-tournament/{unique_tournament_id}/image"


def player_page_url(player_id: str | int, slug: str | None = None) -> str:
    return f"{settings.sofascore_web_base_url}/player/{slug or 'player'}/{player_id}"


def event_page_url(event_id: str | int) -> str:
    return f"{settings.sofascore_web_base_url}/event/{event_id}"
