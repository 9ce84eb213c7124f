from __future__ import annotations

import logging

from pitch_sync.core.errors import ValidationError
from pitch_sync.ingestion.providers.base.errors import ProviderNotFound
from pitch_sync.ingestion.providers.sofascore import resources
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.parser import (
    ApiItem,
    ParsedLeague,
    ParsedSeason,
    ParsedStandingRow,
    ParsedTopScorer,
    parse_league,
    parse_seasons,
    parse_standings,
    parse_top_scorers,
)

logger = logging.getLogger(__name__)


def fetch_league(client: SofaScoreClient, league_id: str | int) -> ParsedLeague:
    result = client.fetch(resources.league(league_id))
    return parse_league(result.data)


def fetch_league_seasons(client: SofaScoreClient, league_id: str | int) -> list[ParsedSeason]:
    result = client.fetch(resources.league_seasons(league_id))
    return parse_seasons(result.data)


def pick_season(seasons: list[ParsedSeason], label: str | None = None) -> ParsedSeason:
    """
    Choose the season to ingest: the one labelled `label`, else the most recent.

    Calendar-year competitions label seasons 'YYYY'; for those a 'YYYY-YYYY'
    request matches on its first year.
    """
    if not seasons:
        raise ValidationError("League has no seasons upstream")
    if label is None:
        return seasons[0]
    first_year = label.split("-", 1)[0]
    for season in seasons:
        if season.label == label:
            return season
    for season in seasons:
        if season.label == first_year:
            return season
    raise ValidationError(f"Season {label!r} not available upstream")


def fetch_standings(
    client: SofaScoreClient, league_id: str | int, season_id: str | int
) -> list[ParsedStandingRow]:
    result = client.fetch(resources.standings(league_id, season_id))
    return parse_standings(result.data)


def fetch_top_scorers(
    client: SofaScoreClient, league_id: str | int, season_id: str | int
) -> list[ParsedTopScorer]:
    """Goal leaderboard; competitions without player statistics (404) have none."""
    try:
        result = client.fetch(resources.top_players(league_id, season_id))
    except ProviderNotFound:
        return []
    return parse_top_scorers(result.data)


MAX_EVENT_PAGES = 100


def fetch_season_events(
    client: SofaScoreClient,
    league_id: str | int,
    season_id: str | int,
    *,
    max_pages: int = MAX_EVENT_PAGES,
) -> list[ApiItem]:
    """
    Raw event items for one league season, walking result pages from page 0.

    The walk ends on an empty page, on a page reporting no next page, or on the
    404 upstream answers past the last page.
    """
    events: list[ApiItem] = []
    for page in range(max_pages):
        try:
            result = client.fetch(resources.season_events(league_id, season_id, page))
        except ProviderNotFound:
            break
        items = [e for e in result.data if isinstance(e, dict)]
        if not items:
            break
        events.extend(items)
        if result.payload.get("hasNextPage") is False:
            break
    logger.info("League %s season %s: %d events", league_id, season_id, len(events))
    return events
