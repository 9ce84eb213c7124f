from __future__ import annotations

import logging

from pitch_sync.ingestion.providers.base.errors import ProviderNotFound
from pitch_sync.ingestion.providers.base.types import Fetched
from pitch_sync.ingestion.providers.sofascore import resources
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.parser import (
    ParsedPlayer,
    ParsedTransfer,
    parse_player,
    parse_squad,
    parse_transfers,
)

logger = logging.getLogger(__name__)


def fetch_player(client: SofaScoreClient, player_id: str | int) -> Fetched[ParsedPlayer]:
    result = client.fetch(resources.player(player_id))
    return Fetched(parse_player(result.data), result.fidelity)


def fetch_transfers(client: SofaScoreClient, player_id: str | int) -> list[ParsedTransfer]:
    """Transfer history; players without one upstream (404) have none."""
    try:
        result = client.fetch(resources.player_transfers(player_id))
    except ProviderNotFound:
        logger.info("No transfer history for player %s", player_id)
        return []
    return parse_transfers(result.data)


def search_players(client: SofaScoreClient, query: str) -> list[ParsedPlayer]:
    result = client.fetch(resources.player_search(query))
    return parse_squad(result.data)
