from __future__ import annotations

from pitch_sync.ingestion.providers.base.types import Fetched
from pitch_sync.ingestion.providers.sofascore import resources
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.parser import (
    ParsedPlayer,
    ParsedTeam,
    parse_squad,
    parse_team,
)


def fetch_team(client: SofaScoreClient, team_id: str | int) -> Fetched[ParsedTeam]:
    result = client.fetch(resources.team(team_id))
    return Fetched(parse_team(result.data), result.fidelity)


def fetch_squad(client: SofaScoreClient, team_id: str | int) -> Fetched[list[ParsedPlayer]]:
    result = client.fetch(resources.team_players(team_id))
    return Fetched(parse_squad(result.data), result.fidelity)
