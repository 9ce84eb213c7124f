from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from pitch_sync.ingestion.providers.base.errors import ProviderError
from pitch_sync.ingestion.providers.sofascore import resources
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.parser import ParsedLeague, parse_league_taxonomy
from pitch_sync.ingestion.providers.sofascore.reference import reference_leagues

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeagueListing:
    leagues: list[ParsedLeague]
    from_reference: bool


@dataclass
class LeagueCatalog:
    """
    Upstream league taxonomy with a fixed reference table behind it.

    Reference competitions carry tiers, so they are merged into the upstream
    listing; if the taxonomy endpoint fails the reference table is used alone.
    """

    client: SofaScoreClient

    def leagues(self) -> LeagueListing:
        reference = reference_leagues()
        try:
            result = self.client.fetch(resources.league_taxonomy())
            upstream = parse_league_taxonomy(result.data)
        except ProviderError as e:
            logger.warning("League taxonomy unavailable, using reference table: %s", e)
            return LeagueListing(leagues=reference, from_reference=True)

        by_id = {league.provider_id: league for league in reference}
        merged: list[ParsedLeague] = []
        seen: set[str | None] = set()
        for league in upstream:
            ref = by_id.get(league.provider_id)
            if ref is not None and league.tier is None:
                league = replace(league, tier=ref.tier)
            merged.append(league)
            seen.add(league.provider_id)
        merged.extend(ref for ref in reference if ref.provider_id not in seen)
        return LeagueListing(leagues=merged, from_reference=False)
