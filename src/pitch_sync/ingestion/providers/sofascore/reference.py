from __future__ import annotations

from dataclasses import dataclass

from pitch_sync.ingestion.providers.sofascore.parser import ParsedCountry, ParsedLeague
from pitch_sync.ingestion.providers.sofascore.resources import league_image_url


@dataclass(frozen=True)
class ReferenceCompetition:
    name: str
    provider_id: int
    country: str
    country_code: str | None
    tier: int | None = None


# Major competitions known to exist upstream. Used when the taxonomy endpoint is down.
COMPETITIONS: tuple[ReferenceCompetition, ...] = (
    ReferenceCompetition("Premier League", 17, "England", "EN", 1),
    ReferenceCompetition("LaLiga", 8, "Spain", "ES", 1),
    ReferenceCompetition("Bundesliga", 35, "Germany", "DE", 1),
    ReferenceCompetition("Serie A", 23, "Italy", "IT", 1),
    ReferenceCompetition("Ligue 1", 34, "France", "FR", 1),
    ReferenceCompetition("Trendyol Süper Lig", 52, "Turkey", "TR", 1),
    ReferenceCompetition("Liga Profesional de Fútbol", 155, "Argentina", "AR", 1),
    ReferenceCompetition("Copa de la Liga Profesional", 13475, "Argentina", "AR", None),
    ReferenceCompetition("Liga 1", 406, "Peru", "PE", 1),
    ReferenceCompetition("MLS", 242, "USA", "US", 1),
    ReferenceCompetition("Saudi Pro League", 955, "Saudi Arabia", "SA", 1),
    ReferenceCompetition("UEFA Champions League", 7, "Europe", None),
    ReferenceCompetition("UEFA Europa League", 679, "Europe", None),
    ReferenceCompetition("UEFA Europa Conference League", 17015, "Europe", None),
    ReferenceCompetition("CONMEBOL Libertadores", 384, "South America", None),
    ReferenceCompetition("FIFA World Cup", 16, "World", None),
    ReferenceCompetition("EURO", 1, "Europe", None),
    ReferenceCompetition("Gold Cup", 140, "North & Central America", None),
    ReferenceCompetition("FIFA Women's World Cup", 290, "World", None),
)


def reference_leagues() -> list[ParsedLeague]:
    return [
        ParsedLeague(
            name=c.name,
            provider_id=str(c.provider_id),
            country=ParsedCountry(name=c.country, code=c.country_code),
            category=c.country,
            logo_url=league_image_url(c.provider_id),
            tier=c.tier,
        )
        for c in COMPETITIONS
    ]


def find_competition(name_or_id: str) -> ReferenceCompetition | None:
    """Look up a reference competition by provider id or (case-insensitive) name."""
    key = name_or_id.strip().lower()
    for c in COMPETITIONS:
        if key == str(c.provider_id) or key == c.name.lower():
            return c
    return None
