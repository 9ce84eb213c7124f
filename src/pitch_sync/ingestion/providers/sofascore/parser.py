from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from pitch_sync.core.text import clean_name
from pitch_sync.db.enums import MatchStatusEnum, PositionCategoryEnum
from pitch_sync.ingestion.dates import timestamp_to_date, timestamp_to_datetime
from pitch_sync.ingestion.providers.base.errors import ProviderParseError
from pitch_sync.ingestion.providers.sofascore import resources

ApiItem = dict[str, Any]

_STATUS_MAP: dict[str, MatchStatusEnum] = {
    "finished": MatchStatusEnum.FINISHED,
    "notstarted": MatchStatusEnum.SCHEDULED,
    "inprogress": MatchStatusEnum.IN_PROGRESS,
    "interrupted": MatchStatusEnum.INTERRUPTED,
    "canceled": MatchStatusEnum.CANCELED,
    "postponed": MatchStatusEnum.POSTPONED,
}

_POSITION_MAP: dict[str, PositionCategoryEnum] = {
    "G": PositionCategoryEnum.GOALKEEPER,
    "D": PositionCategoryEnum.DEFENDER,
    "M": PositionCategoryEnum.MIDFIELDER,
    "F": PositionCategoryEnum.FORWARD,
}

_DEFENDER_CODES = ("CB", "LB", "RB", "WB", "DEFENDER")
_MIDFIELDER_CODES = ("CM", "CDM", "CAM", "LM", "RM", "MIDFIELDER")
_FORWARD_CODES = ("ST", "CF", "LW", "RW", "FORWARD")


# ---------- field helpers ----------


def _id(value: Any) -> str | None:
    if isinstance(value, bool) or value in (None, ""):
        return None
    if isinstance(value, (int, str)):
        return str(value)
    return None


def _str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    v = clean_name(value)
    return v or None


def _int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _dict(value: Any) -> ApiItem | None:
    return value if isinstance(value, dict) else None


def _require_name(item: ApiItem, what: str) -> str:
    name = _str(item.get("name"))
    if name is None:
        raise ProviderParseError(f"{what} without a name", context={"item_id": item.get("id")})
    return name


def map_match_status(status_type: Any) -> MatchStatusEnum:
    if not isinstance(status_type, str) or not status_type:
        return MatchStatusEnum.SCHEDULED
    return _STATUS_MAP.get(status_type.lower(), MatchStatusEnum.UNKNOWN)


def map_position_category(position: Any) -> PositionCategoryEnum:
    if not isinstance(position, str) or not position.strip():
        return PositionCategoryEnum.UNKNOWN

    pos = position.strip().upper()
    if pos in _POSITION_MAP:
        return _POSITION_MAP[pos]
    if "GK" in pos or "GOALKEEPER" in pos:
        return PositionCategoryEnum.GOALKEEPER
    if any(code in pos for code in _DEFENDER_CODES):
        return PositionCategoryEnum.DEFENDER
    if any(code in pos for code in _MIDFIELDER_CODES):
        return PositionCategoryEnum.MIDFIELDER
    if any(code in pos for code in _FORWARD_CODES):
        return PositionCategoryEnum.FORWARD
    return PositionCategoryEnum.UNKNOWN


def season_label(year: str | None) -> str | None:
    """
    Normalize upstream season years onto 'YYYY-YYYY' (or 'YYYY').

    '24/25' -> '2024-2025', '2024/2025' -> '2024-2025', '2024' -> '2024'.
    """
    if not year:
        return None
    parts = [p.strip() for p in year.replace("-", "/").split("/") if p.strip()]
    if not parts or not all(p.isdigit() for p in parts):
        return None

    def expand(p: str) -> str:
        return f"20{p}" if len(p) == 2 else p

    if len(parts) == 1:
        return expand(parts[0])
    return f"{expand(parts[0])}-{expand(parts[1])}"


# ---------- parsed records ----------


@dataclass(frozen=True)
class ParsedCountry:
    name: str
    provider_id: str | None = None
    code: str | None = None
    code3: str | None = None
    flag: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "provider_country_id": self.provider_id,
            "name": self.name,
            "code": self.code,
            "code3": self.code3,
            "flag": self.flag,
        }


@dataclass(frozen=True)
class ParsedSeason:
    provider_id: str
    name: str | None
    label: str | None


@dataclass(frozen=True)
class ParsedLeague:
    name: str
    provider_id: str | None = None
    slug: str | None = None
    country: ParsedCountry | None = None
    category: str | None = None
    logo_url: str | None = None
    tier: int | None = None
    primary_color: str | None = None
    secondary_color: str | None = None
    has_standings: bool | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "provider_league_id": self.provider_id,
            "name": self.name,
            "slug": self.slug,
            "category": self.category,
            "logo_url": self.logo_url,
            "tier": self.tier,
            "primary_color": self.primary_color,
            "secondary_color": self.secondary_color,
            "has_standings": self.has_standings,
        }


@dataclass(frozen=True)
class ParsedTeam:
    name: str
    provider_id: str | None = None
    short_name: str | None = None
    slug: str | None = None
    country: ParsedCountry | None = None
    logo_url: str | None = None
    city: str | None = None
    stadium: str | None = None
    stadium_capacity: int | None = None
    founded: int | None = None
    manager: str | None = None
    primary_color: str | None = None
    secondary_color: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "provider_team_id": self.provider_id,
            "name": self.name,
            "short_name": self.short_name,
            "slug": self.slug,
            "logo_url": self.logo_url,
            "city": self.city,
            "stadium": self.stadium,
            "stadium_capacity": self.stadium_capacity,
            "founded": self.founded,
            "manager": self.manager,
            "primary_color": self.primary_color,
            "secondary_color": self.secondary_color,
        }


@dataclass(frozen=True)
class ParsedPlayer:
    name: str
    provider_id: str | None = None
    full_name: str | None = None
    short_name: str | None = None
    slug: str | None = None
    position: str | None = None
    position_category: PositionCategoryEnum = PositionCategoryEnum.UNKNOWN
    shirt_number: int | None = None
    nationality: ParsedCountry | None = None
    birth_date: date | None = None
    birth_place: str | None = None
    height: int | None = None
    weight: int | None = None
    foot: str | None = None
    photo_url: str | None = None
    provider_url: str | None = None
    market_value: int | None = None
    contract_until: date | None = None
    team: ParsedTeam | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "provider_player_id": self.provider_id,
            "name": self.name,
            "full_name": self.full_name,
            "short_name": self.short_name,
            "slug": self.slug,
            "position": self.position,
            "position_category": (
                None
                if self.position_category is PositionCategoryEnum.UNKNOWN
                else self.position_category.value
            ),
            "shirt_number": self.shirt_number,
            "nationality": self.nationality.name if self.nationality else None,
            "birth_date": self.birth_date,
            "birth_place": self.birth_place,
            "height": self.height,
            "weight": self.weight,
            "foot": self.foot,
            "photo_url": self.photo_url,
            "provider_url": self.provider_url,
            "market_value": self.market_value,
            "contract_until": self.contract_until,
        }


@dataclass(frozen=True)
class ParsedMatch:
    provider_id: str
    start_time: datetime
    home: ParsedTeam
    away: ParsedTeam
    status: MatchStatusEnum = MatchStatusEnum.SCHEDULED
    round: int | None = None
    home_score: int | None = None
    away_score: int | None = None
    competition: str | None = None
    country: str | None = None
    league: ParsedLeague | None = None
    season: str | None = None
    venue: str | None = None
    provider_url: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "provider_match_id": self.provider_id,
            "start_time": self.start_time,
            "status": self.status,
            "round": self.round,
            "season": self.season,
            "competition": self.competition,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "venue": self.venue,
            "provider_url": self.provider_url,
        }

    def to_summary(self) -> dict[str, Any]:
        return {
            "id": self.provider_id,
            "home_team": self.home.name,
            "home_team_id": self.home.provider_id,
            "away_team": self.away.name,
            "away_team_id": self.away.provider_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "date": self.start_time.date().isoformat(),
            "datetime": self.start_time.isoformat(),
            "competition": self.competition,
            "country": self.country,
            "status": self.status.value,
            "round": self.round,
            "url": self.provider_url,
        }


@dataclass(frozen=True)
class ParsedStandingRow:
    team: ParsedTeam
    group_name: str | None = None
    position: int | None = None
    played: int | None = None
    won: int | None = None
    drawn: int | None = None
    lost: int | None = None
    goals_for: int | None = None
    goals_against: int | None = None
    points: int | None = None
    description: str | None = None

    def to_fields(self) -> dict[str, Any]:
        goal_difference = None
        if self.goals_for is not None and self.goals_against is not None:
            goal_difference = self.goals_for - self.goals_against
        return {
            "group_name": self.group_name,
            "position": self.position,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": goal_difference,
            "points": self.points,
            "description": self.description,
        }


@dataclass(frozen=True)
class ParsedTopScorer:
    player: ParsedPlayer
    team: ParsedTeam | None = None
    rank: int | None = None
    goals: int | None = None
    assists: int | None = None
    matches: int | None = None
    minutes_played: int | None = None
    penalty_goals: int | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "goals": self.goals,
            "assists": self.assists,
            "matches": self.matches,
            "minutes_played": self.minutes_played,
            "penalty_goals": self.penalty_goals,
        }


@dataclass(frozen=True)
class ParsedTransfer:
    to_team: ParsedTeam
    provider_id: str | None = None
    from_team: ParsedTeam | None = None
    transfer_date: date | None = None
    type: str | None = None
    fee: int | None = None
    currency: str | None = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "provider_transfer_id": self.provider_id,
            "transfer_date": self.transfer_date,
            "type": self.type,
            "fee": self.fee,
            "currency": self.currency,
        }


# ---------- parse functions ----------


def parse_country(item: Any) -> ParsedCountry | None:
    """Parse a provider category/country object; None when absent or nameless."""
    item = _dict(item)
    if item is None:
        return None
    name = _str(item.get("name"))
    if name is None:
        return None
    return ParsedCountry(
        name=name,
        provider_id=_id(item.get("id")),
        code=_str(item.get("alpha2")),
        code3=_str(item.get("alpha3")),
        flag=_str(item.get("flag")),
    )


def parse_league(item: ApiItem, *, tier: int | None = None) -> ParsedLeague:
    name = _require_name(item, "league")
    provider_id = _id(item.get("id"))
    category = _dict(item.get("category")) or {}
    colors = _dict(item.get("teamColors")) or {}
    return ParsedLeague(
        name=name,
        provider_id=provider_id,
        slug=_str(item.get("slug")),
        country=parse_country(category),
        category=_str(category.get("name")),
        logo_url=resources.league_image_url(provider_id) if provider_id else None,
        tier=tier if tier is not None else _int(item.get("tier")),
        primary_color=_str(item.get("primaryColorHex")) or _str(colors.get("primary")),
        secondary_color=_str(item.get("secondaryColorHex")) or _str(colors.get("secondary")),
        has_standings=(
            item.get("hasStandingsGroups")
            if isinstance(item.get("hasStandingsGroups"), bool)
            else None
        ),
    )


def parse_season(item: ApiItem) -> ParsedSeason:
    provider_id = _id(item.get("id"))
    if provider_id is None:
        raise ProviderParseError("season without an id", context={"item": item})
    year = _str(item.get("year"))
    return ParsedSeason(provider_id=provider_id, name=_str(item.get("name")), label=season_label(year))


def parse_seasons(items: list[Any]) -> list[ParsedSeason]:
    """Seasons in upstream order (most recent first)."""
    return [parse_season(i) for i in items if isinstance(i, dict)]


def parse_team(item: ApiItem) -> ParsedTeam:
    name = _require_name(item, "team")
    provider_id = _id(item.get("id"))
    venue = _dict(item.get("venue")) or {}
    stadium = _dict(venue.get("stadium")) or {}
    city = _dict(venue.get("city")) or {}
    manager = _dict(item.get("manager")) or {}
    colors = _dict(item.get("teamColors")) or {}
    founded = timestamp_to_date(item.get("foundationDateTimestamp"))
    return ParsedTeam(
        name=name,
        provider_id=provider_id,
        short_name=_str(item.get("shortName")),
        slug=_str(item.get("slug")),
        country=parse_country(item.get("country")) or parse_country(item.get("category")),
        logo_url=resources.team_image_url(provider_id) if provider_id else None,
        city=_str(city.get("name")),
        stadium=_str(stadium.get("name")) or _str(venue.get("name")),
        stadium_capacity=_int(stadium.get("capacity")) or _int(venue.get("capacity")),
        founded=founded.year if founded else None,
        manager=_str(manager.get("name")),
        primary_color=_str(colors.get("primary")),
        secondary_color=_str(colors.get("secondary")),
    )


def parse_player(item: ApiItem, *, shirt_number: int | None = None) -> ParsedPlayer:
    name = _require_name(item, "player")
    provider_id = _id(item.get("id"))
    slug = _str(item.get("slug"))
    position = _str(item.get("position"))
    team_item = _dict(item.get("team"))
    birth_area = _dict(item.get("birthArea")) or {}
    market_value = _dict(item.get("proposedMarketValueRaw")) or {}
    return ParsedPlayer(
        name=name,
        provider_id=provider_id,
        full_name=_str(item.get("fullName")),
        short_name=_str(item.get("shortName")),
        slug=slug,
        position=position,
        position_category=map_position_category(position),
        shirt_number=(
            shirt_number
            if shirt_number is not None
            else _int(item.get("jerseyNumber")) or _int(item.get("shirtNumber"))
        ),
        nationality=parse_country(item.get("country")),
        birth_date=timestamp_to_date(item.get("dateOfBirthTimestamp")),
        birth_place=_str(birth_area.get("name")),
        height=_int(item.get("height")),
        weight=_int(item.get("weight")),
        foot=_str(item.get("preferredFoot")),
        photo_url=resources.player_image_url(provider_id) if provider_id else None,
        provider_url=resources.player_page_url(provider_id, slug) if provider_id else None,
        market_value=_int(market_value.get("value")) or _int(item.get("proposedMarketValue")),
        contract_until=timestamp_to_date(item.get("contractUntilTimestamp")),
        team=parse_team(team_item) if team_item and _str(team_item.get("name")) else None,
    )


def parse_squad(items: list[Any]) -> list[ParsedPlayer]:
    """
    Parse a team players payload.

    Entries are either {"player": {...}, "jerseyNumber": ...} or bare player objects.
    Nameless entries are skipped.
    """
    parsed: list[ParsedPlayer] = []
    for entry in items:
        entry = _dict(entry)
        if entry is None:
            continue
        player_item = _dict(entry.get("player")) or entry
        if _str(player_item.get("name")) is None:
            continue
        parsed.append(parse_player(player_item, shirt_number=_int(entry.get("jerseyNumber"))))
    return parsed


def parse_match(item: ApiItem) -> ParsedMatch:
    provider_id = _id(item.get("id"))
    start_time = timestamp_to_datetime(item.get("startTimestamp"))
    home_item = _dict(item.get("homeTeam"))
    away_item = _dict(item.get("awayTeam"))
    if provider_id is None or start_time is None or home_item is None or away_item is None:
        raise ProviderParseError(
            "event missing id, startTimestamp or teams", context={"item_id": item.get("id")}
        )

    tournament = _dict(item.get("tournament")) or {}
    category = _dict(tournament.get("category")) or {}
    unique_tournament = _dict(tournament.get("uniqueTournament"))
    league = None
    if unique_tournament is not None and _str(unique_tournament.get("name")):
        if "category" not in unique_tournament and category:
            unique_tournament = {**unique_tournament, "category": category}
        league = parse_league(unique_tournament)

    season = _dict(item.get("season")) or {}
    home_score = _dict(item.get("homeScore")) or {}
    away_score = _dict(item.get("awayScore")) or {}
    status = _dict(item.get("status")) or {}
    round_info = _dict(item.get("roundInfo")) or {}
    venue = _dict(item.get("venue")) or {}
    stadium = _dict(venue.get("stadium")) or {}

    return ParsedMatch(
        provider_id=provider_id,
        start_time=start_time,
        home=parse_team(home_item),
        away=parse_team(away_item),
        status=map_match_status(status.get("type")),
        round=_int(round_info.get("round")),
        home_score=_int(home_score.get("current")),
        away_score=_int(away_score.get("current")),
        competition=_str(tournament.get("name")) or (league.name if league else None),
        country=_str(category.get("name")),
        league=league,
        season=season_label(_str(season.get("year"))),
        venue=_str(stadium.get("name")) or _str(venue.get("name")),
        provider_url=resources.event_page_url(provider_id),
    )


def parse_events_for_day(items: list[Any], *, start_ts: int, end_ts: int) -> list[ParsedMatch]:
    """
    Parse scheduled events, keeping only those starting inside [start_ts, end_ts).

    Upstream returns neighbouring days' events for timezone reasons, so the
    filter is applied here.
    """
    parsed: list[ParsedMatch] = []
    for entry in items:
        entry = _dict(entry)
        if entry is None:
            continue
        ts = entry.get("startTimestamp")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            continue
        if not start_ts <= ts < end_ts:
            continue
        parsed.append(parse_match(entry))
    return parsed


def parse_standings(items: list[Any]) -> list[ParsedStandingRow]:
    rows: list[ParsedStandingRow] = []
    for table in items:
        table = _dict(table)
        if table is None:
            continue
        group_name = _str(table.get("name"))
        for row in table.get("rows") or []:
            row = _dict(row)
            if row is None:
                continue
            team_item = _dict(row.get("team"))
            if team_item is None:
                raise ProviderParseError("standing row without a team", context={"row": row})
            promotion = _dict(row.get("promotion")) or {}
            rows.append(
                ParsedStandingRow(
                    team=parse_team(team_item),
                    group_name=group_name,
                    position=_int(row.get("position")),
                    played=_int(row.get("matches")),
                    won=_int(row.get("wins")),
                    drawn=_int(row.get("draws")),
                    lost=_int(row.get("losses")),
                    goals_for=_int(row.get("scoresFor")),
                    goals_against=_int(row.get("scoresAgainst")),
                    points=_int(row.get("points")),
                    description=_str(promotion.get("text")),
                )
            )
    return rows


def parse_top_scorers(top_players: ApiItem) -> list[ParsedTopScorer]:
    """Parse the 'goals' leaderboard of a top-players payload; rank is list order."""
    entries = top_players.get("goals")
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ProviderParseError(
            f"Expected 'goals' list, got {type(entries).__name__}", context={"key": "goals"}
        )

    parsed: list[ParsedTopScorer] = []
    for rank, entry in enumerate(entries, start=1):
        entry = _dict(entry)
        if entry is None:
            continue
        player_item = _dict(entry.get("player"))
        if player_item is None:
            continue
        team_item = _dict(entry.get("team"))
        stats = _dict(entry.get("statistics")) or {}
        parsed.append(
            ParsedTopScorer(
                player=parse_player(player_item),
                team=parse_team(team_item) if team_item else None,
                rank=rank,
                goals=_int(stats.get("goals")),
                assists=_int(stats.get("assists")),
                matches=_int(stats.get("appearances")),
                minutes_played=_int(stats.get("minutesPlayed")),
                penalty_goals=_int(stats.get("penaltyGoals")),
            )
        )
    return parsed


def parse_transfers(items: list[Any]) -> list[ParsedTransfer]:
    """Transfers with a destination team; entries without one are skipped."""
    parsed: list[ParsedTransfer] = []
    for entry in items:
        entry = _dict(entry)
        if entry is None:
            continue
        to_item = _dict(entry.get("transferTo"))
        if to_item is None or _str(to_item.get("name")) is None:
            continue
        from_item = _dict(entry.get("transferFrom"))
        fee = _dict(entry.get("transferFeeRaw")) or {}
        type_value = entry.get("type")
        parsed.append(
            ParsedTransfer(
                provider_id=_id(entry.get("id")),
                to_team=parse_team(to_item),
                from_team=(
                    parse_team(from_item) if from_item and _str(from_item.get("name")) else None
                ),
                transfer_date=timestamp_to_date(entry.get("transferDateTimestamp")),
                type=str(type_value) if type_value is not None else None,
                fee=_int(fee.get("value")),
                currency=_str(fee.get("currency")),
            )
        )
    return parsed


def parse_league_taxonomy(items: list[Any]) -> list[ParsedLeague]:
    leagues: list[ParsedLeague] = []
    for entry in items:
        entry = _dict(entry)
        if entry is None or _str(entry.get("name")) is None:
            continue
        leagues.append(parse_league(entry))
    return leagues
