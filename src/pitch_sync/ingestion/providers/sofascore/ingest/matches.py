from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy.orm import Session

from pitch_sync.core.errors import PitchSyncError, ValidationError
from pitch_sync.db.engine import unit_of_work
from pitch_sync.db.enums import FidelityEnum
from pitch_sync.ingestion.dates import day_bounds, iter_days
from pitch_sync.ingestion.providers.base.errors import ProviderError
from pitch_sync.ingestion.providers.base.types import Fetched
from pitch_sync.ingestion.providers.sofascore import resources
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.parser import (
    ParsedMatch,
    parse_events_for_day,
    parse_match,
)
from pitch_sync.jobs.pacing import Pacer
from pitch_sync.resolve.resolver import EntityResolver

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 31


@dataclass(frozen=True)
class DayMatches:
    day: date
    matches: list[ParsedMatch]
    fidelity: FidelityEnum = FidelityEnum.FULL
    saved: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.matches)

    @property
    def competitions(self) -> list[str]:
        return sorted({m.competition for m in self.matches if m.competition})

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "count": self.count,
            "competitions": self.competitions,
            "matches": [m.to_summary() for m in self.matches],
            "fidelity": self.fidelity.value,
            "saved": self.saved,
            "errors": list(self.errors),
        }


def save_matches(
    session: Session, matches: list[ParsedMatch], *, degraded: bool = False
) -> tuple[int, list[str]]:
    """
    Upsert matches one unit of work each.

    Returns (saved, errors); a match that cannot be stored does not stop the rest.
    Degraded matches only fill gaps in matches already stored, so unknown ones
    are neither saved nor errors.
    """
    resolver = EntityResolver(session)
    seen_at = datetime.now(tz=UTC)
    saved = 0
    errors: list[str] = []
    for match in matches:
        try:
            with unit_of_work(session):
                result = resolver.upsert_match(match, seen_at=seen_at, degraded=degraded)
        except PitchSyncError as e:
            logger.warning("Could not store match %s: %s", match.provider_id, e)
            errors.append(f"match {match.provider_id}: {type(e).__name__}: {e}")
            continue
        if result is not None:
            saved += 1
    return saved, errors


def fetch_matches_by_date(
    client: SofaScoreClient,
    day: date,
    *,
    session: Session | None = None,
    save: bool = False,
) -> DayMatches:
    """Scheduled football events starting on `day` (UTC), optionally persisted."""
    if save and session is None:
        raise ValueError("save=True needs a session")

    result = client.fetch(resources.scheduled_events(day))
    start_ts, end_ts = day_bounds(day)
    matches = parse_events_for_day(result.data, start_ts=start_ts, end_ts=end_ts)
    logger.info("Found %d matches on %s", len(matches), day.isoformat())

    saved, errors = 0, []
    if save and session is not None:
        saved, errors = save_matches(session, matches, degraded=result.degraded)

    return DayMatches(
        day=day, matches=matches, fidelity=result.fidelity, saved=saved, errors=errors
    )


def fetch_matches_by_date_range(
    client: SofaScoreClient,
    start: date,
    end: date,
    *,
    pacer: Pacer,
    session: Session | None = None,
    save: bool = False,
) -> list[DayMatches]:
    """
    Day-by-day retrieval over an inclusive range of at most MAX_RANGE_DAYS days.

    A day that cannot be fetched yields an empty entry carrying the error.
    """
    if end < start:
        raise ValidationError("End date is before start date")
    if (end - start).days + 1 > MAX_RANGE_DAYS:
        raise ValidationError(f"Date range longer than {MAX_RANGE_DAYS} days")

    days: list[DayMatches] = []
    for index, day in enumerate(iter_days(start, end)):
        if index > 0:
            pacer.between_days()
        try:
            days.append(fetch_matches_by_date(client, day, session=session, save=save))
        except ProviderError as e:
            logger.warning("Matches for %s unavailable: %s", day.isoformat(), e)
            days.append(DayMatches(day=day, matches=[], errors=[f"{day.isoformat()}: {e}"]))
    return days


def fetch_match(
    client: SofaScoreClient,
    event_id: str | int,
    *,
    session: Session | None = None,
    save: bool = False,
) -> tuple[Fetched[ParsedMatch], int]:
    """A single event by id; returns the parsed match and how many rows were saved."""
    if save and session is None:
        raise ValueError("save=True needs a session")

    result = client.fetch(resources.event(event_id))
    match = parse_match(result.data)
    saved = 0
    if save and session is not None:
        saved, errors = save_matches(session, [match], degraded=result.degraded)
        if errors:
            logger.warning("Match %s not stored: %s", event_id, errors[0])
    return Fetched(match, result.fidelity), saved
