from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from sqlalchemy.orm import Session

from pitch_sync.core.errors import ValidationError
from pitch_sync.ingestion.dates import iter_days
from pitch_sync.ingestion.providers.base.errors import ProviderError
from pitch_sync.ingestion.providers.sofascore.client import SofaScoreClient
from pitch_sync.ingestion.providers.sofascore.ingest.matches import fetch_matches_by_date
from pitch_sync.jobs.pacing import Pacer
from pitch_sync.jobs.registry import JobRegistry

logger = logging.getLogger(__name__)

_SEASON_RE = re.compile(r"^(\d{4})-(\d{4})$")

SEASON_START_MONTH, SEASON_START_DAY = 8, 1
SEASON_END_MONTH, SEASON_END_DAY = 5, 31


@dataclass(frozen=True)
class MonthBlock:
    start: date
    end: date

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


def parse_season(value: str) -> tuple[int, int]:
    """Validate 'YYYY-YYYY' with consecutive years."""
    m = _SEASON_RE.match(value.strip()) if isinstance(value, str) else None
    if m is None:
        raise ValidationError(f"Invalid season {value!r}; expected YYYY-YYYY")
    first, second = int(m.group(1)), int(m.group(2))
    if second != first + 1:
        raise ValidationError(f"Invalid season {value!r}; years must be consecutive")
    return first, second


def season_bounds(season: str) -> tuple[date, date]:
    """August 1 of the first year to May 31 of the second."""
    first, second = parse_season(season)
    return (
        date(first, SEASON_START_MONTH, SEASON_START_DAY),
        date(second, SEASON_END_MONTH, SEASON_END_DAY),
    )


def _next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def month_blocks(start: date, end: date) -> list[MonthBlock]:
    """
    Split [start, end] into calendar-month blocks.

    Each block ends the day before the next one starts; the last ends at `end`.
    """
    if end < start:
        return []
    blocks: list[MonthBlock] = []
    block_start = start
    while block_start <= end:
        block_end = min(_next_month(block_start) - timedelta(days=1), end)
        blocks.append(MonthBlock(block_start, block_end))
        block_start = block_end + timedelta(days=1)
    return blocks


def crawl_season_fixture(
    client: SofaScoreClient,
    season: str,
    *,
    registry: JobRegistry,
    job_id: str,
    pacer: Pacer,
    session: Session | None = None,
    save: bool = False,
) -> dict[str, Any]:
    """
    Fetch every match of a season day by day, grouped by competition.

    Progress goes to `job_id` after each block. A failing day or block is
    recorded as an error and the crawl moves on.
    """
    start, end = season_bounds(season)
    blocks = month_blocks(start, end)
    registry.update_details(
        job_id,
        {"season": season, "processed_blocks": 0, "total_blocks": len(blocks), "total_matches": 0},
    )

    leagues: dict[str, dict[str, Any]] = {}
    errors: list[str] = []
    total_matches = 0

    for index, block in enumerate(blocks):
        registry.set_current_item(job_id, block.label)
        try:
            for day_index, day in enumerate(iter_days(block.start, block.end)):
                if day_index > 0:
                    pacer.between_days()
                try:
                    day_matches = fetch_matches_by_date(client, day, session=session, save=save)
                except ProviderError as e:
                    message = f"{day.isoformat()}: {type(e).__name__}: {e}"
                    logger.warning("Season %s: %s", season, message)
                    errors.append(message)
                    registry.record_error(job_id, None, message)
                    continue

                for err in day_matches.errors:
                    errors.append(err)
                    registry.record_error(job_id, None, err)

                for match in day_matches.matches:
                    name = match.competition or "Unknown Competition"
                    entry = leagues.setdefault(name, {"name": name, "count": 0, "matches": []})
                    entry["matches"].append(match.to_summary())
                    entry["count"] += 1
                total_matches += day_matches.count
        except Exception as e:
            message = f"block {block.label}: {type(e).__name__}: {e}"
            logger.warning("Season %s: %s", season, message)
            errors.append(message)
            registry.record_error(job_id, None, message)

        registry.update_details(
            job_id, {"processed_blocks": index + 1, "total_matches": total_matches}
        )
        registry.set_progress(job_id, (index + 1) / len(blocks) * 100.0)

        if index < len(blocks) - 1:
            pacer.between_blocks()

    summary = sorted(
        ({"name": v["name"], "count": v["count"]} for v in leagues.values()),
        key=lambda x: (-x["count"], x["name"]),
    )
    return {
        "season": season,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "leagues": leagues,
        "leagues_summary": summary,
        "total_matches": total_matches,
        "errors": errors,
    }
