from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, date, datetime, timedelta
from typing import Any

from pitch_sync.core.errors import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse a caller-supplied 'YYYY-MM-DD' string, rejecting anything else."""
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise ValidationError(f"Invalid date {value!r}; expected YYYY-MM-DD") from e


def timestamp_to_datetime(value: Any) -> datetime | None:
    """
    Parse a provider epoch-seconds timestamp into a tz-aware UTC datetime.

    Returns None for missing/non-numeric values; booleans are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value, tz=UTC)


def timestamp_to_date(value: Any) -> date | None:
    dt = timestamp_to_datetime(value)
    return dt.date() if dt is not None else None


def day_bounds(day: date) -> tuple[int, int]:
    """Epoch-second half-open interval [start, end) covering `day` in UTC."""
    start = datetime(day.year, day.month, day.day, tzinfo=UTC)
    end = start + timedelta(days=1)
    return int(start.timestamp()), int(end.timestamp())


def iter_days(start: date, end: date) -> Iterator[date]:
    """Inclusive day range."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
