from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterator

from ..core.exceptions import ValidationError


def parse_iso_date(value: str | date | datetime) -> date:
    """Parse YYYY-MM-DD (or a longer ISO timestamp) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = (value or "").strip()
    if len(text) > 10:
        text = text.split("T")[0]
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def group_days_by_month(start: date, end: date) -> dict[tuple[int, int], list[date]]:
    groups: dict[tuple[int, int], list[date]] = {}
    for day in iter_days(start, end):
        groups.setdefault((day.year, day.month), []).append(day)
    return groups


def inclusive_day_count(start: date, end: date) -> int:
    return (end - start).days + 1
