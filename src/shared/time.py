from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown analytics timezone: {name!r}") from exc


def calendar_day(value: datetime, tz: tzinfo) -> date:
    return value.astimezone(tz).date()


def trailing_days(reference_date: date, days: int) -> List[date]:
    """Consecutive calendar days ending at ``reference_date``, oldest first."""
    start = reference_date - timedelta(days=days - 1)
    return [start + timedelta(days=offset) for offset in range(days)]
