from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Any

from ..core.exceptions import ValidationError


def parse_iso_date(value: Any, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a calendar date.

    The time-of-day part is dropped so the same day always maps to the same key.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) < 10:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
