"""
Shared helpers for entity (de)serialization.
"""
import math
from datetime import date, datetime, timezone
from typing import Any, Optional


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or datetime) string into a date; pass dates through."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp, accepting a trailing 'Z'."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def text(value: Any) -> str:
    """Coerce a free-text field to str, treating None as empty."""
    return "" if value is None else str(value)


def optional_float(value: Any) -> Optional[float]:
    """
    Coerce a budget-like value, treating None and '' as absent.

    Unparseable input becomes NaN so field validation can report it
    alongside every other violation on the record.
    """
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan
