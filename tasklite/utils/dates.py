"""Timestamp parsing and due-date formatting helpers."""

from datetime import date, datetime, time, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as returned by PostgREST.
    
    Accepts a trailing ``Z``; naive values are taken to be UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_due_input(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a due date typed by the user.
    
    Accepts ``yyyy-MM-dd`` (end of that day, UTC) or ``yyyy-MM-ddTHH:mm``.
    Blank input clears the due date. Raises ValueError on anything else.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if "T" in text:
        return parse_timestamp(datetime.strptime(text, "%Y-%m-%dT%H:%M"))
    day = datetime.strptime(text, "%Y-%m-%d").date()
    return datetime.combine(day, time(23, 59), tzinfo=timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for a PostgREST payload."""
    if value is None:
        return None
    return parse_timestamp(value).isoformat()


def format_due(due_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[str]:
    """Human label for a due date relative to now (day granularity)."""
    if due_at is None:
        return None
    now = now or utc_now()
    days = (_day(due_at) - _day(now)).days
    if days == 0:
        return "due today"
    if days == 1:
        return "due tomorrow"
    if days > 1:
        return f"due in {days} days"
    if days == -1:
        return "overdue by 1 day"
    return f"overdue by {-days} days"


def is_overdue(due_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if due_at is None:
        return False
    return parse_timestamp(due_at) < (now or utc_now())


def _day(value: datetime) -> date:
    return parse_timestamp(value).astimezone(timezone.utc).date()
