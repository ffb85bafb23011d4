from datetime import datetime, timezone
from typing import Any, Optional

def _from_epoch(seconds) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept epoch seconds or ISO-8601 strings (a trailing 'Z' included)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    s = str(value).strip()
    if s.isdigit():
        return _from_epoch(int(s))
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None

def format_short_date(value: Any) -> str:
    """'2024-03-05T10:00:00' -> '3/5/2024'. Unparseable input is returned as-is."""
    dt = parse_timestamp(value)
    if dt is None:
        return "" if value is None else str(value)
    return f"{dt.month}/{dt.day}/{dt.year}"
