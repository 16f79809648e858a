# =======================================================================================
# gatepass/utils/clock.py - Instant Parsing Helpers
# =======================================================================================
from datetime import date, datetime, time, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_date_only(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) == 10 and value.strip()[4] == "-"


def parse_instant(value: Any) -> Optional[datetime]:
    """
    Coerce a wire value into an aware UTC datetime.

    Accepts datetimes, dates (midnight UTC), ISO-8601 strings with or
    without offset (a trailing 'Z' included) and date-only strings.
    None and blank strings are absent. Anything else raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(s))
        except ValueError:
            raise ValueError(f"Invalid date/time value: {value!r}")
    raise ValueError(f"Unsupported date/time value: {value!r}")
