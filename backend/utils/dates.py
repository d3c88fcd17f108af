"""UTC calendar-day normalization.

Every record lookup, upsert and window filter goes through ``normalize_day``
so that two timestamps on the same UTC day always map to the same key.
"""

from datetime import date, datetime, time, timedelta, timezone


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_day(value) -> date:
    """Strip time-of-day and return the UTC calendar day.

    Accepts a ``date``, a ``datetime`` (naive values are treated as UTC,
    aware values are converted to UTC first) or an ISO 8601 string such as
    ``"2024-06-28"``, ``"2024-06-28T23:30:00-02:00"`` or ``"...Z"``.

    Raises:
        ValueError: If the value cannot be interpreted as a day.
    """
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_str = value.strip()
        if value_str.endswith("Z"):
            value_str = value_str[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(value_str)).date()
        except ValueError:
            return date.fromisoformat(value_str)
    raise ValueError(f"Cannot normalize {value!r} to a calendar day")


def same_day(a, b) -> bool:
    """True if two timestamps fall on the same UTC calendar day."""
    return normalize_day(a) == normalize_day(b)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today(now: datetime | None = None) -> date:
    """Today's UTC calendar day (or the day of ``now`` when given)."""
    return normalize_day(now if now is not None else utc_now())


def day_to_datetime(day: date) -> datetime:
    """Midnight UTC at the start of ``day``."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_range(end: date, days: int) -> tuple[date, date]:
    """Inclusive ``(start, end)`` range of ``days`` calendar days ending at ``end``."""
    return end - timedelta(days=days - 1), end


def parse_iso_datetime(value) -> datetime | None:
    """Parse an ISO 8601 string (or date/datetime object) to a UTC-aware datetime.

    Handles a ``Z`` suffix, ``+0000`` offsets without a colon, and
    date-only strings (midnight UTC). Naive values are taken as UTC.

    Returns:
        A timezone-aware UTC datetime, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return day_to_datetime(value)

    value_str = str(value).strip()
    if value_str.endswith("Z"):
        value_str = value_str[:-1] + "+00:00"
    if (
        len(value_str) >= 5
        and value_str[-5] in ("+", "-")
        and value_str[-4:].isdigit()
    ):
        value_str = value_str[:-2] + ":" + value_str[-2:]

    try:
        return ensure_utc(datetime.fromisoformat(value_str))
    except (ValueError, TypeError):
        return None
