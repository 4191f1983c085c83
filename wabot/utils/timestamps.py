"""ISO 8601 timestamp utilities for the bot.

This module provides consistent timestamp formatting for log lines, the
status record and the JSON endpoints.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def now_iso() -> str:
    """Get the current UTC timestamp in ISO 8601 format.

    Returns:
        Current timestamp as ISO 8601 string (YYYY-MM-DDTHH:MM:SS.mmmZ).

    Examples:
        >>> ts = now_iso()
        >>> ts  # e.g., "2025-02-04T14:30:22.123Z"
    """
    return to_iso(utc_now())


def to_iso(value: datetime | None) -> str | None:
    """Format a datetime as an ISO 8601 string with a 'Z' suffix.

    Naive datetimes are assumed to be UTC. ``None`` passes through so that
    optional status fields serialize to JSON null.

    Examples:
        >>> to_iso(datetime(2025, 2, 4, 14, 30, 22, tzinfo=UTC))
        '2025-02-04T14:30:22.000Z'
        >>> to_iso(None) is None
        True
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def format_duration(seconds: float) -> str:
    """Render a number of seconds as a compact human-readable duration.

    Examples:
        >>> format_duration(42)
        '42s'
        >>> format_duration(3725)
        '1h 2m 5s'
        >>> format_duration(90061)
        '1d 1h 1m 1s'
    """
    total = max(int(seconds), 0)
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if days or hours:
        parts.append(f"{hours}h")
    if days or hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{secs}s")
    return " ".join(parts)
