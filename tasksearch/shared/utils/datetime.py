"""
UTC datetime utilities.

Index documents, events and history scores are all expressed in UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def utc_now_ms() -> int:
    """Current time as a millisecond Unix timestamp (history set scores)."""
    return int(utc_now().timestamp() * 1000)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Normalize a datetime read from a source payload or stored document.

    Naive values are taken to be UTC already; aware values are converted.

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
