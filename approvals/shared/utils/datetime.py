"""UTC helpers and closed time windows.

Every timestamp the approval core compares is timezone-aware UTC. SQLite
hands back naive values for DateTime(timezone=True) columns, so anything
read from storage goes through ensure_utc before comparison.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize to aware UTC; naive values are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def within_window(moment: datetime, start: datetime, end: datetime) -> bool:
    """True iff start <= moment <= end. Both ends are inclusive."""
    return ensure_utc(start) <= ensure_utc(moment) <= ensure_utc(end)


def windows_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Whether two closed windows share at least one instant (touching counts)."""
    return not (ensure_utc(a_start) > ensure_utc(b_end) or ensure_utc(b_start) > ensure_utc(a_end))
