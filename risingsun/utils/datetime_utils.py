"""
Timezone-aware datetime helpers.
- Store and compute in UTC.
- API responses expose datetimes as ISO-8601 UTC with a trailing Z.
- Calendar days/months are cut in the business timezone (settings.BUSINESS_TZ).
"""
from datetime import datetime, timezone
from typing import Optional

UTC = timezone.utc


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for clock_in_time, clock_out_time, advance date."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def iso_8601_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with Z for UTC, millisecond precision (e.g. 2024-05-01T09:00:00.000Z)."""
    if dt is None:
        return None
    utc = ensure_utc(dt)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
