"""
Worked-time aggregation and duration formatting.

Everything here is a pure function over records already fetched from the
store; ``now`` is injectable so open sessions can be measured deterministically.
"""
from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, Optional
from zoneinfo import ZoneInfo

from risingsun.domain.records import AttendanceRecord, ReportWindow
from risingsun.utils.datetime_utils import ensure_utc, now_utc

ONE_MS = timedelta(milliseconds=1)

WINDOW_PRESETS = ("this_month", "last_month")


def effective_end(record: AttendanceRecord, window_end: datetime, now: datetime) -> datetime:
    """End instant used when measuring a record: now while open, else its clock-out."""
    if record.is_open:
        return now
    return record.clock_out_time or window_end


def worked_ms(record: AttendanceRecord, window_end: datetime, now: datetime) -> int:
    """Milliseconds a single record contributes; 0 when its end precedes its start."""
    end = ensure_utc(effective_end(record, window_end, now))
    start = ensure_utc(record.clock_in_time)
    if end < start:
        return 0
    return (end - start) // ONE_MS


def aggregate_worked_time(
    records: Iterable[AttendanceRecord],
    window_start: datetime,
    window_end: datetime,
    now: Optional[datetime] = None,
) -> Dict[int, int]:
    """
    Total worked milliseconds per user for sessions that clocked in within
    [window_start, window_end] (both ends inclusive).

    Only the clock-in time decides membership: a session that began before
    the window is left out even if it ended inside it.
    """
    now = ensure_utc(now) if now is not None else now_utc()
    window_start = ensure_utc(window_start)
    window_end = ensure_utc(window_end)

    totals: Dict[int, int] = {}
    for record in records:
        clock_in = ensure_utc(record.clock_in_time)
        if not (window_start <= clock_in <= window_end):
            continue
        totals[record.user_id] = totals.get(record.user_id, 0) + worked_ms(record, window_end, now)
    return totals


def format_hours_minutes(ms: int) -> str:
    """Render milliseconds as "{h}h {m}m", truncating seconds."""
    total_seconds = max(int(ms), 0) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    return f"{hours}h {minutes}m"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def human_readable_elapsed(delta: timedelta) -> str:
    """
    Calendar-style duration cached on a closed session, e.g. "2 hours 15 minutes",
    "1 day 3 hours", or "less than a minute".
    """
    total_minutes = max(int(delta.total_seconds()), 0) // 60
    if total_minutes == 0:
        return "less than a minute"

    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)

    parts = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes:
        parts.append(_plural(minutes, "minute"))
    return " ".join(parts)


# --- Windows ---


def _local_span(first: date, last: date, tz: ZoneInfo) -> tuple:
    start = datetime.combine(first, time.min, tzinfo=tz)
    end = datetime.combine(last + timedelta(days=1), time.min, tzinfo=tz) - timedelta(microseconds=1)
    return ensure_utc(start), ensure_utc(end)


def day_window(now: datetime, tz: ZoneInfo) -> ReportWindow:
    """The calendar day (in tz) containing ``now``."""
    local_day = ensure_utc(now).astimezone(tz).date()
    start, end = _local_span(local_day, local_day, tz)
    return ReportWindow(start=start, end=end, label=local_day.isoformat())


def date_range_window(first: Optional[date], last: Optional[date], tz: ZoneInfo) -> ReportWindow:
    """
    Whole local days ``first``..``last`` (inclusive) in tz. A missing day
    leaves that side of the window open.
    """
    if first is not None and last is not None and last < first:
        raise ValueError("end date must not be before start date")
    start = _local_span(first, first, tz)[0] if first is not None else None
    end = _local_span(last, last, tz)[1] if last is not None else None
    label = f"{first.isoformat() if first else ''}..{last.isoformat() if last else ''}"
    return ReportWindow(start=start, end=end, label=label)


def month_window(year: int, month: int, tz: ZoneInfo) -> ReportWindow:
    """The calendar month (in tz), first instant to last instant."""
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    last_day = monthrange(year, month)[1]
    start, end = _local_span(date(year, month, 1), date(year, month, last_day), tz)
    return ReportWindow(start=start, end=end, label=f"{year:04d}-{month:02d}")


def preset_window(preset: str, now: datetime, tz: ZoneInfo) -> ReportWindow:
    """Resolve "this_month" / "last_month" relative to ``now`` in tz."""
    local_now = ensure_utc(now).astimezone(tz)
    if preset == "this_month":
        return month_window(local_now.year, local_now.month, tz)
    if preset == "last_month":
        year, month = (local_now.year - 1, 12) if local_now.month == 1 else (local_now.year, local_now.month - 1)
        return month_window(year, month, tz)
    raise ValueError(f"Unknown window preset {preset!r}; expected one of {WINDOW_PRESETS}")
