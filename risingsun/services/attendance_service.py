"""
Attendance session service: clock in / clock out state machine.

    no-active-session --clock_in--> clocked-in --clock_out--> no-active-session

All timestamps are server UTC; callers never supply clock-in or clock-out times.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from risingsun.core.exceptions import AlreadyClosedError, ConflictError
from risingsun.domain.records import OPEN, AttendanceRecord, Location, ReportWindow
from risingsun.models.attendance_record import AttendanceStatus
from risingsun.services.session_store import (
    ALREADY_CLOSED_MESSAGE,
    CLOCK_IN_CONFLICT_MESSAGE,
    SessionStore,
)
from risingsun.services.worked_time import (
    aggregate_worked_time,
    day_window,
    format_hours_minutes,
    human_readable_elapsed,
)
from risingsun.utils.datetime_utils import now_utc

_log = logging.getLogger(__name__)


def clock_in(
    store: SessionStore,
    user_id: int,
    user_name: str,
    location: Location,
    now: Optional[datetime] = None,
) -> AttendanceRecord:
    """
    Open a new session for the user.

    Raises ConflictError if the user already has an open session. The check
    below gives the friendly answer in the common case; the store's unique
    open-session index settles concurrent clock-ins.
    """
    now = now or now_utc()

    if store.find_open_session(user_id) is not None:
        _log.info("clock-in rejected, session already open: user_id=%s", user_id)
        raise ConflictError(CLOCK_IN_CONFLICT_MESSAGE, user_id=user_id)

    record = store.create_session(
        AttendanceRecord(
            user_id=user_id,
            user_name=user_name,
            clock_in_time=now,
            state=OPEN,
            latitude=location.latitude,
            longitude=location.longitude,
        )
    )
    _log.info("clocked in: user_id=%s record_id=%s", user_id, record.id)
    return record


def clock_out(
    store: SessionStore,
    record_id: int,
    now: Optional[datetime] = None,
) -> AttendanceRecord:
    """
    Close an open session, caching a human readable duration on it.

    Raises NotFoundError for an unknown id and AlreadyClosedError if the
    session was closed before; a repeated clock-out leaves the record as is.
    """
    now = now or now_utc()

    record = store.get_session(record_id)
    if not record.is_open:
        raise AlreadyClosedError(ALREADY_CLOSED_MESSAGE, record_id=record_id)

    duration = human_readable_elapsed(now - record.clock_in_time)
    closed = store.update_session(
        record_id,
        {
            "clock_out_time": now,
            "status": AttendanceStatus.CLOCKED_OUT,
            "duration": duration,
        },
    )
    _log.info("clocked out: user_id=%s record_id=%s duration=%s", closed.user_id, record_id, duration)
    return closed


def get_active_session(store: SessionStore, user_id: int) -> Optional[AttendanceRecord]:
    """The user's open session, if any."""
    return store.find_open_session(user_id)


def list_user_records(
    store: SessionStore,
    user_id: Optional[int] = None,
    date_range: Optional[ReportWindow] = None,
) -> List[AttendanceRecord]:
    """Records newest first, for one user or everyone."""
    return store.list_sessions(user_id=user_id, date_range=date_range)


@dataclass(frozen=True)
class TodaySummary:
    window: ReportWindow
    active_session: Optional[AttendanceRecord]
    records: List[AttendanceRecord]
    worked_ms: int

    @property
    def worked(self) -> str:
        return format_hours_minutes(self.worked_ms)


def today_summary(
    store: SessionStore,
    user_id: int,
    tz: ZoneInfo,
    now: Optional[datetime] = None,
) -> TodaySummary:
    """Live "hours today" for one user: today's sessions, open ones measured up to now."""
    now = now or now_utc()
    window = day_window(now, tz)
    records = store.list_sessions(user_id=user_id, date_range=window)
    totals = aggregate_worked_time(records, window.start, window.end, now=now)
    return TodaySummary(
        window=window,
        active_session=store.find_open_session(user_id),
        records=records,
        worked_ms=totals.get(user_id, 0),
    )
