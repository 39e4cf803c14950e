"""
Attendance endpoints: clock in / clock out, the active session and the live
"hours today" widget. Everyone works on their own sessions; admins may also
close someone else's.
"""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from risingsun.core.config import settings
from risingsun.core.deps import get_db, get_current_user, get_store
from risingsun.core.exceptions import ValidationError
from risingsun.models.user import User
from risingsun.schemas.attendance import (
    ActiveSessionResponse,
    AttendanceActionResponse,
    AttendanceListResponse,
    AttendanceRecordOut,
    ClockInRequest,
    TodayAttendanceResponse,
)
from risingsun.services import attendance_service as svc
from risingsun.services.audit_service import log_audit
from risingsun.services.session_store import SessionStore
from risingsun.services.worked_time import date_range_window

router = APIRouter()
_log = logging.getLogger(__name__)


def resolve_date_range(from_date: Optional[date], to_date: Optional[date]):
    """
    Optional from/to query pair as a business-timezone window; None when both
    are absent, open-ended on the side that is missing.
    """
    if from_date is None and to_date is None:
        return None
    try:
        return date_range_window(from_date, to_date, settings.business_tz)
    except ValueError as e:
        raise ValidationError(str(e), from_date=str(from_date), to_date=str(to_date))


@router.post("/clock-in", response_model=AttendanceActionResponse)
async def clock_in(
    request_data: ClockInRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """
    Clock in with the device location. Fails with 409 CONFLICT while the
    user still has an open session.
    """
    record = svc.clock_in(
        store,
        user_id=current_user.id,
        user_name=current_user.full_name,
        location=request_data.to_location(),
    )
    log_audit(
        db=db,
        actor_id=current_user.id,
        action="ATTENDANCE_CLOCK_IN",
        entity_type="attendance_records",
        entity_id=record.id,
        meta={"latitude": record.latitude, "longitude": record.longitude},
    )
    return AttendanceActionResponse(
        message="Clocked in successfully.",
        record=AttendanceRecordOut.from_record(record),
    )


@router.post("/clock-out/{record_id}", response_model=AttendanceActionResponse)
async def clock_out(
    record_id: int,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """
    Close the given session. 404 for an unknown record, 409 ALREADY_CLOSED
    when it was closed before.
    """
    existing = store.get_session(record_id)
    if existing.user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only clock out of your own session."
        )

    record = svc.clock_out(store, record_id)
    log_audit(
        db=db,
        actor_id=current_user.id,
        action="ATTENDANCE_CLOCK_OUT",
        entity_type="attendance_records",
        entity_id=record.id,
        meta={"user_id": record.user_id, "duration": record.duration},
    )
    return AttendanceActionResponse(
        message="Clocked out successfully.",
        record=AttendanceRecordOut.from_record(record),
    )


@router.get("/active", response_model=ActiveSessionResponse)
async def get_active(
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """The caller's open session, or ``record: null``."""
    record = svc.get_active_session(store, current_user.id)
    return ActiveSessionResponse(record=AttendanceRecordOut.from_record(record) if record else None)


@router.get("/today", response_model=TodayAttendanceResponse)
async def get_today(
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """
    Hours worked today (business timezone), an open session counted up to
    now. Clients poll again after ``refresh_after_seconds``.
    """
    summary = svc.today_summary(store, current_user.id, settings.business_tz)
    return TodayAttendanceResponse(
        date=summary.window.label,
        active_session=AttendanceRecordOut.from_record(summary.active_session) if summary.active_session else None,
        records=[AttendanceRecordOut.from_record(r) for r in summary.records],
        worked_ms=summary.worked_ms,
        worked=summary.worked,
        refresh_after_seconds=settings.LIVE_HOURS_REFRESH_SECONDS,
    )


@router.get("/my", response_model=AttendanceListResponse)
async def list_my_attendance(
    from_date: Optional[date] = Query(None, alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, alias="to", description="End date (YYYY-MM-DD)"),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(get_current_user)
):
    """The caller's sessions, newest first, optionally limited to a date range."""
    records = svc.list_user_records(
        store,
        user_id=current_user.id,
        date_range=resolve_date_range(from_date, to_date),
    )
    return AttendanceListResponse(
        items=[AttendanceRecordOut.from_record(r) for r in records],
        total=len(records),
    )
