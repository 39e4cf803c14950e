"""
Admin attendance endpoints: every user's sessions, filterable by user, status
and date range.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query

from risingsun.api.v1.attendance import resolve_date_range
from risingsun.core.deps import get_store, require_admin
from risingsun.models.attendance_record import AttendanceStatus
from risingsun.models.user import User
from risingsun.schemas.attendance import AttendanceListResponse, AttendanceRecordOut
from risingsun.services.session_store import SessionStore

router = APIRouter()


@router.get("", response_model=AttendanceListResponse)
async def list_attendance(
    user_id: Optional[int] = Query(None, description="Filter by user ID"),
    status: Optional[AttendanceStatus] = Query(None, description="clocked-in or clocked-out"),
    from_date: Optional[date] = Query(None, alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, alias="to", description="End date (YYYY-MM-DD)"),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """All sessions newest first. ``status=clocked-in`` lists who is on the clock now."""
    records = store.list_sessions(
        user_id=user_id,
        date_range=resolve_date_range(from_date, to_date),
        status=status,
    )
    return AttendanceListResponse(
        items=[AttendanceRecordOut.from_record(r) for r in records],
        total=len(records),
    )
