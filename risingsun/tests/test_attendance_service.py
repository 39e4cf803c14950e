"""
Tests for the clock-in / clock-out state machine
"""
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from risingsun.core.exceptions import AlreadyClosedError, ConflictError, NotFoundError
from risingsun.domain.records import Location
from risingsun.models.attendance_record import AttendanceStatus
from risingsun.services import attendance_service as svc
from risingsun.services.session_store import SqlSessionStore

UTC = timezone.utc
T0 = datetime(2024, 5, 6, 3, 30, tzinfo=UTC)
HERE = Location(latitude=12.9716, longitude=77.5946)


def test_clock_in_opens_session(db, employee):
    store = SqlSessionStore(db)

    record = svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0)

    assert record.status == AttendanceStatus.CLOCKED_IN
    assert record.clock_in_time == T0
    assert record.clock_out_time is None
    assert record.duration is None
    assert (record.latitude, record.longitude) == (12.9716, 77.5946)
    assert record.user_name == "Ravi Kumar"


def test_second_clock_in_conflicts_and_keeps_one_open_session(db, employee):
    store = SqlSessionStore(db)
    svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0)

    with pytest.raises(ConflictError, match="must clock out from your previous session"):
        svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0 + timedelta(seconds=5))

    open_sessions = store.list_sessions(user_id=employee.id, status=AttendanceStatus.CLOCKED_IN)
    assert len(open_sessions) == 1


def test_clock_out_closes_with_duration(db, employee):
    store = SqlSessionStore(db)
    record = svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0)

    closed = svc.clock_out(store, record.id, now=T0 + timedelta(hours=2, minutes=15, seconds=40))

    assert closed.status == AttendanceStatus.CLOCKED_OUT
    assert closed.clock_out_time == T0 + timedelta(hours=2, minutes=15, seconds=40)
    assert closed.duration == "2 hours 15 minutes"
    assert svc.get_active_session(store, employee.id) is None


def test_clock_out_twice_fails_and_leaves_record_unchanged(db, employee):
    store = SqlSessionStore(db)
    record = svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0)
    first = svc.clock_out(store, record.id, now=T0 + timedelta(hours=1))

    with pytest.raises(AlreadyClosedError):
        svc.clock_out(store, record.id, now=T0 + timedelta(hours=3))

    after = store.get_session(record.id)
    assert after.clock_out_time == first.clock_out_time
    assert after.duration == first.duration == "1 hour"


def test_clock_out_unknown_record(db):
    with pytest.raises(NotFoundError):
        svc.clock_out(SqlSessionStore(db), 4242, now=T0)


def test_clock_in_again_after_clock_out(db, employee):
    store = SqlSessionStore(db)
    first = svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0)
    svc.clock_out(store, first.id, now=T0 + timedelta(hours=1))

    second = svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0 + timedelta(hours=2))

    assert second.id != first.id
    assert svc.get_active_session(store, employee.id).id == second.id


def test_serialized_clock_ins_and_outs_never_leave_two_open_sessions(db, employee):
    store = SqlSessionStore(db)
    now = T0
    for _ in range(3):
        record = svc.clock_in(store, employee.id, employee.full_name, HERE, now=now)
        with pytest.raises(ConflictError):
            svc.clock_in(store, employee.id, employee.full_name, HERE, now=now)
        assert len(store.list_sessions(user_id=employee.id, status=AttendanceStatus.CLOCKED_IN)) == 1
        now += timedelta(minutes=45)
        svc.clock_out(store, record.id, now=now)
        assert store.list_sessions(user_id=employee.id, status=AttendanceStatus.CLOCKED_IN) == []
        now += timedelta(minutes=15)


def test_today_summary_counts_open_session_up_to_now(db, employee):
    store = SqlSessionStore(db)
    ist = ZoneInfo("Asia/Kolkata")
    morning = svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0)
    svc.clock_out(store, morning.id, now=T0 + timedelta(hours=3))
    svc.clock_in(store, employee.id, employee.full_name, HERE, now=T0 + timedelta(hours=4))

    summary = svc.today_summary(store, employee.id, ist, now=T0 + timedelta(hours=6))

    assert summary.window.label == "2024-05-06"
    assert summary.worked_ms == 5 * 60 * 60 * 1000
    assert summary.worked == "5h 0m"
    assert summary.active_session is not None
    assert len(summary.records) == 2
