"""
Tests for the SQL-backed session store: the open-session index, conditional
clock-out, lookups and name resync
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from risingsun.core.exceptions import (
    AlreadyClosedError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from risingsun.domain.records import OPEN, AttendanceRecord, SalaryAdvance
from risingsun.models.attendance_record import AttendanceStatus
from risingsun.models.user import UserStatus
from risingsun.services.session_store import SqlSessionStore
from risingsun.services.worked_time import day_window

UTC = timezone.utc


def _open_record(user, at):
    return AttendanceRecord(user_id=user.id, user_name=user.full_name, clock_in_time=at, state=OPEN,
                            latitude=12.97, longitude=77.59)


def test_create_and_find_open_session(db, employee):
    store = SqlSessionStore(db)
    at = datetime(2024, 5, 6, 3, 30, tzinfo=UTC)

    created = store.create_session(_open_record(employee, at))

    assert created.id is not None
    assert created.is_open
    assert created.clock_in_time == at
    found = store.find_open_session(employee.id)
    assert found == created


def test_second_open_session_rejected_by_index(db, employee):
    """Two writes that both skipped the pre-check still leave one open session."""
    store = SqlSessionStore(db)
    at = datetime(2024, 5, 6, 3, 30, tzinfo=UTC)
    store.create_session(_open_record(employee, at))

    with pytest.raises(ConflictError) as exc_info:
        store.create_session(_open_record(employee, at + timedelta(seconds=1)))

    assert exc_info.value.code == "CONFLICT"
    open_sessions = store.list_sessions(user_id=employee.id, status=AttendanceStatus.CLOCKED_IN)
    assert len(open_sessions) == 1


def test_index_allows_open_sessions_for_different_users(db, employee, other_employee):
    store = SqlSessionStore(db)
    at = datetime(2024, 5, 6, 3, 30, tzinfo=UTC)

    store.create_session(_open_record(employee, at))
    store.create_session(_open_record(other_employee, at))

    assert len(store.list_sessions(status=AttendanceStatus.CLOCKED_IN)) == 2


def test_closing_patch_only_applies_once(db, employee):
    store = SqlSessionStore(db)
    at = datetime(2024, 5, 6, 3, 30, tzinfo=UTC)
    record = store.create_session(_open_record(employee, at))
    first_close = at + timedelta(hours=2)

    closed = store.update_session(record.id, {
        "clock_out_time": first_close,
        "status": AttendanceStatus.CLOCKED_OUT,
        "duration": "2 hours",
    })
    with pytest.raises(AlreadyClosedError):
        store.update_session(record.id, {
            "clock_out_time": first_close + timedelta(hours=1),
            "status": AttendanceStatus.CLOCKED_OUT,
            "duration": "3 hours",
        })

    reloaded = store.get_session(record.id)
    assert closed.clock_out_time == first_close
    assert reloaded.clock_out_time == first_close
    assert reloaded.duration == "2 hours"


def test_update_unknown_session_is_not_found(db):
    store = SqlSessionStore(db)

    with pytest.raises(NotFoundError):
        store.update_session(999, {
            "clock_out_time": datetime(2024, 5, 6, tzinfo=UTC),
            "status": AttendanceStatus.CLOCKED_OUT,
            "duration": "1 hour",
        })


def test_update_rejects_unknown_fields(db, employee):
    store = SqlSessionStore(db)
    record = store.create_session(_open_record(employee, datetime(2024, 5, 6, 3, 30, tzinfo=UTC)))

    with pytest.raises(ValidationError):
        store.update_session(record.id, {"clock_in_time": datetime(2024, 5, 5, tzinfo=UTC)})


def test_get_session_not_found(db):
    with pytest.raises(NotFoundError, match="Attendance record not found."):
        SqlSessionStore(db).get_session(12345)


def test_list_sessions_filters_by_date_range_newest_first(db, employee):
    store = SqlSessionStore(db)
    yesterday = datetime(2024, 5, 5, 4, 0, tzinfo=UTC)
    today_early = datetime(2024, 5, 6, 4, 0, tzinfo=UTC)
    today_late = datetime(2024, 5, 6, 9, 0, tzinfo=UTC)
    for at in (yesterday, today_early):
        record = store.create_session(_open_record(employee, at))
        store.update_session(record.id, {
            "clock_out_time": at + timedelta(hours=1),
            "status": AttendanceStatus.CLOCKED_OUT,
            "duration": "1 hour",
        })
    store.create_session(_open_record(employee, today_late))

    window = day_window(today_early, UTC)
    records = store.list_sessions(user_id=employee.id, date_range=window)

    assert [r.clock_in_time for r in records] == [today_late, today_early]


def test_users_with_salary_are_approved_and_positive(db, employee, make_user):
    make_user("nosalary@risingsun.test", "No Salary")
    make_user("zero@risingsun.test", "Zero Salary", monthly_salary=Decimal("0"))
    make_user("pending@risingsun.test", "Pending", monthly_salary=Decimal("1000"),
              status=UserStatus.PENDING_APPROVAL)

    profiles = SqlSessionStore(db).list_users_with_salary()

    assert [p.id for p in profiles] == [employee.id]
    assert profiles[0].monthly_salary == Decimal("30000.00")


def test_advances_create_list_delete(db, employee, admin_user):
    store = SqlSessionStore(db)
    older = store.create_advance(SalaryAdvance(
        user_id=employee.id, user_name=employee.full_name, amount=Decimal("500.00"),
        date=datetime(2024, 5, 2, tzinfo=UTC), recorded_by_uid=admin_user.id,
        recorded_by_name=admin_user.full_name,
    ))
    newer = store.create_advance(SalaryAdvance(
        user_id=employee.id, user_name=employee.full_name, amount=Decimal("750.00"),
        date=datetime(2024, 5, 9, tzinfo=UTC), recorded_by_uid=admin_user.id,
        recorded_by_name=admin_user.full_name, notes="festival",
    ))

    assert [a.id for a in store.list_advances(user_id=employee.id)] == [newer.id, older.id]

    deleted = store.delete_advance(older.id)
    assert deleted.amount == Decimal("500.00")
    with pytest.raises(NotFoundError):
        store.get_advance(older.id)
    with pytest.raises(NotFoundError):
        store.delete_advance(older.id)


def test_resync_user_names_rewrites_snapshots(db, employee, admin_user):
    store = SqlSessionStore(db)
    store.create_session(_open_record(employee, datetime(2024, 5, 6, 3, 30, tzinfo=UTC)))
    store.create_advance(SalaryAdvance(
        user_id=employee.id, user_name=employee.full_name, amount=Decimal("100.00"),
        date=datetime(2024, 5, 2, tzinfo=UTC), recorded_by_uid=admin_user.id,
        recorded_by_name=admin_user.full_name,
    ))

    counts = store.resync_user_names(employee.id, "Ravi K.")
    recorder_counts = store.resync_user_names(admin_user.id, "Asha A.")

    assert counts == {"attendance_records": 1, "salary_advances": 1, "recorded_advances": 0}
    assert recorder_counts["recorded_advances"] == 1
    assert store.find_open_session(employee.id).user_name == "Ravi K."
    advance = store.list_advances(user_id=employee.id)[0]
    assert advance.user_name == "Ravi K."
    assert advance.recorded_by_name == "Asha A."


def test_driver_failure_surfaces_as_infrastructure_error(db, employee, monkeypatch):
    store = SqlSessionStore(db)

    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "query", broken_query)

    with pytest.raises(InfrastructureError) as exc_info:
        store.find_open_session(employee.id)

    assert exc_info.value.code == "INFRASTRUCTURE_ERROR"
    assert "database is locked" in exc_info.value.message
