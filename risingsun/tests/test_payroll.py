"""
Tests for the salary report rollup
"""
from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from risingsun.domain.records import ClosedSession, AttendanceRecord, SalaryAdvance, UserProfile
from risingsun.services.payroll_service import build_salary_report
from risingsun.services.worked_time import month_window

UTC = timezone.utc
MAY = month_window(2024, 5, ZoneInfo("Asia/Kolkata"))
NOW = datetime(2024, 6, 10, tzinfo=UTC)


def _advance(user_id, amount, when=datetime(2024, 5, 10, 6, 0, tzinfo=UTC)):
    return SalaryAdvance(
        user_id=user_id,
        user_name=f"User {user_id}",
        amount=Decimal(amount),
        date=when,
        recorded_by_uid=99,
        recorded_by_name="Admin",
    )


def _session(user_id, start, end):
    return AttendanceRecord(
        user_id=user_id,
        user_name=f"User {user_id}",
        clock_in_time=start,
        state=ClosedSession(clock_out_time=end, duration=None),
    )


def test_user_without_salary_never_appears():
    users = [
        UserProfile(id=1, full_name="Salaried", monthly_salary=Decimal("50000")),
        UserProfile(id=2, full_name="Unsalaried", monthly_salary=None),
        UserProfile(id=3, full_name="Zero", monthly_salary=Decimal("0")),
    ]
    records = [_session(2, datetime(2024, 5, 6, 4, 0, tzinfo=UTC), datetime(2024, 5, 6, 12, 0, tzinfo=UTC))]
    advances = [_advance(2, "1000")]

    report = build_salary_report(users, records, advances, MAY, now=NOW)

    assert [row.user_id for row in report.rows] == [1]


def test_net_payable_is_salary_minus_advances_and_not_clamped():
    users = [
        UserProfile(id=1, full_name="Anil", monthly_salary=Decimal("50000")),
        UserProfile(id=2, full_name="Bela", monthly_salary=Decimal("50000")),
    ]
    advances = [
        _advance(1, "5000"),
        _advance(1, "7000"),
        _advance(2, "60000"),
    ]

    report = build_salary_report(users, [], advances, MAY, now=NOW)
    rows = {row.user_id: row for row in report.rows}

    assert rows[1].advances_total == Decimal("12000")
    assert rows[1].net_payable == Decimal("38000")
    assert rows[1].is_overdrawn is False
    assert rows[2].net_payable == Decimal("-10000")
    assert rows[2].is_overdrawn is True


def test_advances_outside_window_are_ignored():
    users = [UserProfile(id=1, full_name="Anil", monthly_salary=Decimal("20000"))]
    advances = [
        _advance(1, "1000", when=datetime(2024, 4, 30, 12, 0, tzinfo=UTC)),
        _advance(1, "2000", when=datetime(2024, 5, 31, 12, 0, tzinfo=UTC)),
        _advance(1, "4000", when=datetime(2024, 5, 31, 19, 0, tzinfo=UTC)),  # June 1 in India
    ]

    report = build_salary_report(users, [], advances, MAY, now=NOW)

    assert report.rows[0].advances_total == Decimal("2000")


def test_hours_are_informational_only():
    users = [UserProfile(id=1, full_name="Anil", monthly_salary=Decimal("30000"))]
    records = [_session(1, datetime(2024, 5, 6, 3, 30, tzinfo=UTC), datetime(2024, 5, 6, 12, 0, tzinfo=UTC))]

    report = build_salary_report(users, records, [], MAY, now=NOW)
    row = report.rows[0]

    assert row.total_hours == "8h 30m"
    assert row.net_payable == Decimal("30000")


def test_grand_totals_sum_reported_rows():
    users = [
        UserProfile(id=1, full_name="Anil", monthly_salary=Decimal("50000")),
        UserProfile(id=2, full_name="Bela", monthly_salary=Decimal("25000.50")),
        UserProfile(id=3, full_name="Chirag", monthly_salary=None),
    ]
    advances = [_advance(1, "12000"), _advance(2, "500.50"), _advance(3, "999")]

    report = build_salary_report(users, [], advances, MAY, now=NOW)

    assert report.totals.monthly_salary == Decimal("75000.50")
    assert report.totals.advances_total == Decimal("12500.50")
    assert report.totals.net_payable == Decimal("62500.00")


def test_user_filter_limits_rows():
    users = [
        UserProfile(id=1, full_name="Anil", monthly_salary=Decimal("50000")),
        UserProfile(id=2, full_name="Bela", monthly_salary=Decimal("40000")),
    ]

    report = build_salary_report(users, [], [], MAY, now=NOW, user_id=2)

    assert [row.user_id for row in report.rows] == [2]
    assert report.totals.monthly_salary == Decimal("40000")


def test_display_name_falls_back_to_email():
    users = [UserProfile(id=1, full_name="", email="anil@example.com", monthly_salary=Decimal("100"))]

    report = build_salary_report(users, [], [], MAY, now=NOW)

    assert report.rows[0].user_name == "anil@example.com"
