"""
Payroll rollup: monthly salary minus salary advances, with hours worked shown
alongside. Hours never change what is payable.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from risingsun.domain.records import AttendanceRecord, ReportWindow, SalaryAdvance, UserProfile
from risingsun.services.session_store import SessionStore
from risingsun.services.worked_time import aggregate_worked_time, format_hours_minutes
from risingsun.utils.datetime_utils import ensure_utc, now_utc

_log = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class SalaryReportRow:
    user_id: int
    user_name: str
    monthly_salary: Decimal
    worked_ms: int
    advances_total: Decimal
    net_payable: Decimal

    @property
    def total_hours(self) -> str:
        return format_hours_minutes(self.worked_ms)

    @property
    def is_overdrawn(self) -> bool:
        return self.net_payable < 0


@dataclass(frozen=True)
class SalaryReportTotals:
    monthly_salary: Decimal = ZERO
    advances_total: Decimal = ZERO
    net_payable: Decimal = ZERO


@dataclass(frozen=True)
class SalaryReport:
    window: ReportWindow
    rows: List[SalaryReportRow] = field(default_factory=list)
    totals: SalaryReportTotals = field(default_factory=SalaryReportTotals)


def has_salary(user: UserProfile) -> bool:
    """Only a set, positive salary puts a user on payroll."""
    return user.monthly_salary is not None and Decimal(user.monthly_salary) > 0


def build_salary_report(
    users: Iterable[UserProfile],
    attendance_records: Iterable[AttendanceRecord],
    advances: Iterable[SalaryAdvance],
    window: ReportWindow,
    now: Optional[datetime] = None,
    user_id: Optional[int] = None,
) -> SalaryReport:
    """
    One row per salaried user, plus grand totals.

    Users without a monthly salary are left out entirely, whatever attendance
    or advances they have. ``net_payable`` may go negative when advances exceed
    the salary; it is reported as is and flagged through ``is_overdrawn``.
    """
    now = ensure_utc(now) if now is not None else now_utc()
    records = list(attendance_records)
    advances = list(advances)

    report_users = [u for u in users if has_salary(u)]
    if user_id is not None:
        report_users = [u for u in report_users if u.id == user_id]

    worked = aggregate_worked_time(records, window.start, window.end, now=now)

    rows: List[SalaryReportRow] = []
    for user in report_users:
        salary = Decimal(user.monthly_salary)
        advances_total = sum(
            (Decimal(a.amount) for a in advances if a.user_id == user.id and window.contains(ensure_utc(a.date))),
            ZERO,
        )
        rows.append(
            SalaryReportRow(
                user_id=user.id,
                user_name=user.display_name,
                monthly_salary=salary,
                worked_ms=worked.get(user.id, 0),
                advances_total=advances_total,
                net_payable=salary - advances_total,
            )
        )

    totals = SalaryReportTotals(
        monthly_salary=sum((r.monthly_salary for r in rows), ZERO),
        advances_total=sum((r.advances_total for r in rows), ZERO),
        net_payable=sum((r.net_payable for r in rows), ZERO),
    )
    return SalaryReport(window=window, rows=rows, totals=totals)


def get_salary_report(
    store: SessionStore,
    window: ReportWindow,
    user_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> SalaryReport:
    """Fetch everything the window needs from the store and roll it up."""
    users = store.list_users_with_salary()
    records = store.list_sessions(user_id=user_id, date_range=window)
    advances = store.list_advances(user_id=user_id, date_range=window)
    report = build_salary_report(users, records, advances, window, now=now, user_id=user_id)
    overdrawn = [r.user_id for r in report.rows if r.is_overdrawn]
    if overdrawn:
        _log.warning("salary report %s: advances exceed salary for user_ids=%s", window.label, overdrawn)
    return report
