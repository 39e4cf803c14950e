"""
Payroll endpoints: the monthly salary report as JSON and as CSV (admin only)
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from risingsun.core.config import settings
from risingsun.core.deps import get_db, get_store, require_admin
from risingsun.core.exceptions import ValidationError
from risingsun.domain.records import ReportWindow
from risingsun.models.user import User
from risingsun.schemas.payroll import SalaryReportResponse
from risingsun.services.audit_service import log_audit
from risingsun.services.payroll_service import get_salary_report
from risingsun.services.session_store import SessionStore
from risingsun.services.worked_time import WINDOW_PRESETS, month_window, preset_window
from risingsun.utils.csv_export import stream_csv
from risingsun.utils.datetime_utils import now_utc

router = APIRouter()

CSV_HEADERS = [
    "user_id",
    "employee_name",
    "monthly_salary",
    "total_hours",
    "advances_total",
    "net_payable",
]


def resolve_report_window(
    preset: Optional[str],
    year: Optional[int],
    month: Optional[int],
) -> ReportWindow:
    """
    ``year`` + ``month`` select an explicit month; otherwise ``preset``
    (default this_month) is resolved against the current business-timezone date.
    """
    tz = settings.business_tz
    if year is not None or month is not None:
        if year is None or month is None:
            raise ValidationError("year and month must be given together.", year=year, month=month)
        try:
            return month_window(year, month, tz)
        except ValueError as e:
            raise ValidationError(str(e), year=year, month=month)
    try:
        return preset_window(preset or "this_month", now_utc(), tz)
    except ValueError as e:
        raise ValidationError(str(e), preset=preset, allowed=list(WINDOW_PRESETS))


def _money(value) -> str:
    return f"{value:.2f}"


@router.get("/salary-report", response_model=SalaryReportResponse)
async def salary_report(
    preset: Optional[str] = Query(None, description="this_month or last_month"),
    year: Optional[int] = Query(None, description="Report year (with month)"),
    month: Optional[int] = Query(None, description="Report month 1-12 (with year)"),
    user_id: Optional[int] = Query(None, description="Limit to one employee"),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """
    Per-employee salary, hours worked, advances and net payable for one month,
    with grand totals. Only approved users with a positive monthly salary appear.
    """
    window = resolve_report_window(preset, year, month)
    report = get_salary_report(store, window, user_id=user_id)
    return SalaryReportResponse.from_report(report, currency=settings.CURRENCY_SYMBOL)


@router.get("/salary-report.csv")
async def export_salary_report_csv(
    preset: Optional[str] = Query(None, description="this_month or last_month"),
    year: Optional[int] = Query(None, description="Report year (with month)"),
    month: Optional[int] = Query(None, description="Report month 1-12 (with year)"),
    user_id: Optional[int] = Query(None, description="Limit to one employee"),
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """
    Export the salary report as CSV; the last line carries the grand totals.
    """
    window = resolve_report_window(preset, year, month)
    report = get_salary_report(store, window, user_id=user_id)

    log_audit(
        db=db,
        actor_id=current_user.id,
        action="REPORT_EXPORT",
        entity_type="report",
        entity_id=None,
        meta={
            "report_type": "salary",
            "period": window.label,
            "user_id": user_id,
            "row_count": len(report.rows)
        }
    )

    csv_rows = [
        {
            "user_id": row.user_id,
            "employee_name": row.user_name,
            "monthly_salary": _money(row.monthly_salary),
            "total_hours": row.total_hours,
            "advances_total": _money(row.advances_total),
            "net_payable": _money(row.net_payable),
        }
        for row in report.rows
    ]
    csv_rows.append({
        "user_id": "",
        "employee_name": "TOTAL",
        "monthly_salary": _money(report.totals.monthly_salary),
        "total_hours": "",
        "advances_total": _money(report.totals.advances_total),
        "net_payable": _money(report.totals.net_payable),
    })

    filename = f"salary_report_{window.label}.csv"
    return stream_csv(CSV_HEADERS, csv_rows, filename)
