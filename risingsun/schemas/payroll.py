"""
Salary report schemas
"""
from typing import List
from pydantic import BaseModel

from risingsun.services.payroll_service import SalaryReport, SalaryReportRow
from risingsun.utils.datetime_utils import iso_8601_utc


class SalaryReportRowOut(BaseModel):
    user_id: int
    user_name: str
    monthly_salary: float
    total_hours: str
    worked_ms: int
    advances_total: float
    net_payable: float
    is_overdrawn: bool

    @classmethod
    def from_row(cls, row: SalaryReportRow) -> "SalaryReportRowOut":
        return cls(
            user_id=row.user_id,
            user_name=row.user_name,
            monthly_salary=float(row.monthly_salary),
            total_hours=row.total_hours,
            worked_ms=row.worked_ms,
            advances_total=float(row.advances_total),
            net_payable=float(row.net_payable),
            is_overdrawn=row.is_overdrawn,
        )


class SalaryReportTotalsOut(BaseModel):
    monthly_salary: float
    advances_total: float
    net_payable: float


class SalaryReportResponse(BaseModel):
    """Rows plus the grand-total footer"""
    period: str
    currency: str
    window_start: str
    window_end: str
    rows: List[SalaryReportRowOut]
    totals: SalaryReportTotalsOut

    @classmethod
    def from_report(cls, report: SalaryReport, currency: str) -> "SalaryReportResponse":
        return cls(
            period=report.window.label,
            currency=currency,
            window_start=iso_8601_utc(report.window.start),
            window_end=iso_8601_utc(report.window.end),
            rows=[SalaryReportRowOut.from_row(r) for r in report.rows],
            totals=SalaryReportTotalsOut(
                monthly_salary=float(report.totals.monthly_salary),
                advances_total=float(report.totals.advances_total),
                net_payable=float(report.totals.net_payable),
            ),
        )
