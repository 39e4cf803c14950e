"""
Database models
"""
from risingsun.models.user import User, UserRole, UserStatus
from risingsun.models.attendance_record import AttendanceRecord, AttendanceStatus
from risingsun.models.salary_advance import SalaryAdvance
from risingsun.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "AttendanceRecord",
    "AttendanceStatus",
    "SalaryAdvance",
    "AuditLog",
]
