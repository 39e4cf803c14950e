from risingsun.domain.records import (
    AttendanceRecord,
    ClosedSession,
    Location,
    OpenSession,
    OPEN,
    ReportWindow,
    SalaryAdvance,
    SessionState,
    UserProfile,
)

__all__ = [
    "AttendanceRecord",
    "ClosedSession",
    "Location",
    "OpenSession",
    "OPEN",
    "ReportWindow",
    "SalaryAdvance",
    "SessionState",
    "UserProfile",
]
