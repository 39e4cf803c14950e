"""
Immutable domain records handed out by the session store.

Open/closed is carried as an explicit state object, so ``status``,
``clock_out_time`` and ``duration`` are derived and can never disagree.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from risingsun.models.attendance_record import AttendanceStatus


@dataclass(frozen=True)
class OpenSession:
    """Clocked in, no clock-out yet."""


@dataclass(frozen=True)
class ClosedSession:
    clock_out_time: datetime
    duration: Optional[str] = None


SessionState = Union[OpenSession, ClosedSession]

OPEN = OpenSession()


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class AttendanceRecord:
    user_id: int
    user_name: str
    clock_in_time: datetime
    state: SessionState = OPEN
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    id: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return isinstance(self.state, OpenSession)

    @property
    def status(self) -> AttendanceStatus:
        return AttendanceStatus.CLOCKED_IN if self.is_open else AttendanceStatus.CLOCKED_OUT

    @property
    def clock_out_time(self) -> Optional[datetime]:
        return None if self.is_open else self.state.clock_out_time

    @property
    def duration(self) -> Optional[str]:
        return None if self.is_open else self.state.duration


@dataclass(frozen=True)
class SalaryAdvance:
    user_id: int
    user_name: str
    amount: Decimal
    date: datetime
    recorded_by_uid: int
    recorded_by_name: str
    notes: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class UserProfile:
    id: int
    full_name: str
    email: str = ""
    monthly_salary: Optional[Decimal] = None
    status: str = "approved"

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or "Unknown User"


@dataclass(frozen=True)
class ReportWindow:
    """
    Closed interval [start, end] of aware UTC instants. A None bound leaves
    that side open; report periods always carry both.
    """

    start: Optional[datetime]
    end: Optional[datetime]
    label: str = field(default="", compare=False)

    def __post_init__(self):
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValueError("window end must not be before window start")

    def contains(self, ts: datetime) -> bool:
        if self.start is not None and ts < self.start:
            return False
        return self.end is None or ts <= self.end
