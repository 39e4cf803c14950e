"""
Attendance schemas. Timestamps leave the API as ISO-8601 UTC strings.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from risingsun.domain.records import AttendanceRecord, Location
from risingsun.utils.datetime_utils import iso_8601_utc


class ClockInRequest(BaseModel):
    """Clock-in body: where the device was when the user clocked in"""
    latitude: float = Field(..., ge=-90, le=90, description="GPS latitude")
    longitude: float = Field(..., ge=-180, le=180, description="GPS longitude")

    def to_location(self) -> Location:
        return Location(latitude=self.latitude, longitude=self.longitude)


class AttendanceRecordOut(BaseModel):
    """Attendance record as the client sees it"""
    id: int
    user_id: int
    user_name: str
    clock_in_time: str
    clock_out_time: Optional[str] = None
    status: str
    duration: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_record(cls, record: AttendanceRecord) -> "AttendanceRecordOut":
        return cls(
            id=record.id,
            user_id=record.user_id,
            user_name=record.user_name,
            clock_in_time=iso_8601_utc(record.clock_in_time),
            clock_out_time=iso_8601_utc(record.clock_out_time),
            status=record.status.value,
            duration=record.duration,
            latitude=record.latitude,
            longitude=record.longitude,
        )


class AttendanceActionResponse(BaseModel):
    """Result of a clock-in / clock-out"""
    success: bool = True
    message: str
    record: AttendanceRecordOut


class ActiveSessionResponse(BaseModel):
    record: Optional[AttendanceRecordOut] = None


class AttendanceListResponse(BaseModel):
    items: List[AttendanceRecordOut]
    total: int


class TodayAttendanceResponse(BaseModel):
    """Live hours-today widget payload"""
    date: str
    active_session: Optional[AttendanceRecordOut] = None
    records: List[AttendanceRecordOut]
    worked_ms: int
    worked: str
    refresh_after_seconds: int
