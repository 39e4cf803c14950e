"""
Attendance record model: one row per clock-in, closed exactly once by clock-out.
"""
from sqlalchemy import (
    Column,
    Integer,
    Float,
    DateTime,
    ForeignKey,
    String,
    Index,
    CheckConstraint,
    Enum as SQLEnum,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from risingsun.db.base import Base


class AttendanceStatus(str, enum.Enum):
    CLOCKED_IN = "clocked-in"
    CLOCKED_OUT = "clocked-out"


OPEN_SESSION_PREDICATE = "status = 'clocked-in'"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        # At most one open session per user, enforced by the store itself
        Index(
            "uq_attendance_records_one_open_per_user",
            "user_id",
            unique=True,
            sqlite_where=text(OPEN_SESSION_PREDICATE),
            postgresql_where=text(OPEN_SESSION_PREDICATE),
        ),
        CheckConstraint(
            "(status = 'clocked-in' AND clock_out_time IS NULL AND duration IS NULL)"
            " OR (status = 'clocked-out' AND clock_out_time IS NOT NULL)",
            name="ck_attendance_records_status_matches_clock_out",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_name = Column(String, nullable=False)  # snapshot at clock-in, see resync_user_names
    clock_in_time = Column(DateTime(timezone=True), nullable=False, index=True)
    clock_out_time = Column(DateTime(timezone=True), nullable=True)
    status = Column(
        SQLEnum(
            AttendanceStatus,
            name="attendance_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AttendanceStatus.CLOCKED_IN,
    )
    duration = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    user = relationship("User", backref="attendance_records")
