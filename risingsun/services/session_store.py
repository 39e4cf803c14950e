"""
Session store: the persistence boundary of the attendance & payroll engine.

Callers only ever see immutable domain records (risingsun.domain.records);
rows, driver errors and naive SQLite datetimes stay behind this module.
Every write commits its own transaction.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from risingsun.core.exceptions import (
    AlreadyClosedError,
    ConflictError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from risingsun.domain.records import (
    OPEN,
    AttendanceRecord,
    ClosedSession,
    ReportWindow,
    SalaryAdvance,
    UserProfile,
)
from risingsun.models.attendance_record import AttendanceRecord as AttendanceRow, AttendanceStatus
from risingsun.models.salary_advance import SalaryAdvance as AdvanceRow
from risingsun.models.user import User, UserStatus
from risingsun.utils.datetime_utils import ensure_utc

_log = logging.getLogger(__name__)

CLOCK_IN_CONFLICT_MESSAGE = "You must clock out from your previous session before clocking in again."
ALREADY_CLOSED_MESSAGE = "This session has already been clocked out."

_SESSION_PATCHABLE = {"clock_out_time", "status", "duration", "user_name"}


class SessionStore(ABC):
    """Narrow persistence interface the engine depends on."""

    @abstractmethod
    def find_open_session(self, user_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    @abstractmethod
    def create_session(self, record: AttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError

    @abstractmethod
    def get_session(self, record_id: int) -> AttendanceRecord:
        raise NotImplementedError

    @abstractmethod
    def update_session(self, record_id: int, patch: Dict[str, Any]) -> AttendanceRecord:
        raise NotImplementedError

    @abstractmethod
    def list_sessions(
        self,
        user_id: Optional[int] = None,
        date_range: Optional[ReportWindow] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> List[AttendanceRecord]:
        raise NotImplementedError

    @abstractmethod
    def list_advances(
        self,
        user_id: Optional[int] = None,
        date_range: Optional[ReportWindow] = None,
    ) -> List[SalaryAdvance]:
        raise NotImplementedError

    @abstractmethod
    def list_users_with_salary(self) -> List[UserProfile]:
        raise NotImplementedError

    @abstractmethod
    def create_advance(self, advance: SalaryAdvance) -> SalaryAdvance:
        raise NotImplementedError

    @abstractmethod
    def get_advance(self, advance_id: int) -> SalaryAdvance:
        raise NotImplementedError

    @abstractmethod
    def delete_advance(self, advance_id: int) -> SalaryAdvance:
        raise NotImplementedError

    @abstractmethod
    def get_user(self, user_id: int) -> UserProfile:
        raise NotImplementedError

    @abstractmethod
    def resync_user_names(self, user_id: int, full_name: str) -> Dict[str, int]:
        raise NotImplementedError


def _to_record(row: AttendanceRow) -> AttendanceRecord:
    if row.status == AttendanceStatus.CLOCKED_IN:
        state = OPEN
    else:
        state = ClosedSession(clock_out_time=ensure_utc(row.clock_out_time), duration=row.duration)
    return AttendanceRecord(
        id=row.id,
        user_id=row.user_id,
        user_name=row.user_name,
        clock_in_time=ensure_utc(row.clock_in_time),
        state=state,
        latitude=row.latitude,
        longitude=row.longitude,
    )


def _to_advance(row: AdvanceRow) -> SalaryAdvance:
    return SalaryAdvance(
        id=row.id,
        user_id=row.user_id,
        user_name=row.user_name,
        amount=row.amount,
        date=ensure_utc(row.date),
        notes=row.notes,
        recorded_by_uid=row.recorded_by_uid,
        recorded_by_name=row.recorded_by_name,
    )


def _to_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        monthly_salary=user.monthly_salary,
        status=user.status,
    )


class SqlSessionStore(SessionStore):
    """SessionStore backed by a SQLAlchemy session (one per request)."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Roll back and surface any driver failure as InfrastructureError."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            _log.error("Store failure while trying to %s: %s", action, exc, exc_info=True)
            raise InfrastructureError(f"Failed to {action}: {exc}", cause=exc) from exc

    # --- attendance sessions ---

    def find_open_session(self, user_id: int) -> Optional[AttendanceRecord]:
        with self._guard("get active session"):
            row = (
                self.db.query(AttendanceRow)
                .filter(
                    AttendanceRow.user_id == user_id,
                    AttendanceRow.status == AttendanceStatus.CLOCKED_IN,
                )
                .first()
            )
        return _to_record(row) if row else None

    def create_session(self, record: AttendanceRecord) -> AttendanceRecord:
        row = AttendanceRow(
            user_id=record.user_id,
            user_name=record.user_name,
            clock_in_time=record.clock_in_time,
            clock_out_time=record.clock_out_time,
            status=record.status,
            duration=record.duration,
            latitude=record.latitude,
            longitude=record.longitude,
        )
        with self._guard("clock in"):
            try:
                self.db.add(row)
                self.db.commit()
            except IntegrityError:
                # Lost the race: another open session was written first
                self.db.rollback()
                if self.find_open_session(record.user_id) is not None:
                    _log.info("clock-in rejected by open-session index: user_id=%s", record.user_id)
                    raise ConflictError(CLOCK_IN_CONFLICT_MESSAGE, user_id=record.user_id)
                raise
            self.db.refresh(row)
        return _to_record(row)

    def get_session(self, record_id: int) -> AttendanceRecord:
        with self._guard("get attendance record"):
            row = self.db.query(AttendanceRow).filter(AttendanceRow.id == record_id).first()
        if row is None:
            raise NotFoundError("Attendance record not found.", record_id=record_id)
        return _to_record(row)

    def update_session(self, record_id: int, patch: Dict[str, Any]) -> AttendanceRecord:
        """
        Apply ``patch`` to one record. A patch that closes the session only
        lands if the row is still open, so a second clock-out never overwrites
        the first one's clock_out_time or duration.
        """
        unknown = set(patch) - _SESSION_PATCHABLE
        if unknown:
            raise ValidationError(f"Cannot update attendance fields: {sorted(unknown)}")

        closing = patch.get("status") == AttendanceStatus.CLOCKED_OUT
        stmt = update(AttendanceRow).where(AttendanceRow.id == record_id)
        if closing:
            stmt = stmt.where(AttendanceRow.status == AttendanceStatus.CLOCKED_IN)

        with self._guard("update attendance record"):
            result = self.db.execute(stmt.values(**patch).execution_options(synchronize_session=False))
            self.db.commit()

        if result.rowcount == 0:
            self.get_session(record_id)  # NotFoundError when the id is unknown
            raise AlreadyClosedError(ALREADY_CLOSED_MESSAGE, record_id=record_id)
        return self.get_session(record_id)

    def list_sessions(
        self,
        user_id: Optional[int] = None,
        date_range: Optional[ReportWindow] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> List[AttendanceRecord]:
        with self._guard("get attendance records"):
            query = self.db.query(AttendanceRow)
            if user_id is not None:
                query = query.filter(AttendanceRow.user_id == user_id)
            if date_range is not None and date_range.start is not None:
                query = query.filter(AttendanceRow.clock_in_time >= date_range.start)
            if date_range is not None and date_range.end is not None:
                query = query.filter(AttendanceRow.clock_in_time <= date_range.end)
            if status is not None:
                query = query.filter(AttendanceRow.status == status)
            rows = query.order_by(AttendanceRow.clock_in_time.desc(), AttendanceRow.id.desc()).all()
        return [_to_record(r) for r in rows]

    # --- salary advances ---

    def list_advances(
        self,
        user_id: Optional[int] = None,
        date_range: Optional[ReportWindow] = None,
    ) -> List[SalaryAdvance]:
        with self._guard("get salary advances"):
            query = self.db.query(AdvanceRow)
            if user_id is not None:
                query = query.filter(AdvanceRow.user_id == user_id)
            if date_range is not None and date_range.start is not None:
                query = query.filter(AdvanceRow.date >= date_range.start)
            if date_range is not None and date_range.end is not None:
                query = query.filter(AdvanceRow.date <= date_range.end)
            rows = query.order_by(AdvanceRow.date.desc(), AdvanceRow.id.desc()).all()
        return [_to_advance(r) for r in rows]

    def create_advance(self, advance: SalaryAdvance) -> SalaryAdvance:
        row = AdvanceRow(
            user_id=advance.user_id,
            user_name=advance.user_name,
            amount=advance.amount,
            date=advance.date,
            notes=advance.notes,
            recorded_by_uid=advance.recorded_by_uid,
            recorded_by_name=advance.recorded_by_name,
        )
        with self._guard("record advance"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return _to_advance(row)

    def _advance_row(self, advance_id: int) -> AdvanceRow:
        row = self.db.query(AdvanceRow).filter(AdvanceRow.id == advance_id).first()
        if row is None:
            raise NotFoundError("Salary advance not found.", advance_id=advance_id)
        return row

    def get_advance(self, advance_id: int) -> SalaryAdvance:
        with self._guard("get salary advance"):
            row = self._advance_row(advance_id)
        return _to_advance(row)

    def delete_advance(self, advance_id: int) -> SalaryAdvance:
        with self._guard("delete record"):
            row = self._advance_row(advance_id)
            deleted = _to_advance(row)
            self.db.delete(row)
            self.db.commit()
        return deleted

    # --- users ---

    def get_user(self, user_id: int) -> UserProfile:
        with self._guard("get user"):
            user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found.", user_id=user_id)
        return _to_profile(user)

    def list_users_with_salary(self) -> List[UserProfile]:
        with self._guard("load user data"):
            users = (
                self.db.query(User)
                .filter(
                    User.status == UserStatus.APPROVED.value,
                    User.monthly_salary.isnot(None),
                    User.monthly_salary > 0,
                )
                .order_by(User.full_name.asc(), User.id.asc())
                .all()
            )
        return [_to_profile(u) for u in users]

    def resync_user_names(self, user_id: int, full_name: str) -> Dict[str, int]:
        """Rewrite the denormalized name snapshots of one user."""
        with self._guard("resync user names"):
            sessions = self.db.execute(
                update(AttendanceRow)
                .where(AttendanceRow.user_id == user_id)
                .values(user_name=full_name)
                .execution_options(synchronize_session=False)
            ).rowcount
            advances = self.db.execute(
                update(AdvanceRow)
                .where(AdvanceRow.user_id == user_id)
                .values(user_name=full_name)
                .execution_options(synchronize_session=False)
            ).rowcount
            recorded = self.db.execute(
                update(AdvanceRow)
                .where(AdvanceRow.recorded_by_uid == user_id)
                .values(recorded_by_name=full_name)
                .execution_options(synchronize_session=False)
            ).rowcount
            self.db.commit()
        return {
            "attendance_records": sessions,
            "salary_advances": advances,
            "recorded_advances": recorded,
        }
