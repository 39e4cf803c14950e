"""
Salary advance service. Advances are created and deleted, never edited;
a wrong entry is corrected by deleting it and recording a new one.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from risingsun.core.exceptions import ValidationError
from risingsun.domain.records import ReportWindow, SalaryAdvance
from risingsun.services.session_store import SessionStore
from risingsun.utils.datetime_utils import now_utc

_log = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _validate_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("Amount must be a number.", amount=str(amount))
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be positive.", amount=str(amount))
    return value.quantize(CENT)


def add_salary_advance(
    store: SessionStore,
    user_id: int,
    amount,
    recorded_by_uid: int,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> SalaryAdvance:
    """
    Record an advance paid to ``user_id``. The date is server time; both the
    employee's and the recorder's names are stored as snapshots.
    """
    value = _validate_amount(amount)
    employee = store.get_user(user_id)
    recorder = store.get_user(recorded_by_uid)

    advance = store.create_advance(
        SalaryAdvance(
            user_id=employee.id,
            user_name=employee.display_name,
            amount=value,
            date=now or now_utc(),
            notes=(notes or "").strip() or None,
            recorded_by_uid=recorder.id,
            recorded_by_name=recorder.display_name,
        )
    )
    _log.info(
        "salary advance recorded: id=%s user_id=%s amount=%s by=%s",
        advance.id, advance.user_id, advance.amount, recorded_by_uid,
    )
    return advance


def list_salary_advances(
    store: SessionStore,
    user_id: Optional[int] = None,
    date_range: Optional[ReportWindow] = None,
) -> List[SalaryAdvance]:
    """Advances newest first."""
    return store.list_advances(user_id=user_id, date_range=date_range)


def delete_salary_advance(store: SessionStore, advance_id: int) -> SalaryAdvance:
    deleted = store.delete_advance(advance_id)
    _log.info("salary advance deleted: id=%s user_id=%s", advance_id, deleted.user_id)
    return deleted
