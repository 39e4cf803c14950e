"""
Salary advance endpoints (admin only). Advances are recorded and deleted;
there is no edit.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from risingsun.api.v1.attendance import resolve_date_range
from risingsun.core.deps import get_db, get_store, require_admin
from risingsun.models.user import User
from risingsun.schemas.salary_advance import (
    SalaryAdvanceActionResponse,
    SalaryAdvanceCreate,
    SalaryAdvanceListResponse,
    SalaryAdvanceOut,
)
from risingsun.services import salary_advance_service as svc
from risingsun.services.audit_service import log_audit
from risingsun.services.session_store import SessionStore

router = APIRouter()


@router.post("", response_model=SalaryAdvanceActionResponse, status_code=201)
async def create_salary_advance(
    advance_data: SalaryAdvanceCreate,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """
    Record an advance paid to an employee. The date is set by the server and
    the caller is stored as the recorder.
    """
    advance = svc.add_salary_advance(
        store,
        user_id=advance_data.user_id,
        amount=advance_data.amount,
        recorded_by_uid=current_user.id,
        notes=advance_data.notes,
    )
    log_audit(
        db=db,
        actor_id=current_user.id,
        action="SALARY_ADVANCE_CREATE",
        entity_type="salary_advances",
        entity_id=advance.id,
        meta={"user_id": advance.user_id, "amount": advance.amount},
    )
    return SalaryAdvanceActionResponse(
        message="Salary advance recorded.",
        advance=SalaryAdvanceOut.from_advance(advance),
    )


@router.get("", response_model=SalaryAdvanceListResponse)
async def list_salary_advances(
    user_id: Optional[int] = Query(None, description="Filter by employee"),
    from_date: Optional[date] = Query(None, alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, alias="to", description="End date (YYYY-MM-DD)"),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """Advances newest first."""
    advances = svc.list_salary_advances(
        store,
        user_id=user_id,
        date_range=resolve_date_range(from_date, to_date),
    )
    return SalaryAdvanceListResponse(
        items=[SalaryAdvanceOut.from_advance(a) for a in advances],
        total=len(advances),
    )


@router.delete("/{advance_id}", response_model=SalaryAdvanceActionResponse)
async def delete_salary_advance(
    advance_id: int,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_store),
    current_user: User = Depends(require_admin)
):
    """Delete an advance; 404 when it does not exist."""
    deleted = svc.delete_salary_advance(store, advance_id)
    log_audit(
        db=db,
        actor_id=current_user.id,
        action="SALARY_ADVANCE_DELETE",
        entity_type="salary_advances",
        entity_id=advance_id,
        meta={"user_id": deleted.user_id, "amount": deleted.amount},
    )
    return SalaryAdvanceActionResponse(
        message="Salary advance record deleted.",
        advance=SalaryAdvanceOut.from_advance(deleted),
    )
