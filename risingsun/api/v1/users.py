"""
User endpoints: profiles, monthly salaries and name-snapshot resync
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from risingsun.core.deps import get_db, get_current_user, require_admin
from risingsun.models.user import User, UserStatus
from risingsun.schemas.user import NameResyncOut, UserCreate, UserOut, UserUpdate
from risingsun.services import user_service

router = APIRouter()


@router.get("/me", response_model=UserOut)
async def read_me(current_user: User = Depends(get_current_user)):
    """The caller's own profile"""
    return current_user


@router.get("", response_model=List[UserOut])
async def list_users(
    status: Optional[UserStatus] = Query(None, description="Filter by approval status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """All users ordered by name"""
    return user_service.list_users(db, status=status)


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Create a user. 409 CONFLICT when the email is taken.
    """
    return user_service.create_user(db, user_data, actor_id=current_user.id)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return user_service.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Update profile fields, role, approval status or monthly salary.

    Renaming a user does not touch the names already stored on attendance
    records and advances; call ``/resync-names`` for that.
    """
    return user_service.update_user(db, user_id, user_data, actor_id=current_user.id)


@router.post("/{user_id}/resync-names", response_model=NameResyncOut)
async def resync_names(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Rewrite the stored name snapshots with the user's current full name."""
    counts = user_service.resync_user_names(db, user_id, actor_id=current_user.id)
    user = user_service.get_user(db, user_id)
    return NameResyncOut(user_id=user.id, full_name=user.full_name, **counts)
