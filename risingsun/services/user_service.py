"""
User service - profiles, salaries and the explicit name-snapshot resync
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from risingsun.core.exceptions import ConflictError, NotFoundError, ValidationError
from risingsun.core.security import hash_password
from risingsun.models.user import User, UserRole, UserStatus
from risingsun.schemas.user import UserCreate, UserUpdate
from risingsun.services.audit_service import log_audit
from risingsun.services.session_store import SqlSessionStore

_log = logging.getLogger(__name__)


def _validate_salary(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return None
    if not value.is_finite() or value < 0:
        raise ValidationError("Monthly salary must be a non-negative number.", monthly_salary=str(value))
    return value


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found.", user_id=user_id)
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def list_users(db: Session, status: Optional[UserStatus] = None) -> List[User]:
    query = db.query(User)
    if status is not None:
        query = query.filter(User.status == status.value)
    return query.order_by(User.full_name.asc(), User.id.asc()).all()


def create_user(db: Session, data: UserCreate, actor_id: Optional[int] = None) -> User:
    """
    Create a user

    Raises:
        ConflictError: email already registered
        ValidationError: negative salary
    """
    if get_user_by_email(db, data.email) is not None:
        raise ConflictError(f"A user with email '{data.email}' already exists.")

    user = User(
        email=data.email,
        full_name=data.full_name.strip(),
        role=data.role.value,
        status=data.status.value,
        monthly_salary=_validate_salary(data.monthly_salary),
        password_hash=hash_password(data.password) if data.password else None,
        active=data.active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    _log.info("user created: id=%s role=%s", user.id, user.role)

    if actor_id is not None:
        log_audit(
            db=db,
            actor_id=actor_id,
            action="USER_CREATE",
            entity_type="users",
            entity_id=user.id,
            meta={"email": user.email, "role": user.role, "monthly_salary": user.monthly_salary},
        )
    return user


def update_user(db: Session, user_id: int, data: UserUpdate, actor_id: int) -> User:
    """
    Partially update a user. Only fields present in the request are touched,
    so an explicit ``monthly_salary: null`` takes the user off payroll.

    The name snapshots on existing attendance records and advances are not
    rewritten here; see resync_user_names.
    """
    user = get_user(db, user_id)
    changes = data.model_dump(exclude_unset=True)
    if "monthly_salary" in changes:
        _validate_salary(changes["monthly_salary"])
    meta: Dict[str, object] = {}

    if "full_name" in changes and changes["full_name"] is not None:
        meta["old_full_name"] = user.full_name
        user.full_name = changes["full_name"].strip()
        meta["new_full_name"] = user.full_name
    if changes.get("role") is not None:
        user.role = changes["role"].value
        meta["role"] = user.role
    if changes.get("status") is not None:
        user.status = changes["status"].value
        meta["status"] = user.status
    if "monthly_salary" in changes:
        meta["old_monthly_salary"] = user.monthly_salary
        user.monthly_salary = changes["monthly_salary"]
        meta["new_monthly_salary"] = user.monthly_salary
    if changes.get("active") is not None:
        user.active = changes["active"]
        meta["active"] = user.active
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])
        meta["password_changed"] = True

    db.commit()
    db.refresh(user)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="USER_UPDATE",
        entity_type="users",
        entity_id=user.id,
        meta=meta,
    )
    return user


def resync_user_names(db: Session, user_id: int, actor_id: int) -> Dict[str, int]:
    """
    Copy the user's current full name onto every denormalized snapshot
    (attendance records, advances received, advances recorded).
    """
    user = get_user(db, user_id)
    counts = SqlSessionStore(db).resync_user_names(user.id, user.full_name)
    _log.info("name snapshots resynced: user_id=%s counts=%s", user.id, counts)

    log_audit(
        db=db,
        actor_id=actor_id,
        action="USER_NAME_RESYNC",
        entity_type="users",
        entity_id=user.id,
        meta={"full_name": user.full_name, **counts},
    )
    return counts


def ensure_initial_admin(db: Session, email: str, password: str) -> Optional[User]:
    """Create the first admin account if no admin exists. Returns the new admin or None."""
    if db.query(User).filter(User.role == UserRole.ADMIN.value).first() is not None:
        return None

    admin = create_user(
        db,
        UserCreate(
            email=email,
            full_name="System Administrator",
            password=password,
            role=UserRole.ADMIN,
            status=UserStatus.APPROVED,
        ),
    )
    return admin
