"""
Audit logging service
"""
import logging
from typing import Optional, Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from risingsun.core.exceptions import InfrastructureError
from risingsun.models.audit_log import AuditLog
from risingsun.utils.datetime_utils import now_utc
from risingsun.utils.json_serializer import sanitize_for_json

_log = logging.getLogger(__name__)


def log_audit(
    db: Session,
    actor_id: int,
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Create an audit log entry

    Args:
        db: Database session
        actor_id: ID of the user performing the action
        action: Action type (e.g., "ATTENDANCE_CLOCK_IN", "SALARY_ADVANCE_CREATE")
        entity_type: Type of entity (e.g., "attendance_records", "salary_advances")
        entity_id: ID of the affected entity (optional)
        meta: Additional metadata as dictionary (optional)

    Returns:
        Created AuditLog instance

    Raises:
        InfrastructureError: the entry could not be written. The audited
        action itself is already committed at this point.
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=sanitize_for_json(meta) if meta is not None else None,
        created_at=now_utc(),
    )
    try:
        db.add(audit_log)
        db.commit()
        db.refresh(audit_log)
    except SQLAlchemyError as e:
        db.rollback()
        _log.error("Failed to write audit log %s for %s %s: %s", action, entity_type, entity_id, e, exc_info=True)
        raise InfrastructureError(f"Failed to write audit log: {e}", cause=e, action=action) from e
    return audit_log
