"""
Tests for audit logging
"""
import pytest
from sqlalchemy.exc import OperationalError

from risingsun.core.exceptions import InfrastructureError
from risingsun.models.audit_log import AuditLog
from risingsun.services.audit_service import log_audit


def test_log_audit_writes_sanitized_meta(db, admin_user):
    entry = log_audit(
        db=db,
        actor_id=admin_user.id,
        action="SALARY_ADVANCE_CREATE",
        entity_type="salary_advances",
        entity_id=7,
        meta={"amount": "2500.50"},
    )

    assert entry.id is not None
    assert entry.meta_json == {"amount": "2500.50"}


def test_failed_audit_write_is_not_swallowed(db, admin_user, monkeypatch, caplog):
    def broken_commit():
        raise OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(InfrastructureError) as exc_info:
        log_audit(db=db, actor_id=admin_user.id, action="REPORT_EXPORT", entity_type="salary_report")

    assert exc_info.value.code == "INFRASTRUCTURE_ERROR"
    assert "disk I/O error" in exc_info.value.message
    assert "Failed to write audit log REPORT_EXPORT" in caplog.text
    monkeypatch.undo()
    assert db.query(AuditLog).count() == 0
