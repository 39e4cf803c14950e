"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from risingsun.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(String, nullable=False)  # e.g. "ATTENDANCE_CLOCK_IN", "SALARY_ADVANCE_DELETE"
    entity_type = Column(String, nullable=False)  # e.g. "attendance_records", "salary_advances"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    # Set explicitly by log_audit; SQLite server defaults come back naive
    created_at = Column(DateTime(timezone=True), nullable=False)
