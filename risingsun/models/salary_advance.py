"""
Salary advance model (create/delete only)
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from risingsun.db.base import Base


class SalaryAdvance(Base):
    __tablename__ = "salary_advances"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_salary_advances_amount_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_name = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)  # server time at creation
    notes = Column(Text, nullable=True)
    recorded_by_uid = Column(Integer, ForeignKey("users.id"), nullable=False)
    recorded_by_name = Column(String, nullable=False)

    user = relationship("User", foreign_keys=[user_id])
    recorded_by = relationship("User", foreign_keys=[recorded_by_uid])
