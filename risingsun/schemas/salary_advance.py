"""
Salary advance schemas
"""
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from risingsun.domain.records import SalaryAdvance
from risingsun.utils.datetime_utils import iso_8601_utc


class SalaryAdvanceCreate(BaseModel):
    """
    Body for recording an advance. Positivity of ``amount`` is checked by the
    service so the failure comes back as a typed VALIDATION_ERROR.
    """
    user_id: int = Field(..., description="Employee receiving the advance")
    amount: Decimal = Field(..., description="Advance amount (must be positive)")
    notes: Optional[str] = Field(None, max_length=1000)


class SalaryAdvanceOut(BaseModel):
    id: int
    user_id: int
    user_name: str
    amount: float
    date: str
    notes: Optional[str] = None
    recorded_by_uid: int
    recorded_by_name: str

    @classmethod
    def from_advance(cls, advance: SalaryAdvance) -> "SalaryAdvanceOut":
        return cls(
            id=advance.id,
            user_id=advance.user_id,
            user_name=advance.user_name,
            amount=float(advance.amount),
            date=iso_8601_utc(advance.date),
            notes=advance.notes,
            recorded_by_uid=advance.recorded_by_uid,
            recorded_by_name=advance.recorded_by_name,
        )


class SalaryAdvanceActionResponse(BaseModel):
    success: bool = True
    message: str
    advance: Optional[SalaryAdvanceOut] = None


class SalaryAdvanceListResponse(BaseModel):
    items: List[SalaryAdvanceOut]
    total: int
