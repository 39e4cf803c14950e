"""
User schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from risingsun.core.security import validate_password
from risingsun.models.user import UserRole, UserStatus
from risingsun.utils.datetime_utils import iso_8601_utc


def _normalize_password(v):
    # blank means "no password"
    if v is None or not v.strip():
        return None
    return validate_password(v)


class UserCreate(BaseModel):
    """Schema for creating a user"""
    email: str = Field(..., min_length=3, description="Login email (unique)")
    full_name: str = Field(..., min_length=1, description="Display name")
    password: Optional[str] = Field(None, description="Password (optional)")
    role: UserRole = Field(default=UserRole.USER)
    status: UserStatus = Field(default=UserStatus.APPROVED)
    monthly_salary: Optional[Decimal] = Field(None, description="Monthly base salary; omit to keep the user off payroll")
    active: bool = True

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        return _normalize_password(v)


class UserUpdate(BaseModel):
    """Schema for updating a user. Sending monthly_salary=null clears it."""
    full_name: Optional[str] = Field(None, min_length=1)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    monthly_salary: Optional[Decimal] = None
    active: Optional[bool] = None
    password: Optional[str] = None

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        return _normalize_password(v)


class UserOut(BaseModel):
    """User output; datetimes as ISO-8601 UTC."""
    id: int
    email: str
    full_name: str
    role: str
    status: str
    monthly_salary: Optional[Decimal] = None
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("monthly_salary")
    def _ser_salary(self, v: Optional[Decimal]) -> Optional[float]:
        return float(v) if v is not None else None

    @field_serializer("created_at", "updated_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_8601_utc(dt)


class NameResyncOut(BaseModel):
    """Rows whose name snapshot was rewritten"""
    user_id: int
    full_name: str
    attendance_records: int
    salary_advances: int
    recorded_advances: int
