"""
Main API router
"""
from fastapi import APIRouter

from risingsun.api.v1 import (
    health,
    version,
    auth,
    attendance,
    salary_advances,
    payroll,
    users,
)
from risingsun.api.v1.admin import admin_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
api_router.include_router(admin_router)
api_router.include_router(salary_advances.router, prefix="/salary-advances", tags=["salary-advances"])
api_router.include_router(payroll.router, prefix="/payroll", tags=["payroll"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
