"""
Build and deployment metadata
"""
from fastapi import APIRouter

from risingsun.core.config import settings
from risingsun.core.constants import SERVICE_NAME, SYSTEM_CREDIT

router = APIRouter()


@router.get("/version")
async def get_version():
    """Service version plus the business timezone and currency that reports use."""
    return {
        "service": SERVICE_NAME,
        "version": settings.VERSION or "1.0.0",
        "env": settings.APP_ENV,
        "business_tz": settings.BUSINESS_TZ,
        "currency": settings.CURRENCY_SYMBOL,
        "credit": SYSTEM_CREDIT,
    }
