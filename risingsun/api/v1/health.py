"""
Liveness and database readiness
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from risingsun.core.constants import SERVICE_NAME, SYSTEM_CREDIT
from risingsun.core.deps import get_db

router = APIRouter()
_log = logging.getLogger(__name__)


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """
    ``status: ok`` while the attendance store answers a trivial query,
    otherwise 503 with ``status: degraded``. No authentication.
    """
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        db.rollback()
        _log.error("Health check could not reach the database: %s", e)
        database = "unavailable"

    body = {
        "status": "ok" if database == "ok" else "degraded",
        "service": SERVICE_NAME,
        "database": database,
        "credit": SYSTEM_CREDIT,
    }
    return JSONResponse(status_code=200 if database == "ok" else 503, content=body)
