"""
Process-wide logging for the payroll service
"""
import logging
import sys

from risingsun.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at the application level
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
}


def setup_logging() -> None:
    """
    Send records to stdout at ``settings.LOG_LEVEL`` (unknown names fall back
    to INFO). Safe to call more than once; the handler is replaced, not added.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, env=%s, business_tz=%s",
        logging.getLevelName(level), settings.APP_ENV, settings.BUSINESS_TZ,
    )
