"""
Database initialization
"""
import logging
from sqlalchemy.engine import Engine
from timeclock.db.base import Base
import timeclock.models  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    """
    Create time_entries, work_hours and audit_logs if they do not exist.

    Safe to call repeatedly; existing tables are left untouched.
    """
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured: %s", ", ".join(sorted(Base.metadata.tables)))
