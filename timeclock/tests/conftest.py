"""
Pytest configuration and fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("APP_ENV", "local")
os.environ.setdefault("WORK_TIMEZONE", "Europe/Madrid")

from datetime import datetime
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timeclock.main import app
from timeclock.db.base import Base
from timeclock.core.deps import get_db
from timeclock.models import PunchEvent, PunchType  # noqa: F401  (registers tables)
from timeclock.utils.datetime_utils import WORK_TZ, ensure_utc


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_ids = count(1)


def local(year, month, day, hour=0, minute=0, second=0, microsecond=0, tz=WORK_TZ) -> datetime:
    """Wall-clock instant in the work timezone."""
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)


def punch(kind, at, employee_id=1, *, active=True, labor_category=None, work_center=None) -> PunchEvent:
    """Transient (unsaved) punch event for pure-core tests."""
    return PunchEvent(
        id=next(_ids),
        employee_id=employee_id,
        event_type=PunchType(kind),
        timestamp=at,
        labor_category=labor_category,
        work_center=work_center,
        is_active=active,
    )


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def store_punch(db):
    """Persist a punch event (stored in UTC, like the services do) and return it."""
    def _store(kind, at, employee_id=1, **kwargs):
        event = punch(kind, ensure_utc(at), employee_id, **kwargs)
        event.id = None
        db.add(event)
        db.commit()
        db.refresh(event)
        return event
    return _store
