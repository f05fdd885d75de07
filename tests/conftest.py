import os

# keep the app's startup hook away from the on-disk database
os.environ.setdefault("FARMTRACK_DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from farmtrack.db import Base, init_db
from farmtrack.medium import SqlMedium


UTC = timezone.utc


class ClockStub:
    """Mutable clock so tests can control timestamps."""

    def __init__(self, initial: datetime | None = None):
        self._now = initial or datetime(2025, 6, 15, 9, 0, tzinfo=UTC)

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, **delta_kwargs) -> None:
        self._now += timedelta(**delta_kwargs)

    def __call__(self) -> datetime:
        return self._now


@pytest.fixture
def clock():
    return ClockStub()


@pytest.fixture(scope="function")
def session_factory():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def medium(session_factory):
    return SqlMedium(session_factory)
