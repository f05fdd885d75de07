# farmtrack/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from farmtrack.config import Settings, get_settings


def _connect_args(settings: Settings) -> dict:
    if settings.database_url.startswith("sqlite"):
        # sqlite's busy timeout bounds how long a locked database blocks us
        return {"check_same_thread": False, "timeout": settings.storage_timeout_seconds}
    return {"connect_timeout": int(settings.storage_timeout_seconds)}


def make_engine(settings: Settings | None = None):
    settings = settings or get_settings()
    return create_engine(settings.database_url, connect_args=_connect_args(settings))


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    # register the tables before creating them
    from farmtrack import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
