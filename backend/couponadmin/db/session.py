"""SQLAlchemy engine/session helpers for the saved views store."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from couponadmin.core.config import get_settings


def _normalize_database_url(url: str) -> str:
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    return url


def engine_options(url: str) -> dict:
    """
    Engine keyword arguments for a normalized database URL.

    SQLite connections are shared with the threadpool FastAPI runs sync
    routes on, so thread checks are off for every SQLite URL. An in-memory
    database only exists on one connection, which StaticPool keeps.
    """
    options = {"pool_pre_ping": True, "future": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            options["poolclass"] = StaticPool
    return options


def build_engine(database_url: str) -> Engine:
    url = _normalize_database_url(database_url)
    return create_engine(url, **engine_options(url))


engine = build_engine(get_settings().database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency to provide a DB session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
