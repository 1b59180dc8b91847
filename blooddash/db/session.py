from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from blooddash.core.config import get_settings

# registers audit / change-feed listeners on every Session
import blooddash.db.triggers  # noqa: F401

settings = get_settings()

DATABASE_URL = settings.database_url  # fail fast if missing


def make_engine(url: str):
    kwargs = {"pool_pre_ping": True, "future": True}
    if not url.startswith("sqlite"):
        return create_engine(url, **kwargs)

    kwargs["connect_args"] = {"check_same_thread": False}
    eng = create_engine(url, **kwargs)

    @event.listens_for(eng, "connect")
    def _enable_fks(dbapi_conn, _record):
        # SQLite leaves FK enforcement (and ON DELETE CASCADE) off by default
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    return eng


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
