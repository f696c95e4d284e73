"""Engine and session handling for the RouteGuard route store."""

from __future__ import annotations

import os
from contextlib import contextmanager

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

DB_PATH = os.environ.get("ROUTEGUARD_DB_PATH", "routeguard.db")
DATABASE_URL = f"sqlite:///{DB_PATH}"

# Milliseconds a writer waits on a locked database before failing
BUSY_TIMEOUT_MS = int(os.environ.get("ROUTEGUARD_DB_BUSY_TIMEOUT_MS", "5000"))

engine = create_engine(
    DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """WAL lets readers list routes while another request writes."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    cursor.close()


@contextmanager
def get_db():
    """Yield a session that commits on success and rolls back on error."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db():
    """Create the routes, providers and settings tables if missing."""
    from . import db_models  # noqa: F401

    SQLModel.metadata.create_all(engine)
