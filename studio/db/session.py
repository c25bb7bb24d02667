"""SQLAlchemy engine, session factory and the declarative base."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

# For SQLite, ensure ``check_same_thread=False`` so the connection can be shared
# by FastAPI worker threads. Other database engines ignore this argument.
CONNECT_ARGS = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}

# One engine per process; ``SessionLocal`` builds a session per request.
engine = create_engine(settings.DB_URL, connect_args=CONNECT_ARGS)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
# Parent class for every model under ``studio/models``.
Base = declarative_base()


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
