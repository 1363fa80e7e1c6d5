"""SQLAlchemy engine, session factory and declarative base.

The engine is created lazily so importing models (tests, Celery workers,
``seed_db.py``) never opens a connection.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from examhub.config import settings

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None  # type: ignore[type-arg]


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Request handlers and the timer auto-submit share connections across threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


def get_engine() -> Engine:
    """Get or create the SQLAlchemy engine for ``settings.DATABASE_URL``."""
    global _engine
    if _engine is None:
        _engine = create_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            **_engine_options(settings.DATABASE_URL),
        )
    return _engine


def get_session_factory() -> sessionmaker:  # type: ignore[type-arg]
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autocommit=False, autoflush=False)
    return _SessionLocal


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


def create_tables() -> None:
    """Create any missing tables (users, exams, exam_attempts) on the engine."""
    # Import for side effects: registers every model on Base.metadata
    from examhub.db import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


@contextmanager
def session_scope(factory: Optional[sessionmaker] = None) -> Iterator[Session]:  # type: ignore[type-arg]
    """Session for work outside a request (Celery tasks, scripts).

    Uncommitted work is rolled back if the block raises; the session is
    always closed.
    """
    db = (factory or get_session_factory())()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request, closed afterwards."""
    with session_scope() as db:
        yield db
