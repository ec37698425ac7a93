"""Database session management utilities."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from .base import Base
from .session import SessionLocal, engine as _engine

# Every exit path closes the session so the pooled connection is returned,
# including sessions left inactive by a failed flush.


@contextmanager
def get_session() -> Iterator[Session]:
    """Context manager yielding a SQLAlchemy session."""

    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_session_dependency() -> Iterator[Session]:
    """FastAPI dependency wrapping :func:`get_session`."""

    with get_session() as session:
        yield session


def get_engine():
    """Return the configured SQLAlchemy engine."""

    return _engine


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope for scripts and tests."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create every table known to the ORM metadata."""

    # Registers the models on ``Base.metadata``.
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=_engine)


__all__ = [
    "Base",
    "get_engine",
    "get_session",
    "get_session_dependency",
    "init_db",
    "session_scope",
]
