"""Sessions and transactions.

One session per request (get_db). Every service mutation runs inside
transaction(db) so a request either commits all of its writes or none.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from switchboard.db.engine import get_engine


def create_session_factory(engine: Any = None) -> sessionmaker[Session]:
    """Build a sessionmaker. Objects stay loaded after commit so services can
    serialize them without another round trip.
    """
    if engine is None:
        engine = get_engine()

    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


# Process-wide factory, built on first use
_SessionLocal: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the default session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = create_session_factory()
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session dependency; closed when the request finishes."""
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Generator[None, None, None]:
    """Commit the block's writes, or roll them all back and re-raise.

    Group fanout relies on this: a failed insert leaves no notification rows.
    """
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise
