"""Database engine, session factory and transaction helpers."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from npo_calendar.config import get_settings
from npo_calendar.errors import ConflictError

logger = logging.getLogger(__name__)
settings = get_settings()


def _engine_kwargs(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for a request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit every write made inside the block, or none of them.

    Storage collisions are surfaced as ConflictError; nothing is retried.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Concurrent modification detected: {e}")
        raise ConflictError("The event was modified by someone else; reload and retry") from e
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity conflict: {e.orig}")
        raise ConflictError("The change conflicts with existing data") from e
    except Exception:
        db.rollback()
        raise
