import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from physiobot.core.config import settings
from physiobot.core.errors import PersistenceError
from physiobot.models import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def commit_or_raise(db: Session, what: str) -> None:
    """Commit the unit of work; roll back and raise PersistenceError on failure."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", what, exc)
        raise PersistenceError(f"Failed to {what}") from exc


def query_or_raise(db: Session, what: str, run: Callable[[], T]) -> T:
    """Run a read against the session; roll back and raise PersistenceError on failure."""
    try:
        return run()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", what, exc)
        raise PersistenceError(f"Failed to {what}") from exc


def init_db() -> None:
    # Create tables (MVP). For production, use Alembic migrations.
    Base.metadata.create_all(bind=engine)
