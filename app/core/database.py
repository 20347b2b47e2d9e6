# app/core/database.py
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from app.core.config import get_settings
from app.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

settings = get_settings()

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Common DB dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, action: str) -> Iterator[Session]:
    """Run a unit of work that either commits entirely or not at all.

    Any exception rolls the session back. Database errors are logged and
    re-raised as PersistenceError; everything else propagates unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("A database error occurred while %s.", action)
        raise PersistenceError(f"Database error while {action}") from exc
    except Exception:
        db.rollback()
        raise
