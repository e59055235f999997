# src/database.py
import logging
from contextlib import contextmanager
from uuid import uuid4

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from config import settings
from errors import PersistenceError

logger = logging.getLogger(__name__)

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session for the duration of a request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def generate_uuid() -> str:
    """Primary key default for every table."""
    return str(uuid4())


@contextmanager
def atomic(db: Session, failure_detail: str = "Failed to save changes"):
    """Run the block as one unit of work: commit once at the end, roll everything back on error.

    Database errors, including unique-index violations raised by a flush inside the block,
    surface as PersistenceError carrying `failure_detail`. Any other exception is re-raised
    unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database write failed: {str(e)}", exc_info=True)
        raise PersistenceError(failure_detail) from e
    except Exception:
        db.rollback()
        raise
