# tutoring_scheduler/db.py
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base

from tutoring_scheduler.core.config import settings
from tutoring_scheduler.core.exceptions import ConflictException, StorageUnavailable

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    future=True,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db, operation: str) -> None:
    """Commit the unit of work; a storage fault rolls back and surfaces as retryable."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Integrity error during %s: %s", operation, e.orig)
        raise ConflictException(
            "Change conflicts with existing records",
            code="INTEGRITY_ERROR",
            details={"operation": operation},
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Commit failed during %s: %s", operation, e)
        raise StorageUnavailable(operation) from e
