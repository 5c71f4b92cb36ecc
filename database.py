# database.py - Engine, declarative base and commit helper for the calendar tables
import logging
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, Session
from sqlalchemy.exc import SQLAlchemyError

from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_URL = "sqlite:///./data/school_calendar.db"

DATABASE_URL = get_settings().DATABASE_URL

# The default SQLite file lives next to this module
if DATABASE_URL == DEFAULT_SQLITE_URL:
    DATA_DIR = Path(__file__).resolve().parent / "data"
    DATA_DIR.mkdir(exist_ok=True)
    DATABASE_URL = f"sqlite:///{DATA_DIR}/school_calendar.db"

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,  # Handle stale connections for PostgreSQL
)

Base = declarative_base()


def init_db(bind=None):
    """Create every calendar table on the bind (default engine) if missing"""
    from db_models import (  # noqa: F401
        Unity, Grade, Classroom, SchoolCalendar, SchoolCalendarStep,
        SchoolCalendarClassroom, SchoolCalendarClassroomStep, SchoolCalendarEvent,
    )
    Base.metadata.create_all(bind=bind or engine)


def safe_commit(db: Session) -> bool:
    """
    Safely commit a database transaction with rollback on failure.

    Args:
        db: SQLAlchemy session

    Returns:
        True if commit succeeded

    Raises:
        Re-raises the exception after rollback
    """
    try:
        db.commit()
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database commit failed, rolling back: {e}")
        db.rollback()
        raise
