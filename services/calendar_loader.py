"""Load calendar snapshots from the database in a fixed number of queries"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from db_models import (
    Classroom, SchoolCalendar, SchoolCalendarClassroom, SchoolCalendarClassroomStep,
    SchoolCalendarStep,
)
from schemas import ClassroomView, EventView, StepView, views_from_rows
from settings import get_settings
from .cache import snapshot_cache
from .calendar_snapshot import CalendarSnapshot
from .errors import RecordNotFound
from .event_queries import by_date_between, calendar_events, ordered
from .school_day import is_school_day

logger = logging.getLogger(__name__)


def load_classroom(db: Session, classroom_id: int) -> ClassroomView:
    classroom = db.get(Classroom, classroom_id)
    if classroom is None:
        raise RecordNotFound(f"Classroom {classroom_id} not found")
    return ClassroomView.model_validate(classroom)


def load_calendar_snapshot(
    db: Session,
    calendar_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    classroom_ids: Iterable[int] = (),
) -> CalendarSnapshot:
    """
    Build a snapshot of a calendar.

    Args:
        db: SQLAlchemy session
        calendar_id: calendar to load
        start, end: optional event date range; all events load when omitted
        classroom_ids: extra classrooms to load by id, e.g. ones from another unity

    Classrooms of the calendar's unity, classrooms without a unity and
    classrooms referenced by events or classroom steps are always loaded.

    Raises:
        RecordNotFound when the calendar does not exist
    """
    calendar = db.get(SchoolCalendar, calendar_id)
    if calendar is None:
        raise RecordNotFound(f"School calendar {calendar_id} not found")

    steps = db.query(SchoolCalendarStep).filter(
        SchoolCalendarStep.school_calendar_id == calendar_id
    ).all()

    classroom_step_rows = db.query(SchoolCalendarClassroomStep, SchoolCalendarClassroom.classroom_id).join(
        SchoolCalendarClassroom,
        SchoolCalendarClassroomStep.school_calendar_classroom_id == SchoolCalendarClassroom.id,
    ).filter(SchoolCalendarClassroom.school_calendar_id == calendar_id).all()

    classroom_steps: Dict[int, List[StepView]] = {}
    for step, classroom_id in classroom_step_rows:
        classroom_steps.setdefault(classroom_id, []).extend(views_from_rows(StepView, [step]))

    query = calendar_events(db, calendar_id)
    if start is not None and end is not None:
        query = by_date_between(query, start, end)
    events = ordered(query).all()

    wanted = {event.classroom_id for event in events if event.classroom_id is not None}
    wanted.update(classroom_steps)
    wanted.update(classroom_ids)
    classrooms = db.query(Classroom).filter(or_(
        Classroom.unity_id == calendar.unity_id,
        Classroom.unity_id.is_(None),
        Classroom.id.in_(wanted),
    )).all()

    snapshot = CalendarSnapshot(
        calendar_id=calendar.id,
        year=calendar.year,
        unity_id=calendar.unity_id,
        number_of_classes=calendar.number_of_classes,
        steps=views_from_rows(StepView, steps),
        classroom_steps=classroom_steps,
        events=views_from_rows(EventView, events),
        classrooms=views_from_rows(ClassroomView, classrooms),
    )
    logger.debug(f"Loaded {snapshot!r}")
    return snapshot


def get_calendar_snapshot(
    db: Session,
    calendar_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    classroom_ids: Iterable[int] = (),
) -> CalendarSnapshot:
    """Cached load_calendar_snapshot; event and step writes invalidate the calendar's entries"""
    settings = get_settings()
    classroom_ids = tuple(sorted(set(classroom_ids)))
    if not settings.SNAPSHOT_CACHE_ENABLED:
        return load_calendar_snapshot(db, calendar_id, start, end, classroom_ids)

    cache_key = (calendar_id, start, end, classroom_ids)
    cached = snapshot_cache.get(cache_key)
    if cached is not None:
        return cached

    generation = snapshot_cache.generation(calendar_id)
    snapshot = load_calendar_snapshot(db, calendar_id, start, end, classroom_ids)
    if not snapshot_cache.set(cache_key, snapshot, ttl_seconds=settings.SNAPSHOT_CACHE_TTL_SECONDS, generation=generation):
        logger.debug(f"Calendar {calendar_id} changed while loading, snapshot not cached")
    return snapshot


def school_day_for(
    db: Session,
    calendar_id: int,
    day: date,
    grade_id: Optional[int] = None,
    classroom_id: Optional[int] = None,
) -> bool:
    """Load what a single date needs and decide it; batch callers should load a range once instead"""
    classroom_ids = () if classroom_id is None else (classroom_id,)
    snapshot = get_calendar_snapshot(db, calendar_id, day, day, classroom_ids)
    return is_school_day(snapshot, day, grade_id, classroom_id)
