# services/event_queries.py - Reusable filters over school calendar events
from collections import defaultdict
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from config import EventType, FREQUENCY_EVENT_TYPES
from db_models import Classroom, SchoolCalendarEvent
from schemas import ClassroomView, EventView, views_from_rows
from .event_precedence import resolve_events

Event = SchoolCalendarEvent


def calendar_events(db: Session, calendar_id: int) -> Query:
    return db.query(Event).filter(Event.school_calendar_id == calendar_id)


def ordered(query: Query) -> Query:
    return query.order_by(Event.event_date, Event.id)


def by_date(query: Query, day: date) -> Query:
    return query.filter(Event.event_date == day)


def by_date_between(query: Query, start: date, end: date) -> Query:
    return query.filter(Event.event_date >= start, Event.event_date <= end)


def by_type(query: Query, event_type: EventType) -> Query:
    return query.filter(Event.event_type == EventType(event_type).value)


def by_description(query: Query, description: str) -> Query:
    return query.filter(Event.description.ilike(f"%{description}%"))


def by_grade(query: Query, grade_id: Optional[int]) -> Query:
    if grade_id is None:
        return without_grade(query)
    return query.filter(Event.grade_id == grade_id)


def by_classroom_id(query: Query, classroom_id: Optional[int]) -> Query:
    if classroom_id is None:
        return without_classroom(query)
    return query.filter(Event.classroom_id == classroom_id)


def by_period(query: Query, period: int) -> Query:
    """Events whose stored period list ("1,2") contains the period"""
    code = str(int(period))
    return query.filter(or_(
        Event.periods == code,
        Event.periods.like(f"{code},%"),
        Event.periods.like(f"%,{code}"),
        Event.periods.like(f"%,{code},%"),
    ))


def with_frequency(query: Query) -> Query:
    return query.filter(Event.event_type.in_([t.value for t in FREQUENCY_EVENT_TYPES]))


def without_frequency(query: Query) -> Query:
    return query.filter(Event.event_type.notin_([t.value for t in FREQUENCY_EVENT_TYPES]))


def extra_school_without_frequency(query: Query) -> Query:
    return by_type(query, EventType.EXTRA_SCHOOL_WITHOUT_FREQUENCY)


def without_grade(query: Query) -> Query:
    return query.filter(Event.grade_id.is_(None))


def without_classroom(query: Query) -> Query:
    return query.filter(Event.classroom_id.is_(None))


def events_for_classroom(
    db: Session,
    calendar_id: int,
    classroom: Classroom,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[SchoolCalendarEvent]:
    """
    The one controlling event per date for a classroom, ordered by date.

    Candidates are the classroom's own events plus grade and unity events of
    its grade; the choice per date follows the school day precedence rules.
    """
    query = calendar_events(db, calendar_id).filter(or_(
        Event.classroom_id == classroom.id,
        and_(Event.classroom_id.is_(None), or_(Event.grade_id.is_(None), Event.grade_id == classroom.grade_id)),
    ))
    if start is not None and end is not None:
        query = by_date_between(query, start, end)

    rows_by_date = defaultdict(list)
    for row in ordered(query).all():
        rows_by_date[row.event_date].append(row)

    classroom_view = ClassroomView.model_validate(classroom)
    controlling = []
    for day in sorted(rows_by_date):
        rows = {row.id: row for row in rows_by_date[day]}
        views = views_from_rows(EventView, rows.values())
        chosen = resolve_events(views, grade_id=classroom.grade_id, classroom=classroom_view)
        if chosen is not None:
            controlling.append(rows[chosen.id])
    return controlling
