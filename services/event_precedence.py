"""
Decide which calendar event controls a date for a grade/classroom.

Events are grouped into precedence tiers, most specific first:

    classroom events  >  grade events  >  unity events

and inside every tier an event that suspends classes beats an event that
keeps attendance counting (EXTRA_SCHOOL). The first tier holding a matching
event wins; within a tier the most specific classroom wins ties.
"""
import logging
from datetime import date
from typing import Callable, Iterable, List, Optional, Tuple

from config import EventCoverage
from schemas import ClassroomView, EventView
from .errors import RecordNotFound

logger = logging.getLogger(__name__)

Tier = Tuple[str, Callable[[EventView], bool]]


def specificity_key(event: EventView) -> tuple:
    """Sort key: events tied to a classroom rank above unscoped ones, higher ids first"""
    return (
        event.classroom_id is not None,
        event.classroom_id or 0,
        event.id or 0,
    )


def most_specific(events: Iterable[EventView]) -> Optional[EventView]:
    """
    Pick one event out of several competing for the same date.

    Mirrors the old "ORDER BY classroom_id DESC LIMIT 1" selection, except
    that events without a classroom always lose against classroom events.
    """
    events = list(events)
    if not events:
        return None
    return max(events, key=specificity_key)


def _classroom_match(grade_id: Optional[int], classroom_id: int):
    def matches(event: EventView) -> bool:
        return (
            event.coverage == EventCoverage.BY_CLASSROOM
            and event.classroom_id == classroom_id
            and event.grade_id == grade_id
        )
    return matches


def _grade_match(grade_id: int, period: Optional[int] = None):
    def matches(event: EventView) -> bool:
        return (
            event.coverage == EventCoverage.BY_GRADE
            and event.classroom_id is None
            and event.grade_id == grade_id
            and event.applies_to_period(period)
        )
    return matches


def _unity_match(period: Optional[int] = None):
    def matches(event: EventView) -> bool:
        return (
            event.grade_id is None
            and event.classroom_id is None
            and event.applies_to_period(period)
        )
    return matches


def precedence_tiers(
    grade_id: Optional[int] = None,
    classroom: Optional[ClassroomView] = None,
) -> List[Tier]:
    """Scope tiers to scan, most specific first"""
    if classroom is not None:
        effective_grade = grade_id if grade_id is not None else classroom.grade_id
        return [
            ("classroom", _classroom_match(effective_grade, classroom.id)),
            ("grade", _grade_match(effective_grade, classroom.period)),
            ("unity", _unity_match(classroom.period)),
        ]

    tiers = []
    if grade_id is not None:
        tiers.append(("grade", _grade_match(grade_id)))
    tiers.append(("unity", _unity_match()))
    return tiers


def resolve_events(
    events: Iterable[EventView],
    grade_id: Optional[int] = None,
    classroom: Optional[ClassroomView] = None,
) -> Optional[EventView]:
    """
    Return the controlling event among the events of a single date.

    Returns None when no event applies, leaving the decision to the
    step/weekday rule.
    """
    events = tuple(events)
    if not events:
        return None

    for tier_name, matches in precedence_tiers(grade_id, classroom):
        candidates = [event for event in events if matches(event)]
        if not candidates:
            continue

        suspending = [event for event in candidates if not event.is_frequency_bearing]
        if suspending:
            chosen = most_specific(suspending)
        else:
            chosen = most_specific(candidates)

        if len(candidates) > 1:
            logger.debug(
                f"{len(candidates)} {tier_name} events on {chosen.event_date}, "
                f"event {chosen.id} ({chosen.event_type.value}) controls"
            )
        return chosen

    return None


def resolve(
    calendar,
    day: date,
    grade_id: Optional[int] = None,
    classroom_id: Optional[int] = None,
) -> Optional[EventView]:
    """Controlling event of a calendar for a date, grade and classroom"""
    classroom = None
    if classroom_id is not None:
        classroom = calendar.classroom(classroom_id)
        if classroom is None:
            raise RecordNotFound(f"Classroom {classroom_id} not found in calendar {calendar.id}")

    return resolve_events(calendar.events_on(day), grade_id=grade_id, classroom=classroom)
