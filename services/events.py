"""Create, update and destroy school calendar events"""
import logging
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from config import EventCoverage
from database import safe_commit
from db_models import Classroom, Grade, SchoolCalendar, SchoolCalendarEvent
from schemas import (
    EventAttributes, FieldError, SchoolCalendarEventCreate, SchoolCalendarEventUpdate, field_errors_from,
)
from .cache import snapshot_cache
from .errors import RecordNotFound, ValidationFailed

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "already_exists_event_in_this_date"


def parse_event_payload(
    payload: Dict[str, Any],
    schema: Type[EventAttributes] = SchoolCalendarEventCreate,
) -> EventAttributes:
    """
    Validate a raw payload (flat or nested scope) into an event schema.

    Raises:
        ValidationFailed with one FieldError per problem
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(field_errors_from(e)) from e


class EventService:
    """Writes school calendar events, enforcing coverage and uniqueness rules"""

    def __init__(self, db: Session):
        self.db = db

    def _lock_calendar(self, calendar_id: int) -> SchoolCalendar:
        """
        Load the owning calendar with a row lock.

        Concurrent writers on the same calendar queue up here, so the
        uniqueness check below sees every committed event.
        """
        calendar = self.db.query(SchoolCalendar).filter(
            SchoolCalendar.id == calendar_id
        ).with_for_update().first()
        if calendar is None:
            raise RecordNotFound(f"School calendar {calendar_id} not found")
        return calendar

    def _conflicting_events(self, calendar_id: int, data: EventAttributes, event_id: Optional[int]):
        query = self.db.query(SchoolCalendarEvent).filter(
            SchoolCalendarEvent.school_calendar_id == calendar_id,
            SchoolCalendarEvent.event_type != data.event_type.value,
            SchoolCalendarEvent.event_date == data.event_date,
        )
        if data.coverage == EventCoverage.BY_GRADE:
            query = query.filter(
                SchoolCalendarEvent.grade_id == data.grade_id,
                SchoolCalendarEvent.classroom_id.is_(None),
            )
        elif data.coverage == EventCoverage.BY_CLASSROOM:
            query = query.filter(SchoolCalendarEvent.classroom_id == data.classroom_id)
        else:
            return None
        if event_id is not None:
            query = query.filter(SchoolCalendarEvent.id != event_id)
        return query

    def validate(self, calendar_id: int, data: EventAttributes, event_id: Optional[int] = None) -> List[FieldError]:
        """Checks that need the database; schema-level rules already ran"""
        errors = []

        if data.grade_id is not None and self.db.get(Grade, data.grade_id) is None:
            errors.append(FieldError(field="grade_id", reason="not_found"))
        if data.classroom_id is not None and self.db.get(Classroom, data.classroom_id) is None:
            errors.append(FieldError(field="classroom_id", reason="not_found"))

        conflicts = self._conflicting_events(calendar_id, data, event_id)
        if conflicts is not None and conflicts.first() is not None:
            errors.append(FieldError(
                field="event_date",
                reason=ALREADY_EXISTS,
                message=f"another kind of event already exists on {data.event_date}",
            ))

        return errors

    def _apply(self, event: SchoolCalendarEvent, data: EventAttributes):
        event.description = data.description
        event.event_type = data.event_type.value
        event.event_date = data.event_date
        event.coverage = data.coverage.value
        event.period_list = data.periods
        event.grade_id = data.grade_id
        event.classroom_id = data.classroom_id
        event.legend = data.legend

    def _reject(self, calendar_id: int, errors: List[FieldError]):
        self.db.rollback()
        logger.warning(f"Rejected event write on calendar {calendar_id}: {[(e.field, e.reason) for e in errors]}")
        raise ValidationFailed(errors)

    def create_event(self, data: Union[SchoolCalendarEventCreate, Dict[str, Any]]) -> SchoolCalendarEvent:
        if isinstance(data, dict):
            data = parse_event_payload(data, SchoolCalendarEventCreate)

        calendar = self._lock_calendar(data.school_calendar_id)
        errors = self.validate(calendar.id, data)
        if errors:
            self._reject(calendar.id, errors)

        event = SchoolCalendarEvent(school_calendar_id=calendar.id)
        self._apply(event, data)
        self.db.add(event)
        safe_commit(self.db)
        self.db.refresh(event)

        snapshot_cache.invalidate_calendar(calendar.id)
        logger.info(f"Created {event.event_type} event {event.id} on {event.event_date} for calendar {calendar.id}")
        return event

    def update_event(
        self,
        event_id: int,
        data: Union[SchoolCalendarEventUpdate, Dict[str, Any]],
    ) -> SchoolCalendarEvent:
        if isinstance(data, dict):
            data = parse_event_payload(data, SchoolCalendarEventUpdate)

        event = self.db.get(SchoolCalendarEvent, event_id)
        if event is None:
            raise RecordNotFound(f"School calendar event {event_id} not found")

        calendar = self._lock_calendar(event.school_calendar_id)
        errors = self.validate(calendar.id, data, event_id=event.id)
        if errors:
            self._reject(calendar.id, errors)

        self._apply(event, data)
        safe_commit(self.db)
        self.db.refresh(event)

        snapshot_cache.invalidate_calendar(calendar.id)
        logger.info(f"Updated event {event.id} on {event.event_date} for calendar {calendar.id}")
        return event

    def destroy_event(self, event_id: int) -> None:
        event = self.db.get(SchoolCalendarEvent, event_id)
        if event is None:
            raise RecordNotFound(f"School calendar event {event_id} not found")

        calendar_id = event.school_calendar_id
        self.db.delete(event)
        safe_commit(self.db)

        snapshot_cache.invalidate_calendar(calendar_id)
        logger.info(f"Destroyed event {event_id} from calendar {calendar_id}")
