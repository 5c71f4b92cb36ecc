"""Create school calendars and edit their step sequences"""
import logging
from typing import Any, Dict, List, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from database import safe_commit
from db_models import (
    Classroom, SchoolCalendar, SchoolCalendarClassroom, SchoolCalendarClassroomStep,
    SchoolCalendarStep, Unity,
)
from schemas import FieldError, SchoolCalendarCreate, StepCreate, field_errors_from
from .cache import snapshot_cache
from .errors import RecordNotFound, ValidationFailed
from .steps import validate_steps

logger = logging.getLogger(__name__)


def parse_calendar_payload(payload: Dict[str, Any]) -> SchoolCalendarCreate:
    try:
        return SchoolCalendarCreate.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(field_errors_from(e)) from e


def _step_rows(model, steps: List[StepCreate]) -> list:
    return [model(**step.model_dump()) for step in steps]


class CalendarService:
    """Writes calendars and their steps; step sequences never overlap"""

    def __init__(self, db: Session):
        self.db = db

    def _get_calendar(self, calendar_id: int) -> SchoolCalendar:
        calendar = self.db.query(SchoolCalendar).filter(
            SchoolCalendar.id == calendar_id
        ).with_for_update().first()
        if calendar is None:
            raise RecordNotFound(f"School calendar {calendar_id} not found")
        return calendar

    def _reject(self, errors: List[FieldError]):
        self.db.rollback()
        logger.warning(f"Rejected calendar write: {[(e.field, e.reason) for e in errors]}")
        raise ValidationFailed(errors)

    def create_calendar(self, data: Union[SchoolCalendarCreate, Dict[str, Any]]) -> SchoolCalendar:
        if isinstance(data, dict):
            data = parse_calendar_payload(data)

        if self.db.get(Unity, data.unity_id) is None:
            raise RecordNotFound(f"Unity {data.unity_id} not found")

        errors = []
        existing = self.db.query(SchoolCalendar).filter(
            SchoolCalendar.unity_id == data.unity_id,
            SchoolCalendar.year == data.year,
        ).first()
        if existing is not None:
            errors.append(FieldError(field="year", reason="taken"))

        errors.extend(validate_steps(data.steps))

        seen = set()
        for index, classroom_data in enumerate(data.classrooms):
            field = f"classrooms.{index}"
            if classroom_data.classroom_id in seen:
                errors.append(FieldError(field=f"{field}.classroom_id", reason="taken"))
            seen.add(classroom_data.classroom_id)
            if self.db.get(Classroom, classroom_data.classroom_id) is None:
                errors.append(FieldError(field=f"{field}.classroom_id", reason="not_found"))
            errors.extend(validate_steps(classroom_data.steps, field=f"{field}.steps"))

        if errors:
            self._reject(errors)

        calendar = SchoolCalendar(
            unity_id=data.unity_id,
            year=data.year,
            number_of_classes=data.number_of_classes,
        )
        calendar.steps = _step_rows(SchoolCalendarStep, data.steps)
        for classroom_data in data.classrooms:
            calendar_classroom = SchoolCalendarClassroom(classroom_id=classroom_data.classroom_id)
            calendar_classroom.classroom_steps = _step_rows(SchoolCalendarClassroomStep, classroom_data.steps)
            calendar.classrooms.append(calendar_classroom)

        self.db.add(calendar)
        safe_commit(self.db)
        self.db.refresh(calendar)

        logger.info(f"Created school calendar {calendar.id} ({calendar.year}) for unity {calendar.unity_id}")
        return calendar

    def replace_steps(self, calendar_id: int, steps: List[StepCreate]) -> SchoolCalendar:
        calendar = self._get_calendar(calendar_id)

        errors = validate_steps(steps)
        if errors:
            self._reject(errors)

        calendar.steps = _step_rows(SchoolCalendarStep, steps)
        safe_commit(self.db)
        self.db.refresh(calendar)

        snapshot_cache.invalidate_calendar(calendar.id)
        logger.info(f"Replaced steps of school calendar {calendar.id} ({len(steps)} steps)")
        return calendar

    def replace_classroom_steps(self, calendar_id: int, classroom_id: int, steps: List[StepCreate]) -> SchoolCalendar:
        """Give a classroom its own step sequence; an empty list drops it back to the calendar steps"""
        calendar = self._get_calendar(calendar_id)
        if self.db.get(Classroom, classroom_id) is None:
            raise RecordNotFound(f"Classroom {classroom_id} not found")

        errors = validate_steps(steps)
        if errors:
            self._reject(errors)

        calendar_classroom = next(
            (item for item in calendar.classrooms if item.classroom_id == classroom_id), None
        )
        if not steps:
            if calendar_classroom is not None:
                calendar.classrooms.remove(calendar_classroom)
        else:
            if calendar_classroom is None:
                calendar_classroom = SchoolCalendarClassroom(classroom_id=classroom_id)
                calendar.classrooms.append(calendar_classroom)
            calendar_classroom.classroom_steps = _step_rows(SchoolCalendarClassroomStep, steps)

        safe_commit(self.db)
        self.db.refresh(calendar)

        snapshot_cache.invalidate_calendar(calendar.id)
        logger.info(f"Replaced steps of classroom {classroom_id} in school calendar {calendar.id}")
        return calendar
