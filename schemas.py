# schemas.py
import logging
from enum import Enum
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError
from typing import Optional, List, Tuple, Union, Literal, Any, Annotated
from datetime import date

from config import (
    EventType, EventCoverage, Period, RESERVED_LEGENDS,
    is_frequency_type, requires_legend, parse_periods,
)

logger = logging.getLogger(__name__)


# Validation failures
class FieldError(BaseModel):
    field: str
    reason: str  # blank, exclusion, inclusion, invalid, not_found, already_exists_event_in_this_date, ...
    message: Optional[str] = None

    class Config:
        frozen = True


_REASON_BY_PYDANTIC_TYPE = {
    "missing": "blank",
    "union_tag_not_found": "blank",
    "union_tag_invalid": "inclusion",
    "enum": "inclusion",
    "literal_error": "inclusion",
}

_FIELD_BY_LOC = {
    "scope": "coverage",
}

_COVERAGE_TAGS = {coverage.value for coverage in EventCoverage}
_PERIOD_CODES = {period.value for period in Period}


def field_errors_from(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic ValidationError into field + reason pairs"""
    errors = []
    for error in exc.errors():
        names = [part for part in error["loc"] if isinstance(part, str) and part not in _COVERAGE_TAGS]
        field = names[-1] if names else "base"
        field = _FIELD_BY_LOC.get(field, field)
        reason = _REASON_BY_PYDANTIC_TYPE.get(error["type"], error["type"])
        if reason.endswith("_parsing") or reason.endswith("_type"):
            reason = "invalid"
        errors.append(FieldError(field=field, reason=reason, message=error.get("msg")))
    return errors


def _coerce_periods(value: Any) -> Tuple[int, ...]:
    try:
        periods = parse_periods(value)
    except (TypeError, ValueError):
        raise PydanticCustomError("invalid", "periods must be shift codes, got {value}", {"value": value})
    for period in periods:
        if period not in _PERIOD_CODES:
            raise PydanticCustomError("inclusion", "unknown period {period}", {"period": period})
    return periods


# Steps
class StepBase(BaseModel):
    step_number: int = Field(ge=1)
    start_at: date
    end_at: date
    start_date_for_posting: date
    end_date_for_posting: date

    @model_validator(mode="after")
    def check_ranges(self):
        if self.start_at > self.end_at:
            raise PydanticCustomError("invalid_range", "step must start on or before its end")
        if self.start_date_for_posting > self.end_date_for_posting:
            raise PydanticCustomError("invalid_range", "posting window must start on or before its end")
        return self


class StepCreate(StepBase):
    pass


class StepView(StepBase):
    """Read-only step handed to the step resolver"""
    id: Optional[int] = None

    class Config:
        from_attributes = True
        frozen = True

    def contains(self, day: date) -> bool:
        return self.start_at <= day <= self.end_at

    def accepts_posting_on(self, day: date) -> bool:
        return self.start_date_for_posting <= day <= self.end_date_for_posting


class ClassroomStepsCreate(BaseModel):
    classroom_id: int
    steps: List[StepCreate] = Field(min_length=1)


class SchoolCalendarCreate(BaseModel):
    unity_id: int
    year: int = Field(ge=1900, le=9999)
    number_of_classes: int = Field(default=4, ge=1)
    steps: List[StepCreate] = []
    classrooms: List[ClassroomStepsCreate] = []


# Event coverage, one variant per scope
class UnityCoverage(BaseModel):
    coverage: Literal["by_unity"] = "by_unity"
    periods: Tuple[int, ...] = ()

    @field_validator("periods", mode="before")
    @classmethod
    def known_periods(cls, value):
        return _coerce_periods(value)

    @property
    def grade_id(self) -> Optional[int]:
        return None

    @property
    def classroom_id(self) -> Optional[int]:
        return None


class GradeCoverage(BaseModel):
    coverage: Literal["by_grade"] = "by_grade"
    grade_id: int
    periods: Tuple[int, ...] = ()

    @field_validator("periods", mode="before")
    @classmethod
    def known_periods(cls, value):
        return _coerce_periods(value)

    @property
    def classroom_id(self) -> Optional[int]:
        return None


class ClassroomCoverage(BaseModel):
    coverage: Literal["by_classroom"] = "by_classroom"
    grade_id: int
    classroom_id: int
    periods: Tuple[int, ...]

    @field_validator("periods", mode="before")
    @classmethod
    def periods_present(cls, value):
        periods = _coerce_periods(value)
        if not periods:
            raise PydanticCustomError("blank", "periods are required for classroom events")
        return periods


Coverage = Annotated[Union[UnityCoverage, GradeCoverage, ClassroomCoverage], Field(discriminator="coverage")]

_SCOPE_KEYS = ("coverage", "grade_id", "classroom_id", "periods")


class EventAttributes(BaseModel):
    description: str
    event_type: EventType
    event_date: date
    scope: Coverage
    legend: Optional[str] = Field(default=None, validate_default=True)

    @model_validator(mode="before")
    @classmethod
    def lift_flat_scope(cls, data):
        """Accept the flat (coverage, grade_id, classroom_id, periods) payload shape"""
        if isinstance(data, dict) and "scope" not in data:
            data = dict(data)
            scope = {key: data.pop(key) for key in _SCOPE_KEYS if key in data and data[key] is not None}
            if isinstance(scope.get("coverage"), Enum):
                scope["coverage"] = scope["coverage"].value
            data["scope"] = scope
        return data

    @field_validator("description")
    @classmethod
    def description_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("blank", "description can't be blank")
        return value

    @field_validator("legend")
    @classmethod
    def legend_allowed(cls, value, info):
        event_type = info.data.get("event_type")
        if event_type is None or not requires_legend(event_type):
            return value
        if value is None or not value.strip():
            raise PydanticCustomError("blank", "legend can't be blank")
        if value in RESERVED_LEGENDS:
            raise PydanticCustomError("exclusion", "legend {legend} is reserved", {"legend": value})
        if len(value) > 1:
            raise PydanticCustomError("too_long", "legend must be a single character")
        return value

    @property
    def coverage(self) -> EventCoverage:
        return EventCoverage(self.scope.coverage)

    @property
    def grade_id(self) -> Optional[int]:
        return self.scope.grade_id

    @property
    def classroom_id(self) -> Optional[int]:
        return self.scope.classroom_id

    @property
    def periods(self) -> Tuple[int, ...]:
        return self.scope.periods


class SchoolCalendarEventCreate(EventAttributes):
    school_calendar_id: int


class SchoolCalendarEventUpdate(EventAttributes):
    pass


# Read-side views
class EventView(BaseModel):
    """Immutable event as seen by the precedence resolver"""
    id: Optional[int] = None
    description: str = ""
    event_type: EventType
    event_date: date
    coverage: EventCoverage
    periods: Tuple[int, ...] = ()
    grade_id: Optional[int] = None
    classroom_id: Optional[int] = None
    legend: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("periods", mode="before")
    @classmethod
    def tolerant_periods(cls, value):
        # Synchronized rows may carry junk; keep whatever parses
        if value is None or isinstance(value, tuple):
            return value or ()
        tokens = value.split(",") if isinstance(value, str) else list(value)
        periods = set()
        for token in tokens:
            try:
                periods.add(int(str(token).strip()))
            except ValueError:
                logger.warning(f"Ignoring unparseable period {token!r} in event periods {value!r}")
        return tuple(sorted(periods))

    @property
    def is_frequency_bearing(self) -> bool:
        return is_frequency_type(self.event_type)

    def applies_to_period(self, period: Optional[int]) -> bool:
        """No periods means every shift"""
        if not self.periods or period is None:
            return True
        return period in self.periods


class ClassroomView(BaseModel):
    id: int
    grade_id: int
    period: int

    class Config:
        from_attributes = True
        frozen = True


def views_from_rows(view_cls, rows) -> list:
    """Convert ORM rows to read views, skipping legacy rows that no longer validate"""
    views = []
    for row in rows:
        try:
            views.append(view_cls.model_validate(row))
        except ValidationError as e:
            logger.warning(f"Skipping {type(row).__name__} {getattr(row, 'id', None)}: {e.error_count()} invalid fields")
    return views


class SchoolDayReason(str, Enum):
    EVENT_NON_SCHOOL_DAY = "event_non_school_day"
    EVENT_SCHOOL_DAY = "event_school_day"
    OUTSIDE_CALENDAR = "outside_calendar"
    WEEKEND = "weekend"
    WEEKDAY = "weekday"


class SchoolDayVerdict(BaseModel):
    day: date
    is_school_day: bool
    reason: SchoolDayReason
    event: Optional[EventView] = None
    step: Optional[StepView] = None

    class Config:
        frozen = True
