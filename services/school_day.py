# services/school_day.py
from datetime import date, timedelta
from typing import List, Optional

from config import WEEKEND_DAYS
from schemas import SchoolDayReason, SchoolDayVerdict
from .event_precedence import resolve
from .steps import find_step


class SchoolDayChecker:
    """
    Decide whether a date counts as a school day.

    An event controlling the date wins. Without one, dates outside every
    step are never school days, and dates inside a step are school days
    from Monday to Friday.
    """

    def __init__(self, calendar, day: date, grade_id: Optional[int] = None, classroom_id: Optional[int] = None):
        if calendar is None:
            raise ValueError("SchoolDayChecker requires a calendar")
        if day is None:
            raise ValueError("SchoolDayChecker requires a date")

        self.calendar = calendar
        self.day = day
        self.grade_id = grade_id
        self.classroom_id = classroom_id

    def verdict(self) -> SchoolDayVerdict:
        event = resolve(self.calendar, self.day, self.grade_id, self.classroom_id)
        if event is not None:
            if event.is_frequency_bearing:
                reason = SchoolDayReason.EVENT_SCHOOL_DAY
            else:
                reason = SchoolDayReason.EVENT_NON_SCHOOL_DAY
            return SchoolDayVerdict(
                day=self.day,
                is_school_day=event.is_frequency_bearing,
                reason=reason,
                event=event,
            )

        step = find_step(self.calendar, self.day, self.classroom_id)
        if step is None:
            return SchoolDayVerdict(day=self.day, is_school_day=False, reason=SchoolDayReason.OUTSIDE_CALENDAR)

        if self.day.weekday() in WEEKEND_DAYS:
            return SchoolDayVerdict(day=self.day, is_school_day=False, reason=SchoolDayReason.WEEKEND, step=step)

        return SchoolDayVerdict(day=self.day, is_school_day=True, reason=SchoolDayReason.WEEKDAY, step=step)

    def school_day(self) -> bool:
        return self.verdict().is_school_day


def is_school_day(calendar, day: date, grade_id: Optional[int] = None, classroom_id: Optional[int] = None) -> bool:
    return SchoolDayChecker(calendar, day, grade_id, classroom_id).school_day()


def check(calendar, day: date, grade_id: Optional[int] = None, classroom_id: Optional[int] = None) -> SchoolDayVerdict:
    """Like is_school_day, but also says why"""
    return SchoolDayChecker(calendar, day, grade_id, classroom_id).verdict()


def school_days_between(
    calendar,
    start: date,
    end: date,
    grade_id: Optional[int] = None,
    classroom_id: Optional[int] = None,
) -> List[date]:
    """All school days in [start, end], in order"""
    days = []
    current = start
    while current <= end:
        if is_school_day(calendar, current, grade_id, classroom_id):
            days.append(current)
        current += timedelta(days=1)
    return days


def count_school_days(
    calendar,
    start: date,
    end: date,
    grade_id: Optional[int] = None,
    classroom_id: Optional[int] = None,
) -> int:
    return len(school_days_between(calendar, start, end, grade_id, classroom_id))


def next_school_day(
    calendar,
    day: date,
    grade_id: Optional[int] = None,
    classroom_id: Optional[int] = None,
    include_today: bool = True,
) -> Optional[date]:
    """
    First school day on or after the date (after it when include_today is False).

    Returns None once the search leaves the last step of the calendar without
    finding one.
    """
    steps = calendar.steps_for(classroom_id)
    last_step_day = max((step.end_at for step in steps), default=None)
    last_event_day = calendar.events[-1].event_date if calendar.events else None
    horizon = max([d for d in (last_step_day, last_event_day) if d is not None], default=None)
    if horizon is None:
        return None

    current = day if include_today else day + timedelta(days=1)
    while current <= horizon:
        if is_school_day(calendar, current, grade_id, classroom_id):
            return current
        current += timedelta(days=1)
    return None
