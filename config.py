# config.py - School calendar domain constants
from enum import Enum


class EventType(str, Enum):
    HOLIDAY = "holiday"
    NO_SCHOOL = "no_school"
    EXTRA_SCHOOL = "extra_school"
    EXTRA_SCHOOL_WITHOUT_FREQUENCY = "extra_school_without_frequency"


class EventCoverage(str, Enum):
    BY_UNITY = "by_unity"
    BY_GRADE = "by_grade"
    BY_CLASSROOM = "by_classroom"


class Period(int, Enum):
    """Classroom shifts"""
    MORNING = 1
    AFTERNOON = 2
    EVENING = 3
    FULL = 4


# Only these types count attendance on the day they happen
FREQUENCY_EVENT_TYPES = frozenset({EventType.EXTRA_SCHOOL})

# Attendance sheets use these to mark absence / no class / blank cells
RESERVED_LEGENDS = frozenset({"F", "f", "N", "n", "."})

# date.weekday(): 5 = Saturday, 6 = Sunday
WEEKEND_DAYS = frozenset({5, 6})


def is_frequency_type(event_type) -> bool:
    """True when an event of this type keeps attendance counting"""
    return EventType(event_type) in FREQUENCY_EVENT_TYPES


def requires_legend(event_type) -> bool:
    return EventType(event_type) != EventType.EXTRA_SCHOOL


def parse_periods(raw) -> tuple:
    """
    Normalize periods into a sorted tuple of ints.

    Accepts the stored comma-separated form ("1,2"), any iterable of ints/strings,
    or None. Unknown tokens raise ValueError so callers decide how strict to be.
    """
    if raw is None or raw == "":
        return ()
    if isinstance(raw, str):
        tokens = [token.strip() for token in raw.split(",") if token.strip()]
    else:
        tokens = list(raw)
    return tuple(sorted({int(token) for token in tokens}))


def format_periods(periods) -> str:
    """Stored form of a period set, e.g. (2, 1) -> "1,2" """
    return ",".join(str(p) for p in parse_periods(periods))
