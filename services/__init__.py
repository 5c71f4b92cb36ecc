# School calendar services: step resolution, event precedence and the school day checker
from .errors import RecordNotFound, ValidationFailed
from .school_day import SchoolDayChecker, is_school_day, check

__all__ = [
    "RecordNotFound",
    "ValidationFailed",
    "SchoolDayChecker",
    "is_school_day",
    "check",
]
