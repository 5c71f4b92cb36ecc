# services/errors.py
from typing import List

from schemas import FieldError


class RecordNotFound(LookupError):
    """Raised when a referenced calendar, classroom, grade or event does not exist"""


class ValidationFailed(ValueError):
    """A write was rejected; nothing was persisted"""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        details = ", ".join(f"{error.field} {error.reason}" for error in self.errors)
        super().__init__(f"Validation failed: {details}")

    def reasons_for(self, field: str) -> List[str]:
        return [error.reason for error in self.errors if error.field == field]
