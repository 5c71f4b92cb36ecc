# services/steps.py
from datetime import date
from typing import List, Optional, Sequence

from schemas import FieldError, StepBase, StepView


def find_step(calendar, day: date, classroom_id: Optional[int] = None) -> Optional[StepView]:
    """
    Return the step whose [start_at, end_at] contains the date, or None.

    None means the date is outside the academic year (or falls in a gap
    between steps). Classrooms with their own step sequence are resolved
    against it instead of the calendar's steps.
    """
    for step in calendar.steps_for(classroom_id):
        if step.contains(day):
            return step
    return None


def find_step_by_number(calendar, step_number: int, classroom_id: Optional[int] = None) -> Optional[StepView]:
    for step in calendar.steps_for(classroom_id):
        if step.step_number == step_number:
            return step
    return None


def find_posting_step(calendar, day: date, classroom_id: Optional[int] = None) -> Optional[StepView]:
    """Step whose posting window is open on the given date"""
    for step in calendar.steps_for(classroom_id):
        if step.accepts_posting_on(day):
            return step
    return None


def validate_steps(steps: Sequence[StepBase], field: str = "steps") -> List[FieldError]:
    """
    Check a step sequence before it is written.

    Steps must not overlap, and numbering must follow chronological order
    (1, 2, 3, ...). Single-step range checks happen in the schema.
    """
    errors = []
    ordered = sorted(steps, key=lambda step: step.start_at)

    numbers = [step.step_number for step in steps]
    if len(set(numbers)) != len(numbers):
        errors.append(FieldError(field=field, reason="taken", message="step numbers must be unique"))

    for previous, current in zip(ordered, ordered[1:]):
        if current.start_at <= previous.end_at:
            errors.append(FieldError(
                field=field,
                reason="overlapping",
                message=f"step {current.step_number} starts before step {previous.step_number} ends",
            ))

    if not errors and [step.step_number for step in ordered] != list(range(1, len(ordered) + 1)):
        errors.append(FieldError(field=field, reason="invalid", message="steps must be numbered 1..n in date order"))

    return errors
