"""Immutable, pre-fetched view of one school calendar"""
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from config import EventCoverage, EventType
from schemas import ClassroomView, EventView, StepView


class CalendarSnapshot:
    """
    Everything the school day checker needs to answer questions about a calendar.

    Built once from already-loaded rows (see services.calendar_loader) and never
    mutated afterwards, so a single snapshot can be shared between threads that
    evaluate many dates/classrooms at once.
    """

    def __init__(
        self,
        calendar_id: Optional[int],
        year: int,
        unity_id: Optional[int] = None,
        number_of_classes: int = 4,
        steps: Iterable[StepView] = (),
        classroom_steps: Optional[Mapping[int, Iterable[StepView]]] = None,
        events: Iterable[EventView] = (),
        classrooms: Iterable[ClassroomView] = (),
    ):
        self.id = calendar_id
        self.year = year
        self.unity_id = unity_id
        self.number_of_classes = number_of_classes
        self.steps: Tuple[StepView, ...] = tuple(sorted(steps, key=lambda step: step.start_at))
        self.classroom_steps: Dict[int, Tuple[StepView, ...]] = {
            classroom_id: tuple(sorted(items, key=lambda step: step.start_at))
            for classroom_id, items in (classroom_steps or {}).items()
        }
        self.events: Tuple[EventView, ...] = tuple(sorted(events, key=lambda event: (event.event_date, event.id or 0)))
        self.classrooms: Dict[int, ClassroomView] = {classroom.id: classroom for classroom in classrooms}

        by_date = defaultdict(list)
        for event in self.events:
            by_date[event.event_date].append(event)
        self._events_by_date: Dict[date, Tuple[EventView, ...]] = {
            day: tuple(items) for day, items in by_date.items()
        }

    def __repr__(self):
        return (
            f"<CalendarSnapshot id={self.id} year={self.year} steps={len(self.steps)} "
            f"events={len(self.events)}>"
        )

    def steps_for(self, classroom_id: Optional[int] = None) -> Tuple[StepView, ...]:
        """Classroom-specific steps when the classroom has them, calendar steps otherwise"""
        if classroom_id is not None and self.classroom_steps.get(classroom_id):
            return self.classroom_steps[classroom_id]
        return self.steps

    def classroom(self, classroom_id: int) -> Optional[ClassroomView]:
        return self.classrooms.get(classroom_id)

    # Event queries
    def events_on(self, day: date) -> Tuple[EventView, ...]:
        return self._events_by_date.get(day, ())

    def events_between(self, start: date, end: date) -> List[EventView]:
        return [event for event in self.events if start <= event.event_date <= end]

    def events_of_type(self, event_type: EventType) -> List[EventView]:
        event_type = EventType(event_type)
        return [event for event in self.events if event.event_type == event_type]

    def events_with_coverage(self, coverage: EventCoverage) -> List[EventView]:
        coverage = EventCoverage(coverage)
        return [event for event in self.events if event.coverage == coverage]
