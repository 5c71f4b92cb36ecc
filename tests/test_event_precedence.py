from datetime import date

import pytest

from config import EventCoverage, EventType
from services.errors import RecordNotFound
from services.event_precedence import most_specific, resolve, resolve_events
from tests.factories import extra_school, holiday, make_classroom, make_event, year_2021

DAY = date(2021, 3, 10)
GRADE = 1
OTHER_GRADE = 2


def _classrooms():
    return [
        make_classroom(5, GRADE, period=1),
        make_classroom(9, GRADE, period=2),
        make_classroom(12, OTHER_GRADE, period=1),
    ]


def test_no_events_means_no_controlling_event():
    calendar = year_2021(classrooms=_classrooms())

    assert resolve(calendar, DAY) is None
    assert resolve(calendar, DAY, GRADE, 5) is None


def test_classroom_event_beats_grade_and_unity_events():
    classroom_extra = extra_school(DAY, coverage=EventCoverage.BY_CLASSROOM, grade_id=GRADE, classroom_id=5, periods=[1])
    calendar = year_2021(
        events=[
            holiday(DAY),
            holiday(DAY, coverage=EventCoverage.BY_GRADE, grade_id=GRADE),
            classroom_extra,
        ],
        classrooms=_classrooms(),
    )

    assert resolve(calendar, DAY, GRADE, 5) == classroom_extra


def test_non_frequency_event_wins_inside_the_same_tier():
    suspended = make_event(EventType.NO_SCHOOL, DAY, EventCoverage.BY_GRADE, grade_id=GRADE)
    calendar = year_2021(
        events=[extra_school(DAY, coverage=EventCoverage.BY_GRADE, grade_id=GRADE), suspended],
    )

    assert resolve(calendar, DAY, GRADE) == suspended


def test_grade_events_only_apply_to_their_grade():
    grade_holiday = holiday(DAY, coverage=EventCoverage.BY_GRADE, grade_id=GRADE)
    calendar = year_2021(events=[grade_holiday], classrooms=_classrooms())

    assert resolve(calendar, DAY, GRADE) == grade_holiday
    assert resolve(calendar, DAY, GRADE, 9) == grade_holiday
    assert resolve(calendar, DAY, OTHER_GRADE) is None
    assert resolve(calendar, DAY, OTHER_GRADE, 12) is None
    # without a grade only unity events are considered
    assert resolve(calendar, DAY) is None


def test_period_restricted_events_skip_other_shifts():
    afternoon_holiday = holiday(DAY, periods=[2])
    calendar = year_2021(events=[afternoon_holiday], classrooms=_classrooms())

    assert resolve(calendar, DAY, GRADE, 9) == afternoon_holiday
    assert resolve(calendar, DAY, GRADE, 5) is None
    # no classroom means no shift to filter by
    assert resolve(calendar, DAY) == afternoon_holiday


def test_classroom_grade_is_used_when_grade_is_not_given():
    classroom_holiday = holiday(DAY, coverage=EventCoverage.BY_CLASSROOM, grade_id=GRADE, classroom_id=5, periods=[1])
    calendar = year_2021(events=[classroom_holiday], classrooms=_classrooms())

    assert resolve(calendar, DAY, classroom_id=5) == classroom_holiday


def test_other_classroom_events_are_ignored():
    calendar = year_2021(
        events=[holiday(DAY, coverage=EventCoverage.BY_CLASSROOM, grade_id=GRADE, classroom_id=9, periods=[2])],
        classrooms=_classrooms(),
    )

    assert resolve(calendar, DAY, GRADE, 5) is None


def test_unknown_classroom_is_reported():
    calendar = year_2021(classrooms=_classrooms())

    with pytest.raises(RecordNotFound):
        resolve(calendar, DAY, GRADE, 404)


def test_most_specific_classroom_wins_ties():
    in_five = holiday(DAY, coverage=EventCoverage.BY_CLASSROOM, grade_id=GRADE, classroom_id=5, periods=[1])
    in_nine = holiday(DAY, coverage=EventCoverage.BY_CLASSROOM, grade_id=GRADE, classroom_id=9, periods=[1])

    assert most_specific([in_five, in_nine]) == in_nine
    assert most_specific([in_nine, in_five]) == in_nine


def test_events_without_classroom_rank_below_classroom_events():
    unity_event = holiday(DAY, event_id=1000)
    classroom_event = holiday(DAY, coverage=EventCoverage.BY_CLASSROOM, grade_id=GRADE, classroom_id=5,
                              periods=[1], event_id=1)

    assert most_specific([unity_event, classroom_event]) == classroom_event
    assert most_specific([]) is None


def test_duplicate_unity_events_resolve_deterministically():
    older = holiday(DAY, event_id=3)
    newer = make_event(EventType.NO_SCHOOL, DAY, event_id=4)

    assert resolve_events([older, newer]) == newer
    assert resolve_events([newer, older]) == newer
