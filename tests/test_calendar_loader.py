from datetime import date

import pytest

from db_models import Classroom, SchoolCalendarClassroom, SchoolCalendarClassroomStep, SchoolCalendarEvent, Unity
from services import event_queries
from services.calendar_loader import (
    get_calendar_snapshot, load_calendar_snapshot, load_classroom, school_day_for,
)
from services.errors import RecordNotFound
from services.events import EventService
from services.school_day import is_school_day
from services.steps import find_step


def _event(school, **attributes):
    values = {
        "school_calendar_id": school.calendar.id,
        "description": "Evento",
        "event_type": "holiday",
        "event_date": date(2021, 2, 15),
        "coverage": "by_unity",
        "legend": "H",
    }
    values.update(attributes)
    event = SchoolCalendarEvent(**values)
    return event


def test_snapshot_holds_steps_events_and_classrooms(db, school):
    db.add_all([
        _event(school),
        _event(school, event_type="extra_school", event_date=date(2021, 3, 6), coverage="by_grade",
               grade_id=school.grade.id, legend=None),
    ])
    db.commit()

    snapshot = load_calendar_snapshot(db, school.calendar.id)

    assert snapshot.year == 2021
    assert snapshot.number_of_classes == 5
    assert [step.step_number for step in snapshot.steps] == [1]
    assert len(snapshot.events) == 2
    assert set(snapshot.classrooms) == {school.morning.id, school.afternoon.id, school.other_classroom.id}
    assert len(snapshot.events_of_type("extra_school")) == 1
    assert len(snapshot.events_with_coverage("by_unity")) == 1

    assert not is_school_day(snapshot, date(2021, 2, 15))
    assert is_school_day(snapshot, date(2021, 2, 16))
    assert is_school_day(snapshot, date(2021, 3, 6), school.grade.id, school.morning.id)
    assert not is_school_day(snapshot, date(2021, 3, 6), school.other_grade.id, school.other_classroom.id)


def test_snapshot_range_limits_events(db, school):
    db.add_all([_event(school), _event(school, event_date=date(2021, 5, 3))])
    db.commit()

    snapshot = load_calendar_snapshot(db, school.calendar.id, date(2021, 5, 1), date(2021, 5, 31))

    assert [event.event_date for event in snapshot.events] == [date(2021, 5, 3)]
    assert snapshot.events_between(date(2021, 5, 1), date(2021, 5, 2)) == []


def test_legacy_rows_do_not_break_the_read_path(db, school):
    db.add_all([
        _event(school, periods="1,x"),
        _event(school, event_type="recess", event_date=date(2021, 2, 16)),
    ])
    db.commit()

    snapshot = load_calendar_snapshot(db, school.calendar.id)

    assert [event.periods for event in snapshot.events] == [(1,)]
    assert not is_school_day(snapshot, date(2021, 2, 15), school.grade.id, school.morning.id)
    assert is_school_day(snapshot, date(2021, 2, 15), school.grade.id, school.afternoon.id)
    # the unreadable event is skipped, the weekday rule decides
    assert is_school_day(snapshot, date(2021, 2, 16))


def test_classroom_steps_are_loaded(db, school):
    calendar_classroom = SchoolCalendarClassroom(
        school_calendar_id=school.calendar.id,
        classroom_id=school.afternoon.id,
    )
    calendar_classroom.classroom_steps = [
        SchoolCalendarClassroomStep(
            step_number=1,
            start_at=date(2021, 2, 1),
            end_at=date(2021, 7, 30),
            start_date_for_posting=date(2021, 2, 1),
            end_date_for_posting=date(2021, 8, 6),
        )
    ]
    db.add(calendar_classroom)
    db.commit()

    snapshot = load_calendar_snapshot(db, school.calendar.id)

    assert find_step(snapshot, date(2021, 7, 15), classroom_id=school.afternoon.id) is not None
    assert find_step(snapshot, date(2021, 7, 15), classroom_id=school.morning.id) is None
    assert is_school_day(snapshot, date(2021, 7, 15), school.grade.id, school.afternoon.id)
    assert not is_school_day(snapshot, date(2021, 1, 15), school.grade.id, school.afternoon.id)


def test_missing_records_are_reported(db, school):
    with pytest.raises(RecordNotFound):
        load_calendar_snapshot(db, 404)
    with pytest.raises(RecordNotFound):
        load_classroom(db, 404)

    assert load_classroom(db, school.morning.id).period == 1


def test_cached_snapshot_is_refreshed_after_writes(db, school):
    first = get_calendar_snapshot(db, school.calendar.id)
    assert get_calendar_snapshot(db, school.calendar.id) is first

    EventService(db).create_event({
        "school_calendar_id": school.calendar.id,
        "description": "Carnaval",
        "event_type": "holiday",
        "event_date": date(2021, 2, 15),
        "coverage": "by_unity",
        "legend": "C",
    })

    refreshed = get_calendar_snapshot(db, school.calendar.id)
    assert refreshed is not first
    assert len(refreshed.events) == 1


def test_school_day_for_loads_the_single_date(db, school):
    db.add(_event(school))
    db.commit()

    assert not school_day_for(db, school.calendar.id, date(2021, 2, 15))
    assert school_day_for(db, school.calendar.id, date(2021, 2, 16), school.grade.id, school.morning.id)
    assert not school_day_for(db, school.calendar.id, date(2020, 12, 31))


def test_event_query_filters(db, school):
    db.add_all([
        _event(school, description="Carnaval", periods="1,2"),
        _event(school, description="Reposição do carnaval", event_type="extra_school", periods="2",
               event_date=date(2021, 2, 20), legend=None),
        _event(school, description="Conselho", event_type="no_school", coverage="by_grade",
               grade_id=school.grade.id, periods="3", event_date=date(2021, 3, 1)),
    ])
    db.commit()
    events = event_queries.calendar_events(db, school.calendar.id)

    assert event_queries.by_period(events, 1).count() == 1
    assert event_queries.by_period(events, 2).count() == 2
    assert event_queries.with_frequency(events).count() == 1
    assert event_queries.without_frequency(events).count() == 2
    assert event_queries.by_description(events, "CARNAVAL").count() == 2
    assert event_queries.by_type(events, "no_school").count() == 1
    assert event_queries.by_grade(events, school.grade.id).count() == 1
    assert event_queries.by_grade(events, None).count() == 2
    assert event_queries.by_classroom_id(events, None).count() == 3
    assert event_queries.by_date(events, date(2021, 2, 20)).one().description == "Reposição do carnaval"
    assert event_queries.by_date_between(events, date(2021, 2, 16), date(2021, 3, 31)).count() == 2
    assert event_queries.extra_school_without_frequency(events).count() == 0
    assert [e.event_date for e in event_queries.ordered(events).all()] == [
        date(2021, 2, 15), date(2021, 2, 20), date(2021, 3, 1),
    ]


def test_events_for_classroom_keeps_one_controlling_event_per_date(db, school):
    holiday = _event(school, description="Feriado municipal")
    makeup = _event(school, description="Reposição 1A", event_type="extra_school", coverage="by_classroom",
                    grade_id=school.grade.id, classroom_id=school.morning.id, periods="1", legend=None)
    evening_only = _event(school, description="Noturno", event_date=date(2021, 2, 17), periods="3")
    other_grade = _event(school, description="2o ano", event_date=date(2021, 2, 18), coverage="by_grade",
                         grade_id=school.other_grade.id)
    db.add_all([holiday, makeup, evening_only, other_grade])
    db.commit()

    events = event_queries.events_for_classroom(db, school.calendar.id, school.morning)

    assert [event.description for event in events] == ["Reposição 1A"]

    afternoon = event_queries.events_for_classroom(
        db, school.calendar.id, school.afternoon, date(2021, 2, 1), date(2021, 2, 28)
    )
    assert [event.description for event in afternoon] == ["Feriado municipal"]


def test_classrooms_outside_the_unity_are_still_found(db, school):
    unassigned = Classroom(description="Itinerante", unity_id=None, grade_id=school.grade.id, period=1)
    elsewhere_unity = Unity(name="EMEF Cecília Meireles")
    db.add_all([unassigned, elsewhere_unity])
    db.flush()
    elsewhere = Classroom(description="3C", unity_id=elsewhere_unity.id, grade_id=school.grade.id, period=2)
    db.add(elsewhere)
    db.commit()

    snapshot = load_calendar_snapshot(db, school.calendar.id)
    assert is_school_day(snapshot, date(2021, 2, 16), school.grade.id, unassigned.id)
    with pytest.raises(RecordNotFound):
        is_school_day(snapshot, date(2021, 2, 16), school.grade.id, elsewhere.id)

    snapshot = load_calendar_snapshot(db, school.calendar.id, classroom_ids=[elsewhere.id])
    assert is_school_day(snapshot, date(2021, 2, 16), school.grade.id, elsewhere.id)
    assert school_day_for(db, school.calendar.id, date(2021, 2, 17), school.grade.id, elsewhere.id)


def test_events_for_classroom_skips_unreadable_rows(db, school, caplog):
    db.add_all([
        _event(school, description="Recesso", event_type="recess"),
        _event(school, description="Feriado", event_date=date(2021, 2, 16)),
    ])
    db.commit()

    events = event_queries.events_for_classroom(db, school.calendar.id, school.morning)

    assert [event.description for event in events] == ["Feriado"]
    assert "Skipping SchoolCalendarEvent" in caplog.text
