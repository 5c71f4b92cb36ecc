import os

# Point the module-level engine at memory before anything imports database.py
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import date
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import init_db
from db_models import Unity, Grade, Classroom, SchoolCalendar, SchoolCalendarStep
from services.cache import snapshot_cache


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def clear_snapshot_cache():
    snapshot_cache.clear()
    yield
    snapshot_cache.clear()


@pytest.fixture
def school(db):
    """One unity with a 2021 calendar (single step Jan 1 - Jun 30), two grades and three classrooms"""
    unity = Unity(name="EMEF Monteiro Lobato")
    first_grade = Grade(description="1o ano")
    second_grade = Grade(description="2o ano")
    db.add_all([unity, first_grade, second_grade])
    db.flush()

    morning = Classroom(description="1A", unity_id=unity.id, grade_id=first_grade.id, period=1)
    afternoon = Classroom(description="1B", unity_id=unity.id, grade_id=first_grade.id, period=2)
    other_grade = Classroom(description="2A", unity_id=unity.id, grade_id=second_grade.id, period=1)
    db.add_all([morning, afternoon, other_grade])

    calendar = SchoolCalendar(unity_id=unity.id, year=2021, number_of_classes=5)
    calendar.steps = [
        SchoolCalendarStep(
            step_number=1,
            start_at=date(2021, 1, 1),
            end_at=date(2021, 6, 30),
            start_date_for_posting=date(2021, 1, 1),
            end_date_for_posting=date(2021, 7, 10),
        )
    ]
    db.add(calendar)
    db.commit()

    return SimpleNamespace(
        unity=unity,
        calendar=calendar,
        grade=first_grade,
        other_grade=second_grade,
        morning=morning,
        afternoon=afternoon,
        other_classroom=other_grade,
    )
