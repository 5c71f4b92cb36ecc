# db_models.py
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Date, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base
from config import EventCoverage, parse_periods, format_periods


class Unity(Base):
    """School unit owning calendars and classrooms"""
    __tablename__ = "unities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=func.now())

    school_calendars = relationship("SchoolCalendar", back_populates="unity", cascade="all, delete-orphan")
    classrooms = relationship("Classroom", back_populates="unity")


class Grade(Base):
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String, nullable=False)

    classrooms = relationship("Classroom", back_populates="grade")


class Classroom(Base):
    __tablename__ = "classrooms"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String, nullable=False)
    unity_id = Column(Integer, ForeignKey("unities.id"), nullable=True)
    grade_id = Column(Integer, ForeignKey("grades.id"), nullable=False)
    period = Column(Integer, nullable=False)  # 1 morning, 2 afternoon, 3 evening, 4 full

    unity = relationship("Unity", back_populates="classrooms")
    grade = relationship("Grade", back_populates="classrooms")


class SchoolCalendar(Base):
    __tablename__ = "school_calendars"
    __table_args__ = (
        UniqueConstraint("unity_id", "year", name="uq_school_calendars_unity_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    unity_id = Column(Integer, ForeignKey("unities.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    number_of_classes = Column(Integer, nullable=False, default=4)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    unity = relationship("Unity", back_populates="school_calendars")
    steps = relationship(
        "SchoolCalendarStep",
        back_populates="school_calendar",
        cascade="all, delete-orphan",
        order_by="SchoolCalendarStep.start_at",
    )
    classrooms = relationship("SchoolCalendarClassroom", back_populates="school_calendar", cascade="all, delete-orphan")
    events = relationship("SchoolCalendarEvent", back_populates="school_calendar", cascade="all, delete-orphan")


class SchoolCalendarStep(Base):
    """Bimester/trimester of a calendar"""
    __tablename__ = "school_calendar_steps"

    id = Column(Integer, primary_key=True, index=True)
    school_calendar_id = Column(Integer, ForeignKey("school_calendars.id", ondelete="CASCADE"), nullable=False)
    step_number = Column(Integer, nullable=False)
    start_at = Column(Date, nullable=False)
    end_at = Column(Date, nullable=False)
    start_date_for_posting = Column(Date, nullable=False)
    end_date_for_posting = Column(Date, nullable=False)

    school_calendar = relationship("SchoolCalendar", back_populates="steps")


class SchoolCalendarClassroom(Base):
    """Classroom that follows its own step sequence inside a calendar"""
    __tablename__ = "school_calendar_classrooms"
    __table_args__ = (
        UniqueConstraint("school_calendar_id", "classroom_id", name="uq_school_calendar_classrooms_calendar_classroom"),
    )

    id = Column(Integer, primary_key=True, index=True)
    school_calendar_id = Column(Integer, ForeignKey("school_calendars.id", ondelete="CASCADE"), nullable=False)
    classroom_id = Column(Integer, ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False)

    school_calendar = relationship("SchoolCalendar", back_populates="classrooms")
    classroom = relationship("Classroom")
    classroom_steps = relationship(
        "SchoolCalendarClassroomStep",
        back_populates="school_calendar_classroom",
        cascade="all, delete-orphan",
        order_by="SchoolCalendarClassroomStep.start_at",
    )


class SchoolCalendarClassroomStep(Base):
    __tablename__ = "school_calendar_classroom_steps"

    id = Column(Integer, primary_key=True, index=True)
    school_calendar_classroom_id = Column(
        Integer, ForeignKey("school_calendar_classrooms.id", ondelete="CASCADE"), nullable=False
    )
    step_number = Column(Integer, nullable=False)
    start_at = Column(Date, nullable=False)
    end_at = Column(Date, nullable=False)
    start_date_for_posting = Column(Date, nullable=False)
    end_date_for_posting = Column(Date, nullable=False)

    school_calendar_classroom = relationship("SchoolCalendarClassroom", back_populates="classroom_steps")


class SchoolCalendarEvent(Base):
    __tablename__ = "school_calendar_events"
    __table_args__ = (
        Index("ix_school_calendar_events_calendar_date", "school_calendar_id", "event_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    school_calendar_id = Column(Integer, ForeignKey("school_calendars.id", ondelete="CASCADE"), nullable=False)
    description = Column(Text, nullable=False)
    event_type = Column(String, nullable=False)  # see config.EventType
    event_date = Column(Date, nullable=False)
    coverage = Column(String, nullable=False, default=EventCoverage.BY_UNITY.value)
    # Stored as comma-separated, sorted shift codes, e.g. "1,2"
    periods = Column(String, nullable=True)
    grade_id = Column(Integer, ForeignKey("grades.id"), nullable=True)
    classroom_id = Column(Integer, ForeignKey("classrooms.id"), nullable=True)
    legend = Column(String(1), nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    school_calendar = relationship("SchoolCalendar", back_populates="events")
    grade = relationship("Grade")
    classroom = relationship("Classroom")

    @property
    def period_list(self) -> tuple:
        return parse_periods(self.periods)

    @period_list.setter
    def period_list(self, periods):
        self.periods = format_periods(periods) or None

    def __str__(self):
        return self.description
