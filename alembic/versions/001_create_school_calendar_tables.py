"""Create school calendar tables

Revision ID: 001_create_school_calendar_tables
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_create_school_calendar_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _step_columns():
    return [
        sa.Column('step_number', sa.Integer(), nullable=False),
        sa.Column('start_at', sa.Date(), nullable=False),
        sa.Column('end_at', sa.Date(), nullable=False),
        sa.Column('start_date_for_posting', sa.Date(), nullable=False),
        sa.Column('end_date_for_posting', sa.Date(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'unities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_table(
        'grades',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('description', sa.String(), nullable=False),
    )
    op.create_table(
        'classrooms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('unity_id', sa.Integer(), sa.ForeignKey('unities.id'), nullable=True),
        sa.Column('grade_id', sa.Integer(), sa.ForeignKey('grades.id'), nullable=False),
        sa.Column('period', sa.Integer(), nullable=False),
    )
    op.create_table(
        'school_calendars',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('unity_id', sa.Integer(), sa.ForeignKey('unities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('number_of_classes', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('unity_id', 'year', name='uq_school_calendars_unity_year'),
    )
    op.create_table(
        'school_calendar_steps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_calendar_id', sa.Integer(),
                  sa.ForeignKey('school_calendars.id', ondelete='CASCADE'), nullable=False),
        *_step_columns(),
    )
    op.create_table(
        'school_calendar_classrooms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_calendar_id', sa.Integer(),
                  sa.ForeignKey('school_calendars.id', ondelete='CASCADE'), nullable=False),
        sa.Column('classroom_id', sa.Integer(), sa.ForeignKey('classrooms.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('school_calendar_id', 'classroom_id',
                            name='uq_school_calendar_classrooms_calendar_classroom'),
    )
    op.create_table(
        'school_calendar_classroom_steps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_calendar_classroom_id', sa.Integer(),
                  sa.ForeignKey('school_calendar_classrooms.id', ondelete='CASCADE'), nullable=False),
        *_step_columns(),
    )
    op.create_table(
        'school_calendar_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('school_calendar_id', sa.Integer(),
                  sa.ForeignKey('school_calendars.id', ondelete='CASCADE'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('event_type', sa.String(), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('coverage', sa.String(), nullable=False),
        sa.Column('periods', sa.String(), nullable=True),
        sa.Column('grade_id', sa.Integer(), sa.ForeignKey('grades.id'), nullable=True),
        sa.Column('classroom_id', sa.Integer(), sa.ForeignKey('classrooms.id'), nullable=True),
        sa.Column('legend', sa.String(1), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_school_calendar_events_calendar_date', 'school_calendar_events',
                    ['school_calendar_id', 'event_date'])


def downgrade() -> None:
    op.drop_index('ix_school_calendar_events_calendar_date', table_name='school_calendar_events')
    op.drop_table('school_calendar_events')
    op.drop_table('school_calendar_classroom_steps')
    op.drop_table('school_calendar_classrooms')
    op.drop_table('school_calendar_steps')
    op.drop_table('school_calendars')
    op.drop_table('classrooms')
    op.drop_table('grades')
    op.drop_table('unities')
