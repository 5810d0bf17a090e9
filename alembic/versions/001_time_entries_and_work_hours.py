"""Add time_entries, work_hours and audit_logs tables

Revision ID: 001_timeclock_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001_timeclock_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns store member names, as SQLAlchemy does for Python enums
PUNCH_TYPE = sa.Enum("CLOCK_IN", "BREAK_START", "BREAK_END", "CLOCK_OUT", name="punchtype")
LABOR_CATEGORY = sa.Enum("SHIFT", "COORDINATION", "TRAINING", "SUBSTITUTION", "OTHER", name="laborcategory")
ENTRY_CHANGE = sa.Enum("EDITED", "ELIMINATED", name="entrychange")


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == "sqlite"
    ts_default = sa.text("CURRENT_TIMESTAMP") if is_sqlite else sa.text("now()")

    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("event_type", PUNCH_TYPE, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("labor_category", LABOR_CATEGORY, nullable=True),
        sa.Column("work_center", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("changes", ENTRY_CHANGE, nullable=True),
        sa.Column("original_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_time_entries_id"), "time_entries", ["id"], unique=False)
    op.create_index(op.f("ix_time_entries_employee_id"), "time_entries", ["employee_id"], unique=False)
    op.create_index(op.f("ix_time_entries_timestamp"), "time_entries", ["timestamp"], unique=False)

    op.create_table(
        "work_hours",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("clock_in", sa.DateTime(timezone=True), nullable=False),
        sa.Column("clock_out", sa.DateTime(timezone=True), nullable=False),
        sa.Column("labor_category", LABOR_CATEGORY, nullable=True),
        sa.Column("work_center", sa.String(), nullable=True),
        sa.Column("is_split", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_work_hours_id"), "work_hours", ["id"], unique=False)
    op.create_index(op.f("ix_work_hours_employee_id"), "work_hours", ["employee_id"], unique=False)
    op.create_index(op.f("ix_work_hours_date"), "work_hours", ["date"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("meta_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_id"), "audit_logs", ["id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_audit_logs_id"), table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index(op.f("ix_work_hours_date"), table_name="work_hours")
    op.drop_index(op.f("ix_work_hours_employee_id"), table_name="work_hours")
    op.drop_index(op.f("ix_work_hours_id"), table_name="work_hours")
    op.drop_table("work_hours")
    op.drop_index(op.f("ix_time_entries_timestamp"), table_name="time_entries")
    op.drop_index(op.f("ix_time_entries_employee_id"), table_name="time_entries")
    op.drop_index(op.f("ix_time_entries_id"), table_name="time_entries")
    op.drop_table("time_entries")
    if op.get_bind().dialect.name != "sqlite":
        ENTRY_CHANGE.drop(op.get_bind(), checkfirst=True)
        LABOR_CATEGORY.drop(op.get_bind(), checkfirst=True)
        PUNCH_TYPE.drop(op.get_bind(), checkfirst=True)
