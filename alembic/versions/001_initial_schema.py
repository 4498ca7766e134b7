"""Initial schema - users, habits, habit logs, focus sessions

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("settings_json", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Habits
    op.create_table(
        "habits",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=False, server_default="general"),
        sa.Column("type", sa.String(20), nullable=False, server_default="boolean"),
        sa.Column("target_value", sa.Float(), nullable=True),
        sa.Column("target_unit", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_habits"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_habits_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"])

    # Habit logs (one row per habit per day)
    op.create_table(
        "habit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("habit_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Float(), nullable=True),
        sa.Column("focus_score", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_habit_logs"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_habit_logs_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["habit_id"], ["habits.id"], name="fk_habit_logs_habit_id_habits", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "habit_id", "date", name="uq_habit_logs_user_habit_date"),
    )
    op.create_index("ix_habit_logs_user_id", "habit_logs", ["user_id"])
    op.create_index("ix_habit_logs_habit_id", "habit_logs", ["habit_id"])

    # Focus sessions
    op.create_table(
        "habit_focus_sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("habit_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pomodoros_completed", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_habit_focus_sessions"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_habit_focus_sessions_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["habit_id"], ["habits.id"], name="fk_habit_focus_sessions_habit_id_habits", ondelete="CASCADE"),
    )
    op.create_index("ix_habit_focus_sessions_user_id", "habit_focus_sessions", ["user_id"])
    op.create_index("ix_habit_focus_sessions_user_date", "habit_focus_sessions", ["user_id", "date"])


def downgrade() -> None:
    op.drop_table("habit_focus_sessions")
    op.drop_table("habit_logs")
    op.drop_table("habits")
    op.drop_table("users")
