"""Initial schema: users, tasks, level_events

Revision ID: a1e5c0d7b9f2
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1e5c0d7b9f2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("rank", sa.String(), nullable=False, server_default="E"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("current_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_xp", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("priority", sa.String(), nullable=False, server_default="normal"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("recurrence_type", sa.String(), nullable=True),
        sa.Column("recurrence_interval", sa.Integer(), nullable=True),
        sa.Column("recurrence_days", sa.JSON(), nullable=True),
        sa.Column("recurrence_day_of_month", sa.Integer(), nullable=True),
        sa.Column("next_due", sa.DateTime(), nullable=True),
        sa.Column("lineage_id", sa.String(), nullable=True),
        sa.UniqueConstraint("user_id", "lineage_id", "next_due", name="uq_task_lineage_occurrence"),
    )
    op.create_index(op.f("ix_tasks_user_id"), "tasks", ["user_id"], unique=False)
    op.create_index(op.f("ix_tasks_created_at"), "tasks", ["created_at"], unique=False)
    op.create_index(op.f("ix_tasks_deleted_at"), "tasks", ["deleted_at"], unique=False)
    op.create_index(op.f("ix_tasks_next_due"), "tasks", ["next_due"], unique=False)
    op.create_index(op.f("ix_tasks_lineage_id"), "tasks", ["lineage_id"], unique=False)

    op.create_table(
        "level_events",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("old_level", sa.Integer(), nullable=False),
        sa.Column("new_level", sa.Integer(), nullable=False),
        sa.Column("old_rank", sa.String(), nullable=False),
        sa.Column("new_rank", sa.String(), nullable=False),
        sa.Column("xp_gained", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_level_events_user_id"), "level_events", ["user_id"], unique=False)
    op.create_index(op.f("ix_level_events_timestamp"), "level_events", ["timestamp"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_level_events_timestamp"), table_name="level_events")
    op.drop_index(op.f("ix_level_events_user_id"), table_name="level_events")
    op.drop_table("level_events")

    op.drop_index(op.f("ix_tasks_lineage_id"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_next_due"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_deleted_at"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_created_at"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_user_id"), table_name="tasks")
    op.drop_table("tasks")

    op.drop_table("users")
