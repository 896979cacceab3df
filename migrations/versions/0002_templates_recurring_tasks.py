"""task templates and recurring schedules

Revision ID: 0002_templates_recurring_tasks
Revises: 0001_init_schema
Create Date: 2026-10-18 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_templates_recurring_tasks"
down_revision: Union[str, Sequence[str], None] = "0001_init_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "task_templates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=191), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.String(length=16), nullable=False),
        sa.Column("emotion", sa.String(length=16), nullable=True),
        sa.Column("estimated_duration", sa.Integer(), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=False),
        sa.Column("recurrence", sa.JSON(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "name", name="uq_task_templates_user_id_name"),
    )
    op.create_index(op.f("ix_task_templates_id"), "task_templates", ["id"], unique=False)
    op.create_index("ix_task_templates_user_id", "task_templates", ["user_id"], unique=False)

    op.create_table(
        "template_categories",
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["template_id"], ["task_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("template_id", "category_id"),
    )

    op.create_table(
        "recurring_tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("next_due_date", sa.DateTime(), nullable=False),
        sa.Column("frequency", sa.String(length=16), nullable=False),
        sa.Column("interval", sa.Integer(), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=True),
        sa.Column("day_of_month", sa.Integer(), nullable=True),
        sa.Column("month_of_year", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("count", sa.Integer(), nullable=True),
        sa.Column("generated_count", sa.Integer(), nullable=False),
        sa.Column("last_generated_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["template_id"], ["task_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "template_id", name="uq_recurring_tasks_user_id_template_id"
        ),
    )
    op.create_index(op.f("ix_recurring_tasks_id"), "recurring_tasks", ["id"], unique=False)
    op.create_index("ix_recurring_tasks_user_id", "recurring_tasks", ["user_id"], unique=False)
    op.create_index(
        "ix_recurring_tasks_next_due_date", "recurring_tasks", ["next_due_date"], unique=False
    )

    # batch mode so SQLite can add the foreign key
    with op.batch_alter_table("tasks") as batch:
        batch.add_column(sa.Column("recurring_task_id", sa.Integer(), nullable=True))
        batch.create_foreign_key(
            "fk_tasks_recurring_task_id",
            "recurring_tasks",
            ["recurring_task_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch.create_index("ix_tasks_recurring_task_id", ["recurring_task_id"], unique=False)


def downgrade() -> None:
    with op.batch_alter_table("tasks") as batch:
        batch.drop_index("ix_tasks_recurring_task_id")
        batch.drop_constraint("fk_tasks_recurring_task_id", type_="foreignkey")
        batch.drop_column("recurring_task_id")
    op.drop_index("ix_recurring_tasks_next_due_date", table_name="recurring_tasks")
    op.drop_index("ix_recurring_tasks_user_id", table_name="recurring_tasks")
    op.drop_index(op.f("ix_recurring_tasks_id"), table_name="recurring_tasks")
    op.drop_table("recurring_tasks")
    op.drop_table("template_categories")
    op.drop_index("ix_task_templates_user_id", table_name="task_templates")
    op.drop_index(op.f("ix_task_templates_id"), table_name="task_templates")
    op.drop_table("task_templates")
