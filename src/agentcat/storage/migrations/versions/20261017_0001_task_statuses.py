"""Create task status table."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_statuses",
        sa.Column("task_id", sa.String(), primary_key=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_task_statuses_status", "task_statuses", ["status"])


def downgrade() -> None:
    op.drop_index("ix_task_statuses_status", table_name="task_statuses")
    op.drop_table("task_statuses")
