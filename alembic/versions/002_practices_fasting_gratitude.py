"""Add practices, practice logs, fasting logs and gratitude entries

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Spiritual practices and their daily check-ins
    op.create_table(
        "practices",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("frequency", sa.String(16), nullable=False, server_default="daily"),
        sa.Column("goal", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_completed_on", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_practices"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_practices_user_id_users", ondelete="CASCADE",
        ),
    )
    op.create_index("ix_practices_user_id", "practices", ["user_id"])

    op.create_table(
        "practice_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("practice_id", sa.Uuid(), nullable=False),
        sa.Column("completed_on", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_practice_logs"),
        sa.ForeignKeyConstraint(
            ["practice_id"], ["practices.id"],
            name="fk_practice_logs_practice_id_practices", ondelete="CASCADE",
        ),
        sa.UniqueConstraint("practice_id", "completed_on", name="uq_practice_logs_practice_day"),
    )
    op.create_index("ix_practice_logs_practice_id", "practice_logs", ["practice_id"])

    # Fasting logs, open while ended_at is null
    op.create_table(
        "fasting_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("fast_type", sa.String(32), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("prayer_focus", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_fasting_logs"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_fasting_logs_user_id_users", ondelete="CASCADE",
        ),
    )
    op.create_index("ix_fasting_logs_user_id", "fasting_logs", ["user_id"])
    op.create_index("ix_fasting_logs_user_started", "fasting_logs", ["user_id", "started_at"])

    # Gratitude journal, one page per user per day
    op.create_table(
        "gratitude_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("items", postgresql.JSONB(), nullable=False),
        sa.Column("prayer_of_thanksgiving", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_gratitude_entries"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_gratitude_entries_user_id_users", ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "entry_date", name="uq_gratitude_entries_user_day"),
    )
    op.create_index("ix_gratitude_entries_user_id", "gratitude_entries", ["user_id"])


def downgrade() -> None:
    op.drop_table("gratitude_entries")
    op.drop_table("fasting_logs")
    op.drop_table("practice_logs")
    op.drop_table("practices")
