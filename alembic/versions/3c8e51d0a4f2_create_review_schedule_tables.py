"""create review schedule tables

Revision ID: 3c8e51d0a4f2
Revises:
Create Date: 2026-10-19 10:15:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c8e51d0a4f2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "review_schedules",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("problem_id", sa.String(length=64), nullable=False),
        sa.Column("current_interval", sa.Integer(), nullable=False),
        sa.Column("ease_factor", sa.Float(), nullable=False),
        sa.Column("review_count", sa.Integer(), nullable=False),
        sa.Column("consecutive_failures", sa.Integer(), nullable=False),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_review_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "problem_id", name="uq_review_schedule_student_problem"),
    )
    op.create_index("ix_review_schedules_student_id", "review_schedules", ["student_id"], unique=False)
    op.create_index("ix_review_schedules_problem_id", "review_schedules", ["problem_id"], unique=False)
    op.create_index(
        "ix_review_schedules_next_review_at",
        "review_schedules",
        ["next_review_at"],
        unique=False,
    )

    op.create_table(
        "study_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("problem_id", sa.String(length=64), nullable=False),
        sa.Column("feedback", sa.String(length=16), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("answer_content", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_study_records_student_id", "study_records", ["student_id"], unique=False)
    op.create_index("ix_study_records_problem_id", "study_records", ["problem_id"], unique=False)
    op.create_index("ix_study_records_created_at", "study_records", ["created_at"], unique=False)

    op.create_table(
        "outbox_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("aggregate_id", sa.String(length=36), nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("dispatched_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_dispatched_at", "outbox_events", ["dispatched_at"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_outbox_events_dispatched_at", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_id", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("ix_study_records_created_at", table_name="study_records")
    op.drop_index("ix_study_records_problem_id", table_name="study_records")
    op.drop_index("ix_study_records_student_id", table_name="study_records")
    op.drop_table("study_records")

    op.drop_index("ix_review_schedules_next_review_at", table_name="review_schedules")
    op.drop_index("ix_review_schedules_problem_id", table_name="review_schedules")
    op.drop_index("ix_review_schedules_student_id", table_name="review_schedules")
    op.drop_table("review_schedules")
