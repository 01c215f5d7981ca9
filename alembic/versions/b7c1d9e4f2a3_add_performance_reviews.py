"""add performance reviews

Revision ID: b7c1d9e4f2a3
Revises: a1b2c3d4e5f6
Create Date: 2026-10-19 12:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "b7c1d9e4f2a3"
down_revision = "a1b2c3d4e5f6"
branch_labels = None
depends_on = None

_NOTIFICATION_TYPES = ("SelfAssessmentSubmitted", "PerformanceReviewCompleted", "ReviewAcknowledged")


def upgrade() -> None:
    for value in _NOTIFICATION_TYPES:
        op.execute(
            f"""
            DO $$
            BEGIN
                IF NOT EXISTS (
                    SELECT 1
                    FROM pg_enum e
                    JOIN pg_type t ON t.oid = e.enumtypid
                    WHERE t.typname = 'notificationtype'
                      AND e.enumlabel = '{value}'
                ) THEN
                    ALTER TYPE notificationtype ADD VALUE '{value}';
                END IF;
            END
            $$;
            """
        )

    review_status = postgresql.ENUM(
        "Pending",
        "SelfAssessmentCompleted",
        "Completed",
        "CompletedAndAcknowledged",
        name="performancereviewstatus",
        create_type=False,
    )
    review_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "performance_reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("cycle_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", review_status, nullable=False),
        sa.Column("self_assessment", sa.Text(), nullable=True),
        sa.Column("self_rating", sa.Integer(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("manager_feedback", sa.Text(), nullable=True),
        sa.Column("manager_rating", sa.Integer(), nullable=True),
        sa.Column("rating_justification", sa.Text(), nullable=True),
        sa.Column("compensation_recommendations", sa.Text(), nullable=True),
        sa.Column("next_period_goals", sa.Text(), nullable=True),
        sa.Column("reviewed_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("review_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acknowledged_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("employee_response", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["cycle_id"], ["review_cycles.id"]),
        sa.ForeignKeyConstraint(["employee_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["reviewed_by_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["acknowledged_by_id"], ["people.id"]),
        sa.UniqueConstraint("cycle_id", "employee_id", name="uq_performance_reviews_cycle_employee"),
    )
    op.create_index(
        "ix_performance_reviews_employee_status", "performance_reviews", ["employee_id", "status"]
    )

    op.create_table(
        "performance_review_goals",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("review_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("goal_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["review_id"], ["performance_reviews.id"]),
        sa.ForeignKeyConstraint(["goal_id"], ["goals.id"]),
        sa.UniqueConstraint("review_id", "goal_id", name="uq_performance_review_goals_review_goal"),
    )


def downgrade() -> None:
    op.drop_table("performance_review_goals")
    op.drop_index("ix_performance_reviews_employee_status", table_name="performance_reviews")
    op.drop_table("performance_reviews")
    postgresql.ENUM(name="performancereviewstatus").drop(op.get_bind(), checkfirst=True)
    # Enum values cannot be removed safely from notificationtype; no-op.
