"""create goal workflow tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def _enum(name: str, *values: str) -> postgresql.ENUM:
    enum_type = postgresql.ENUM(*values, name=name, create_type=False)
    enum_type.create(op.get_bind(), checkfirst=True)
    return enum_type


def upgrade() -> None:
    person_role = _enum("personrole", "employee", "manager", "admin")
    person_status = _enum("personstatus", "active", "inactive")
    goal_category = _enum("goalcategory", "Technical", "Behavioral", "ProfessionalDevelopment", "Other")
    goal_priority = _enum("goalpriority", "High", "Medium", "Low")
    goal_status = _enum(
        "goalstatus",
        "PendingApproval",
        "InProgress",
        "PendingCompletionApproval",
        "Completed",
        "Rejected",
        "Withdrawn",
    )
    achievement_level = _enum("achievementlevel", "Exceeded", "Met", "PartiallyMet")
    completion_status = _enum(
        "completionapprovalstatus", "Pending", "Approved", "AdditionalEvidenceRequired", "Rejected"
    )
    evidence_type = _enum("evidencetype", "Link", "Document", "Repository", "Dashboard", "Other")
    verification_status = _enum(
        "evidenceverificationstatus",
        "NotVerified",
        "VerifiedAcceptable",
        "VerifiedExcellent",
        "IssuesFound",
        "Invalid",
    )
    feedback_type = _enum(
        "feedbacktype",
        "ChangeRequest",
        "GoalRejection",
        "CompletionRejection",
        "AdditionalEvidenceRequest",
        "Comment",
    )
    audit_outcome = _enum("auditoutcome", "success", "failure")
    notification_type = _enum(
        "notificationtype",
        "GoalSubmitted",
        "GoalApproved",
        "GoalRejected",
        "GoalChangeRequested",
        "GoalResubmitted",
        "GoalCompletionSubmitted",
        "GoalCompletionApproved",
        "GoalCompletionRejected",
        "AdditionalEvidenceRequired",
        "AdditionalEvidenceSubmitted",
        "GoalDeleted",
    )
    notification_status = _enum("notificationstatus", "unread", "read")
    notification_priority = _enum("notificationpriority", "High", "Medium", "Low")

    op.create_table(
        "people",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("display_name", sa.String(160), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("role", person_role, nullable=False),
        sa.Column("manager_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("department", sa.String(80), nullable=True),
        sa.Column("status", person_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["manager_id"], ["people.id"]),
    )
    op.create_index("ix_people_manager", "people", ["manager_id"])

    op.create_table(
        "review_cycles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("evidence_required", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "goals",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", goal_category, nullable=False),
        sa.Column("priority", goal_priority, nullable=False),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("approver_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("cycle_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", goal_status, nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("change_requested", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("approved_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_reviewed_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resubmitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("achievement_level", achievement_level, nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["owner_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["approver_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["cycle_id"], ["review_cycles.id"]),
        sa.ForeignKeyConstraint(["approved_by_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["last_reviewed_by_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["deleted_by_id"], ["people.id"]),
        sa.CheckConstraint("progress BETWEEN 0 AND 100", name="ck_goals_progress_range"),
        sa.CheckConstraint("end_date >= start_date", name="ck_goals_date_order"),
    )
    op.create_index("ix_goals_owner_status", "goals", ["owner_id", "status"])
    op.create_index("ix_goals_approver_status", "goals", ["approver_id", "status"])
    op.create_index("ix_goals_end_date", "goals", ["end_date"])

    op.create_table(
        "goal_completions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("goal_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("achievement_summary", sa.Text(), nullable=False),
        sa.Column("completion_notes", sa.Text(), nullable=True),
        sa.Column("status", completion_status, nullable=False),
        sa.Column("submission_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("progress_before_submission", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("decided_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("manager_comments", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["goal_id"], ["goals.id"]),
        sa.ForeignKeyConstraint(["decided_by_id"], ["people.id"]),
        sa.UniqueConstraint("goal_id", name="uq_goal_completions_goal"),
    )

    op.create_table(
        "goal_evidence",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("completion_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("evidence_type", evidence_type, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("reference", sa.String(1000), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("access_instructions", sa.Text(), nullable=True),
        sa.Column("submission_round", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("verification_status", verification_status, nullable=False),
        sa.Column("verification_notes", sa.Text(), nullable=True),
        sa.Column("verified_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["completion_id"], ["goal_completions.id"]),
        sa.ForeignKeyConstraint(["verified_by_id"], ["people.id"]),
    )
    op.create_index(
        "ix_goal_evidence_completion_verdict", "goal_evidence", ["completion_id", "verification_status"]
    )

    op.create_table(
        "goal_progress_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("goal_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["goal_id"], ["goals.id"]),
        sa.ForeignKeyConstraint(["author_id"], ["people.id"]),
    )
    op.create_index("ix_goal_progress_goal_created", "goal_progress_entries", ["goal_id", "created_at"])

    op.create_table(
        "goal_feedback",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("goal_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("completion_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("feedback_type", feedback_type, nullable=False),
        sa.Column("comments", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["goal_id"], ["goals.id"]),
        sa.ForeignKeyConstraint(["completion_id"], ["goal_completions.id"]),
        sa.ForeignKeyConstraint(["author_id"], ["people.id"]),
    )
    op.create_index("ix_goal_feedback_goal_type", "goal_feedback", ["goal_id", "feedback_type"])

    op.create_table(
        "audit_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
        sa.Column("outcome", audit_outcome, nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_audit_events_actor_time", "audit_events", ["actor_id", "occurred_at"])
    op.create_index("ix_audit_events_entity", "audit_events", ["entity_type", "entity_id"])
    op.create_index("ix_audit_events_action_time", "audit_events", ["action", "occurred_at"])

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("recipient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("notification_type", notification_type, nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_entity_type", sa.String(50), nullable=True),
        sa.Column("related_entity_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", notification_status, nullable=False),
        sa.Column("priority", notification_priority, nullable=False),
        sa.Column("action_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["recipient_id"], ["people.id"]),
    )
    op.create_index("ix_notifications_recipient_status", "notifications", ["recipient_id", "status"])
    op.create_index("ix_notifications_related", "notifications", ["related_entity_type", "related_entity_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_related", table_name="notifications")
    op.drop_index("ix_notifications_recipient_status", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_audit_events_action_time", table_name="audit_events")
    op.drop_index("ix_audit_events_entity", table_name="audit_events")
    op.drop_index("ix_audit_events_actor_time", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_goal_feedback_goal_type", table_name="goal_feedback")
    op.drop_table("goal_feedback")
    op.drop_index("ix_goal_progress_goal_created", table_name="goal_progress_entries")
    op.drop_table("goal_progress_entries")
    op.drop_index("ix_goal_evidence_completion_verdict", table_name="goal_evidence")
    op.drop_table("goal_evidence")
    op.drop_table("goal_completions")
    op.drop_index("ix_goals_end_date", table_name="goals")
    op.drop_index("ix_goals_approver_status", table_name="goals")
    op.drop_index("ix_goals_owner_status", table_name="goals")
    op.drop_table("goals")
    op.drop_table("review_cycles")
    op.drop_index("ix_people_manager", table_name="people")
    op.drop_table("people")

    for name in (
        "notificationpriority",
        "notificationstatus",
        "notificationtype",
        "auditoutcome",
        "feedbacktype",
        "evidenceverificationstatus",
        "evidencetype",
        "completionapprovalstatus",
        "achievementlevel",
        "goalstatus",
        "goalpriority",
        "goalcategory",
        "personstatus",
        "personrole",
    ):
        postgresql.ENUM(name=name).drop(op.get_bind(), checkfirst=True)
