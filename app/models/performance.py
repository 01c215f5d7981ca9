import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    # Persist the public value (e.g. "PendingApproval"), not the member name.
    return [member.value for member in enum_cls]


class GoalStatus(enum.Enum):
    pending_approval = "PendingApproval"
    in_progress = "InProgress"
    pending_completion_approval = "PendingCompletionApproval"
    completed = "Completed"
    rejected = "Rejected"
    withdrawn = "Withdrawn"


class GoalCategory(enum.Enum):
    technical = "Technical"
    behavioral = "Behavioral"
    professional_development = "ProfessionalDevelopment"
    other = "Other"


class GoalPriority(enum.Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


class CompletionApprovalStatus(enum.Enum):
    pending = "Pending"
    approved = "Approved"
    additional_evidence_required = "AdditionalEvidenceRequired"
    rejected = "Rejected"


class EvidenceType(enum.Enum):
    link = "Link"
    document = "Document"
    repository = "Repository"
    dashboard = "Dashboard"
    other = "Other"


class EvidenceVerificationStatus(enum.Enum):
    not_verified = "NotVerified"
    verified_acceptable = "VerifiedAcceptable"
    verified_excellent = "VerifiedExcellent"
    issues_found = "IssuesFound"
    invalid = "Invalid"


class AchievementLevel(enum.Enum):
    exceeded = "Exceeded"
    met = "Met"
    partially_met = "PartiallyMet"


class FeedbackType(enum.Enum):
    change_request = "ChangeRequest"
    goal_rejection = "GoalRejection"
    completion_rejection = "CompletionRejection"
    additional_evidence_request = "AdditionalEvidenceRequest"
    comment = "Comment"


class PerformanceReviewStatus(enum.Enum):
    pending = "Pending"
    self_assessment_completed = "SelfAssessmentCompleted"
    completed = "Completed"
    completed_and_acknowledged = "CompletedAndAcknowledged"


class ReviewCycle(Base):
    """Review period a goal belongs to.

    Scheduling is managed elsewhere; the workflows only read its dates and
    evidence policy.
    """

    __tablename__ = "review_cycles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    evidence_required: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))


class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (
        Index("ix_goals_owner_status", "owner_id", "status"),
        Index("ix_goals_approver_status", "approver_id", "status"),
        Index("ix_goals_end_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[GoalCategory] = mapped_column(
        Enum(GoalCategory, name="goalcategory", values_callable=_enum_values), nullable=False
    )
    priority: Mapped[GoalPriority] = mapped_column(
        Enum(GoalPriority, name="goalpriority", values_callable=_enum_values),
        default=GoalPriority.medium,
        nullable=False,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"), nullable=False)
    approver_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"), nullable=False)
    cycle_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("review_cycles.id"))
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[GoalStatus] = mapped_column(
        Enum(GoalStatus, name="goalstatus", values_callable=_enum_values),
        default=GoalStatus.pending_approval,
        nullable=False,
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Approval workflow
    change_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    approved_by_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_reviewed_by_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    resubmitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Completion outcome
    achievement_level: Mapped[AchievementLevel | None] = mapped_column(
        Enum(AchievementLevel, name="achievementlevel", values_callable=_enum_values)
    )
    rating: Mapped[int | None] = mapped_column(Integer)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Soft delete
    deleted_by_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )

    __mapper_args__ = {"version_id_col": version}

    owner = relationship("Person", foreign_keys=[owner_id])
    approver = relationship("Person", foreign_keys=[approver_id])
    cycle = relationship("ReviewCycle")
    completion = relationship("GoalCompletion", back_populates="goal", uselist=False)
    progress_entries = relationship(
        "GoalProgressEntry", back_populates="goal", order_by="GoalProgressEntry.created_at"
    )


class GoalCompletion(Base):
    __tablename__ = "goal_completions"
    __table_args__ = (UniqueConstraint("goal_id", name="uq_goal_completions_goal"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    goal_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("goals.id"), nullable=False)
    achievement_summary: Mapped[str] = mapped_column(Text, nullable=False)
    completion_notes: Mapped[str | None] = mapped_column(Text)
    status: Mapped[CompletionApprovalStatus] = mapped_column(
        Enum(CompletionApprovalStatus, name="completionapprovalstatus", values_callable=_enum_values),
        default=CompletionApprovalStatus.pending,
        nullable=False,
    )
    submission_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    progress_before_submission: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    decided_by_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    manager_comments: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )

    goal = relationship("Goal", back_populates="completion")
    evidence = relationship("GoalEvidence", back_populates="completion", order_by="GoalEvidence.created_at")


class GoalEvidence(Base):
    __tablename__ = "goal_evidence"
    __table_args__ = (Index("ix_goal_evidence_completion_verdict", "completion_id", "verification_status"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    completion_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("goal_completions.id"), nullable=False
    )
    evidence_type: Mapped[EvidenceType] = mapped_column(
        Enum(EvidenceType, name="evidencetype", values_callable=_enum_values),
        default=EvidenceType.link,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    reference: Mapped[str] = mapped_column(String(1000), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    access_instructions: Mapped[str | None] = mapped_column(Text)
    submission_round: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    verification_status: Mapped[EvidenceVerificationStatus] = mapped_column(
        Enum(EvidenceVerificationStatus, name="evidenceverificationstatus", values_callable=_enum_values),
        default=EvidenceVerificationStatus.not_verified,
        nullable=False,
    )
    verification_notes: Mapped[str | None] = mapped_column(Text)
    verified_by_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    completion = relationship("GoalCompletion", back_populates="evidence")


class GoalProgressEntry(Base):
    __tablename__ = "goal_progress_entries"
    __table_args__ = (Index("ix_goal_progress_goal_created", "goal_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    goal_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("goals.id"), nullable=False)
    author_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"), nullable=False)
    note: Mapped[str] = mapped_column(Text, nullable=False)
    progress: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    goal = relationship("Goal", back_populates="progress_entries")


class GoalFeedback(Base):
    __tablename__ = "goal_feedback"
    __table_args__ = (Index("ix_goal_feedback_goal_type", "goal_id", "feedback_type"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    goal_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("goals.id"), nullable=False)
    completion_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("goal_completions.id"))
    author_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"), nullable=False)
    feedback_type: Mapped[FeedbackType] = mapped_column(
        Enum(FeedbackType, name="feedbacktype", values_callable=_enum_values), nullable=False
    )
    comments: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))


class PerformanceReview(Base):
    """One employee's review for one cycle.

    The employee writes the self-assessment, the employee's manager writes
    the evaluation, and the employee acknowledges the result.
    """

    __tablename__ = "performance_reviews"
    __table_args__ = (
        UniqueConstraint("cycle_id", "employee_id", name="uq_performance_reviews_cycle_employee"),
        Index("ix_performance_reviews_employee_status", "employee_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cycle_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("review_cycles.id"), nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"), nullable=False)
    status: Mapped[PerformanceReviewStatus] = mapped_column(
        Enum(PerformanceReviewStatus, name="performancereviewstatus", values_callable=_enum_values),
        default=PerformanceReviewStatus.pending,
        nullable=False,
    )

    # Self-assessment
    self_assessment: Mapped[str | None] = mapped_column(Text)
    self_rating: Mapped[int | None] = mapped_column(Integer)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Manager evaluation
    manager_feedback: Mapped[str | None] = mapped_column(Text)
    manager_rating: Mapped[int | None] = mapped_column(Integer)
    rating_justification: Mapped[str | None] = mapped_column(Text)
    compensation_recommendations: Mapped[str | None] = mapped_column(Text)
    next_period_goals: Mapped[str | None] = mapped_column(Text)
    reviewed_by_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    review_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Acknowledgment
    acknowledged_by_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    employee_response: Mapped[str | None] = mapped_column(Text)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )

    __mapper_args__ = {"version_id_col": version}

    cycle = relationship("ReviewCycle")
    employee = relationship("Person", foreign_keys=[employee_id])
    goal_links = relationship(
        "PerformanceReviewGoal", back_populates="review", order_by="PerformanceReviewGoal.linked_at"
    )

    @property
    def linked_goal_ids(self) -> list[uuid.UUID]:
        return [link.goal_id for link in self.goal_links]


class PerformanceReviewGoal(Base):
    __tablename__ = "performance_review_goals"
    __table_args__ = (UniqueConstraint("review_id", "goal_id", name="uq_performance_review_goals_review_goal"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    review_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("performance_reviews.id"), nullable=False
    )
    goal_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("goals.id"), nullable=False)
    linked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    review = relationship("PerformanceReview", back_populates="goal_links")
    goal = relationship("Goal")
