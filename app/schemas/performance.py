from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.performance import (
    AchievementLevel,
    CompletionApprovalStatus,
    EvidenceType,
    EvidenceVerificationStatus,
    FeedbackType,
    GoalCategory,
    GoalPriority,
    GoalStatus,
    PerformanceReviewStatus,
)


class GoalBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: GoalCategory
    priority: GoalPriority = GoalPriority.medium
    start_date: date
    end_date: date


class GoalCreate(GoalBase):
    approver_id: UUID | None = None
    cycle_id: UUID | None = None


class GoalResubmit(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: GoalCategory | None = None
    priority: GoalPriority | None = None
    start_date: date | None = None
    end_date: date | None = None
    expected_version: int | None = None


class GoalRead(GoalBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    approver_id: UUID
    cycle_id: UUID | None = None
    status: GoalStatus
    progress: int
    change_requested: bool
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    last_reviewed_by_id: UUID | None = None
    last_reviewed_at: datetime | None = None
    resubmitted_at: datetime | None = None
    achievement_level: AchievementLevel | None = None
    rating: int | None = None
    completed_at: datetime | None = None
    deleted_by_id: UUID | None = None
    deleted_at: datetime | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class ReasonPayload(BaseModel):
    reason: str = Field(min_length=1)
    expected_version: int | None = None


class ChangeRequestPayload(BaseModel):
    comments: str = Field(min_length=1)
    expected_version: int | None = None


class VersionedAction(BaseModel):
    expected_version: int | None = None


class EvidenceItemCreate(BaseModel):
    evidence_type: EvidenceType = EvidenceType.link
    title: str = Field(min_length=1, max_length=200)
    reference: str = Field(min_length=1, max_length=1000)
    description: str | None = None
    access_instructions: str | None = None


class CompletionSubmit(BaseModel):
    achievement_summary: str = Field(min_length=1)
    completion_notes: str | None = None
    evidence: list[EvidenceItemCreate] = Field(default_factory=list)
    expected_version: int | None = None


class EvidenceAppend(BaseModel):
    evidence: list[EvidenceItemCreate] = Field(min_length=1)
    expected_version: int | None = None


class CompletionDecision(BaseModel):
    achievement_level: AchievementLevel
    rating: int = Field(ge=1, le=5)
    manager_comments: str | None = None
    expected_version: int | None = None


class EvidenceVerify(BaseModel):
    verdict: EvidenceVerificationStatus
    notes: str | None = None


class EvidenceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    completion_id: UUID
    evidence_type: EvidenceType
    title: str
    reference: str
    description: str | None = None
    access_instructions: str | None = None
    submission_round: int
    verification_status: EvidenceVerificationStatus
    verification_notes: str | None = None
    verified_by_id: UUID | None = None
    verified_at: datetime | None = None
    created_at: datetime


class CompletionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    goal_id: UUID
    achievement_summary: str
    completion_notes: str | None = None
    status: CompletionApprovalStatus
    submission_count: int
    progress_before_submission: int
    submitted_at: datetime
    decided_by_id: UUID | None = None
    decided_at: datetime | None = None
    manager_comments: str | None = None
    is_active: bool
    evidence: list[EvidenceRead] = Field(default_factory=list)


class EvidenceSummaryRead(BaseModel):
    total: int
    verified: int
    unverified: int
    issues: int
    by_verdict: dict[str, int]


class ProgressCreate(BaseModel):
    note: str = Field(min_length=1)
    progress: int | None = Field(default=None, ge=0, le=100)


class ProgressRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    goal_id: UUID
    author_id: UUID
    note: str
    progress: int | None = None
    created_at: datetime


class FeedbackCreate(BaseModel):
    comments: str = Field(min_length=1)


class FeedbackRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    goal_id: UUID
    completion_id: UUID | None = None
    author_id: UUID
    feedback_type: FeedbackType
    comments: str
    created_at: datetime


class SelfAssessmentSubmit(BaseModel):
    cycle_id: UUID
    self_assessment: str = Field(min_length=1)
    self_rating: int = Field(ge=1, le=5)


class SelfAssessmentDraft(BaseModel):
    self_assessment: str = Field(min_length=1)
    self_rating: int | None = Field(default=None, ge=1, le=5)
    expected_version: int | None = None


class ManagerReviewSubmit(BaseModel):
    manager_feedback: str = Field(min_length=1)
    manager_rating: int = Field(ge=1, le=5)
    rating_justification: str | None = None
    compensation_recommendations: str | None = None
    next_period_goals: str | None = None
    expected_version: int | None = None


class ReviewAcknowledgement(BaseModel):
    response: str | None = None
    expected_version: int | None = None


class PerformanceReviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    cycle_id: UUID
    employee_id: UUID
    status: PerformanceReviewStatus
    self_assessment: str | None = None
    self_rating: int | None = None
    submitted_at: datetime | None = None
    manager_feedback: str | None = None
    manager_rating: int | None = None
    rating_justification: str | None = None
    compensation_recommendations: str | None = None
    next_period_goals: str | None = None
    reviewed_by_id: UUID | None = None
    review_completed_at: datetime | None = None
    acknowledged_by_id: UUID | None = None
    acknowledged_at: datetime | None = None
    employee_response: str | None = None
    linked_goal_ids: list[UUID] = Field(default_factory=list)
    version: int
    created_at: datetime
    updated_at: datetime
