import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class NotificationType(enum.Enum):
    goal_submitted = "GoalSubmitted"
    goal_approved = "GoalApproved"
    goal_rejected = "GoalRejected"
    goal_change_requested = "GoalChangeRequested"
    goal_resubmitted = "GoalResubmitted"
    goal_completion_submitted = "GoalCompletionSubmitted"
    goal_completion_approved = "GoalCompletionApproved"
    goal_completion_rejected = "GoalCompletionRejected"
    additional_evidence_required = "AdditionalEvidenceRequired"
    additional_evidence_submitted = "AdditionalEvidenceSubmitted"
    goal_deleted = "GoalDeleted"
    self_assessment_submitted = "SelfAssessmentSubmitted"
    performance_review_completed = "PerformanceReviewCompleted"
    review_acknowledged = "ReviewAcknowledged"


class NotificationStatus(enum.Enum):
    unread = "unread"
    read = "read"


class NotificationPriority(enum.Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_status", "recipient_id", "status"),
        Index("ix_notifications_related", "related_entity_type", "related_entity_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"), nullable=False)
    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notificationtype", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_entity_type: Mapped[str | None] = mapped_column(String(50))
    related_entity_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    status: Mapped[NotificationStatus] = mapped_column(
        Enum(NotificationStatus), default=NotificationStatus.unread, nullable=False
    )
    priority: Mapped[NotificationPriority] = mapped_column(
        Enum(NotificationPriority, name="notificationpriority", values_callable=lambda e: [m.value for m in e]),
        default=NotificationPriority.medium,
        nullable=False,
    )
    action_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    recipient = relationship("Person")
