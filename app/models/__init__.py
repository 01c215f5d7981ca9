from app.models.audit import AuditEvent, AuditOutcome  # noqa: F401
from app.models.notification import (  # noqa: F401
    Notification,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from app.models.performance import (  # noqa: F401
    AchievementLevel,
    CompletionApprovalStatus,
    EvidenceType,
    EvidenceVerificationStatus,
    FeedbackType,
    Goal,
    GoalCategory,
    GoalCompletion,
    GoalEvidence,
    GoalFeedback,
    GoalPriority,
    GoalProgressEntry,
    GoalStatus,
    PerformanceReview,
    PerformanceReviewGoal,
    PerformanceReviewStatus,
    ReviewCycle,
)
from app.models.person import Person, PersonRole, PersonStatus  # noqa: F401
