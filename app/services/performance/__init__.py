from app.services.performance.evidence import evidence_ledger
from app.services.performance.feedback import goal_feedback
from app.services.performance.goals import goal_lifecycle
from app.services.performance.reviews import performance_reviews

__all__ = ["evidence_ledger", "goal_feedback", "goal_lifecycle", "performance_reviews"]
