from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.models.performance import FeedbackType, GoalFeedback
from app.services.common import coerce_uuid, validate_enum
from app.services.errors import ValidationError


class GoalFeedbackService:
    def add(
        self,
        db: Session,
        *,
        goal_id: Any,
        author_id: Any,
        feedback_type: FeedbackType,
        comments: str,
        completion_id: Any = None,
    ) -> GoalFeedback:
        """Stage a feedback row in the caller's transaction.

        Comments are stored verbatim; only blank text is refused.
        """
        if comments is None or not comments.strip():
            raise ValidationError("comments_required", "Comments are required")
        feedback = GoalFeedback(
            goal_id=coerce_uuid(goal_id),
            completion_id=coerce_uuid(completion_id) if completion_id else None,
            author_id=coerce_uuid(author_id),
            feedback_type=feedback_type,
            comments=comments,
        )
        db.add(feedback)
        db.flush()
        return feedback

    def list(self, db: Session, goal_id: str, feedback_type: str | None = None) -> list[GoalFeedback]:
        query = db.query(GoalFeedback).filter(GoalFeedback.goal_id == coerce_uuid(goal_id))
        if feedback_type:
            kind = validate_enum(feedback_type, FeedbackType, "feedback_type")
            query = query.filter(GoalFeedback.feedback_type == kind)
        return query.order_by(GoalFeedback.created_at, GoalFeedback.id).all()


goal_feedback = GoalFeedbackService()
