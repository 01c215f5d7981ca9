"""Performance review workflow.

A review for one employee and one cycle moves through

    Pending -> SelfAssessmentCompleted -> Completed -> CompletedAndAcknowledged

The employee submits (and may keep editing) the self-assessment, the
employee's manager writes the evaluation, and the employee acknowledges
it. Each step runs through the same audited unit of work as the goal
engine, and the counter-party is notified after the commit.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.config import settings
from app.models.notification import NotificationPriority, NotificationType
from app.models.performance import (
    Goal,
    GoalStatus,
    PerformanceReview,
    PerformanceReviewGoal,
    PerformanceReviewStatus,
    ReviewCycle,
)
from app.models.person import Person
from app.schemas.performance import ManagerReviewSubmit, SelfAssessmentDraft, SelfAssessmentSubmit
from app.services.audit import AuditLedger
from app.services.audit_helpers import model_to_dict
from app.services.common import apply_pagination, coerce_uuid, get_or_raise, validate_enum
from app.services.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from app.services.identity import Actor, UserDirectory, user_directory
from app.services.notification import NotificationDispatcher
from app.services.performance.workflow import AuditedWorkflow, Effects, Notice, utcnow

REVIEW_ENTITY = "performance_review"

_EDITABLE = (PerformanceReviewStatus.pending, PerformanceReviewStatus.self_assessment_completed)


def _require_text(value: str | None, code: str, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(code, f"{label} is required")
    return cleaned


def _self_assessment_text(value: str | None) -> str:
    return _require_text(value, "self_assessment_required", "Self-assessment")


class PerformanceReviewWorkflow(AuditedWorkflow):
    scope = "review"
    log_key = "review_id"

    def __init__(
        self,
        audit: AuditLedger | None = None,
        dispatcher: NotificationDispatcher | None = None,
        directory: UserDirectory | None = None,
    ):
        super().__init__(audit, dispatcher)
        self.directory = directory or user_directory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, db: Session, review_id: str) -> PerformanceReview:
        return get_or_raise(db, PerformanceReview, review_id, detail="Review not found")

    def list(
        self,
        db: Session,
        actor: Actor,
        cycle_id: str | None = None,
        employee_id: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PerformanceReview]:
        """List reviews; non-admins only see their own and their direct reports'."""
        query = db.query(PerformanceReview)
        if cycle_id:
            query = query.filter(PerformanceReview.cycle_id == coerce_uuid(cycle_id))
        if employee_id:
            query = query.filter(PerformanceReview.employee_id == coerce_uuid(employee_id))
        if status:
            query = query.filter(
                PerformanceReview.status == validate_enum(status, PerformanceReviewStatus, "status")
            )
        if not actor.is_admin:
            query = query.join(Person, Person.id == PerformanceReview.employee_id).filter(
                or_(PerformanceReview.employee_id == actor.actor_id, Person.manager_id == actor.actor_id)
            )
        query = query.order_by(PerformanceReview.created_at.desc(), PerformanceReview.id)
        return apply_pagination(query, min(limit, settings.goal_list_max_limit), offset).all()

    def ensure_can_view(self, db: Session, review: PerformanceReview, actor: Actor) -> None:
        if actor.is_admin or actor.actor_id in (review.employee_id, review.reviewed_by_id):
            return
        if self.directory.resolve_user(db, review.employee_id).manager_id == actor.actor_id:
            return
        raise UnauthorizedError("not_participant", "Only the employee or their manager can view this review")

    # ------------------------------------------------------------------
    # Employee steps
    # ------------------------------------------------------------------

    def submit_self_assessment(
        self, db: Session, employee_id: str, payload: SelfAssessmentSubmit
    ) -> PerformanceReview:
        actor = coerce_uuid(employee_id)
        found: dict[str, Any] = {}

        def lock() -> PerformanceReview:
            cycle = get_or_raise(db, ReviewCycle, payload.cycle_id, detail="Review cycle not found")
            employee = self.directory.resolve_user(db, actor)
            found.update(cycle=cycle, employee=employee)
            review = (
                db.query(PerformanceReview)
                .filter(PerformanceReview.cycle_id == cycle.id, PerformanceReview.employee_id == employee.id)
                .with_for_update()
                .populate_existing()
                .one_or_none()
            )
            if review is None:
                review = PerformanceReview(
                    id=uuid.uuid4(),
                    cycle_id=cycle.id,
                    employee_id=employee.id,
                    status=PerformanceReviewStatus.pending,
                )
                db.add(review)
            return review

        def apply(review: PerformanceReview, effects: Effects) -> None:
            cycle, employee = found["cycle"], found["employee"]
            if review.status != PerformanceReviewStatus.pending:
                raise ConflictError("already_submitted", "Self-assessment already submitted")
            review.self_assessment = _self_assessment_text(payload.self_assessment)
            review.self_rating = payload.self_rating
            review.status = PerformanceReviewStatus.self_assessment_completed
            review.submitted_at = utcnow()
            linked = self._link_completed_goals(db, review, cycle)
            effects.metadata.update(cycle_id=str(cycle.id), linked_goal_count=len(linked))
            if employee.manager_id is not None:
                effects.notices.append(
                    Notice(
                        recipient_id=employee.manager_id,
                        notification_type=NotificationType.self_assessment_submitted,
                        message=f'A self-assessment for "{cycle.title}" is ready for your review',
                        priority=NotificationPriority.high,
                        action_required=True,
                    )
                )

        return self._run(
            db,
            "SELF_ASSESSMENT_SUBMITTED",
            actor,
            lock,
            apply,
            self._review_state,
            entity_type=REVIEW_ENTITY,
            span_id=payload.cycle_id,
        )

    def update_self_assessment_draft(
        self, db: Session, review_id: str, employee_id: str, payload: SelfAssessmentDraft
    ) -> PerformanceReview:
        actor = coerce_uuid(employee_id)

        def apply(review: PerformanceReview, effects: Effects) -> None:
            self._require_employee(review, actor)
            if review.status not in _EDITABLE:
                raise ConflictError("review_closed", "Cannot update - review already completed")
            review.self_assessment = _self_assessment_text(payload.self_assessment)
            if payload.self_rating is not None:
                review.self_rating = payload.self_rating

        return self._transition(
            db, "SELF_ASSESSMENT_DRAFT_UPDATED", actor, review_id, apply, payload.expected_version
        )

    def acknowledge(
        self,
        db: Session,
        review_id: str,
        employee_id: str,
        response: str | None = None,
        expected_version: int | None = None,
    ) -> PerformanceReview:
        actor = coerce_uuid(employee_id)

        def apply(review: PerformanceReview, effects: Effects) -> None:
            self._require_employee(review, actor)
            self._require(review, PerformanceReviewStatus.completed, "review_not_completed", "Review not completed")
            review.acknowledged_by_id = actor
            review.acknowledged_at = utcnow()
            review.employee_response = response
            review.status = PerformanceReviewStatus.completed_and_acknowledged
            recipient = review.reviewed_by_id or self.directory.resolve_user(db, review.employee_id).manager_id
            if recipient is not None:
                effects.notices.append(
                    Notice(
                        recipient_id=recipient,
                        notification_type=NotificationType.review_acknowledged,
                        message="Your performance review was acknowledged by the employee",
                    )
                )

        return self._transition(db, "REVIEW_ACKNOWLEDGED", actor, review_id, apply, expected_version)

    # ------------------------------------------------------------------
    # Manager step
    # ------------------------------------------------------------------

    def submit_manager_review(
        self, db: Session, review_id: str, manager_id: str, payload: ManagerReviewSubmit
    ) -> PerformanceReview:
        actor = coerce_uuid(manager_id)

        def apply(review: PerformanceReview, effects: Effects) -> None:
            if self.directory.resolve_user(db, review.employee_id).manager_id != actor:
                raise UnauthorizedError("not_manager", "Only the employee's manager can complete this review")
            self._require(
                review,
                PerformanceReviewStatus.self_assessment_completed,
                "self_assessment_pending",
                "Self-assessment not completed",
            )
            review.manager_feedback = _require_text(payload.manager_feedback, "feedback_required", "Manager feedback")
            review.manager_rating = payload.manager_rating
            review.rating_justification = payload.rating_justification
            review.compensation_recommendations = payload.compensation_recommendations
            review.next_period_goals = payload.next_period_goals
            review.reviewed_by_id = actor
            review.review_completed_at = utcnow()
            review.status = PerformanceReviewStatus.completed
            effects.metadata["manager_rating"] = payload.manager_rating
            effects.notices.append(
                Notice(
                    recipient_id=review.employee_id,
                    notification_type=NotificationType.performance_review_completed,
                    message="Your performance review has been completed",
                    priority=NotificationPriority.high,
                    action_required=True,
                )
            )

        return self._transition(db, "MANAGER_REVIEW_COMPLETED", actor, review_id, apply, payload.expected_version)

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def _transition(
        self,
        db: Session,
        action: str,
        actor_id: uuid.UUID,
        review_id: Any,
        apply: Callable[[PerformanceReview, Effects], None],
        expected_version: int | None = None,
    ) -> PerformanceReview:
        return self._run(
            db,
            action,
            actor_id,
            lambda: self._lock(db, review_id),
            apply,
            self._review_state,
            entity_type=REVIEW_ENTITY,
            expected_version=expected_version,
            span_id=review_id,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _lock(db: Session, review_id: Any) -> PerformanceReview:
        review = db.get(PerformanceReview, coerce_uuid(review_id), with_for_update=True, populate_existing=True)
        if review is None:
            raise NotFoundError("review_not_found", "Review not found")
        return review

    @staticmethod
    def _review_state(review: PerformanceReview) -> dict:
        state = model_to_dict(review)
        state["linked_goal_ids"] = [str(goal_id) for goal_id in review.linked_goal_ids]
        return state

    @staticmethod
    def _link_completed_goals(db: Session, review: PerformanceReview, cycle: ReviewCycle) -> list[uuid.UUID]:
        """Attach the employee's completed goals for the cycle.

        Goals without a cycle count when their dates overlap the cycle.
        """
        already = set(review.linked_goal_ids)
        goals = (
            db.query(Goal)
            .filter(
                Goal.owner_id == review.employee_id,
                Goal.status == GoalStatus.completed,
                or_(
                    Goal.cycle_id == cycle.id,
                    and_(
                        Goal.cycle_id.is_(None),
                        Goal.start_date <= cycle.end_date,
                        Goal.end_date >= cycle.start_date,
                    ),
                ),
            )
            .order_by(Goal.completed_at, Goal.id)
            .all()
        )
        now = utcnow()
        linked = []
        for goal in goals:
            if goal.id in already:
                continue
            review.goal_links.append(PerformanceReviewGoal(goal_id=goal.id, linked_at=now))
            linked.append(goal.id)
        return linked

    @staticmethod
    def _require_employee(review: PerformanceReview, actor: uuid.UUID) -> None:
        if review.employee_id != actor:
            raise UnauthorizedError("not_owner", "Only the reviewed employee can perform this action")

    @staticmethod
    def _require(review: PerformanceReview, expected: PerformanceReviewStatus, code: str, detail: str) -> None:
        if review.status != expected:
            raise ConflictError(code, f"{detail} (review is {review.status.value})")


performance_reviews = PerformanceReviewWorkflow()
