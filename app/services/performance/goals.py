"""Goal lifecycle engine.

Every mutating operation follows the same unit of work:

1. lock the goal row (``SELECT ... FOR UPDATE``) and check the caller's
   relationship to it and the source state;
2. apply the change and stage the audit entry in the same transaction;
3. commit, then hand counter-party notifications to the dispatcher,
   which writes them in a separate, best-effort commit.

A failure in step 1 or 2 rolls back everything. Denied attempts
(wrong actor, wrong state) are recorded as failed audit entries after the
rollback.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from app.config import settings
from app.logging import get_logger
from app.models.notification import NotificationPriority, NotificationType
from app.models.performance import (
    CompletionApprovalStatus,
    FeedbackType,
    Goal,
    GoalCompletion,
    GoalProgressEntry,
    GoalStatus,
    ReviewCycle,
)
from app.schemas.performance import CompletionDecision, CompletionSubmit, GoalCreate, GoalResubmit
from app.services.audit import AuditLedger
from app.services.audit_helpers import model_to_dict
from app.services.common import apply_pagination, coerce_uuid, get_or_raise, validate_enum
from app.services.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    WorkflowError,
)
from app.services.identity import Actor, UserDirectory, user_directory
from app.services.notification import NotificationDispatcher
from app.services.observability import TRANSITION_TIME, WORKFLOW_TRANSITIONS
from app.services.performance.evidence import EvidenceLedger, EvidenceSummary, evidence_ledger
from app.services.performance.feedback import GoalFeedbackService, goal_feedback
from app.services.performance.status_flow import apply_status_transition, is_terminal, require_status
from app.services.performance.workflow import AuditedWorkflow, Effects, Notice, outcome_label, utcnow
from app.telemetry import get_tracer, workflow_span

logger = get_logger(__name__)
tracer = get_tracer(__name__)

GOAL_ENTITY = "goal"
EVIDENCE_ENTITY = "goal_evidence"

_PRIORITY_MAP = {
    "High": NotificationPriority.high,
    "Medium": NotificationPriority.medium,
    "Low": NotificationPriority.low,
}

_COMPLETION_SNAPSHOT_FIELDS = (
    "id",
    "status",
    "submission_count",
    "progress_before_submission",
    "submitted_at",
    "decided_by_id",
    "decided_at",
    "is_active",
)

# Nullable columns an explicit null in a resubmission clears.
_CLEARABLE_FIELDS = frozenset({"description"})


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("title_required", "Title is required")
    return cleaned


class GoalLifecycle(AuditedWorkflow):
    scope = "goal"
    log_key = "goal_id"

    def __init__(
        self,
        audit: AuditLedger | None = None,
        dispatcher: NotificationDispatcher | None = None,
        evidence: EvidenceLedger | None = None,
        feedback: GoalFeedbackService | None = None,
        directory: UserDirectory | None = None,
    ):
        super().__init__(audit, dispatcher)
        self.evidence = evidence or evidence_ledger
        self.feedback = feedback or goal_feedback
        self.directory = directory or user_directory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, db: Session, goal_id: str) -> Goal:
        return get_or_raise(db, Goal, goal_id, detail="Goal not found")

    def list(
        self,
        db: Session,
        owner_id: str | None = None,
        approver_id: str | None = None,
        status: str | None = None,
        include_closed: bool = True,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Goal]:
        query = db.query(Goal)
        if owner_id:
            query = query.filter(Goal.owner_id == coerce_uuid(owner_id))
        if approver_id:
            query = query.filter(Goal.approver_id == coerce_uuid(approver_id))
        if status:
            query = query.filter(Goal.status == validate_enum(status, GoalStatus, "status"))
        if not include_closed:
            query = query.filter(Goal.status.notin_([GoalStatus.rejected, GoalStatus.withdrawn]))
        query = query.order_by(Goal.created_at.desc(), Goal.id)
        return apply_pagination(query, min(limit, settings.goal_list_max_limit), offset).all()

    def list_progress(self, db: Session, goal_id: str) -> list[GoalProgressEntry]:
        goal = self.get(db, goal_id)
        return (
            db.query(GoalProgressEntry)
            .filter(GoalProgressEntry.goal_id == goal.id)
            .order_by(GoalProgressEntry.created_at, GoalProgressEntry.id)
            .all()
        )

    def evidence_summary(self, db: Session, goal_id: str) -> EvidenceSummary:
        goal = self.get(db, goal_id)
        completion = goal.completion
        if completion is None:
            return self.evidence.summarize(db, None)
        return self.evidence.summarize(db, completion.id, completion.submission_count)

    def ensure_can_view(self, goal: Goal, actor: Actor) -> None:
        if actor.is_admin or actor.actor_id in (goal.owner_id, goal.approver_id):
            return
        raise UnauthorizedError("not_participant", "Only the owner or approver can view this goal")

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self, db: Session, owner_id: str, payload: GoalCreate) -> Goal:
        with workflow_span(tracer, "create", actor_id=owner_id), TRANSITION_TIME.labels(action="GOAL_CREATED").time():
            try:
                owner = self.directory.resolve_user(db, owner_id)
                if not owner.is_active:
                    raise ValidationError("owner_inactive", "Goal owner is not an active user")
                approver_ref = payload.approver_id or owner.manager_id
                if approver_ref is None:
                    raise ValidationError("approver_required", "No approver given and the owner has no manager")
                approver = self.directory.resolve_user(db, approver_ref)
                if approver.id == owner.id:
                    raise ValidationError("self_approval", "A goal cannot be approved by its owner")
                if not approver.is_active or not approver.can_approve:
                    raise ValidationError("invalid_approver", "Approver must be an active manager or admin")
                self._validate_dates(payload.start_date, payload.end_date)
                if payload.cycle_id:
                    get_or_raise(db, ReviewCycle, payload.cycle_id, detail="Review cycle not found")

                goal = Goal(
                    title=_clean_title(payload.title),
                    description=payload.description,
                    category=payload.category,
                    priority=payload.priority,
                    owner_id=owner.id,
                    approver_id=approver.id,
                    cycle_id=payload.cycle_id,
                    start_date=payload.start_date,
                    end_date=payload.end_date,
                    status=GoalStatus.pending_approval,
                    progress=0,
                    change_requested=False,
                )
                db.add(goal)
                db.flush()
                self.audit.record(
                    db,
                    actor_id=owner.id,
                    action="GOAL_CREATED",
                    entity_type=GOAL_ENTITY,
                    entity_id=goal.id,
                    before=None,
                    after=self._goal_state(goal),
                )
                db.commit()
            except WorkflowError as exc:
                db.rollback()
                WORKFLOW_TRANSITIONS.labels(action="GOAL_CREATED", outcome=outcome_label(exc)).inc()
                raise
            except Exception as exc:
                db.rollback()
                WORKFLOW_TRANSITIONS.labels(action="GOAL_CREATED", outcome="error").inc()
                logger.exception("goal_create_failed owner=%s", owner_id, extra={"actor_id": owner_id})
                raise InternalError() from exc

            WORKFLOW_TRANSITIONS.labels(action="GOAL_CREATED", outcome="success").inc()
            db.refresh(goal)
            logger.info(
                "goal_created goal=%s owner=%s approver=%s",
                goal.id,
                goal.owner_id,
                goal.approver_id,
                extra={"goal_id": goal.id, "actor_id": goal.owner_id, "action": "GOAL_CREATED"},
            )
            self._dispatch(
                db,
                GOAL_ENTITY,
                goal.id,
                [
                    Notice(
                        recipient_id=goal.approver_id,
                        notification_type=NotificationType.goal_submitted,
                        message=f'New goal "{goal.title}" submitted for your approval',
                        priority=_PRIORITY_MAP[goal.priority.value],
                        action_required=True,
                    )
                ],
            )
            return goal

    # ------------------------------------------------------------------
    # Goal approval loop
    # ------------------------------------------------------------------

    def approve(self, db: Session, goal_id: str, approver_id: str, expected_version: int | None = None) -> Goal:
        actor = coerce_uuid(approver_id)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_approver(goal, actor)
            self._move(goal, GoalStatus.in_progress)
            now = utcnow()
            goal.approved_by_id = actor
            goal.approved_at = now
            goal.last_reviewed_by_id = actor
            goal.last_reviewed_at = now
            goal.change_requested = False
            effects.notices.append(
                Notice(
                    recipient_id=goal.owner_id,
                    notification_type=NotificationType.goal_approved,
                    message=f'Your goal "{goal.title}" has been approved',
                )
            )

        return self._transition(db, "GOAL_APPROVED", actor, goal_id, apply, expected_version)

    def reject(
        self, db: Session, goal_id: str, approver_id: str, reason: str, expected_version: int | None = None
    ) -> Goal:
        actor = coerce_uuid(approver_id)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_approver(goal, actor)
            self._require(goal, GoalStatus.pending_approval)
            self.feedback.add(
                db,
                goal_id=goal.id,
                author_id=actor,
                feedback_type=FeedbackType.goal_rejection,
                comments=reason,
            )
            self._move(goal, GoalStatus.rejected)
            goal.last_reviewed_by_id = actor
            goal.last_reviewed_at = utcnow()
            goal.change_requested = False
            effects.metadata["reason"] = reason
            effects.notices.append(
                Notice(
                    recipient_id=goal.owner_id,
                    notification_type=NotificationType.goal_rejected,
                    message=f'Your goal "{goal.title}" was rejected: {reason}',
                )
            )

        return self._transition(db, "GOAL_REJECTED", actor, goal_id, apply, expected_version)

    def request_changes(
        self, db: Session, goal_id: str, approver_id: str, comments: str, expected_version: int | None = None
    ) -> Goal:
        actor = coerce_uuid(approver_id)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_approver(goal, actor)
            self._require(goal, GoalStatus.pending_approval)
            self.feedback.add(
                db,
                goal_id=goal.id,
                author_id=actor,
                feedback_type=FeedbackType.change_request,
                comments=comments,
            )
            goal.change_requested = True
            goal.last_reviewed_by_id = actor
            goal.last_reviewed_at = utcnow()
            effects.metadata["comments"] = comments
            effects.notices.append(
                Notice(
                    recipient_id=goal.owner_id,
                    notification_type=NotificationType.goal_change_requested,
                    message=f'Changes requested on your goal "{goal.title}": {comments}',
                    action_required=True,
                )
            )

        return self._transition(db, "GOAL_CHANGE_REQUESTED", actor, goal_id, apply, expected_version)

    def resubmit(self, db: Session, goal_id: str, owner_id: str, payload: GoalResubmit) -> Goal:
        actor = coerce_uuid(owner_id)
        changes = payload.model_dump(exclude_unset=True, exclude={"expected_version"})

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_owner(goal, actor)
            self._require(goal, GoalStatus.pending_approval)
            if not goal.change_requested:
                raise ConflictError("no_change_requested", "Goal can only be resubmitted after changes were requested")
            self._validate_dates(changes.get("start_date") or goal.start_date, changes.get("end_date") or goal.end_date)
            for key, value in changes.items():
                if value is None and key not in _CLEARABLE_FIELDS:
                    continue
                setattr(goal, key, _clean_title(value) if key == "title" else value)
            goal.change_requested = False
            goal.resubmitted_at = utcnow()
            effects.metadata["changed_fields"] = sorted(changes)
            effects.notices.append(
                Notice(
                    recipient_id=goal.approver_id,
                    notification_type=NotificationType.goal_resubmitted,
                    message=f'Goal "{goal.title}" was updated and resubmitted for approval',
                    priority=_PRIORITY_MAP[goal.priority.value],
                    action_required=True,
                )
            )

        return self._transition(db, "GOAL_RESUBMITTED", actor, goal_id, apply, payload.expected_version)

    # ------------------------------------------------------------------
    # Completion loop
    # ------------------------------------------------------------------

    def submit_completion(
        self,
        db: Session,
        goal_id: str,
        owner_id: str,
        payload: CompletionSubmit,
        evidence_items: Iterable[Any] | None = None,
    ) -> Goal:
        actor = coerce_uuid(owner_id)
        items = list(payload.evidence if evidence_items is None else evidence_items)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_owner(goal, actor)
            self._move(goal, GoalStatus.pending_completion_approval)
            if not items and self._evidence_required(goal):
                raise ValidationError("evidence_required", "At least one evidence item is required")

            now = utcnow()
            completion = goal.completion
            if completion is None:
                completion = GoalCompletion(
                    achievement_summary=payload.achievement_summary,
                    completion_notes=payload.completion_notes,
                    status=CompletionApprovalStatus.pending,
                    submission_count=1,
                    progress_before_submission=goal.progress,
                    submitted_at=now,
                    is_active=True,
                )
                goal.completion = completion
                db.add(completion)
            else:
                completion.achievement_summary = payload.achievement_summary
                completion.completion_notes = payload.completion_notes
                completion.status = CompletionApprovalStatus.pending
                completion.submission_count += 1
                completion.progress_before_submission = goal.progress
                completion.submitted_at = now
                completion.decided_by_id = None
                completion.decided_at = None
                completion.manager_comments = None
                completion.is_active = True
            db.flush()

            created = self.evidence.append(db, completion, items, submission_round=completion.submission_count)
            goal.progress = 100
            effects.metadata.update(
                evidence_count=len(created),
                evidence_types=[evidence.evidence_type.value for evidence in created],
                submission_round=completion.submission_count,
            )
            effects.notices.append(
                Notice(
                    recipient_id=goal.approver_id,
                    notification_type=NotificationType.goal_completion_submitted,
                    message=f'Goal "{goal.title}" was submitted for completion approval '
                    f"with {len(created)} evidence item(s)",
                    priority=NotificationPriority.high,
                    action_required=True,
                )
            )

        return self._transition(db, "GOAL_COMPLETION_SUBMITTED", actor, goal_id, apply, payload.expected_version)

    def add_evidence(
        self,
        db: Session,
        goal_id: str,
        owner_id: str,
        evidence_items: Iterable[Any],
        expected_version: int | None = None,
    ) -> Goal:
        actor = coerce_uuid(owner_id)
        items = list(evidence_items)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_owner(goal, actor)
            self._require(goal, GoalStatus.pending_completion_approval)
            completion = goal.completion
            if completion is None or completion.status != CompletionApprovalStatus.additional_evidence_required:
                raise ConflictError("evidence_not_requested", "Additional evidence has not been requested")
            if not items:
                raise ValidationError("evidence_required", "At least one evidence item is required")
            created = self.evidence.append(db, completion, items, submission_round=completion.submission_count)
            completion.status = CompletionApprovalStatus.pending
            effects.metadata.update(
                evidence_count=len(created),
                evidence_types=[evidence.evidence_type.value for evidence in created],
            )
            effects.notices.append(
                Notice(
                    recipient_id=goal.approver_id,
                    notification_type=NotificationType.additional_evidence_submitted,
                    message=f'Additional evidence submitted for goal "{goal.title}"',
                    priority=NotificationPriority.high,
                    action_required=True,
                )
            )

        return self._transition(db, "ADDITIONAL_EVIDENCE_SUBMITTED", actor, goal_id, apply, expected_version)

    def verify_evidence(
        self,
        db: Session,
        evidence_id: str,
        approver_id: str,
        verdict: Any,
        notes: str | None = None,
    ):
        actor = coerce_uuid(approver_id)
        evidence = self.evidence.get(db, evidence_id)
        goal_id = evidence.completion.goal_id

        def snapshot(_goal: Goal) -> dict:
            return model_to_dict(evidence)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_approver(goal, actor)
            if goal.status in (GoalStatus.rejected, GoalStatus.withdrawn) or not evidence.completion.is_active:
                raise ConflictError("goal_closed", f"Evidence cannot be verified while the goal is {goal.status.value}")
            self.evidence.set_verdict(db, evidence, verdict, notes, actor)
            effects.metadata["goal_id"] = str(goal.id)
            effects.result = evidence

        return self._transition(
            db,
            "EVIDENCE_VERIFIED",
            actor,
            goal_id,
            apply,
            entity_type=EVIDENCE_ENTITY,
            entity_id=evidence.id,
            snapshot=snapshot,
        )

    def approve_completion(self, db: Session, goal_id: str, approver_id: str, decision: CompletionDecision) -> Goal:
        actor = coerce_uuid(approver_id)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_approver(goal, actor)
            self._move(goal, GoalStatus.completed)
            if not 1 <= decision.rating <= 5:
                raise ValidationError("invalid_rating", "Rating must be between 1 and 5")
            completion = goal.completion
            summary = self.evidence.summarize(db, completion.id, completion.submission_count)
            if summary.unverified:
                logger.warning(
                    "completion_approved_with_unverified_evidence goal=%s unverified=%d total=%d",
                    goal.id,
                    summary.unverified,
                    summary.total,
                    extra={"goal_id": goal.id, "actor_id": actor},
                )
            now = utcnow()
            goal.achievement_level = decision.achievement_level
            goal.rating = decision.rating
            goal.completed_at = now
            goal.progress = 100
            completion.status = CompletionApprovalStatus.approved
            completion.decided_by_id = actor
            completion.decided_at = now
            completion.manager_comments = decision.manager_comments
            effects.after_extra["evidence_summary"] = summary.as_dict()
            effects.notices.append(
                Notice(
                    recipient_id=goal.owner_id,
                    notification_type=NotificationType.goal_completion_approved,
                    message=f'Congratulations! Your goal "{goal.title}" is complete '
                    f"({decision.achievement_level.value}, rating {decision.rating}/5)",
                    priority=NotificationPriority.high,
                )
            )

        return self._transition(db, "GOAL_COMPLETION_APPROVED", actor, goal_id, apply, decision.expected_version)

    def reject_completion(
        self, db: Session, goal_id: str, approver_id: str, reason: str, expected_version: int | None = None
    ) -> Goal:
        actor = coerce_uuid(approver_id)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_approver(goal, actor)
            self._move(goal, GoalStatus.in_progress)
            completion = goal.completion
            self.feedback.add(
                db,
                goal_id=goal.id,
                completion_id=completion.id,
                author_id=actor,
                feedback_type=FeedbackType.completion_rejection,
                comments=reason,
            )
            goal.progress = completion.progress_before_submission
            completion.status = CompletionApprovalStatus.rejected
            completion.decided_by_id = actor
            completion.decided_at = utcnow()
            completion.manager_comments = reason
            effects.metadata["reason"] = reason
            effects.notices.append(
                Notice(
                    recipient_id=goal.owner_id,
                    notification_type=NotificationType.goal_completion_rejected,
                    message=f'Completion of your goal "{goal.title}" was not approved: {reason}',
                    priority=NotificationPriority.high,
                    action_required=True,
                )
            )

        return self._transition(db, "GOAL_COMPLETION_REJECTED", actor, goal_id, apply, expected_version)

    def request_additional_evidence(
        self, db: Session, goal_id: str, approver_id: str, reason: str, expected_version: int | None = None
    ) -> Goal:
        actor = coerce_uuid(approver_id)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_approver(goal, actor)
            self._require(goal, GoalStatus.pending_completion_approval)
            completion = goal.completion
            if completion.status != CompletionApprovalStatus.pending:
                raise ConflictError(
                    "completion_not_pending",
                    f"Completion is {completion.status.value}; expected {CompletionApprovalStatus.pending.value}",
                )
            self.feedback.add(
                db,
                goal_id=goal.id,
                completion_id=completion.id,
                author_id=actor,
                feedback_type=FeedbackType.additional_evidence_request,
                comments=reason,
            )
            completion.status = CompletionApprovalStatus.additional_evidence_required
            effects.metadata["reason"] = reason
            effects.notices.append(
                Notice(
                    recipient_id=goal.owner_id,
                    notification_type=NotificationType.additional_evidence_required,
                    message=f'More evidence is needed for your goal "{goal.title}": {reason}',
                    priority=NotificationPriority.high,
                    action_required=True,
                )
            )

        return self._transition(db, "ADDITIONAL_EVIDENCE_REQUESTED", actor, goal_id, apply, expected_version)

    # ------------------------------------------------------------------
    # Progress, comments and deletion
    # ------------------------------------------------------------------

    def add_progress(
        self,
        db: Session,
        goal_id: str,
        owner_id: str,
        note: str,
        progress: int | None = None,
    ) -> GoalProgressEntry:
        actor = coerce_uuid(owner_id)

        def apply(goal: Goal, effects: Effects) -> None:
            self._require_owner(goal, actor)
            self._require(goal, GoalStatus.in_progress)
            if note is None or not note.strip():
                raise ValidationError("note_required", "A progress note is required")
            if progress is not None and not 0 <= progress <= 100:
                raise ValidationError("invalid_progress", "Progress must be between 0 and 100")
            entry = GoalProgressEntry(goal_id=goal.id, author_id=actor, note=note, progress=progress)
            db.add(entry)
            if progress is not None:
                goal.progress = progress
            db.flush()
            effects.metadata["progress_entry_id"] = str(entry.id)
            effects.result = entry

        return self._transition(db, "PROGRESS_ADDED", actor, goal_id, apply)

    def add_comment(self, db: Session, goal_id: str, actor: Actor, comments: str):
        def apply(goal: Goal, effects: Effects) -> None:
            if not actor.is_admin and actor.actor_id not in (goal.owner_id, goal.approver_id):
                raise UnauthorizedError("not_participant", "Only the owner or approver can comment on this goal")
            effects.result = self.feedback.add(
                db,
                goal_id=goal.id,
                completion_id=goal.completion.id if goal.completion else None,
                author_id=actor.actor_id,
                feedback_type=FeedbackType.comment,
                comments=comments,
            )

        return self._transition(db, "GOAL_COMMENT_ADDED", actor.actor_id, goal_id, apply)

    def delete(self, db: Session, goal_id: str, caller: Actor) -> Goal:
        actor = caller.actor_id

        def apply(goal: Goal, effects: Effects) -> None:
            is_owner = goal.owner_id == actor
            if not is_owner and caller.is_employee:
                raise UnauthorizedError("not_owner", "Employees can only delete their own goals")
            if is_terminal(goal.status):
                raise ConflictError("goal_closed", f"Goal is already {goal.status.value}")
            self._move(goal, GoalStatus.withdrawn if is_owner else GoalStatus.rejected)
            now = utcnow()
            goal.deleted_by_id = actor
            goal.deleted_at = now
            goal.change_requested = False
            if goal.completion is not None:
                goal.completion.is_active = False
            effects.metadata["actor_role"] = caller.role.value
            recipient = goal.approver_id if is_owner else goal.owner_id
            if recipient != actor:
                effects.notices.append(
                    Notice(
                        recipient_id=recipient,
                        notification_type=NotificationType.goal_deleted,
                        message=f'Goal "{goal.title}" was deleted',
                    )
                )

        return self._transition(db, "GOAL_DELETED", actor, goal_id, apply)

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    def _transition(
        self,
        db: Session,
        action: str,
        actor_id: uuid.UUID,
        goal_id: Any,
        apply: Callable[[Goal, Effects], None],
        expected_version: int | None = None,
        entity_type: str = GOAL_ENTITY,
        entity_id: Any = None,
        snapshot: Callable[[Goal], dict] | None = None,
    ):
        return self._run(
            db,
            action,
            actor_id,
            lambda: self._lock(db, goal_id),
            apply,
            snapshot or self._goal_state,
            entity_type=entity_type,
            entity_id=entity_id,
            expected_version=expected_version,
            notice_entity_type=GOAL_ENTITY,
            span_id=goal_id,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _lock(db: Session, goal_id: Any) -> Goal:
        goal = db.get(Goal, coerce_uuid(goal_id), with_for_update=True, populate_existing=True)
        if goal is None:
            raise NotFoundError("goal_not_found", "Goal not found")
        return goal

    @staticmethod
    def _goal_state(goal: Goal) -> dict:
        state = model_to_dict(goal)
        completion = goal.completion
        state["completion"] = model_to_dict(completion, include=_COMPLETION_SNAPSHOT_FIELDS) if completion else None
        return state

    @staticmethod
    def _require_owner(goal: Goal, actor: uuid.UUID) -> None:
        if goal.owner_id != actor:
            raise UnauthorizedError("not_owner", "Only the goal owner can perform this action")

    @staticmethod
    def _require_approver(goal: Goal, actor: uuid.UUID) -> None:
        if goal.approver_id != actor:
            raise UnauthorizedError("not_approver", "Only the recorded approver can perform this action")

    @staticmethod
    def _require(goal: Goal, *expected: GoalStatus) -> None:
        check = require_status(goal.status, *expected)
        if not check.allowed:
            raise ConflictError("invalid_state", check.reason or "Invalid goal state")

    @staticmethod
    def _move(goal: Goal, target: GoalStatus) -> None:
        check = apply_status_transition(goal, target)
        if not check.allowed:
            raise ConflictError("invalid_transition", check.reason or "Transition not allowed")

    @staticmethod
    def _validate_dates(start: date, end: date) -> None:
        if start is None or end is None:
            raise ValidationError("dates_required", "Start and end dates are required")
        if end < start:
            raise ValidationError("invalid_dates", "End date must be on or after the start date")

    @staticmethod
    def _evidence_required(goal: Goal) -> bool:
        if goal.cycle is not None:
            return goal.cycle.evidence_required
        return settings.goal_evidence_required


goal_lifecycle = GoalLifecycle()
