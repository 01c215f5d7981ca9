from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_db, get_goal_lifecycle
from app.schemas.performance import (
    ChangeRequestPayload,
    CompletionDecision,
    CompletionSubmit,
    EvidenceAppend,
    EvidenceRead,
    EvidenceSummaryRead,
    EvidenceVerify,
    FeedbackCreate,
    FeedbackRead,
    GoalCreate,
    GoalRead,
    GoalResubmit,
    ProgressCreate,
    ProgressRead,
    ReasonPayload,
    VersionedAction,
)
from app.services.common import coerce_uuid
from app.services.errors import UnauthorizedError
from app.services.identity import Actor
from app.services.performance.goals import GoalLifecycle

router = APIRouter(prefix="/goals", tags=["goals"])


def _visible_goal(db: Session, engine: GoalLifecycle, goal_id: str, actor: Actor):
    goal = engine.get(db, goal_id)
    engine.ensure_can_view(goal, actor)
    return goal


@router.post("", response_model=GoalRead, status_code=201)
def create_goal(
    payload: GoalCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.create(db, actor.actor_id, payload)


@router.get("", response_model=list[GoalRead])
def list_goals(
    owner_id: str | None = Query(None),
    approver_id: str | None = Query(None),
    status: str | None = Query(None),
    include_closed: bool = Query(True),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    # Non-admins only see goals they own or approve.
    if not actor.is_admin:
        if not owner_id and not approver_id:
            owner_id = str(actor.actor_id)
        requested = {coerce_uuid(value) for value in (owner_id, approver_id) if value}
        if actor.actor_id not in requested:
            raise UnauthorizedError("not_participant", "Goals can only be listed for yourself")
    return engine.list(
        db,
        owner_id=owner_id,
        approver_id=approver_id,
        status=status,
        include_closed=include_closed,
        limit=limit,
        offset=offset,
    )


@router.get("/{goal_id}", response_model=GoalRead)
def get_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return _visible_goal(db, engine, goal_id, actor)


@router.put("/{goal_id}", response_model=GoalRead)
def resubmit_goal(
    goal_id: str,
    payload: GoalResubmit,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.resubmit(db, goal_id, actor.actor_id, payload)


@router.delete("/{goal_id}", response_model=GoalRead)
def delete_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.delete(db, goal_id, actor)


@router.put("/{goal_id}/approve", response_model=GoalRead)
def approve_goal(
    goal_id: str,
    payload: VersionedAction | None = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.approve(db, goal_id, actor.actor_id, payload.expected_version if payload else None)


@router.put("/{goal_id}/reject", response_model=GoalRead)
def reject_goal(
    goal_id: str,
    payload: ReasonPayload,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.reject(db, goal_id, actor.actor_id, payload.reason, payload.expected_version)


@router.put("/{goal_id}/request-changes", response_model=GoalRead)
def request_goal_changes(
    goal_id: str,
    payload: ChangeRequestPayload,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.request_changes(db, goal_id, actor.actor_id, payload.comments, payload.expected_version)


@router.post("/{goal_id}/submit-completion", response_model=GoalRead)
def submit_goal_completion(
    goal_id: str,
    payload: CompletionSubmit,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.submit_completion(db, goal_id, actor.actor_id, payload)


@router.post("/{goal_id}/evidence", response_model=GoalRead)
def add_goal_evidence(
    goal_id: str,
    payload: EvidenceAppend,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.add_evidence(db, goal_id, actor.actor_id, payload.evidence, payload.expected_version)


@router.put("/evidence/{evidence_id}/verify", response_model=EvidenceRead)
def verify_goal_evidence(
    evidence_id: str,
    payload: EvidenceVerify,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.verify_evidence(db, evidence_id, actor.actor_id, payload.verdict, payload.notes)


@router.post("/{goal_id}/approve-completion", response_model=GoalRead)
def approve_goal_completion(
    goal_id: str,
    payload: CompletionDecision,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.approve_completion(db, goal_id, actor.actor_id, payload)


@router.post("/{goal_id}/reject-completion", response_model=GoalRead)
def reject_goal_completion(
    goal_id: str,
    payload: ReasonPayload,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.reject_completion(db, goal_id, actor.actor_id, payload.reason, payload.expected_version)


@router.post("/{goal_id}/request-additional-evidence", response_model=GoalRead)
def request_additional_goal_evidence(
    goal_id: str,
    payload: ReasonPayload,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.request_additional_evidence(db, goal_id, actor.actor_id, payload.reason, payload.expected_version)


@router.post("/{goal_id}/progress", response_model=ProgressRead, status_code=201)
def add_goal_progress(
    goal_id: str,
    payload: ProgressCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.add_progress(db, goal_id, actor.actor_id, payload.note, payload.progress)


@router.get("/{goal_id}/progress", response_model=list[ProgressRead])
def list_goal_progress(
    goal_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    _visible_goal(db, engine, goal_id, actor)
    return engine.list_progress(db, goal_id)


@router.get("/{goal_id}/evidence-summary", response_model=EvidenceSummaryRead)
def goal_evidence_summary(
    goal_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    _visible_goal(db, engine, goal_id, actor)
    return engine.evidence_summary(db, goal_id).as_dict()


@router.get("/{goal_id}/feedback", response_model=list[FeedbackRead])
def list_goal_feedback(
    goal_id: str,
    feedback_type: str | None = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    _visible_goal(db, engine, goal_id, actor)
    return engine.feedback.list(db, goal_id, feedback_type=feedback_type)


@router.post("/{goal_id}/feedback", response_model=FeedbackRead, status_code=201)
def add_goal_feedback(
    goal_id: str,
    payload: FeedbackCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    engine: GoalLifecycle = Depends(get_goal_lifecycle),
):
    return engine.add_comment(db, goal_id, actor, payload.comments)
