from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_db, get_performance_reviews
from app.schemas.performance import (
    ManagerReviewSubmit,
    PerformanceReviewRead,
    ReviewAcknowledgement,
    SelfAssessmentDraft,
    SelfAssessmentSubmit,
)
from app.services.identity import Actor
from app.services.performance.reviews import PerformanceReviewWorkflow

router = APIRouter(prefix="/performance-reviews", tags=["performance-reviews"])


@router.get("", response_model=list[PerformanceReviewRead])
def list_reviews(
    cycle_id: str | None = Query(None),
    employee_id: str | None = Query(None),
    status: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    workflow: PerformanceReviewWorkflow = Depends(get_performance_reviews),
):
    return workflow.list(
        db,
        actor,
        cycle_id=cycle_id,
        employee_id=employee_id,
        status=status,
        limit=limit,
        offset=offset,
    )


@router.get("/{review_id}", response_model=PerformanceReviewRead)
def get_review(
    review_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    workflow: PerformanceReviewWorkflow = Depends(get_performance_reviews),
):
    review = workflow.get(db, review_id)
    workflow.ensure_can_view(db, review, actor)
    return review


@router.post("", response_model=PerformanceReviewRead, status_code=201)
def submit_self_assessment(
    payload: SelfAssessmentSubmit,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    workflow: PerformanceReviewWorkflow = Depends(get_performance_reviews),
):
    return workflow.submit_self_assessment(db, actor.actor_id, payload)


@router.put("/{review_id}/draft", response_model=PerformanceReviewRead)
def update_self_assessment_draft(
    review_id: str,
    payload: SelfAssessmentDraft,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    workflow: PerformanceReviewWorkflow = Depends(get_performance_reviews),
):
    return workflow.update_self_assessment_draft(db, review_id, actor.actor_id, payload)


@router.put("/{review_id}", response_model=PerformanceReviewRead)
def submit_manager_review(
    review_id: str,
    payload: ManagerReviewSubmit,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    workflow: PerformanceReviewWorkflow = Depends(get_performance_reviews),
):
    return workflow.submit_manager_review(db, review_id, actor.actor_id, payload)


@router.post("/{review_id}/acknowledge", response_model=PerformanceReviewRead)
def acknowledge_review(
    review_id: str,
    payload: ReviewAcknowledgement | None = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    workflow: PerformanceReviewWorkflow = Depends(get_performance_reviews),
):
    payload = payload or ReviewAcknowledgement()
    return workflow.acknowledge(db, review_id, actor.actor_id, payload.response, payload.expected_version)
