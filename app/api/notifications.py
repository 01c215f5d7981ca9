from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_db, get_notifications_service
from app.schemas.notification import MarkAllReadResult, NotificationList, NotificationRead
from app.services.identity import Actor
from app.services.notification import Notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
def list_notifications(
    status: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    service: Notifications = Depends(get_notifications_service),
):
    items = service.list_for_recipient(db, str(actor.actor_id), status=status, limit=limit, offset=offset)
    return {"items": items, "unread": service.unread_count(db, str(actor.actor_id))}


@router.put("/mark-all-read", response_model=MarkAllReadResult)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    service: Notifications = Depends(get_notifications_service),
):
    return {"updated": service.mark_all_read(db, str(actor.actor_id))}


@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    service: Notifications = Depends(get_notifications_service),
):
    return service.mark_read(db, notification_id, str(actor.actor_id))
