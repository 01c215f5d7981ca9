"""Counter-party inbox notifications.

Dispatch is best effort: a notification is written in its own commit after
the triggering transition has committed, and a failure is logged and
dropped rather than surfaced to the caller.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.logging import get_logger
from app.models.notification import Notification, NotificationPriority, NotificationStatus, NotificationType
from app.services.common import apply_pagination, coerce_uuid, get_or_raise, validate_enum
from app.services.errors import UnauthorizedError
from app.services.observability import NOTIFICATIONS

logger = get_logger(__name__)


class NotificationDispatcher:
    def notify(
        self,
        db: Session,
        *,
        recipient_id: Any,
        notification_type: NotificationType,
        message: str,
        related_entity_type: str | None = None,
        related_entity_id: Any = None,
        priority: NotificationPriority = NotificationPriority.medium,
        action_required: bool = False,
    ) -> Notification | None:
        try:
            notification = Notification(
                recipient_id=coerce_uuid(recipient_id),
                notification_type=notification_type,
                message=message,
                related_entity_type=related_entity_type,
                related_entity_id=coerce_uuid(related_entity_id) if related_entity_id else None,
                priority=priority,
                action_required=action_required,
            )
            db.add(notification)
            db.commit()
            db.refresh(notification)
        except Exception as exc:
            db.rollback()
            NOTIFICATIONS.labels(status="failed").inc()
            logger.warning(
                "notification_dispatch_failed type=%s recipient=%s error=%s",
                notification_type.value,
                recipient_id,
                exc,
                extra={"recipient_id": recipient_id},
            )
            return None
        NOTIFICATIONS.labels(status="created").inc()
        logger.info(
            "notification_created type=%s recipient=%s",
            notification_type.value,
            recipient_id,
            extra={"recipient_id": recipient_id},
        )
        return notification


class Notifications:
    """Recipient inbox queries and read-state updates."""

    @staticmethod
    def list_for_recipient(
        db: Session,
        recipient_id: str,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        query = db.query(Notification).filter(Notification.recipient_id == coerce_uuid(recipient_id))
        if status:
            query = query.filter(Notification.status == validate_enum(status, NotificationStatus, "status"))
        query = query.order_by(Notification.created_at.desc(), Notification.id)
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def unread_count(db: Session, recipient_id: str) -> int:
        return (
            db.query(Notification)
            .filter(Notification.recipient_id == coerce_uuid(recipient_id))
            .filter(Notification.status == NotificationStatus.unread)
            .count()
        )

    @staticmethod
    def mark_read(db: Session, notification_id: str, actor_id: str) -> Notification:
        notification = get_or_raise(db, Notification, notification_id, detail="Notification not found")
        if notification.recipient_id != coerce_uuid(actor_id):
            raise UnauthorizedError("not_recipient", "Only the recipient can mark a notification read")
        if notification.status != NotificationStatus.read:
            notification.status = NotificationStatus.read
            notification.read_at = datetime.now(UTC)
            db.commit()
            db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, recipient_id: str) -> int:
        now = datetime.now(UTC)
        unread = (
            db.query(Notification)
            .filter(Notification.recipient_id == coerce_uuid(recipient_id))
            .filter(Notification.status == NotificationStatus.unread)
            .all()
        )
        for notification in unread:
            notification.status = NotificationStatus.read
            notification.read_at = now
        db.commit()
        return len(unread)


notification_dispatcher = NotificationDispatcher()
notifications = Notifications()
