from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.notification import NotificationPriority, NotificationStatus, NotificationType


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    recipient_id: UUID
    notification_type: NotificationType
    message: str
    related_entity_type: str | None = None
    related_entity_id: UUID | None = None
    status: NotificationStatus
    priority: NotificationPriority
    action_required: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationList(BaseModel):
    items: list[NotificationRead]
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int
