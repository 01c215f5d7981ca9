import pytest

from app.models.notification import Notification, NotificationPriority, NotificationStatus, NotificationType
from app.services import notification as notification_module
from app.services.errors import UnauthorizedError
from app.services.notification import notification_dispatcher, notifications


def _notify(db, recipient, notification_type=NotificationType.goal_submitted, **kwargs):
    return notification_dispatcher.notify(
        db,
        recipient_id=recipient.id,
        notification_type=notification_type,
        message=kwargs.pop("message", "Goal submitted"),
        **kwargs,
    )


def test_goal_creation_notifies_approver(db_session, pending_goal, manager):
    items = notifications.list_for_recipient(db_session, str(manager.id))
    assert len(items) == 1
    note = items[0]
    assert note.notification_type == NotificationType.goal_submitted
    assert note.related_entity_type == "goal"
    assert note.related_entity_id == pending_goal.id
    assert note.priority == NotificationPriority.high
    assert note.action_required is True
    assert note.status == NotificationStatus.unread


def test_mark_read_is_recipient_only(db_session, manager, employee):
    note = _notify(db_session, manager)
    with pytest.raises(UnauthorizedError):
        notifications.mark_read(db_session, str(note.id), str(employee.id))
    db_session.refresh(note)
    assert note.status == NotificationStatus.unread

    updated = notifications.mark_read(db_session, str(note.id), str(manager.id))
    assert updated.status == NotificationStatus.read
    assert updated.read_at is not None


def test_mark_all_read_only_touches_recipient(db_session, manager, employee):
    _notify(db_session, manager)
    _notify(db_session, manager, NotificationType.goal_resubmitted)
    _notify(db_session, employee, NotificationType.goal_approved)

    assert notifications.unread_count(db_session, str(manager.id)) == 2
    assert notifications.mark_all_read(db_session, str(manager.id)) == 2
    assert notifications.unread_count(db_session, str(manager.id)) == 0
    assert notifications.unread_count(db_session, str(employee.id)) == 1
    assert notifications.mark_all_read(db_session, str(manager.id)) == 0


def test_list_filters_by_status(db_session, manager):
    first = _notify(db_session, manager)
    _notify(db_session, manager, NotificationType.goal_resubmitted)
    notifications.mark_read(db_session, str(first.id), str(manager.id))

    unread = notifications.list_for_recipient(db_session, str(manager.id), status="unread")
    assert [note.notification_type for note in unread] == [NotificationType.goal_resubmitted]


def test_dispatch_failure_is_swallowed(db_session, manager, monkeypatch, caplog):
    def _explode(**kwargs):
        raise RuntimeError("inbox down")

    monkeypatch.setattr(notification_module, "Notification", _explode)
    with caplog.at_level("WARNING"):
        assert _notify(db_session, manager) is None
    assert "notification_dispatch_failed" in caplog.text
    assert db_session.query(Notification).count() == 0
