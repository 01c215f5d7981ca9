from datetime import date

import pytest

from app.models.audit import AuditEvent, AuditOutcome
from app.models.notification import Notification, NotificationPriority, NotificationType
from app.models.performance import FeedbackType, GoalFeedback, GoalPriority, GoalProgressEntry, GoalStatus
from app.models.person import PersonRole, PersonStatus
from app.schemas.performance import GoalResubmit
from app.services.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from app.services.performance.goals import goal_lifecycle
from tests.helpers import actor_for, goal_payload, make_person

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _audits(db, goal, action=None, outcome=AuditOutcome.success):
    query = db.query(AuditEvent).filter(AuditEvent.entity_id == goal.id, AuditEvent.outcome == outcome)
    if action:
        query = query.filter(AuditEvent.action == action)
    return query.all()


def _notifications(db, recipient, notification_type=None):
    query = db.query(Notification).filter(Notification.recipient_id == recipient.id)
    if notification_type:
        query = query.filter(Notification.notification_type == notification_type)
    return query.all()


class TestGoalCreate:
    def test_create_starts_pending_and_notifies_approver(self, db_session, employee, manager):
        goal = goal_lifecycle.create(db_session, employee.id, goal_payload(approver_id=manager.id))
        assert goal.status == GoalStatus.pending_approval
        assert goal.owner_id == employee.id
        assert goal.approver_id == manager.id
        assert goal.progress == 0
        assert goal.change_requested is False

        created = _audits(db_session, goal, "GOAL_CREATED")
        assert len(created) == 1
        assert created[0].before is None
        assert created[0].after["status"] == "PendingApproval"

        notes = _notifications(db_session, manager, NotificationType.goal_submitted)
        assert len(notes) == 1
        assert notes[0].action_required is True
        assert notes[0].priority == NotificationPriority.high
        assert notes[0].related_entity_id == goal.id

    def test_create_defaults_approver_to_manager(self, db_session, employee, manager):
        goal = goal_lifecycle.create(db_session, employee.id, goal_payload())
        assert goal.approver_id == manager.id

    def test_create_accepts_equal_dates(self, db_session, employee, manager):
        goal = goal_lifecycle.create(
            db_session,
            employee.id,
            goal_payload(start_date=date(2026, 2, 1), end_date=date(2026, 2, 1)),
        )
        assert goal.start_date == goal.end_date

    def test_create_rejects_end_before_start(self, db_session, employee, manager):
        with pytest.raises(ValidationError) as exc:
            goal_lifecycle.create(
                db_session,
                employee.id,
                goal_payload(start_date=date(2026, 3, 15), end_date=date(2026, 1, 15)),
            )
        assert exc.value.status_code == 400
        assert db_session.query(AuditEvent).count() == 0

    def test_create_unknown_owner_is_not_found(self, db_session, manager):
        with pytest.raises(NotFoundError):
            goal_lifecycle.create(db_session, MISSING_ID, goal_payload(approver_id=manager.id))

    def test_create_unknown_approver_is_not_found(self, db_session, employee):
        with pytest.raises(NotFoundError):
            goal_lifecycle.create(db_session, employee.id, goal_payload(approver_id=MISSING_ID))

    def test_create_requires_some_approver(self, db_session):
        orphan = make_person(db_session, role=PersonRole.employee)
        with pytest.raises(ValidationError) as exc:
            goal_lifecycle.create(db_session, orphan.id, goal_payload())
        assert exc.value.code == "approver_required"

    def test_create_rejects_employee_approver(self, db_session, employee, other_employee):
        with pytest.raises(ValidationError) as exc:
            goal_lifecycle.create(db_session, employee.id, goal_payload(approver_id=other_employee.id))
        assert exc.value.code == "invalid_approver"

    def test_create_rejects_inactive_approver(self, db_session, employee):
        retired = make_person(db_session, role=PersonRole.manager, status=PersonStatus.inactive)
        with pytest.raises(ValidationError):
            goal_lifecycle.create(db_session, employee.id, goal_payload(approver_id=retired.id))

    def test_create_rejects_self_approval(self, db_session, manager):
        with pytest.raises(ValidationError) as exc:
            goal_lifecycle.create(db_session, manager.id, goal_payload(approver_id=manager.id))
        assert exc.value.code == "self_approval"

    def test_create_rejects_whitespace_title(self, db_session, employee, manager):
        with pytest.raises(ValidationError) as exc:
            goal_lifecycle.create(db_session, employee.id, goal_payload(title="   "))
        assert exc.value.code == "title_required"
        assert db_session.query(AuditEvent).count() == 0

    def test_create_strips_title(self, db_session, employee, manager):
        goal = goal_lifecycle.create(db_session, employee.id, goal_payload(title="  Ship billing  "))
        assert goal.title == "Ship billing"


class TestGoalApproval:
    def test_approve(self, db_session, pending_goal, manager, employee):
        goal = goal_lifecycle.approve(db_session, pending_goal.id, manager.id)
        assert goal.status == GoalStatus.in_progress
        assert goal.approved_by_id == manager.id
        assert goal.approved_at is not None
        assert len(_audits(db_session, goal, "GOAL_APPROVED")) == 1
        assert len(_notifications(db_session, employee, NotificationType.goal_approved)) == 1

    def test_approve_by_other_manager_is_unauthorized(self, db_session, pending_goal, other_manager):
        with pytest.raises(UnauthorizedError):
            goal_lifecycle.approve(db_session, pending_goal.id, other_manager.id)
        db_session.expire_all()
        assert goal_lifecycle.get(db_session, pending_goal.id).status == GoalStatus.pending_approval
        denied = _audits(db_session, pending_goal, "GOAL_APPROVED", outcome=AuditOutcome.failure)
        assert len(denied) == 1
        assert denied[0].status_code == 403
        assert denied[0].actor_id == other_manager.id

    def test_approve_twice_is_conflict(self, db_session, active_goal, manager):
        version = active_goal.version
        with pytest.raises(ConflictError):
            goal_lifecycle.approve(db_session, active_goal.id, manager.id)
        db_session.expire_all()
        goal = goal_lifecycle.get(db_session, active_goal.id)
        assert goal.status == GoalStatus.in_progress
        assert goal.version == version

    def test_approve_unknown_goal(self, db_session, manager):
        with pytest.raises(NotFoundError):
            goal_lifecycle.approve(db_session, MISSING_ID, manager.id)

    def test_approve_with_stale_version_is_conflict(self, db_session, pending_goal, manager):
        stale = pending_goal.version
        goal_lifecycle.request_changes(db_session, pending_goal.id, manager.id, "Add a milestone")
        with pytest.raises(ConflictError) as exc:
            goal_lifecycle.approve(db_session, pending_goal.id, manager.id, expected_version=stale)
        assert exc.value.code == "version_mismatch"
        db_session.expire_all()
        assert goal_lifecycle.get(db_session, pending_goal.id).status == GoalStatus.pending_approval

    def test_approve_with_current_version(self, db_session, pending_goal, manager):
        goal = goal_lifecycle.approve(db_session, pending_goal.id, manager.id, expected_version=pending_goal.version)
        assert goal.status == GoalStatus.in_progress

    def test_every_transition_bumps_version(self, db_session, pending_goal, manager):
        before = pending_goal.version
        goal = goal_lifecycle.approve(db_session, pending_goal.id, manager.id)
        assert goal.version == before + 1

    def test_reject(self, db_session, pending_goal, manager, employee):
        goal = goal_lifecycle.reject(db_session, pending_goal.id, manager.id, "Out of scope for this cycle")
        assert goal.status == GoalStatus.rejected
        feedback = db_session.query(GoalFeedback).filter(GoalFeedback.goal_id == goal.id).all()
        assert [item.feedback_type for item in feedback] == [FeedbackType.goal_rejection]
        assert feedback[0].comments == "Out of scope for this cycle"
        assert len(_notifications(db_session, employee, NotificationType.goal_rejected)) == 1

    def test_reject_after_approval_is_conflict(self, db_session, active_goal, manager):
        with pytest.raises(ConflictError):
            goal_lifecycle.reject(db_session, active_goal.id, manager.id, "Too late")

    def test_reject_requires_reason(self, db_session, pending_goal, manager):
        with pytest.raises(ValidationError):
            goal_lifecycle.reject(db_session, pending_goal.id, manager.id, "   ")
        db_session.expire_all()
        assert goal_lifecycle.get(db_session, pending_goal.id).status == GoalStatus.pending_approval


class TestChangeRequestLoop:
    def test_scenario_c_request_changes_then_resubmit(self, db_session, pending_goal, manager, employee):
        goal = goal_lifecycle.request_changes(db_session, pending_goal.id, manager.id, "add milestone detail")
        assert goal.status == GoalStatus.pending_approval
        assert goal.change_requested is True
        feedback = db_session.query(GoalFeedback).filter(GoalFeedback.goal_id == goal.id).one()
        assert feedback.feedback_type == FeedbackType.change_request
        assert feedback.comments == "add milestone detail"
        assert len(_notifications(db_session, employee, NotificationType.goal_change_requested)) == 1

        goal = goal_lifecycle.resubmit(
            db_session,
            goal.id,
            employee.id,
            GoalResubmit(description="Milestones: design, build, cut-over", priority=GoalPriority.medium),
        )
        assert goal.change_requested is False
        assert goal.resubmitted_at is not None
        assert goal.description == "Milestones: design, build, cut-over"
        assert goal.priority == GoalPriority.medium
        assert goal.status == GoalStatus.pending_approval
        assert len(_notifications(db_session, manager, NotificationType.goal_resubmitted)) == 1

        goal = goal_lifecycle.approve(db_session, goal.id, manager.id)
        assert goal.status == GoalStatus.in_progress

    def test_resubmit_without_change_request_is_conflict(self, db_session, pending_goal, employee):
        with pytest.raises(ConflictError) as exc:
            goal_lifecycle.resubmit(db_session, pending_goal.id, employee.id, GoalResubmit(title="New"))
        assert exc.value.code == "no_change_requested"

    def test_resubmit_by_approver_is_unauthorized(self, db_session, pending_goal, manager):
        goal_lifecycle.request_changes(db_session, pending_goal.id, manager.id, "More detail")
        with pytest.raises(UnauthorizedError):
            goal_lifecycle.resubmit(db_session, pending_goal.id, manager.id, GoalResubmit(title="New"))

    def test_resubmit_revalidates_dates(self, db_session, pending_goal, manager, employee):
        goal_lifecycle.request_changes(db_session, pending_goal.id, manager.id, "Shorter timeline")
        with pytest.raises(ValidationError):
            goal_lifecycle.resubmit(
                db_session, pending_goal.id, employee.id, GoalResubmit(end_date=date(2025, 12, 31))
            )
        db_session.expire_all()
        goal = goal_lifecycle.get(db_session, pending_goal.id)
        assert goal.change_requested is True
        assert goal.end_date == date(2026, 3, 15)

    def test_resubmit_rejects_blank_title(self, db_session, pending_goal, manager, employee):
        goal_lifecycle.request_changes(db_session, pending_goal.id, manager.id, "Sharper title")
        with pytest.raises(ValidationError) as exc:
            goal_lifecycle.resubmit(db_session, pending_goal.id, employee.id, GoalResubmit(title="   "))
        assert exc.value.code == "title_required"
        db_session.expire_all()
        goal = goal_lifecycle.get(db_session, pending_goal.id)
        assert goal.title == "Ship the billing migration"
        assert goal.change_requested is True

    def test_resubmit_explicit_null_clears_description(self, db_session, pending_goal, manager, employee):
        goal_lifecycle.request_changes(db_session, pending_goal.id, manager.id, "Drop the description")
        goal = goal_lifecycle.resubmit(
            db_session, pending_goal.id, employee.id, GoalResubmit(title=None, description=None)
        )
        assert goal.description is None
        assert goal.title == "Ship the billing migration"
        assert goal.change_requested is False

    def test_resubmit_omitted_description_is_kept(self, db_session, pending_goal, manager, employee):
        goal_lifecycle.request_changes(db_session, pending_goal.id, manager.id, "Retitle it")
        goal = goal_lifecycle.resubmit(
            db_session, pending_goal.id, employee.id, GoalResubmit(title="  Ledger cut-over ")
        )
        assert goal.title == "Ledger cut-over"
        assert goal.description == "Move invoices to the new ledger"

    def test_request_changes_after_approval_is_conflict(self, db_session, active_goal, manager):
        with pytest.raises(ConflictError):
            goal_lifecycle.request_changes(db_session, active_goal.id, manager.id, "Too late")


class TestGoalProgress:
    def test_add_progress_appends_entries(self, db_session, active_goal, employee):
        first = goal_lifecycle.add_progress(db_session, active_goal.id, employee.id, "Kickoff done", progress=20)
        second = goal_lifecycle.add_progress(db_session, active_goal.id, employee.id, "Design reviewed")
        assert isinstance(first, GoalProgressEntry)
        entries = goal_lifecycle.list_progress(db_session, active_goal.id)
        assert [entry.id for entry in entries] == [first.id, second.id]
        goal = goal_lifecycle.get(db_session, active_goal.id)
        assert goal.progress == 20
        assert len(_audits(db_session, goal, "PROGRESS_ADDED")) == 2

    def test_add_progress_sends_no_notification(self, db_session, active_goal, employee, manager):
        before = len(_notifications(db_session, manager))
        goal_lifecycle.add_progress(db_session, active_goal.id, employee.id, "Update", progress=10)
        assert len(_notifications(db_session, manager)) == before

    def test_add_progress_requires_in_progress(self, db_session, pending_goal, employee):
        with pytest.raises(ConflictError):
            goal_lifecycle.add_progress(db_session, pending_goal.id, employee.id, "Too early")

    def test_add_progress_owner_only(self, db_session, active_goal, manager):
        with pytest.raises(UnauthorizedError):
            goal_lifecycle.add_progress(db_session, active_goal.id, manager.id, "Not mine")

    def test_add_progress_rejects_out_of_range(self, db_session, active_goal, employee):
        with pytest.raises(ValidationError):
            goal_lifecycle.add_progress(db_session, active_goal.id, employee.id, "Overachiever", progress=140)
        assert goal_lifecycle.list_progress(db_session, active_goal.id) == []


class TestGoalDelete:
    def test_owner_delete_withdraws(self, db_session, pending_goal, employee, manager):
        goal = goal_lifecycle.delete(db_session, pending_goal.id, actor_for(employee))
        assert goal.status == GoalStatus.withdrawn
        assert goal.deleted_by_id == employee.id
        assert goal.deleted_at is not None
        assert len(_audits(db_session, goal, "GOAL_DELETED")) == 1
        assert len(_notifications(db_session, manager, NotificationType.goal_deleted)) == 1

    def test_manager_delete_rejects(self, db_session, active_goal, other_manager, employee):
        goal = goal_lifecycle.delete(db_session, active_goal.id, actor_for(other_manager))
        assert goal.status == GoalStatus.rejected
        assert len(_notifications(db_session, employee, NotificationType.goal_deleted)) == 1

    def test_employee_cannot_delete_others_goal(self, db_session, pending_goal, other_employee):
        with pytest.raises(UnauthorizedError):
            goal_lifecycle.delete(db_session, pending_goal.id, actor_for(other_employee))
        db_session.expire_all()
        assert goal_lifecycle.get(db_session, pending_goal.id).status == GoalStatus.pending_approval

    def test_delete_cascades_to_completion(self, db_session, submitted_goal, admin):
        goal = goal_lifecycle.delete(db_session, submitted_goal.id, actor_for(admin))
        assert goal.status == GoalStatus.rejected
        assert goal.completion.is_active is False
        assert len(goal.completion.evidence) == 2

    def test_delete_terminal_goal_is_conflict(self, db_session, pending_goal, employee):
        goal_lifecycle.delete(db_session, pending_goal.id, actor_for(employee))
        with pytest.raises(ConflictError):
            goal_lifecycle.delete(db_session, pending_goal.id, actor_for(employee))

    def test_rejected_goal_cannot_be_approved(self, db_session, pending_goal, employee, manager):
        goal_lifecycle.delete(db_session, pending_goal.id, actor_for(employee))
        with pytest.raises(ConflictError):
            goal_lifecycle.approve(db_session, pending_goal.id, manager.id)


class TestGoalReads:
    def test_list_filters(self, db_session, pending_goal, active_goal, employee, manager, other_employee):
        other = goal_lifecycle.create(db_session, other_employee.id, goal_payload(title="Other goal"))
        owned = goal_lifecycle.list(db_session, owner_id=str(employee.id))
        assert {goal.id for goal in owned} == {active_goal.id}
        approving = goal_lifecycle.list(db_session, approver_id=str(manager.id))
        assert {goal.id for goal in approving} == {active_goal.id, other.id}
        pending = goal_lifecycle.list(db_session, status="PendingApproval")
        assert {goal.id for goal in pending} == {other.id}

    def test_list_rejects_unknown_status(self, db_session):
        with pytest.raises(ValidationError):
            goal_lifecycle.list(db_session, status="Archived")

    def test_ensure_can_view(self, db_session, pending_goal, employee, other_employee, admin):
        goal_lifecycle.ensure_can_view(pending_goal, actor_for(employee))
        goal_lifecycle.ensure_can_view(pending_goal, actor_for(admin))
        with pytest.raises(UnauthorizedError):
            goal_lifecycle.ensure_can_view(pending_goal, actor_for(other_employee))

    def test_add_comment(self, db_session, active_goal, employee, other_employee):
        feedback = goal_lifecycle.add_comment(db_session, active_goal.id, actor_for(employee), "On track")
        assert feedback.feedback_type == FeedbackType.comment
        assert len(_audits(db_session, active_goal, "GOAL_COMMENT_ADDED")) == 1
        with pytest.raises(UnauthorizedError):
            goal_lifecycle.add_comment(db_session, active_goal.id, actor_for(other_employee), "Drive-by")
