import pytest

from app.models.performance import GoalStatus
from app.services.performance.status_flow import (
    TERMINAL_STATUSES,
    apply_status_transition,
    is_terminal,
    is_transition_allowed,
    require_status,
    validate_transition,
)


def test_status_flow_allows_happy_path():
    assert is_transition_allowed(GoalStatus.pending_approval, GoalStatus.in_progress)
    assert is_transition_allowed(GoalStatus.in_progress, GoalStatus.pending_completion_approval)
    assert is_transition_allowed(GoalStatus.pending_completion_approval, GoalStatus.completed)


def test_status_flow_allows_completion_rejection_loop():
    assert is_transition_allowed(GoalStatus.pending_completion_approval, GoalStatus.in_progress)


def test_status_flow_blocks_skipping_approval():
    assert not is_transition_allowed(GoalStatus.pending_approval, GoalStatus.completed)
    check = validate_transition(GoalStatus.pending_approval, GoalStatus.pending_completion_approval)
    assert not check.allowed
    assert "PendingApproval" in check.reason


@pytest.mark.parametrize("terminal", [GoalStatus.completed, GoalStatus.rejected, GoalStatus.withdrawn])
def test_terminal_states_have_no_exits(terminal):
    assert is_terminal(terminal)
    for target in GoalStatus:
        assert not is_transition_allowed(terminal, target)


def test_terminal_statuses_set():
    assert TERMINAL_STATUSES == {GoalStatus.completed, GoalStatus.rejected, GoalStatus.withdrawn}


def test_require_status_reports_expected_states():
    check = require_status(GoalStatus.in_progress, GoalStatus.pending_approval)
    assert not check.allowed
    assert "InProgress" in check.reason
    assert require_status(GoalStatus.in_progress, GoalStatus.in_progress).allowed


def test_apply_status_transition_only_mutates_when_allowed():
    class _Goal:
        status = GoalStatus.completed

    goal = _Goal()
    check = apply_status_transition(goal, GoalStatus.in_progress)
    assert not check.allowed
    assert goal.status == GoalStatus.completed

    goal.status = GoalStatus.pending_approval
    assert apply_status_transition(goal, GoalStatus.in_progress).allowed
    assert goal.status == GoalStatus.in_progress
