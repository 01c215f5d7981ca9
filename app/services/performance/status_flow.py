"""Goal status flow rules."""

from __future__ import annotations

from dataclasses import dataclass

from app.models.performance import GoalStatus

_ALLOWED_TRANSITIONS: dict[GoalStatus, set[GoalStatus]] = {
    GoalStatus.pending_approval: {
        GoalStatus.in_progress,
        GoalStatus.rejected,
        GoalStatus.withdrawn,
    },
    GoalStatus.in_progress: {
        GoalStatus.pending_completion_approval,
        GoalStatus.rejected,
        GoalStatus.withdrawn,
    },
    GoalStatus.pending_completion_approval: {
        GoalStatus.completed,
        GoalStatus.in_progress,
        GoalStatus.rejected,
        GoalStatus.withdrawn,
    },
    GoalStatus.completed: set(),
    GoalStatus.rejected: set(),
    GoalStatus.withdrawn: set(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in _ALLOWED_TRANSITIONS.items() if not targets)


@dataclass(frozen=True)
class TransitionCheck:
    allowed: bool
    reason: str | None = None


def is_terminal(status: GoalStatus) -> bool:
    return status in TERMINAL_STATUSES


def is_transition_allowed(current: GoalStatus, target: GoalStatus) -> bool:
    return target in _ALLOWED_TRANSITIONS.get(current, set())


def validate_transition(current: GoalStatus, target: GoalStatus) -> TransitionCheck:
    if is_transition_allowed(current, target):
        return TransitionCheck(allowed=True)
    return TransitionCheck(
        allowed=False,
        reason=f"Transition {current.value} -> {target.value} is not allowed",
    )


def require_status(current: GoalStatus, *expected: GoalStatus) -> TransitionCheck:
    """Check that an in-place operation runs from one of ``expected``."""
    if current in expected:
        return TransitionCheck(allowed=True)
    names = ", ".join(status.value for status in expected)
    return TransitionCheck(
        allowed=False,
        reason=f"Goal is {current.value}; expected {names}",
    )


def apply_status_transition(goal, target: GoalStatus) -> TransitionCheck:
    current = goal.status or GoalStatus.pending_approval
    if not isinstance(current, GoalStatus):
        current = GoalStatus(str(current))
    check = validate_transition(current, target)
    if check.allowed:
        goal.status = target
    return check
