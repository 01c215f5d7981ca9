"""Prometheus metrics for the goal and review workflows."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

WORKFLOW_TRANSITIONS = Counter(
    "performance_workflow_transitions_total",
    "Goal and review workflow operations by outcome",
    ["action", "outcome"],  # outcome: success, unauthorized, conflict, validation, not_found, error
)

AUDIT_WRITES = Counter(
    "performance_audit_events_total",
    "Audit events written",
    ["outcome"],
)

NOTIFICATIONS = Counter(
    "performance_notifications_total",
    "Counter-party notifications dispatched",
    ["status"],  # status: created, failed
)

AUDIT_EXPORTS = Counter(
    "performance_audit_exports_total",
    "Audit log exports by format",
    ["format"],
)

TRANSITION_TIME = Histogram(
    "performance_workflow_transition_seconds",
    "Time spent inside one workflow operation",
    ["action"],
)
