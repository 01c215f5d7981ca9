"""Dependency injection container.

This module provides a centralized container for the goal and review
workflow services, enabling proper testing through dependency mocking and
ensuring explicit dependency graphs.

Usage:
    from app.container import container

    # In route handlers (see app.api.deps)
    def approve_goal(engine=Depends(get_goal_lifecycle)):
        return engine.approve(db, goal_id, actor.actor_id)

    # In tests
    with container.goal_lifecycle.override(FakeLifecycle()):
        response = client.put(f"/api/v1/goals/{goal_id}/approve", ...)
"""

from __future__ import annotations

from dependency_injector import containers, providers  # type: ignore[import-not-found]

from app.services.audit import AuditLedger
from app.services.identity import UserDirectory
from app.services.notification import NotificationDispatcher, Notifications
from app.services.performance.evidence import EvidenceLedger
from app.services.performance.feedback import GoalFeedbackService
from app.services.performance.goals import GoalLifecycle
from app.services.performance.reviews import PerformanceReviewWorkflow


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    The ledgers and the dispatcher are stateless singletons. The two
    workflow engines are built from them, so overriding ``audit_ledger`` or
    ``notification_dispatcher`` before first use reaches both engines.
    """

    # -------------------------------------------------------------------------
    # Stores and adapters
    # -------------------------------------------------------------------------

    audit_ledger = providers.Singleton(AuditLedger)
    notification_dispatcher = providers.Singleton(NotificationDispatcher)
    notifications_service = providers.Singleton(Notifications)
    user_directory = providers.Singleton(UserDirectory)
    evidence_ledger = providers.Singleton(EvidenceLedger)
    goal_feedback = providers.Singleton(GoalFeedbackService)

    # -------------------------------------------------------------------------
    # Workflow engines
    # -------------------------------------------------------------------------

    goal_lifecycle = providers.Singleton(
        GoalLifecycle,
        audit=audit_ledger,
        dispatcher=notification_dispatcher,
        evidence=evidence_ledger,
        feedback=goal_feedback,
        directory=user_directory,
    )
    performance_reviews = providers.Singleton(
        PerformanceReviewWorkflow,
        audit=audit_ledger,
        dispatcher=notification_dispatcher,
        directory=user_directory,
    )


# Global container instance
container = Container()
