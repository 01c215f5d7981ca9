"""Audited unit of work shared by the goal and review workflows.

A transition locks one row, checks the caller's expected version, applies
the change, stages exactly one audit entry and commits. Counter-party
notices collected while applying are dispatched after the commit.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.logging import get_logger
from app.models.audit import AuditOutcome
from app.models.notification import NotificationPriority, NotificationType
from app.services.audit import AuditLedger, audit_ledger
from app.services.errors import AUDITED_DENIALS, ConflictError, InternalError, WorkflowError
from app.services.notification import NotificationDispatcher, notification_dispatcher
from app.services.observability import TRANSITION_TIME, WORKFLOW_TRANSITIONS
from app.telemetry import get_tracer, workflow_span

logger = get_logger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class Notice:
    recipient_id: uuid.UUID
    notification_type: NotificationType
    message: str
    priority: NotificationPriority = NotificationPriority.medium
    action_required: bool = False


@dataclass
class Effects:
    """Side effects collected while a transition is applied."""

    notices: list[Notice] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    after_extra: dict[str, Any] = field(default_factory=dict)
    result: Any = None


def utcnow() -> datetime:
    return datetime.now(UTC)


def outcome_label(exc: Exception) -> str:
    return {
        404: "not_found",
        403: "unauthorized",
        409: "conflict",
        400: "validation",
    }.get(getattr(exc, "status_code", 500), "error")


class AuditedWorkflow:
    scope = "workflow"
    log_key = "entity_id"

    def __init__(
        self,
        audit: AuditLedger | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self.audit = audit or audit_ledger
        self.dispatcher = dispatcher or notification_dispatcher

    def _run(
        self,
        db: Session,
        action: str,
        actor_id: uuid.UUID,
        lock: Callable[[], Any],
        apply: Callable[[Any, Effects], None],
        snapshot: Callable[[Any], dict],
        *,
        entity_type: str,
        entity_id: Any = None,
        expected_version: int | None = None,
        notice_entity_type: str | None = None,
        span_id: Any = None,
    ):
        """Run one transition and return ``effects.result`` or the locked row.

        ``lock`` returns the row to change. A row that is still pending
        (created by ``lock`` and not yet flushed) is audited with no
        ``before`` snapshot.
        """
        effects = Effects()
        record = None
        before = None
        timer = TRANSITION_TIME.labels(action=action).time()
        with workflow_span(tracer, action, scope=self.scope, id=span_id, actor_id=actor_id), timer:
            try:
                record = lock()
                entity_id = entity_id or record.id
                before = None if inspect(record).pending else snapshot(record)
                if expected_version is not None and record.version != expected_version:
                    raise ConflictError(
                        "version_mismatch",
                        f"Record was modified concurrently (version {record.version}, expected {expected_version})",
                    )
                apply(record, effects)
                record.updated_at = utcnow()
                db.flush()
                after = snapshot(record)
                after.update(effects.after_extra)
                self.audit.record(
                    db,
                    actor_id=actor_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    before=before,
                    after=after,
                    metadata=effects.metadata or None,
                )
                db.commit()
            except StaleDataError as exc:
                db.rollback()
                conflict = ConflictError(f"stale_{self.scope}", "Record was modified concurrently")
                self._finish_denied(db, action, actor_id, entity_type, entity_id, before, conflict)
                raise conflict from exc
            except AUDITED_DENIALS as exc:
                db.rollback()
                self._finish_denied(db, action, actor_id, entity_type, entity_id, before, exc)
                raise
            except WorkflowError as exc:
                db.rollback()
                WORKFLOW_TRANSITIONS.labels(action=action, outcome=outcome_label(exc)).inc()
                raise
            except Exception as exc:
                db.rollback()
                WORKFLOW_TRANSITIONS.labels(action=action, outcome="error").inc()
                logger.exception(
                    "%s_transition_failed action=%s id=%s",
                    self.scope,
                    action,
                    span_id,
                    extra={self.log_key: span_id, "actor_id": actor_id, "action": action},
                )
                raise InternalError() from exc

        WORKFLOW_TRANSITIONS.labels(action=action, outcome="success").inc()
        logger.info(
            "%s_transition action=%s id=%s actor=%s",
            self.scope,
            action,
            record.id,
            actor_id,
            extra={self.log_key: record.id, "actor_id": actor_id, "action": action},
        )
        self._dispatch(db, notice_entity_type or entity_type, record.id, effects.notices)
        if effects.result is not None:
            return effects.result
        return record

    def _finish_denied(
        self,
        db: Session,
        action: str,
        actor_id: uuid.UUID,
        entity_type: str,
        entity_id: Any,
        before: dict | None,
        exc: WorkflowError,
    ) -> None:
        WORKFLOW_TRANSITIONS.labels(action=action, outcome=outcome_label(exc)).inc()
        if entity_id is None:
            return
        try:
            self.audit.record(
                db,
                actor_id=actor_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                before=before,
                after=None,
                outcome=AuditOutcome.failure,
                status_code=exc.status_code,
                metadata={"code": exc.code, "detail": exc.detail},
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.warning(
                "denied_attempt_audit_failed action=%s entity=%s",
                action,
                entity_id,
                exc_info=True,
                extra={"actor_id": actor_id, "action": action},
            )

    def _dispatch(self, db: Session, entity_type: str, entity_id: uuid.UUID, notices: list[Notice]) -> None:
        for notice in notices:
            self.dispatcher.notify(
                db,
                recipient_id=notice.recipient_id,
                notification_type=notice.notification_type,
                message=notice.message,
                related_entity_type=entity_type,
                related_entity_id=entity_id,
                priority=notice.priority,
                action_required=notice.action_required,
            )
