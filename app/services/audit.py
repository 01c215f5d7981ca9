"""Append-only audit ledger.

Every mutating workflow call writes exactly one entry through
:meth:`AuditLedger.record` inside the caller's transaction. The ledger
flushes but never commits, so a failing write surfaces to the caller and
takes the whole transition down with it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.config import settings
from app.models.audit import AuditEvent, AuditOutcome
from app.services.audit_helpers import json_safe, model_to_dict
from app.services.common import apply_pagination, coerce_uuid, get_or_raise, validate_enum
from app.services.errors import ValidationError
from app.services.observability import AUDIT_EXPORTS, AUDIT_WRITES

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")
EXPORT_FIELDS = (
    "id",
    "occurred_at",
    "actor_id",
    "action",
    "entity_type",
    "entity_id",
    "outcome",
    "status_code",
    "metadata",
    "before",
    "after",
)


class AuditLedger:
    def record(
        self,
        db: Session,
        *,
        actor_id: Any,
        action: str,
        entity_type: str,
        entity_id: Any,
        before: dict | None = None,
        after: dict | None = None,
        outcome: AuditOutcome = AuditOutcome.success,
        timestamp: datetime | None = None,
        status_code: int | None = None,
        metadata: dict | None = None,
    ) -> AuditEvent:
        event = AuditEvent(
            actor_id=coerce_uuid(actor_id) if actor_id else None,
            action=action,
            entity_type=entity_type,
            entity_id=coerce_uuid(entity_id) if entity_id else None,
            before=json_safe(before) if before is not None else None,
            after=json_safe(after) if after is not None else None,
            outcome=outcome,
            status_code=status_code,
            metadata_=json_safe(metadata) if metadata else None,
            occurred_at=timestamp or datetime.now(UTC),
        )
        db.add(event)
        db.flush()
        AUDIT_WRITES.labels(outcome=outcome.value).inc()
        logger.debug(
            "audit %s %s/%s outcome=%s",
            action,
            entity_type,
            entity_id,
            outcome.value,
            extra={"actor_id": actor_id, "action": action},
        )
        return event

    def get(self, db: Session, event_id: str) -> AuditEvent:
        return get_or_raise(db, AuditEvent, event_id, detail="Audit event not found")

    def list(
        self,
        db: Session,
        *,
        actor_id: str | None = None,
        action: str | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
        outcome: str | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditEvent]:
        query = db.query(AuditEvent)
        if actor_id:
            query = query.filter(AuditEvent.actor_id == coerce_uuid(actor_id))
        if action:
            query = query.filter(AuditEvent.action == action)
        if entity_type:
            query = query.filter(AuditEvent.entity_type == entity_type)
        if entity_id:
            query = query.filter(AuditEvent.entity_id == coerce_uuid(entity_id))
        if outcome:
            query = query.filter(AuditEvent.outcome == validate_enum(outcome, AuditOutcome, "outcome"))
        if start_at:
            query = query.filter(AuditEvent.occurred_at >= start_at)
        if end_at:
            query = query.filter(AuditEvent.occurred_at <= end_at)
        query = query.order_by(AuditEvent.occurred_at.desc(), AuditEvent.id)
        return apply_pagination(query, limit, offset).all()

    def export_rows(self, db: Session, export_format: str = "csv", **filters: Any) -> list[dict]:
        """Return JSON-safe rows for every event matching ``filters``, newest first.

        The row count is capped at ``AUDIT_EXPORT_MAX_ROWS``.
        """
        if export_format not in EXPORT_FORMATS:
            raise ValidationError(
                "invalid_format", f"Invalid format: {export_format}. Allowed: {', '.join(EXPORT_FORMATS)}"
            )
        events = self.list(db, limit=settings.audit_export_max_rows, offset=0, **filters)
        rows = []
        for event in events:
            row = model_to_dict(event)
            row["metadata"] = row.pop("metadata_", None)
            rows.append({key: row.get(key) for key in EXPORT_FIELDS})
        AUDIT_EXPORTS.labels(format=export_format).inc()
        logger.info("audit_export format=%s rows=%d", export_format, len(rows))
        return rows


audit_ledger = AuditLedger()
