from __future__ import annotations

import csv
import io
import json
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from app.api.deps import get_audit_ledger, get_db, require_admin
from app.schemas.audit import AuditEventRead, AuditExportRequest
from app.services.audit import EXPORT_FIELDS, AuditLedger
from app.services.identity import Actor

router = APIRouter(prefix="/audit-events", tags=["audit"])


def _csv_cell(value):
    if isinstance(value, dict | list):
        return json.dumps(value, sort_keys=True)
    return value


def _csv_response(rows: list[dict], filename: str) -> StreamingResponse:
    """Create a CSV streaming response."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for row in rows:
        writer.writerow({key: _csv_cell(value) for key, value in row.items()})
    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("", response_model=list[AuditEventRead])
def list_audit_events(
    actor_id: str | None = Query(None),
    action: str | None = Query(None),
    entity_type: str | None = Query(None),
    entity_id: str | None = Query(None),
    outcome: str | None = Query(None),
    start_at: datetime | None = Query(None),
    end_at: datetime | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _admin: Actor = Depends(require_admin),
    ledger: AuditLedger = Depends(get_audit_ledger),
):
    return ledger.list(
        db,
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        outcome=outcome,
        start_at=start_at,
        end_at=end_at,
        limit=limit,
        offset=offset,
    )


@router.post("/export")
def export_audit_events(
    payload: AuditExportRequest,
    db: Session = Depends(get_db),
    _admin: Actor = Depends(require_admin),
    ledger: AuditLedger = Depends(get_audit_ledger),
):
    filters = payload.model_dump(exclude={"format"}, exclude_none=True)
    rows = ledger.export_rows(db, payload.format, **filters)
    filename = f"audit_events_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S')}.{payload.format}"
    if payload.format == "json":
        return JSONResponse(
            content=rows,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    return _csv_response(rows, filename)


@router.get("/{event_id}", response_model=AuditEventRead)
def get_audit_event(
    event_id: str,
    db: Session = Depends(get_db),
    _admin: Actor = Depends(require_admin),
    ledger: AuditLedger = Depends(get_audit_ledger),
):
    return ledger.get(db, event_id)
