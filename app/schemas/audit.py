from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.audit import AuditOutcome


class AuditEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    actor_id: UUID | None = None
    action: str
    entity_type: str
    entity_id: UUID | None = None
    before: dict | None = None
    after: dict | None = None
    outcome: AuditOutcome
    status_code: int | None = None
    metadata: dict | None = Field(default=None, validation_alias="metadata_")
    occurred_at: datetime


class AuditExportRequest(BaseModel):
    format: Literal["csv", "json"] = "csv"
    actor_id: UUID | None = None
    action: str | None = None
    entity_type: str | None = None
    entity_id: UUID | None = None
    outcome: AuditOutcome | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
