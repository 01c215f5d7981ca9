from __future__ import annotations

import enum
import uuid
from typing import Any, TypeVar

from sqlalchemy.orm import Query, Session

from app.services.errors import NotFoundError, ValidationError

E = TypeVar("E", bound=enum.Enum)


def coerce_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError("invalid_id", f"Invalid id: {value}") from exc


def get_or_raise(db: Session, model, entity_id: Any, detail: str | None = None, for_update: bool = False):
    entity = db.get(model, coerce_uuid(entity_id), with_for_update=for_update or None)
    if entity is None:
        name = getattr(model, "__name__", "Entity")
        raise NotFoundError(f"{name.lower()}_not_found", detail or f"{name} not found")
    return entity


def validate_enum(value: Any, enum_cls: type[E], field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value == member.value or value == member.name:
            return member
    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(f"invalid_{field}", f"Invalid {field}: {value}. Allowed: {allowed}")


def apply_pagination(query: Query, limit: int, offset: int) -> Query:
    return query.limit(limit).offset(offset)
