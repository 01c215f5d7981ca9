"""Snapshot helpers for audit before/after payloads."""

from __future__ import annotations

import enum
import uuid
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import inspect


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, bool | int | float | str):
        return value
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, list | tuple | set):
        return [_json_safe(item) for item in value]
    return str(value)


def model_to_dict(instance: Any, include: Iterable[str] | None = None, exclude: Iterable[str] | None = None) -> dict:
    """Return a JSON-safe dict of the mapped column attributes of ``instance``."""
    if instance is None:
        return {}
    mapper = inspect(instance).mapper
    keys = [attr.key for attr in mapper.column_attrs]
    if include is not None:
        wanted = set(include)
        keys = [key for key in keys if key in wanted]
    if exclude is not None:
        skipped = set(exclude)
        keys = [key for key in keys if key not in skipped]
    return {key: _json_safe(getattr(instance, key)) for key in keys}


def json_safe(value: Any) -> Any:
    return _json_safe(value)
