"""Adapter over the identity directory.

The directory is owned by an external service and mirrored into the
``people`` table; the workflow only ever reads it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.models.person import Person, PersonRole, PersonStatus
from app.services.common import coerce_uuid
from app.services.errors import NotFoundError, UnauthorizedError


@dataclass(frozen=True)
class ResolvedUser:
    id: uuid.UUID
    role: PersonRole
    manager_id: uuid.UUID | None
    status: PersonStatus

    @property
    def is_active(self) -> bool:
        return self.status == PersonStatus.active

    @property
    def can_approve(self) -> bool:
        return self.role in (PersonRole.manager, PersonRole.admin)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller, passed explicitly into every engine call."""

    actor_id: uuid.UUID
    role: PersonRole

    @property
    def is_admin(self) -> bool:
        return self.role == PersonRole.admin

    @property
    def is_employee(self) -> bool:
        return self.role == PersonRole.employee


class UserDirectory:
    def resolve_user(self, db: Session, user_id: Any) -> ResolvedUser:
        person = db.get(Person, coerce_uuid(user_id))
        if person is None:
            raise NotFoundError("user_not_found", f"User {user_id} not found")
        return ResolvedUser(
            id=person.id,
            role=person.role,
            manager_id=person.manager_id,
            status=person.status,
        )

    def resolve_actor(self, db: Session, user_id: Any) -> Actor:
        """Resolve an active caller; inactive people cannot act."""
        user = self.resolve_user(db, user_id)
        if not user.is_active:
            raise UnauthorizedError("inactive_actor", "Inactive actor")
        return Actor(actor_id=user.id, role=user.role)


user_directory = UserDirectory()
