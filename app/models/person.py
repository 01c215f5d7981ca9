import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class PersonRole(enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"


class PersonStatus(enum.Enum):
    active = "active"
    inactive = "inactive"


class Person(Base):
    """Local projection of the identity directory.

    Accounts are owned by the identity service; this table is only read by
    the goal workflow.
    """

    __tablename__ = "people"
    __table_args__ = (Index("ix_people_manager", "manager_id"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    display_name: Mapped[str] = mapped_column(String(160), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[PersonRole] = mapped_column(Enum(PersonRole), default=PersonRole.employee, nullable=False)
    manager_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    department: Mapped[str | None] = mapped_column(String(80))
    status: Mapped[PersonStatus] = mapped_column(Enum(PersonStatus), default=PersonStatus.active, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
