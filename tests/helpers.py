import uuid
from datetime import date

from app.models.performance import GoalCategory, GoalPriority
from app.models.person import Person, PersonRole, PersonStatus
from app.schemas.performance import CompletionSubmit, EvidenceItemCreate, GoalCreate
from app.services.identity import Actor


def _unique_email(prefix: str = "test") -> str:
    return f"{prefix}-{uuid.uuid4().hex}@example.com"


def make_person(db, role=PersonRole.employee, manager=None, status=PersonStatus.active, name="Test User"):
    person = Person(
        display_name=name,
        email=_unique_email(role.value),
        role=role,
        manager_id=manager.id if manager else None,
        status=status,
    )
    db.add(person)
    db.commit()
    db.refresh(person)
    return person


def actor_for(person) -> Actor:
    return Actor(actor_id=person.id, role=person.role)


def goal_payload(**overrides) -> GoalCreate:
    data = {
        "title": "Ship the billing migration",
        "description": "Move invoices to the new ledger",
        "category": GoalCategory.technical,
        "priority": GoalPriority.high,
        "start_date": date(2026, 1, 15),
        "end_date": date(2026, 3, 15),
    }
    data.update(overrides)
    return GoalCreate(**data)


def evidence_items(count: int = 2) -> list[EvidenceItemCreate]:
    return [
        EvidenceItemCreate(
            title=f"Evidence {index + 1}",
            reference=f"https://example.com/evidence/{index + 1}",
        )
        for index in range(count)
    ]


def completion_payload(**overrides) -> CompletionSubmit:
    data = {"achievement_summary": "Migration finished ahead of schedule"}
    data.update(overrides)
    return CompletionSubmit(**data)
