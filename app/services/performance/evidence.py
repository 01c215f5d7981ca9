"""Evidence ledger for goal completions.

Evidence items are appended per submission round and verified one at a
time by the approver. The ledger is a plain data store: it flushes so ids
are available, but it never commits and never writes audit entries. The
caller owns both.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.models.performance import EvidenceType, EvidenceVerificationStatus, GoalCompletion, GoalEvidence
from app.services.common import coerce_uuid, get_or_raise, validate_enum
from app.services.errors import ValidationError

_VERIFIED = {
    EvidenceVerificationStatus.verified_acceptable,
    EvidenceVerificationStatus.verified_excellent,
}
_FLAGGED = {
    EvidenceVerificationStatus.issues_found,
    EvidenceVerificationStatus.invalid,
}


@dataclass(frozen=True)
class EvidenceSummary:
    total: int
    verified: int
    unverified: int
    issues: int
    by_verdict: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "verified": self.verified,
            "unverified": self.unverified,
            "issues": self.issues,
            "by_verdict": dict(self.by_verdict),
        }


def _item_value(item: Any, key: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(key, default)
    return getattr(item, key, default)


class EvidenceLedger:
    def append(
        self,
        db: Session,
        completion: GoalCompletion,
        items: Iterable[Any],
        submission_round: int = 1,
    ) -> list[GoalEvidence]:
        """Create one evidence row per supplied item, in order.

        Items are dicts or objects exposing ``evidence_type``, ``title``,
        ``reference`` and optionally ``description`` and
        ``access_instructions``. Duplicates are kept as separate rows.
        """
        created: list[GoalEvidence] = []
        for index, item in enumerate(items):
            title = (_item_value(item, "title") or "").strip()
            reference = (_item_value(item, "reference") or "").strip()
            if not title or not reference:
                raise ValidationError(
                    "invalid_evidence",
                    f"Evidence item {index + 1} requires a title and a reference",
                )
            evidence = GoalEvidence(
                completion_id=completion.id,
                evidence_type=validate_enum(
                    _item_value(item, "evidence_type", EvidenceType.link), EvidenceType, "evidence_type"
                ),
                title=title,
                reference=reference,
                description=_item_value(item, "description"),
                access_instructions=_item_value(item, "access_instructions"),
                submission_round=submission_round,
                verification_status=EvidenceVerificationStatus.not_verified,
            )
            db.add(evidence)
            created.append(evidence)
        db.flush()
        return created

    def get(self, db: Session, evidence_id: str, for_update: bool = False) -> GoalEvidence:
        return get_or_raise(db, GoalEvidence, evidence_id, detail="Evidence not found", for_update=for_update)

    def list_for_completion(
        self, db: Session, completion_id: str, submission_round: int | None = None
    ) -> list[GoalEvidence]:
        query = db.query(GoalEvidence).filter(GoalEvidence.completion_id == coerce_uuid(completion_id))
        if submission_round is not None:
            query = query.filter(GoalEvidence.submission_round == submission_round)
        return query.order_by(GoalEvidence.submission_round, GoalEvidence.created_at, GoalEvidence.id).all()

    def set_verdict(
        self,
        db: Session,
        evidence: GoalEvidence,
        verdict: EvidenceVerificationStatus | str,
        notes: str | None,
        verifier_id: Any,
    ) -> GoalEvidence:
        evidence.verification_status = validate_enum(verdict, EvidenceVerificationStatus, "verdict")
        evidence.verification_notes = notes
        evidence.verified_by_id = coerce_uuid(verifier_id)
        evidence.verified_at = datetime.now(UTC)
        db.flush()
        return evidence

    def summarize(
        self, db: Session, completion_id: str | None, submission_round: int | None = None
    ) -> EvidenceSummary:
        """Count verdicts for one completion, optionally limited to one submission round."""
        if completion_id is None:
            return EvidenceSummary(total=0, verified=0, unverified=0, issues=0)
        items = self.list_for_completion(db, completion_id, submission_round)
        verdicts = Counter(evidence.verification_status for evidence in items)
        total = sum(verdicts.values())
        return EvidenceSummary(
            total=total,
            verified=sum(count for verdict, count in verdicts.items() if verdict in _VERIFIED),
            unverified=verdicts.get(EvidenceVerificationStatus.not_verified, 0),
            issues=sum(count for verdict, count in verdicts.items() if verdict in _FLAGGED),
            by_verdict={verdict.value: verdicts[verdict] for verdict in sorted(verdicts, key=lambda v: v.value)},
        )


evidence_ledger = EvidenceLedger()
