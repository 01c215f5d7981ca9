from datetime import UTC, datetime

import pytest

from app.models.performance import (
    CompletionApprovalStatus,
    EvidenceType,
    EvidenceVerificationStatus,
    GoalCompletion,
)
from app.services.errors import ValidationError
from app.services.performance.evidence import evidence_ledger


@pytest.fixture()
def completion(db_session, active_goal):
    completion = GoalCompletion(
        goal_id=active_goal.id,
        achievement_summary="Done",
        status=CompletionApprovalStatus.pending,
        submission_count=1,
        progress_before_submission=0,
        submitted_at=datetime.now(UTC),
        is_active=True,
    )
    db_session.add(completion)
    db_session.flush()
    return completion


def test_append_accepts_dicts_and_keeps_duplicates(db_session, completion):
    items = [
        {"title": "Design doc", "reference": "https://docs/design", "evidence_type": "Document"},
        {"title": "Design doc", "reference": "https://docs/design", "evidence_type": "Document"},
        {"title": "PR", "reference": "https://git/pr/1"},
    ]
    created = evidence_ledger.append(db_session, completion, items)
    assert len(created) == 3
    assert [row.evidence_type for row in created] == [EvidenceType.document, EvidenceType.document, EvidenceType.link]
    assert all(row.verification_status == EvidenceVerificationStatus.not_verified for row in created)
    assert len(evidence_ledger.list_for_completion(db_session, completion.id)) == 3


def test_append_rejects_blank_reference(db_session, completion):
    with pytest.raises(ValidationError) as exc:
        evidence_ledger.append(db_session, completion, [{"title": "Doc", "reference": "   "}])
    assert exc.value.code == "invalid_evidence"


def test_append_rejects_unknown_type(db_session, completion):
    with pytest.raises(ValidationError):
        evidence_ledger.append(
            db_session, completion, [{"title": "Doc", "reference": "x", "evidence_type": "Screenshot"}]
        )


def test_list_orders_by_submission_round(db_session, completion):
    evidence_ledger.append(db_session, completion, [{"title": "Second", "reference": "b"}], submission_round=2)
    evidence_ledger.append(db_session, completion, [{"title": "First", "reference": "a"}], submission_round=1)
    titles = [row.title for row in evidence_ledger.list_for_completion(db_session, completion.id)]
    assert titles == ["First", "Second"]


def test_set_verdict_records_verifier(db_session, completion, manager):
    (evidence,) = evidence_ledger.append(db_session, completion, [{"title": "Doc", "reference": "x"}])
    evidence_ledger.set_verdict(db_session, evidence, "IssuesFound", "Link is broken", manager.id)
    assert evidence.verification_status == EvidenceVerificationStatus.issues_found
    assert evidence.verification_notes == "Link is broken"
    assert evidence.verified_by_id == manager.id
    assert evidence.verified_at is not None


def test_summarize_counts_verdicts(db_session, completion, manager):
    rows = evidence_ledger.append(
        db_session,
        completion,
        [{"title": f"Item {index}", "reference": str(index)} for index in range(4)],
    )
    evidence_ledger.set_verdict(db_session, rows[0], EvidenceVerificationStatus.verified_excellent, None, manager.id)
    evidence_ledger.set_verdict(db_session, rows[1], EvidenceVerificationStatus.verified_acceptable, None, manager.id)
    evidence_ledger.set_verdict(db_session, rows[2], EvidenceVerificationStatus.invalid, None, manager.id)

    summary = evidence_ledger.summarize(db_session, completion.id)
    assert summary.total == 4
    assert summary.verified == 2
    assert summary.issues == 1
    assert summary.unverified == 1
    assert summary.as_dict()["by_verdict"] == {
        "Invalid": 1,
        "NotVerified": 1,
        "VerifiedAcceptable": 1,
        "VerifiedExcellent": 1,
    }


def test_summarize_without_completion():
    summary = evidence_ledger.summarize(None, None)
    assert summary.total == 0
    assert summary.by_verdict == {}


def test_summarize_scoped_to_submission_round(db_session, completion, manager):
    earlier = [{"title": "Old", "reference": "a"}, {"title": "Old 2", "reference": "b"}]
    evidence_ledger.append(db_session, completion, earlier)
    (current,) = evidence_ledger.append(
        db_session, completion, [{"title": "New", "reference": "c"}], submission_round=2
    )
    evidence_ledger.set_verdict(db_session, current, EvidenceVerificationStatus.verified_excellent, None, manager.id)

    assert evidence_ledger.summarize(db_session, completion.id).total == 3
    summary = evidence_ledger.summarize(db_session, completion.id, submission_round=2)
    assert (summary.total, summary.verified, summary.unverified) == (1, 1, 0)
    first_round = evidence_ledger.list_for_completion(db_session, completion.id, 1)
    assert sorted(row.title for row in first_round) == ["Old", "Old 2"]
