from dependency_injector import providers

from app.container import container

API = "/api/v1"


def _as(person) -> dict:
    return {"X-Actor-Id": str(person.id)}


def _submit(client, cycle, employee, **overrides):
    body = {"cycle_id": str(cycle.id), "self_assessment": "Shipped the billing migration", "self_rating": 4}
    body.update(overrides)
    return client.post(f"{API}/performance-reviews", json=body, headers=_as(employee))


def test_review_flow(client, lenient_cycle, employee, manager):
    created = _submit(client, lenient_cycle, employee)
    assert created.status_code == 201
    review = created.json()
    assert review["status"] == "SelfAssessmentCompleted"
    assert review["linked_goal_ids"] == []
    review_id = review["id"]

    draft = client.put(
        f"{API}/performance-reviews/{review_id}/draft",
        json={"self_assessment": "Shipped billing and the ledger API", "expected_version": review["version"]},
        headers=_as(employee),
    )
    assert draft.status_code == 200
    assert draft.json()["self_assessment"] == "Shipped billing and the ledger API"

    inbox = client.get(f"{API}/notifications", headers=_as(manager)).json()
    assert [item["notification_type"] for item in inbox["items"]] == ["SelfAssessmentSubmitted"]

    reviewed = client.put(
        f"{API}/performance-reviews/{review_id}",
        json={"manager_feedback": "Strong half", "manager_rating": 5},
        headers=_as(manager),
    )
    assert reviewed.status_code == 200
    assert reviewed.json()["status"] == "Completed"

    acknowledged = client.post(f"{API}/performance-reviews/{review_id}/acknowledge", headers=_as(employee))
    assert acknowledged.status_code == 200
    assert acknowledged.json()["status"] == "CompletedAndAcknowledged"


def test_duplicate_submission_is_conflict(client, lenient_cycle, employee):
    assert _submit(client, lenient_cycle, employee).status_code == 201
    response = _submit(client, lenient_cycle, employee)
    assert response.status_code == 409
    assert response.json()["code"] == "already_submitted"


def test_manager_review_by_outsider_is_forbidden(client, lenient_cycle, employee, other_manager):
    review_id = _submit(client, lenient_cycle, employee).json()["id"]
    response = client.put(
        f"{API}/performance-reviews/{review_id}",
        json={"manager_feedback": "Not mine", "manager_rating": 3},
        headers=_as(other_manager),
    )
    assert response.status_code == 403
    assert response.json()["code"] == "not_manager"


def test_review_visibility(client, lenient_cycle, employee, manager, other_employee, admin):
    review_id = _submit(client, lenient_cycle, employee).json()["id"]
    assert client.get(f"{API}/performance-reviews/{review_id}", headers=_as(manager)).status_code == 200
    assert client.get(f"{API}/performance-reviews/{review_id}", headers=_as(admin)).status_code == 200
    assert client.get(f"{API}/performance-reviews/{review_id}", headers=_as(other_employee)).status_code == 403
    assert client.get(f"{API}/performance-reviews", headers=_as(other_employee)).json() == []
    listed = client.get(f"{API}/performance-reviews", headers=_as(manager)).json()
    assert [item["id"] for item in listed] == [review_id]


def test_rating_out_of_range_is_422(client, lenient_cycle, employee):
    assert _submit(client, lenient_cycle, employee, self_rating=6).status_code == 422


class _EmptyReviews:
    def list(self, db, actor, **filters):
        return []


def test_review_workflow_can_be_overridden(client, employee):
    with container.performance_reviews.override(providers.Object(_EmptyReviews())):
        response = client.get(f"{API}/performance-reviews", headers=_as(employee))
    assert response.status_code == 200
    assert response.json() == []


def test_workflow_engines_share_ledgers():
    goals = container.goal_lifecycle()
    reviews = container.performance_reviews()
    assert goals.audit is container.audit_ledger()
    assert reviews.audit is goals.audit
    assert reviews.dispatcher is goals.dispatcher
    assert reviews.directory is goals.directory is container.user_directory()
