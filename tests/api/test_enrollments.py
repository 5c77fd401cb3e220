from __future__ import annotations

import asyncio
from uuid import UUID, uuid4

from fastapi.testclient import TestClient

from app.repos.bundle import Repos
from tests.conftest import auth_header, seed_item_assignment, seed_template


def _enroll_url(org_id: UUID, assignment_id: UUID) -> str:
    return f"/v1/orgs/{org_id}/assignments/{assignment_id}/enroll"


def test_self_enrollment(client: TestClient, repos: Repos, org_id: UUID, user_id: UUID) -> None:
    assignment, _ = asyncio.run(seed_item_assignment(repos, org_id))

    resp = client.post(_enroll_url(org_id, assignment.id), headers=auth_header(user_id, org_id))

    assert resp.status_code == 201
    body = resp.json()
    assert body["user_id"] == str(user_id)
    assert body["assignment_id"] == str(assignment.id)
    assert body["status"] == "ASSIGNED"


def test_duplicate_enrollment_is_409(
    client: TestClient, repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    assignment, _ = asyncio.run(seed_item_assignment(repos, org_id))
    headers = auth_header(user_id, org_id)

    client.post(_enroll_url(org_id, assignment.id), headers=headers)
    resp = client.post(_enroll_url(org_id, assignment.id), headers=headers)

    assert resp.status_code == 409
    assert resp.json()["kind"] == "conflict"


def test_admin_enrolls_another_user(
    client: TestClient, repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    assignment, _ = asyncio.run(seed_item_assignment(repos, org_id))

    resp = client.post(
        _enroll_url(org_id, assignment.id),
        json={"user_id": str(user_id)},
        headers=auth_header(uuid4(), org_id, "admin"),
    )

    assert resp.status_code == 201
    assert resp.json()["user_id"] == str(user_id)


def test_learner_cannot_enroll_another_user(
    client: TestClient, repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    assignment, _ = asyncio.run(seed_item_assignment(repos, org_id))

    resp = client.post(
        _enroll_url(org_id, assignment.id),
        json={"user_id": str(uuid4())},
        headers=auth_header(user_id, org_id),
    )

    assert resp.status_code == 403


def test_unknown_assignment_is_404(client: TestClient, org_id: UUID, user_id: UUID) -> None:
    resp = client.post(_enroll_url(org_id, uuid4()), headers=auth_header(user_id, org_id))
    assert resp.status_code == 404


def test_admin_reset_allows_retake(
    client: TestClient, repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    assignment, item = asyncio.run(seed_item_assignment(repos, org_id))
    asyncio.run(seed_template(repos, org_id))
    learner = auth_header(user_id, org_id)
    admin = auth_header(uuid4(), org_id, "owner")

    enrollment_id = client.post(_enroll_url(org_id, assignment.id), headers=learner).json()["id"]
    client.post(
        f"/v1/orgs/{org_id}/training/{enrollment_id}/complete",
        json={"content_item_id": str(item.id)},
        headers=learner,
    )
    assert len(client.get(f"/v1/orgs/{org_id}/vault", headers=admin).json()) == 1

    resp = client.delete(f"/v1/orgs/{org_id}/enrollments/{enrollment_id}", headers=admin)

    assert resp.status_code == 204
    assert client.get(f"/v1/orgs/{org_id}/vault", headers=admin).json() == []
    resp = client.post(_enroll_url(org_id, assignment.id), headers=learner)
    assert resp.status_code == 201


def test_learner_cannot_reset(
    client: TestClient, repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    assignment, _ = asyncio.run(seed_item_assignment(repos, org_id))
    headers = auth_header(user_id, org_id)
    enrollment_id = client.post(_enroll_url(org_id, assignment.id), headers=headers).json()["id"]

    resp = client.delete(f"/v1/orgs/{org_id}/enrollments/{enrollment_id}", headers=headers)

    assert resp.status_code == 403


def test_reset_unknown_enrollment_is_404(client: TestClient, org_id: UUID) -> None:
    resp = client.delete(
        f"/v1/orgs/{org_id}/enrollments/{uuid4()}",
        headers=auth_header(uuid4(), org_id, "admin"),
    )
    assert resp.status_code == 404
