from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from app.main import app
from tests.conftest import auth_header

client = TestClient(app)


def test_health_returns_ok_without_backends() -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "checks": {"database": "not_configured", "redis": "not_configured"},
    }


def test_ready_without_database() -> None:
    assert client.get("/ready").status_code == 200


def test_routes_are_registered() -> None:
    paths = {route.path for route in app.routes}
    assert "/v1/orgs/{org_id}/training/{enrollment_id}/complete" in paths
    assert "/v1/orgs/{org_id}/assignments/{assignment_id}/enroll" in paths
    assert "/v1/orgs/{org_id}/vault" in paths
    assert "/v1/vault/verify" in paths
    assert "/v1/orgs/{org_id}/certificates/{certificate_id}/metadata" in paths


def test_org_routes_reject_missing_token() -> None:
    resp = client.get(f"/v1/orgs/{uuid.uuid4()}/vault")
    assert resp.status_code == 401
    assert resp.headers.get("www-authenticate") == "Bearer"


def test_org_routes_reject_garbage_token() -> None:
    resp = client.get(
        f"/v1/orgs/{uuid.uuid4()}/vault",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401


def test_org_routes_reject_other_org_token() -> None:
    org_id, other_org = uuid.uuid4(), uuid.uuid4()
    resp = client.get(
        f"/v1/orgs/{org_id}/vault",
        headers=auth_header(uuid.uuid4(), other_org, "admin"),
    )
    assert resp.status_code == 403
