"""Request ID propagation: every response carries X-Request-ID, and log
records emitted while handling the request share it."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    custom_id = "my-custom-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    """401 from the auth dependency still gets an X-Request-ID."""
    resp = client.get(f"/v1/orgs/{uuid.uuid4()}/training/{uuid.uuid4()}/completion")
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_access_log_line_carries_request_id(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="app.middleware.request_context"):
        client.get("/health", headers={"X-Request-ID": "trace-me"})

    access = [r for r in caplog.records if r.name == "app.middleware.request_context"]
    assert access
    assert access[-1].request_id == "trace-me"  # type: ignore[attr-defined]
    assert "GET /health -> 200" in access[-1].getMessage()
