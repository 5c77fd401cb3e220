"""Worker and in-memory task queue.

The worker drains ``completion_backfill``: enrollments that reached
COMPLETED while their certificate or vault write failed.
"""

from __future__ import annotations

import asyncio
from uuid import UUID, uuid4

import pytest

from app import worker
from app.core.config import SETTINGS
from app.repos.bundle import Repos
from app.services import task_queue as task_queue_module
from app.services.enrollment_lifecycle import complete_item
from app.services.task_queue import (
    COMPLETION_BACKFILL_QUEUE,
    InMemoryTaskQueue,
    RedisTaskQueue,
)
from tests.conftest import seed_enrollment, seed_item_assignment, seed_template


def _completed_without_certificate(
    repos: Repos, org_id: UUID, user_id: UUID, monkeypatch: pytest.MonkeyPatch
):
    async def setup():
        assignment, item = await seed_item_assignment(repos, org_id)
        await seed_template(repos, org_id)
        return await seed_enrollment(repos, org_id, user_id, assignment), item

    enrollment, item = asyncio.run(setup())

    async def broken_add(certificate) -> None:
        raise RuntimeError("certificate store unavailable")

    with monkeypatch.context() as patch:
        patch.setattr(repos.certificates, "add", broken_add)
        outcome = asyncio.run(complete_item(repos, enrollment.id, item.id, user_id))
    assert outcome.certificate_pending is True
    return enrollment


# ---- queue ----


def test_in_memory_queue_is_fifo() -> None:
    queue = InMemoryTaskQueue()

    async def go():
        first = await queue.enqueue("q", {"n": 1})
        await queue.enqueue("q", {"n": 2})
        assert await queue.queue_length("q") == 2
        taken = await queue.dequeue("q")
        return first, taken, await queue.dequeue("q"), await queue.dequeue("q")

    first, taken, second, empty = asyncio.run(go())
    assert taken == first
    assert second.payload == {"n": 2}
    assert empty is None


def test_queues_are_independent() -> None:
    queue = InMemoryTaskQueue()
    asyncio.run(queue.enqueue("a", {}))
    assert asyncio.run(queue.queue_length("b")) == 0


class _FakeRedis:
    """Just the list commands RedisTaskQueue uses."""

    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = {}

    async def lpush(self, key: str, value: str) -> int:
        self.lists.setdefault(key, []).insert(0, value)
        return len(self.lists[key])

    async def brpop(self, key: str, timeout: int = 0):
        items = self.lists.get(key)
        if not items:
            return None
        return key, items.pop()

    async def llen(self, key: str) -> int:
        return len(self.lists.get(key, []))


def test_redis_queue_is_fifo_under_prefixed_key() -> None:
    fake = _FakeRedis()
    queue = RedisTaskQueue(fake)

    async def go():
        first = await queue.enqueue(COMPLETION_BACKFILL_QUEUE, {"enrollment_id": "a"})
        await queue.enqueue(COMPLETION_BACKFILL_QUEUE, {"enrollment_id": "b"})
        depth = await queue.queue_length(COMPLETION_BACKFILL_QUEUE)
        popped = await queue.dequeue(COMPLETION_BACKFILL_QUEUE, timeout=1)
        return first, depth, popped

    first, depth, popped = asyncio.run(go())

    assert list(fake.lists) == ["tasks:completion_backfill"]
    assert depth == 2
    assert popped == first


# ---- worker ----


def test_backfill_issues_certificate_and_vaults(
    repos: Repos, org_id: UUID, user_id: UUID, monkeypatch: pytest.MonkeyPatch
) -> None:
    enrollment = _completed_without_certificate(repos, org_id, user_id, monkeypatch)

    processed = asyncio.run(worker.run_once(COMPLETION_BACKFILL_QUEUE))

    assert processed is True
    cert = asyncio.run(repos.certificates.get_by_enrollment(enrollment.id))
    record = asyncio.run(repos.vault.get_by_enrollment(enrollment.id))
    assert cert is not None
    assert record.certificate_number == cert.certificate_number
    queue = task_queue_module.task_queue
    assert asyncio.run(queue.queue_length(COMPLETION_BACKFILL_QUEUE)) == 0


def test_backfill_is_idempotent(
    repos: Repos, org_id: UUID, user_id: UUID, monkeypatch: pytest.MonkeyPatch
) -> None:
    enrollment = _completed_without_certificate(repos, org_id, user_id, monkeypatch)
    payload = {"enrollment_id": str(enrollment.id)}

    asyncio.run(worker.handle_completion_backfill(payload))
    first = asyncio.run(repos.vault.get_by_enrollment(enrollment.id))
    asyncio.run(worker.handle_completion_backfill(payload))
    second = asyncio.run(repos.vault.get_by_enrollment(enrollment.id))

    assert second.id == first.id
    assert second.certificate_id == first.certificate_id


def test_failed_task_is_logged_and_requeued(
    caplog: pytest.LogCaptureFixture,
) -> None:
    queue = task_queue_module.task_queue
    enrollment_id = str(uuid4())
    asyncio.run(queue.enqueue(COMPLETION_BACKFILL_QUEUE, {"enrollment_id": enrollment_id}))

    assert asyncio.run(worker.run_once(COMPLETION_BACKFILL_QUEUE)) is True
    assert any("failed" in r.getMessage() for r in caplog.records if r.name == "worker")
    retry = asyncio.run(queue.dequeue(COMPLETION_BACKFILL_QUEUE))
    assert retry.payload == {"enrollment_id": enrollment_id, "attempt": 2}


def test_task_moves_to_dead_letter_after_last_attempt() -> None:
    queue = task_queue_module.task_queue
    payload = {"enrollment_id": str(uuid4()), "attempt": SETTINGS.task_max_attempts}
    asyncio.run(queue.enqueue(COMPLETION_BACKFILL_QUEUE, payload))

    asyncio.run(worker.run_once(COMPLETION_BACKFILL_QUEUE))

    assert asyncio.run(queue.queue_length(COMPLETION_BACKFILL_QUEUE)) == 0
    dead = asyncio.run(queue.dequeue(worker.dead_letter_queue(COMPLETION_BACKFILL_QUEUE)))
    assert dead.payload == payload


def test_backfill_recovers_on_retry(
    repos: Repos, org_id: UUID, user_id: UUID, monkeypatch: pytest.MonkeyPatch
) -> None:
    enrollment = _completed_without_certificate(repos, org_id, user_id, monkeypatch)
    original_add = repos.certificates.add
    calls: list[str] = []

    async def flaky_add(certificate) -> None:
        calls.append(certificate.certificate_number)
        if len(calls) == 1:
            raise ConnectionError("certificate store still down")
        await original_add(certificate)

    monkeypatch.setattr(repos.certificates, "add", flaky_add)

    asyncio.run(worker.run_once(COMPLETION_BACKFILL_QUEUE))
    assert asyncio.run(repos.certificates.get_by_enrollment(enrollment.id)) is None
    asyncio.run(worker.run_once(COMPLETION_BACKFILL_QUEUE))

    assert asyncio.run(repos.certificates.get_by_enrollment(enrollment.id)) is not None
    assert asyncio.run(repos.vault.get_by_enrollment(enrollment.id)) is not None
    queue = task_queue_module.task_queue
    assert asyncio.run(queue.queue_length(COMPLETION_BACKFILL_QUEUE)) == 0


def test_idle_queue(repos: Repos) -> None:
    assert asyncio.run(worker.run_once(COMPLETION_BACKFILL_QUEUE)) is False


def test_backfill_handler_registered() -> None:
    assert worker.HANDLERS[COMPLETION_BACKFILL_QUEUE] is worker.handle_completion_backfill
