"""Background worker process.

RUN:  python -m app.worker

Same image as the API, different command.  Polls every registered
queue and hands each task to its handler.  Today the only queue is
``completion_backfill``: enrollments that reached COMPLETED but whose
certificate or vault record could not be written inline.

A failed task is put back on its queue with ``attempt`` incremented in
the payload.  After TASK_MAX_ATTEMPTS tries it moves to
``<queue>:dead`` for an operator to inspect and re-enqueue.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable, Coroutine
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.db import engine
from app.repos import bundle
from app.repos.bundle import Repos, pg_repos
from app.services import task_queue as task_queue_module
from app.services.enrollment_lifecycle import finalize_completion
from app.services.task_queue import COMPLETION_BACKFILL_QUEUE

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("worker")

HANDLERS: dict[str, TaskHandler] = {}


def dead_letter_queue(queue: str) -> str:
    return f"{queue}:dead"


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


@asynccontextmanager
async def repos_scope() -> AsyncGenerator[Repos, None]:
    """A unit of work for one task, committed the same way as a request."""
    if engine.async_session_factory is None:
        yield bundle.memory_repos
        return
    async with engine.session_scope() as session:
        yield pg_repos(session)


@register_handler(COMPLETION_BACKFILL_QUEUE)
async def handle_completion_backfill(payload: dict) -> None:
    """Re-run certificate issuance and vaulting for a completed enrollment.

    Both steps are idempotent, so a task that is delivered after the
    work already happened is a no-op.
    """
    enrollment_id = UUID(payload["enrollment_id"])
    logger.info("Backfilling completion for enrollment=%s", enrollment_id)
    async with repos_scope() as repos:
        outcome = await finalize_completion(repos, enrollment_id, defer_on_failure=False)
    logger.info(
        "Backfill done for enrollment=%s certificate=%s vault_record=%s",
        enrollment_id,
        outcome.certificate_number,
        outcome.vault_record_id,
    )


async def run_once(queue_name: str, timeout: int = 1) -> bool:
    """Process at most one task from ``queue_name``; True if one was taken."""
    task = await task_queue_module.task_queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name, extra={"task_id": task.id})
    except Exception:
        logger.exception("Task %s on [%s] failed", task.id, queue_name, extra={"task_id": task.id})
        await _retry_or_bury(queue_name, task.payload)
    return True


async def _retry_or_bury(queue_name: str, payload: dict) -> None:
    attempt = int(payload.get("attempt", 1))
    if attempt < SETTINGS.task_max_attempts:
        retry = await task_queue_module.task_queue.enqueue(
            queue_name, {**payload, "attempt": attempt + 1}
        )
        logger.warning(
            "Re-enqueued as task %s on [%s] (attempt %d of %d)",
            retry.id,
            queue_name,
            attempt + 1,
            SETTINGS.task_max_attempts,
        )
        return
    dead = dead_letter_queue(queue_name)
    await task_queue_module.task_queue.enqueue(dead, payload)
    logger.error("Giving up after %d attempts; task moved to [%s]", attempt, dead)


async def run_worker() -> None:
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        processed = [await run_once(queue_name) for queue_name in queues]
        if not any(processed) and SETTINGS.redis_url is None:
            # The in-memory dequeue does not block.
            await asyncio.sleep(1)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
