"""Background task queue on Redis lists.

The API enqueues follow-up work it could not finish inline (today:
certificate and vault backfill after a completion) and a separate
worker process (``python -m app.worker``) drains it.

  Producer (API):    LPUSH onto ``tasks:<queue>``
  Consumer (worker): BRPOP from the same list

Pushing at the head and popping at the tail keeps FIFO order.  Delivery
is at-most-once: a task popped by a worker that then crashes is lost.
Backfill tolerates that because finalizing a completion is idempotent
and can be re-enqueued by an operator.
"""

from __future__ import annotations

import json
import uuid
from collections import deque
from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable

from app.core.metrics import QUEUE_DEPTH
from app.db.redis import redis_pool

COMPLETION_BACKFILL_QUEUE = "completion_backfill"


@dataclass(frozen=True, slots=True)
class Task:
    """A unit of background work.

    payload must be JSON-serializable (UUIDs travel as strings).
    """

    id: str
    queue: str
    payload: dict

    @classmethod
    def new(cls, queue: str, payload: dict) -> Task:
        return cls(id=str(uuid.uuid4()), queue=queue, payload=payload)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str | bytes) -> Task:
        data = json.loads(raw)
        return cls(id=data["id"], queue=data["queue"], payload=data["payload"])


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, queue: str, payload: dict) -> Task: ...
    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None: ...
    async def queue_length(self, queue: str) -> int: ...


def _record_depth(queue: str, depth: int) -> None:
    QUEUE_DEPTH.labels(queue_name=queue).set(depth)


class InMemoryTaskQueue:
    """In-process queue used when REDIS_URL is unset and in tests.

    ``timeout`` is accepted for interface parity; dequeue never blocks.
    """

    def __init__(self) -> None:
        self._queues: dict[str, deque[Task]] = {}

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task.new(queue, payload)
        pending = self._queues.setdefault(queue, deque())
        pending.append(task)
        _record_depth(queue, len(pending))
        return task

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        pending = self._queues.get(queue)
        if not pending:
            return None
        task = pending.popleft()
        _record_depth(queue, len(pending))
        return task

    async def queue_length(self, queue: str) -> int:
        return len(self._queues.get(queue, ()))


class RedisTaskQueue:
    def __init__(self, redis_client, *, key_prefix: str = "tasks:") -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix

    def _key(self, queue: str) -> str:
        return f"{self._key_prefix}{queue}"

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task.new(queue, payload)
        depth = await self._redis.lpush(self._key(queue), task.to_json())
        _record_depth(queue, depth)
        return task

    async def dequeue(self, queue: str, timeout: int = 5) -> Task | None:
        # Blocks up to `timeout` seconds; None means nothing arrived.
        popped = await self._redis.brpop(self._key(queue), timeout=timeout)
        if popped is None:
            return None
        _key, raw = popped
        return Task.from_json(raw)

    async def queue_length(self, queue: str) -> int:
        return await self._redis.llen(self._key(queue))


task_queue: TaskQueue = (
    RedisTaskQueue(redis_pool) if redis_pool is not None else InMemoryTaskQueue()
)
