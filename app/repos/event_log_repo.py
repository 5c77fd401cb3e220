from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.events import LifecycleEvent


class EventLogRepo(Protocol):
    async def append(self, event: LifecycleEvent) -> None: ...
    async def list_for_enrollment(self, enrollment_id: UUID) -> list[LifecycleEvent]: ...


class InMemoryEventLogRepo:
    def __init__(self) -> None:
        self._events: list[LifecycleEvent] = []

    async def append(self, event: LifecycleEvent) -> None:
        self._events.append(event)

    async def list_for_enrollment(self, enrollment_id: UUID) -> list[LifecycleEvent]:
        return [e for e in self._events if e.enrollment_id == enrollment_id]
