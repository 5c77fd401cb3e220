from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.enrollment import EnrollmentItemProgress


class ProgressRepo(Protocol):
    async def get(
        self, enrollment_id: UUID, content_item_id: UUID
    ) -> EnrollmentItemProgress | None: ...
    async def list_for_enrollment(
        self, enrollment_id: UUID
    ) -> list[EnrollmentItemProgress]: ...
    async def upsert(self, progress: EnrollmentItemProgress) -> EnrollmentItemProgress: ...
    async def delete_for_enrollment(self, enrollment_id: UUID) -> int: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, UUID], EnrollmentItemProgress] = {}

    async def get(
        self, enrollment_id: UUID, content_item_id: UUID
    ) -> EnrollmentItemProgress | None:
        return self._store.get((enrollment_id, content_item_id))

    async def list_for_enrollment(
        self, enrollment_id: UUID
    ) -> list[EnrollmentItemProgress]:
        return [p for p in self._store.values() if p.enrollment_id == enrollment_id]

    async def upsert(self, progress: EnrollmentItemProgress) -> EnrollmentItemProgress:
        self._store[(progress.enrollment_id, progress.content_item_id)] = progress
        return progress

    async def delete_for_enrollment(self, enrollment_id: UUID) -> int:
        keys = [k for k in self._store if k[0] == enrollment_id]
        for key in keys:
            del self._store[key]
        return len(keys)
