from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.core.errors import DuplicateVaultRecordError
from app.models.vault import CompletionVaultRecord


class VaultRepo(Protocol):
    async def get(self, record_id: UUID) -> CompletionVaultRecord | None: ...
    async def get_by_enrollment(
        self, enrollment_id: UUID
    ) -> CompletionVaultRecord | None: ...
    async def get_by_certificate(
        self, certificate_id: UUID
    ) -> CompletionVaultRecord | None: ...
    async def add(self, record: CompletionVaultRecord) -> None: ...
    async def update(self, record: CompletionVaultRecord) -> None: ...
    async def list_by_org(self, org_id: UUID) -> list[CompletionVaultRecord]: ...
    async def delete_by_enrollment(self, enrollment_id: UUID) -> int: ...


class InMemoryVaultRepo:
    def __init__(self) -> None:
        self._by_enrollment: dict[UUID, CompletionVaultRecord] = {}

    async def get(self, record_id: UUID) -> CompletionVaultRecord | None:
        for record in self._by_enrollment.values():
            if record.id == record_id:
                return record
        return None

    async def get_by_enrollment(
        self, enrollment_id: UUID
    ) -> CompletionVaultRecord | None:
        return self._by_enrollment.get(enrollment_id)

    async def get_by_certificate(
        self, certificate_id: UUID
    ) -> CompletionVaultRecord | None:
        for record in self._by_enrollment.values():
            if record.certificate_id == certificate_id:
                return record
        return None

    async def add(self, record: CompletionVaultRecord) -> None:
        if record.enrollment_id in self._by_enrollment:
            raise DuplicateVaultRecordError(record.enrollment_id)
        self._by_enrollment[record.enrollment_id] = record

    async def update(self, record: CompletionVaultRecord) -> None:
        if record.enrollment_id not in self._by_enrollment:
            raise KeyError("vault record not found")
        self._by_enrollment[record.enrollment_id] = record

    async def list_by_org(self, org_id: UUID) -> list[CompletionVaultRecord]:
        records = [r for r in self._by_enrollment.values() if r.org_id == org_id]
        return sorted(records, key=lambda r: r.completed_at, reverse=True)

    async def delete_by_enrollment(self, enrollment_id: UUID) -> int:
        return 1 if self._by_enrollment.pop(enrollment_id, None) is not None else 0
