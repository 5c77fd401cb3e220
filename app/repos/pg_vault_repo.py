"""PostgreSQL implementations of VaultRepo and EventLogRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicateVaultRecordError
from app.db.tables import CompletionVaultRecordRow, EventLogRow
from app.models.events import LifecycleEvent
from app.models.vault import CompletionVaultRecord


class PgVaultRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, record_id: UUID) -> CompletionVaultRecord | None:
        stmt = select(CompletionVaultRecordRow).where(
            CompletionVaultRecordRow.id == record_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_record(row) if row is not None else None

    async def get_by_enrollment(
        self, enrollment_id: UUID
    ) -> CompletionVaultRecord | None:
        stmt = select(CompletionVaultRecordRow).where(
            CompletionVaultRecordRow.enrollment_id == enrollment_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_record(row) if row is not None else None

    async def get_by_certificate(
        self, certificate_id: UUID
    ) -> CompletionVaultRecord | None:
        stmt = select(CompletionVaultRecordRow).where(
            CompletionVaultRecordRow.certificate_id == certificate_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_record(row) if row is not None else None

    async def add(self, record: CompletionVaultRecord) -> None:
        row = CompletionVaultRecordRow(
            id=record.id,
            enrollment_id=record.enrollment_id,
            user_id=record.user_id,
            org_id=record.org_id,
            certificate_id=record.certificate_id,
            certificate_number=record.certificate_number,
            assignment_title=record.assignment_title,
            completed_at=record.completed_at,
            verification_hash=record.verification_hash,
            hash_version=record.hash_version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError:
            raise DuplicateVaultRecordError(record.enrollment_id) from None

    async def update(self, record: CompletionVaultRecord) -> None:
        stmt = (
            update(CompletionVaultRecordRow)
            .where(CompletionVaultRecordRow.enrollment_id == record.enrollment_id)
            .values(
                user_id=record.user_id,
                org_id=record.org_id,
                certificate_id=record.certificate_id,
                certificate_number=record.certificate_number,
                assignment_title=record.assignment_title,
                completed_at=record.completed_at,
                verification_hash=record.verification_hash,
                hash_version=record.hash_version,
                updated_at=record.updated_at,
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise KeyError("vault record not found")

    async def list_by_org(self, org_id: UUID) -> list[CompletionVaultRecord]:
        stmt = (
            select(CompletionVaultRecordRow)
            .where(CompletionVaultRecordRow.org_id == org_id)
            .order_by(CompletionVaultRecordRow.completed_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_record(r) for r in rows]

    async def delete_by_enrollment(self, enrollment_id: UUID) -> int:
        stmt = delete(CompletionVaultRecordRow).where(
            CompletionVaultRecordRow.enrollment_id == enrollment_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount


class PgEventLogRepo:
    """Appends events as rows; reading back is for audit tooling only, so
    ``list_for_enrollment`` returns the stored payloads rather than
    rebuilding event dataclasses."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, event: LifecycleEvent) -> None:
        row = EventLogRow(
            org_id=event.org_id,
            user_id=event.user_id,
            enrollment_id=event.enrollment_id,
            kind=event.kind,
            occurred_at=event.occurred_at,
            payload=_jsonable(event.payload()),
        )
        # A failed append is swallowed by AuditLog; the savepoint keeps the
        # surrounding transaction committable when that happens.
        async with self._session.begin_nested():
            self._session.add(row)
            await self._session.flush()

    async def list_for_enrollment(self, enrollment_id: UUID) -> list[dict]:
        stmt = (
            select(EventLogRow)
            .where(EventLogRow.enrollment_id == enrollment_id)
            .order_by(EventLogRow.occurred_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            {"kind": r.kind, "occurred_at": r.occurred_at, **r.payload} for r in rows
        ]


def _jsonable(data: dict[str, object]) -> dict[str, object]:
    out: dict[str, object] = {}
    for key, value in data.items():
        if isinstance(value, UUID):
            out[key] = str(value)
        elif hasattr(value, "isoformat"):
            out[key] = value.isoformat()
        else:
            out[key] = value
    return out


def _row_to_record(row: CompletionVaultRecordRow) -> CompletionVaultRecord:
    return CompletionVaultRecord(
        id=row.id,
        enrollment_id=row.enrollment_id,
        user_id=row.user_id,
        org_id=row.org_id,
        certificate_id=row.certificate_id,
        certificate_number=row.certificate_number,
        assignment_title=row.assignment_title,
        completed_at=row.completed_at,
        verification_hash=row.verification_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
        hash_version=row.hash_version,
    )
