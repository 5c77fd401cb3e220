"""PostgreSQL implementations of EnrollmentRepo and ProgressRepo."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AlreadyEnrolledError
from app.db.tables import EnrollmentItemProgressRow, EnrollmentRow
from app.models.enrollment import (
    Enrollment,
    EnrollmentItemProgress,
    EnrollmentStatus,
    ProgressStatus,
)


class PgEnrollmentRepo:
    """Satisfies the EnrollmentRepo Protocol.

    State transitions are single conditional UPDATEs; the row count
    tells the caller whether it won the transition.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, enrollment_id: UUID) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(EnrollmentRow.id == enrollment_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    async def get_for_user(
        self, user_id: UUID, assignment_id: UUID
    ) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.user_id == user_id,
            EnrollmentRow.assignment_id == assignment_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    async def add(self, enrollment: Enrollment) -> None:
        row = EnrollmentRow(
            id=enrollment.id,
            org_id=enrollment.org_id,
            user_id=enrollment.user_id,
            assignment_id=enrollment.assignment_id,
            status=enrollment.status.value,
            started_at=enrollment.started_at,
            completed_at=enrollment.completed_at,
            due_at=enrollment.due_at,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError:
            raise AlreadyEnrolledError(
                "user is already enrolled in this assignment"
            ) from None

    async def mark_started(self, enrollment_id: UUID, started_at: datetime) -> bool:
        stmt = (
            update(EnrollmentRow)
            .where(
                EnrollmentRow.id == enrollment_id,
                EnrollmentRow.status == EnrollmentStatus.ASSIGNED.value,
            )
            .values(
                status=EnrollmentStatus.IN_PROGRESS.value,
                started_at=func.coalesce(EnrollmentRow.started_at, started_at),
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def mark_completed(
        self, enrollment_id: UUID, completed_at: datetime
    ) -> bool:
        stmt = (
            update(EnrollmentRow)
            .where(
                EnrollmentRow.id == enrollment_id,
                EnrollmentRow.status != EnrollmentStatus.COMPLETED.value,
            )
            .values(
                status=EnrollmentStatus.COMPLETED.value,
                started_at=func.coalesce(EnrollmentRow.started_at, completed_at),
                completed_at=completed_at,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete(self, enrollment_id: UUID) -> bool:
        stmt = delete(EnrollmentRow).where(EnrollmentRow.id == enrollment_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol; upsert is INSERT .. ON CONFLICT."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(
        self, enrollment_id: UUID, content_item_id: UUID
    ) -> EnrollmentItemProgress | None:
        stmt = select(EnrollmentItemProgressRow).where(
            EnrollmentItemProgressRow.enrollment_id == enrollment_id,
            EnrollmentItemProgressRow.content_item_id == content_item_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_progress(row) if row is not None else None

    async def list_for_enrollment(
        self, enrollment_id: UUID
    ) -> list[EnrollmentItemProgress]:
        stmt = select(EnrollmentItemProgressRow).where(
            EnrollmentItemProgressRow.enrollment_id == enrollment_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    async def upsert(self, progress: EnrollmentItemProgress) -> EnrollmentItemProgress:
        values = {
            "enrollment_id": progress.enrollment_id,
            "content_item_id": progress.content_item_id,
            "status": progress.status.value,
            "completed": progress.completed,
            "completed_at": progress.completed_at,
        }
        stmt = (
            insert(EnrollmentItemProgressRow)
            .values(**values)
            .on_conflict_do_update(
                index_elements=[
                    EnrollmentItemProgressRow.enrollment_id,
                    EnrollmentItemProgressRow.content_item_id,
                ],
                set_={
                    "status": values["status"],
                    "completed": values["completed"],
                    "completed_at": values["completed_at"],
                },
            )
        )
        await self._session.execute(stmt)
        return progress

    async def delete_for_enrollment(self, enrollment_id: UUID) -> int:
        stmt = delete(EnrollmentItemProgressRow).where(
            EnrollmentItemProgressRow.enrollment_id == enrollment_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        org_id=row.org_id,
        user_id=row.user_id,
        assignment_id=row.assignment_id,
        status=EnrollmentStatus(row.status),
        started_at=row.started_at,
        completed_at=row.completed_at,
        due_at=row.due_at,
    )


def _row_to_progress(row: EnrollmentItemProgressRow) -> EnrollmentItemProgress:
    return EnrollmentItemProgress(
        enrollment_id=row.enrollment_id,
        content_item_id=row.content_item_id,
        status=ProgressStatus(row.status),
        completed=row.completed,
        completed_at=row.completed_at,
    )
