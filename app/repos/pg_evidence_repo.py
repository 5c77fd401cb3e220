"""PostgreSQL implementation of EvidenceRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import AttestationRecordRow, FormSubmissionRow, QuizAttemptRow
from app.models.evidence import AttestationRecord, FormSubmission, QuizAttempt


class PgEvidenceRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_quiz_attempt(self, attempt: QuizAttempt) -> None:
        self._session.add(
            QuizAttemptRow(
                id=attempt.id,
                org_id=attempt.org_id,
                enrollment_id=attempt.enrollment_id,
                user_id=attempt.user_id,
                content_item_id=attempt.content_item_id,
                score=attempt.score,
                passing_score=attempt.passing_score,
                passed=attempt.passed,
                submitted_at=attempt.submitted_at,
            )
        )
        await self._session.flush()

    async def list_quiz_attempts(self, enrollment_id: UUID) -> list[QuizAttempt]:
        stmt = (
            select(QuizAttemptRow)
            .where(QuizAttemptRow.enrollment_id == enrollment_id)
            .order_by(QuizAttemptRow.submitted_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            QuizAttempt(
                id=r.id,
                org_id=r.org_id,
                enrollment_id=r.enrollment_id,
                user_id=r.user_id,
                content_item_id=r.content_item_id,
                score=r.score,
                passing_score=r.passing_score,
                passed=r.passed,
                submitted_at=r.submitted_at,
            )
            for r in rows
        ]

    async def add_attestation(self, record: AttestationRecord) -> None:
        self._session.add(
            AttestationRecordRow(
                id=record.id,
                org_id=record.org_id,
                enrollment_id=record.enrollment_id,
                user_id=record.user_id,
                content_item_id=record.content_item_id,
                typed_name=record.typed_name,
                ip_address=record.ip_address,
                signed_at=record.signed_at,
            )
        )
        await self._session.flush()

    async def list_attestations(self, enrollment_id: UUID) -> list[AttestationRecord]:
        stmt = (
            select(AttestationRecordRow)
            .where(AttestationRecordRow.enrollment_id == enrollment_id)
            .order_by(AttestationRecordRow.signed_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            AttestationRecord(
                id=r.id,
                org_id=r.org_id,
                enrollment_id=r.enrollment_id,
                user_id=r.user_id,
                content_item_id=r.content_item_id,
                typed_name=r.typed_name,
                signed_at=r.signed_at,
                ip_address=r.ip_address,
            )
            for r in rows
        ]

    async def add_form_submission(self, submission: FormSubmission) -> None:
        self._session.add(
            FormSubmissionRow(
                id=submission.id,
                org_id=submission.org_id,
                enrollment_id=submission.enrollment_id,
                user_id=submission.user_id,
                content_item_id=submission.content_item_id,
                answers=dict(submission.answers),
                submitted_at=submission.submitted_at,
            )
        )
        await self._session.flush()

    async def list_form_submissions(self, enrollment_id: UUID) -> list[FormSubmission]:
        stmt = (
            select(FormSubmissionRow)
            .where(FormSubmissionRow.enrollment_id == enrollment_id)
            .order_by(FormSubmissionRow.submitted_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            FormSubmission(
                id=r.id,
                org_id=r.org_id,
                enrollment_id=r.enrollment_id,
                user_id=r.user_id,
                content_item_id=r.content_item_id,
                submitted_at=r.submitted_at,
                answers=r.answers,
            )
            for r in rows
        ]

    async def delete_for_enrollment(self, enrollment_id: UUID) -> int:
        deleted = 0
        for table in (QuizAttemptRow, AttestationRecordRow, FormSubmissionRow):
            result = await self._session.execute(
                delete(table).where(table.enrollment_id == enrollment_id)
            )
            deleted += result.rowcount
        return deleted
