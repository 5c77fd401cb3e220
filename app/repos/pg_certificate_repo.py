"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicateCertificateError
from app.db.tables import CertificateIssuedRow, CertificateTemplateRow
from app.models.certificate import CertificateIssued, CertificateTemplate


class PgCertificateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_templates(self, org_id: UUID) -> list[CertificateTemplate]:
        stmt = select(CertificateTemplateRow).where(
            CertificateTemplateRow.org_id == org_id
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_template(r) for r in rows]

    async def get_template(self, template_id: UUID) -> CertificateTemplate | None:
        stmt = select(CertificateTemplateRow).where(
            CertificateTemplateRow.id == template_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_template(row) if row is not None else None

    async def add_template(self, template: CertificateTemplate) -> None:
        self._session.add(
            CertificateTemplateRow(
                id=template.id,
                org_id=template.org_id,
                name=template.name,
                html_template=template.html_template,
                assignment_id=template.assignment_id,
            )
        )
        await self._session.flush()

    async def get(self, certificate_id: UUID) -> CertificateIssued | None:
        stmt = select(CertificateIssuedRow).where(
            CertificateIssuedRow.id == certificate_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_certificate(row) if row is not None else None

    async def get_by_enrollment(self, enrollment_id: UUID) -> CertificateIssued | None:
        stmt = select(CertificateIssuedRow).where(
            CertificateIssuedRow.enrollment_id == enrollment_id
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_certificate(row) if row is not None else None

    async def number_exists(self, certificate_number: str) -> bool:
        stmt = select(CertificateIssuedRow.id).where(
            CertificateIssuedRow.certificate_number == certificate_number
        )
        return (await self._session.execute(stmt)).first() is not None

    async def add(self, certificate: CertificateIssued) -> None:
        """Insert inside a SAVEPOINT so a unique violation leaves the
        surrounding transaction usable for the caller's recovery read."""
        row = CertificateIssuedRow(
            id=certificate.id,
            certificate_number=certificate.certificate_number,
            issued_at=certificate.issued_at,
            org_id=certificate.org_id,
            user_id=certificate.user_id,
            template_id=certificate.template_id,
            enrollment_id=certificate.enrollment_id,
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError as e:
            if "enrollment_id" in str(e.orig):
                raise DuplicateCertificateError("enrollment_id") from None
            raise DuplicateCertificateError("certificate_number") from None

    async def delete_by_enrollment(self, enrollment_id: UUID) -> int:
        stmt = delete(CertificateIssuedRow).where(
            CertificateIssuedRow.enrollment_id == enrollment_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount


def _row_to_template(row: CertificateTemplateRow) -> CertificateTemplate:
    return CertificateTemplate(
        id=row.id,
        org_id=row.org_id,
        name=row.name,
        html_template=row.html_template,
        assignment_id=row.assignment_id,
    )


def _row_to_certificate(row: CertificateIssuedRow) -> CertificateIssued:
    return CertificateIssued(
        id=row.id,
        certificate_number=row.certificate_number,
        issued_at=row.issued_at,
        org_id=row.org_id,
        user_id=row.user_id,
        template_id=row.template_id,
        enrollment_id=row.enrollment_id,
    )
