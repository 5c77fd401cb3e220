from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.core.errors import DuplicateCertificateError
from app.models.certificate import CertificateIssued, CertificateTemplate


class CertificateRepo(Protocol):
    async def list_templates(self, org_id: UUID) -> list[CertificateTemplate]: ...
    async def get_template(self, template_id: UUID) -> CertificateTemplate | None: ...
    async def add_template(self, template: CertificateTemplate) -> None: ...
    async def get(self, certificate_id: UUID) -> CertificateIssued | None: ...
    async def get_by_enrollment(self, enrollment_id: UUID) -> CertificateIssued | None: ...
    async def number_exists(self, certificate_number: str) -> bool: ...
    async def add(self, certificate: CertificateIssued) -> None: ...
    async def delete_by_enrollment(self, enrollment_id: UUID) -> int: ...


class InMemoryCertificateRepo:
    """Enforces the same unique keys as the certificates_issued table:
    one certificate per enrollment, globally unique numbers."""

    def __init__(self) -> None:
        self._templates: dict[UUID, CertificateTemplate] = {}
        self._by_id: dict[UUID, CertificateIssued] = {}

    async def list_templates(self, org_id: UUID) -> list[CertificateTemplate]:
        return [t for t in self._templates.values() if t.org_id == org_id]

    async def get_template(self, template_id: UUID) -> CertificateTemplate | None:
        return self._templates.get(template_id)

    async def add_template(self, template: CertificateTemplate) -> None:
        self._templates[template.id] = template

    async def get(self, certificate_id: UUID) -> CertificateIssued | None:
        return self._by_id.get(certificate_id)

    async def get_by_enrollment(self, enrollment_id: UUID) -> CertificateIssued | None:
        for cert in self._by_id.values():
            if cert.enrollment_id == enrollment_id:
                return cert
        return None

    async def number_exists(self, certificate_number: str) -> bool:
        return any(
            c.certificate_number == certificate_number for c in self._by_id.values()
        )

    async def add(self, certificate: CertificateIssued) -> None:
        if await self.get_by_enrollment(certificate.enrollment_id) is not None:
            raise DuplicateCertificateError("enrollment_id")
        if await self.number_exists(certificate.certificate_number):
            raise DuplicateCertificateError("certificate_number")
        self._by_id[certificate.id] = certificate

    async def delete_by_enrollment(self, enrollment_id: UUID) -> int:
        ids = [c.id for c in self._by_id.values() if c.enrollment_id == enrollment_id]
        for cert_id in ids:
            del self._by_id[cert_id]
        return len(ids)
