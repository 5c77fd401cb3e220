from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class CertificateTemplate:
    """Org-level certificate layout.

    A template with ``assignment_id`` set applies only to that
    assignment and takes precedence over the org default (no
    assignment_id).
    """

    id: UUID
    org_id: UUID
    name: str
    html_template: str
    assignment_id: UUID | None = None

    @staticmethod
    def new(
        *,
        org_id: UUID,
        name: str,
        html_template: str,
        assignment_id: UUID | None = None,
    ) -> CertificateTemplate:
        return CertificateTemplate(
            id=uuid4(),
            org_id=org_id,
            name=name,
            html_template=html_template,
            assignment_id=assignment_id,
        )


@dataclass(frozen=True, slots=True)
class CertificateIssued:
    """A minted certificate; at most one per enrollment."""

    id: UUID
    certificate_number: str
    issued_at: datetime
    org_id: UUID
    user_id: UUID
    template_id: UUID
    enrollment_id: UUID

    @staticmethod
    def new(
        *,
        certificate_number: str,
        issued_at: datetime,
        org_id: UUID,
        user_id: UUID,
        template_id: UUID,
        enrollment_id: UUID,
    ) -> CertificateIssued:
        return CertificateIssued(
            id=uuid4(),
            certificate_number=certificate_number,
            issued_at=issued_at,
            org_id=org_id,
            user_id=user_id,
            template_id=template_id,
            enrollment_id=enrollment_id,
        )
