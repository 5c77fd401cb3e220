"""Mint one numbered certificate per completed enrollment.

Certificate numbers look like ``CERT-20250102-7KQ2MX``: the UTC issue
date plus six characters from an alphabet without look-alike glyphs
(no I, O, 0 or 1).

Issuance is idempotent.  An existing certificate for the enrollment is
returned as-is, and a concurrent insert that loses the race on the
``enrollment_id`` unique key returns the winner's certificate.
"""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime
from uuid import UUID

from app.core.config import SETTINGS
from app.core.errors import CertificateNumberExhaustedError, DuplicateCertificateError
from app.core.metrics import CERTIFICATES_ISSUED
from app.models.certificate import CertificateIssued, CertificateTemplate
from app.repos.bundle import Repos

logger = logging.getLogger(__name__)

CERT_NUMBER_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CERT_NUMBER_SUFFIX_LENGTH = 6


def generate_certificate_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    suffix = "".join(
        secrets.choice(CERT_NUMBER_ALPHABET) for _ in range(CERT_NUMBER_SUFFIX_LENGTH)
    )
    return f"CERT-{now:%Y%m%d}-{suffix}"


async def select_template(
    repos: Repos, org_id: UUID, assignment_id: UUID | None
) -> CertificateTemplate | None:
    """Assignment-specific template first, then the org default."""
    templates = await repos.certificates.list_templates(org_id)
    for template in templates:
        if template.assignment_id == assignment_id:
            return template
    for template in templates:
        if template.assignment_id is None:
            return template
    return None


async def issue_certificate(
    repos: Repos,
    enrollment_id: UUID,
    org_id: UUID,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> CertificateIssued | None:
    """Return the enrollment's certificate, minting it if needed.

    Does not re-check completion; callers only reach this after the
    enrollment's COMPLETED transition.  Returns None when the org has
    no usable template.
    """
    existing = await repos.certificates.get_by_enrollment(enrollment_id)
    if existing is not None:
        CERTIFICATES_ISSUED.labels(result="existing").inc()
        return existing

    enrollment = await repos.enrollments.get(enrollment_id)
    assignment_id = enrollment.assignment_id if enrollment is not None else None
    template = await select_template(repos, org_id, assignment_id)
    if template is None:
        logger.warning(
            "No certificate template for org=%s; enrollment %s left without certificate",
            org_id,
            enrollment_id,
        )
        CERTIFICATES_ISSUED.labels(result="no_template").inc()
        return None

    now = now or datetime.now(UTC)
    attempts = SETTINGS.cert_number_attempts
    # Each attempt draws one number.  A number already taken, whether seen
    # by the existence check or by the insert, spends that attempt.
    for _ in range(attempts):
        number = generate_certificate_number(now)
        if await repos.certificates.number_exists(number):
            logger.warning("Certificate number %s already taken, retrying", number)
            continue
        certificate = CertificateIssued.new(
            certificate_number=number,
            issued_at=now,
            org_id=org_id,
            user_id=user_id,
            template_id=template.id,
            enrollment_id=enrollment_id,
        )
        try:
            await repos.certificates.add(certificate)
        except DuplicateCertificateError as e:
            if e.field == "enrollment_id":
                winner = await repos.certificates.get_by_enrollment(enrollment_id)
                if winner is not None:
                    logger.info(
                        "Certificate for enrollment %s issued concurrently; reusing %s",
                        enrollment_id,
                        winner.certificate_number,
                    )
                    CERTIFICATES_ISSUED.labels(result="existing").inc()
                    return winner
                raise
            logger.warning(
                "Certificate number %s collided on insert, retrying",
                certificate.certificate_number,
            )
            continue

        logger.info(
            "Issued certificate %s for enrollment %s",
            certificate.certificate_number,
            enrollment_id,
        )
        CERTIFICATES_ISSUED.labels(result="issued").inc()
        return certificate

    raise CertificateNumberExhaustedError(attempts)
