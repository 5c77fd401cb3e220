from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from app.core.errors import (
    AlreadyEnrolledError,
    AssignmentNotFoundError,
    EnrollmentNotFoundError,
)
from app.models.enrollment import Enrollment
from app.repos.bundle import Repos

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResetSummary:
    enrollment_id: UUID
    progress_deleted: int
    certificates_deleted: int
    vault_records_deleted: int
    evidence_deleted: int = 0


async def enroll(
    repos: Repos, org_id: UUID, user_id: UUID, assignment_id: UUID
) -> Enrollment:
    """Create an ASSIGNED enrollment; one per (user, assignment)."""
    assignment = await repos.assignments.get(assignment_id)
    if assignment is None or assignment.org_id != org_id:
        raise AssignmentNotFoundError(assignment_id)

    if await repos.enrollments.get_for_user(user_id, assignment_id) is not None:
        logger.warning(
            "Rejected duplicate enrollment user=%s assignment=%s", user_id, assignment_id
        )
        raise AlreadyEnrolledError("user is already enrolled in this assignment")

    enrollment = Enrollment.new(
        org_id=org_id,
        user_id=user_id,
        assignment_id=assignment_id,
        due_at=assignment.due_at,
    )
    await repos.enrollments.add(enrollment)
    logger.info(
        "Enrolled user=%s in assignment=%s enrollment=%s",
        user_id,
        assignment_id,
        enrollment.id,
    )
    return enrollment


async def reset_enrollment(
    repos: Repos, enrollment_id: UUID, *, org_id: UUID | None = None
) -> ResetSummary:
    """Delete an enrollment with its progress, submissions, certificate and
    vault record.

    This is the only path that removes a vault record.  The user must be
    enrolled again before retaking the training.
    """
    enrollment = await repos.enrollments.get(enrollment_id)
    if enrollment is None or (org_id is not None and enrollment.org_id != org_id):
        raise EnrollmentNotFoundError(enrollment_id)

    progress = await repos.progress.delete_for_enrollment(enrollment_id)
    evidence = await repos.evidence.delete_for_enrollment(enrollment_id)
    certificates = await repos.certificates.delete_by_enrollment(enrollment_id)
    vault = await repos.vault.delete_by_enrollment(enrollment_id)
    await repos.enrollments.delete(enrollment_id)

    logger.warning(
        "Reset enrollment %s (progress=%d evidence=%d certificates=%d vault=%d)",
        enrollment_id,
        progress,
        evidence,
        certificates,
        vault,
    )
    return ResetSummary(
        enrollment_id=enrollment_id,
        progress_deleted=progress,
        certificates_deleted=certificates,
        vault_records_deleted=vault,
        evidence_deleted=evidence,
    )
