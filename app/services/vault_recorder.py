"""Hash-stamped completion records, one per enrollment.

The assignment title is copied into the record at write time so the
record stays verifiable after the curriculum or content item behind it
is renamed or deleted.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from app.core.errors import (
    AssignmentNotFoundError,
    DuplicateVaultRecordError,
    EnrollmentNotFoundError,
)
from app.core.metrics import VAULT_RECORDS
from app.models.assignment import Assignment, AssignmentType
from app.models.vault import CompletionVaultRecord
from app.repos.bundle import Repos
from app.services.hashing import HASH_VERSION, CompletionFields, verification_hash

logger = logging.getLogger(__name__)


async def snapshot_title(repos: Repos, assignment: Assignment) -> str:
    """Curriculum or content item title, else the assignment's own title."""
    if assignment.type == AssignmentType.CURRICULUM and assignment.curriculum_id:
        curriculum = await repos.assignments.get_curriculum(assignment.curriculum_id)
        if curriculum is not None:
            return curriculum.title
    elif assignment.type == AssignmentType.CONTENT_ITEM and assignment.content_item_id:
        item = await repos.assignments.get_content_item(assignment.content_item_id)
        if item is not None:
            return item.title
    return assignment.title


async def record_completion(
    repos: Repos,
    enrollment_id: UUID,
    org_id: UUID,
    user_id: UUID,
    completed_at: datetime,
    certificate_id: UUID | None = None,
    certificate_number: str | None = None,
    *,
    now: datetime | None = None,
) -> UUID:
    """Write or refresh the vault record for an enrollment; returns its id.

    A second call updates the existing record in place (same id) with
    the new certificate linkage, completion time and hash.
    """
    enrollment = await repos.enrollments.get(enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)
    assignment = await repos.assignments.get(enrollment.assignment_id)
    if assignment is None:
        raise AssignmentNotFoundError(enrollment.assignment_id)

    title = await snapshot_title(repos, assignment)
    digest = verification_hash(
        CompletionFields(
            enrollment_id=enrollment_id,
            user_id=user_id,
            org_id=org_id,
            certificate_id=certificate_id,
            certificate_number=certificate_number,
            assignment_title=title,
            completed_at=completed_at,
        )
    )
    now = now or datetime.now(UTC)

    existing = await repos.vault.get_by_enrollment(enrollment_id)
    if existing is None:
        record = CompletionVaultRecord(
            id=uuid4(),
            enrollment_id=enrollment_id,
            user_id=user_id,
            org_id=org_id,
            certificate_id=certificate_id,
            certificate_number=certificate_number,
            assignment_title=title,
            completed_at=completed_at,
            verification_hash=digest,
            created_at=now,
            updated_at=now,
            hash_version=HASH_VERSION,
        )
        try:
            await repos.vault.add(record)
        except DuplicateVaultRecordError:
            logger.info(
                "Vault record for enrollment %s written concurrently; updating it",
                enrollment_id,
            )
            existing = await repos.vault.get_by_enrollment(enrollment_id)
            if existing is None:
                raise
        else:
            VAULT_RECORDS.labels(action="created").inc()
            logger.info("Vault record %s created for enrollment %s", record.id, enrollment_id)
            return record.id

    updated = replace(
        existing,
        user_id=user_id,
        org_id=org_id,
        certificate_id=certificate_id,
        certificate_number=certificate_number,
        assignment_title=title,
        completed_at=completed_at,
        verification_hash=digest,
        hash_version=HASH_VERSION,
        updated_at=now,
    )
    await repos.vault.update(updated)
    VAULT_RECORDS.labels(action="updated").inc()
    logger.info("Vault record %s updated for enrollment %s", existing.id, enrollment_id)
    return existing.id
