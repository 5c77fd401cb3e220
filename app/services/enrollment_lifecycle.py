"""Drives an enrollment from ASSIGNED through IN_PROGRESS to COMPLETED.

complete_item() is the entry point for every completion trigger:

  1. record item progress (first item moves ASSIGNED -> IN_PROGRESS)
  2. evaluate the assignment's required items
  3. compare-and-swap the enrollment to COMPLETED
  4. the request that wins step 3 finalizes: certificate, then vault

Only the winner of step 3 finalizes, so concurrent completions of the
last item produce one COMPLETED transition.  Finalization is itself
idempotent, which is what lets the backfill worker re-run it.

A failure during finalization does not undo the completion: the step runs
in a savepoint, so only its own writes are rolled back.  The failure is
logged, a CompletionDeferred event is emitted, a backfill task is
queued and the outcome reports ``certificate_pending``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from app.core.errors import EnrollmentNotFoundError, EnrollmentOwnershipError
from app.core.metrics import COMPLETION_DEFERRED, ENROLLMENTS_COMPLETED
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.events import (
    CertificateIssuedEvent,
    CompletionDeferred,
    EnrollmentCompleted,
    EnrollmentStarted,
    ItemCompleted,
    VaultRecorded,
)
from app.repos.bundle import Repos
from app.services import task_queue as task_queue_module
from app.services.audit_log import AuditLog
from app.services.certificate_issuer import issue_certificate
from app.services.completion_evaluator import CompletionCheck, check_completion
from app.services.progress_tracker import mark_item_complete
from app.services.task_queue import COMPLETION_BACKFILL_QUEUE
from app.services.vault_recorder import record_completion

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompletionOutcome:
    enrollment_id: UUID
    status: EnrollmentStatus
    completed_now: bool = False
    check: CompletionCheck | None = None
    certificate_id: UUID | None = None
    certificate_number: str | None = None
    vault_record_id: UUID | None = None
    certificate_pending: bool = False


async def get_owned_enrollment(
    repos: Repos, enrollment_id: UUID, acting_user_id: UUID
) -> Enrollment:
    enrollment = await repos.enrollments.get(enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)
    if enrollment.user_id != acting_user_id:
        raise EnrollmentOwnershipError(enrollment_id)
    return enrollment


async def complete_item(
    repos: Repos,
    enrollment_id: UUID,
    content_item_id: UUID,
    acting_user_id: UUID,
    *,
    now: datetime | None = None,
) -> CompletionOutcome:
    enrollment = await get_owned_enrollment(repos, enrollment_id, acting_user_id)
    audit = AuditLog(repos.events)
    now = now or datetime.now(UTC)

    started = await mark_item_complete(repos, enrollment_id, content_item_id, now=now)
    await audit.emit(
        ItemCompleted(
            org_id=enrollment.org_id,
            user_id=enrollment.user_id,
            enrollment_id=enrollment_id,
            occurred_at=now,
            content_item_id=content_item_id,
        )
    )
    if started:
        await audit.emit(
            EnrollmentStarted(
                org_id=enrollment.org_id,
                user_id=enrollment.user_id,
                enrollment_id=enrollment_id,
                occurred_at=now,
            )
        )

    # Re-read: the enrollment may have been completed by a concurrent call.
    current = await repos.enrollments.get(enrollment_id)
    if current is None:
        raise EnrollmentNotFoundError(enrollment_id)
    if current.is_completed:
        return CompletionOutcome(enrollment_id=enrollment_id, status=current.status)

    check = await check_completion(repos, enrollment_id)
    if not check.is_complete:
        return CompletionOutcome(
            enrollment_id=enrollment_id, status=current.status, check=check
        )

    if not await repos.enrollments.mark_completed(enrollment_id, now):
        logger.info("Enrollment %s already completed by a concurrent request", enrollment_id)
        return CompletionOutcome(
            enrollment_id=enrollment_id, status=EnrollmentStatus.COMPLETED, check=check
        )

    ENROLLMENTS_COMPLETED.inc()
    logger.info(
        "Enrollment %s completed (%d required items)",
        enrollment_id,
        check.total_required,
        extra={"org_id": str(enrollment.org_id), "enrollment_id": str(enrollment_id)},
    )
    await audit.emit(
        EnrollmentCompleted(
            org_id=enrollment.org_id,
            user_id=enrollment.user_id,
            enrollment_id=enrollment_id,
            occurred_at=now,
            completed_at=now,
            total_required=check.total_required,
        )
    )

    outcome = await finalize_completion(repos, enrollment_id)
    return CompletionOutcome(
        enrollment_id=enrollment_id,
        status=EnrollmentStatus.COMPLETED,
        completed_now=True,
        check=check,
        certificate_id=outcome.certificate_id,
        certificate_number=outcome.certificate_number,
        vault_record_id=outcome.vault_record_id,
        certificate_pending=outcome.certificate_pending,
    )


async def finalize_completion(
    repos: Repos, enrollment_id: UUID, *, defer_on_failure: bool = True
) -> CompletionOutcome:
    """Issue the certificate and write the vault record for a COMPLETED
    enrollment.  Safe to repeat.

    With ``defer_on_failure`` (the request path) an exception is logged
    and turned into a queued backfill; the worker passes False so the
    failure propagates and is logged by the worker loop.
    """
    enrollment = await repos.enrollments.get(enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)
    if not enrollment.is_completed or enrollment.completed_at is None:
        logger.warning("Enrollment %s is not completed; nothing to finalize", enrollment_id)
        return CompletionOutcome(enrollment_id=enrollment_id, status=enrollment.status)

    audit = AuditLog(repos.events)
    try:
        # Progress and the COMPLETED transition sit outside this savepoint
        # and survive a failure inside it.
        async with repos.savepoint():
            certificate = await issue_certificate(
                repos, enrollment_id, enrollment.org_id, enrollment.user_id
            )
            record_id = await record_completion(
                repos,
                enrollment_id,
                enrollment.org_id,
                enrollment.user_id,
                enrollment.completed_at,
                certificate_id=certificate.id if certificate else None,
                certificate_number=certificate.certificate_number if certificate else None,
            )
    except Exception as e:
        if not defer_on_failure:
            raise
        logger.exception("Finalizing enrollment %s failed; deferring", enrollment_id)
        await _defer(repos, enrollment, reason=f"{type(e).__name__}: {e}")
        return CompletionOutcome(
            enrollment_id=enrollment_id,
            status=EnrollmentStatus.COMPLETED,
            certificate_pending=True,
        )

    now = datetime.now(UTC)
    if certificate is not None:
        await audit.emit(
            CertificateIssuedEvent(
                org_id=enrollment.org_id,
                user_id=enrollment.user_id,
                enrollment_id=enrollment_id,
                occurred_at=now,
                certificate_id=certificate.id,
                certificate_number=certificate.certificate_number,
            )
        )
    record = await repos.vault.get(record_id)
    await audit.emit(
        VaultRecorded(
            org_id=enrollment.org_id,
            user_id=enrollment.user_id,
            enrollment_id=enrollment_id,
            occurred_at=now,
            record_id=record_id,
            verification_hash=record.verification_hash if record else "",
        )
    )
    return CompletionOutcome(
        enrollment_id=enrollment_id,
        status=EnrollmentStatus.COMPLETED,
        certificate_id=certificate.id if certificate else None,
        certificate_number=certificate.certificate_number if certificate else None,
        vault_record_id=record_id,
    )


async def _defer(repos: Repos, enrollment: Enrollment, reason: str) -> None:
    COMPLETION_DEFERRED.inc()
    task_id: str | None = None
    try:
        task = await task_queue_module.task_queue.enqueue(
            COMPLETION_BACKFILL_QUEUE, {"enrollment_id": str(enrollment.id)}
        )
        task_id = task.id
    except Exception:
        logger.exception("Could not enqueue backfill for enrollment %s", enrollment.id)

    await AuditLog(repos.events).emit(
        CompletionDeferred(
            org_id=enrollment.org_id,
            user_id=enrollment.user_id,
            enrollment_id=enrollment.id,
            occurred_at=datetime.now(UTC),
            reason=reason,
            task_id=task_id,
        )
    )


def display_status(enrollment: Enrollment, now: datetime | None = None) -> EnrollmentStatus:
    return enrollment.display_status(now or datetime.now(UTC))
