from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from app.core.errors import EnrollmentNotFoundError
from app.core.metrics import ITEMS_COMPLETED
from app.models.enrollment import EnrollmentItemProgress, ProgressStatus
from app.repos.bundle import Repos

logger = logging.getLogger(__name__)


async def mark_item_complete(
    repos: Repos,
    enrollment_id: UUID,
    content_item_id: UUID,
    *,
    now: datetime | None = None,
) -> bool:
    """Record a content item as completed within an enrollment.

    Repeating the call only refreshes ``completed_at``.  The first
    completed item also moves an ASSIGNED enrollment to IN_PROGRESS;
    returns True when this call made that transition.

    Ownership must already have been checked by the caller.
    """
    enrollment = await repos.enrollments.get(enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)

    now = now or datetime.now(UTC)
    await repos.progress.upsert(
        EnrollmentItemProgress(
            enrollment_id=enrollment_id,
            content_item_id=content_item_id,
            status=ProgressStatus.COMPLETED,
            completed=True,
            completed_at=now,
        )
    )
    ITEMS_COMPLETED.inc()

    started = await repos.enrollments.mark_started(enrollment_id, now)
    if started:
        logger.info("Enrollment %s started", enrollment_id)
    return started
