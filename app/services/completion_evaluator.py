from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from app.core.errors import AssignmentNotFoundError, EnrollmentNotFoundError
from app.models.assignment import Assignment, AssignmentType
from app.repos.bundle import Repos

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompletionCheck:
    is_complete: bool
    total_required: int
    completed_required: int
    missing_required: tuple[UUID, ...] = field(default=())


async def required_content_item_ids(repos: Repos, assignment: Assignment) -> list[UUID]:
    """Required items in curriculum order, deduplicated."""
    if assignment.type == AssignmentType.CONTENT_ITEM:
        return [assignment.content_item_id] if assignment.content_item_id else []

    if assignment.curriculum_id is None:
        return []
    curriculum = await repos.assignments.get_curriculum(assignment.curriculum_id)
    if curriculum is None:
        logger.warning(
            "Assignment %s points at missing curriculum %s",
            assignment.id,
            assignment.curriculum_id,
        )
        return []
    return curriculum.required_content_item_ids()


async def check_completion(repos: Repos, enrollment_id: UUID) -> CompletionCheck:
    """Read-only: are all required items of the enrollment's assignment done?

    An assignment with no required items is never complete.
    """
    enrollment = await repos.enrollments.get(enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)
    assignment = await repos.assignments.get(enrollment.assignment_id)
    if assignment is None:
        raise AssignmentNotFoundError(enrollment.assignment_id)

    required = await required_content_item_ids(repos, assignment)
    if not required:
        logger.warning(
            "Assignment %s has no required items; enrollment %s cannot complete",
            assignment.id,
            enrollment_id,
        )
        return CompletionCheck(is_complete=False, total_required=0, completed_required=0)

    done = {
        p.content_item_id
        for p in await repos.progress.list_for_enrollment(enrollment_id)
        if p.completed
    }
    missing = tuple(item_id for item_id in required if item_id not in done)
    completed = len(required) - len(missing)

    return CompletionCheck(
        is_complete=completed == len(required),
        total_required=len(required),
        completed_required=completed,
        missing_required=missing,
    )
