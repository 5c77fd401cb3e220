"""Content-type specific gates in front of complete_item().

Each content type has one way to be completed: quizzes by a passing
score, attestations by a typed signature, forms by a submission and
passive content (articles, slide decks, videos) by an explicit
"mark complete".  Quiz attempts, signatures and form answers are stored
as evidence before the item is completed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from app.core.config import SETTINGS
from app.core.errors import (
    AssignmentNotFoundError,
    ContentItemNotFoundError,
    InvalidCompletionError,
)
from app.models.assignment import PASSIVE_CONTENT_TYPES, AssignmentType, ContentItem, ContentType
from app.models.enrollment import Enrollment
from app.models.events import AttestationSigned, FormSubmitted, QuizSubmitted
from app.models.evidence import AttestationRecord, FormSubmission, QuizAttempt
from app.repos.bundle import Repos
from app.services.audit_log import AuditLog
from app.services.enrollment_lifecycle import (
    CompletionOutcome,
    complete_item,
    get_owned_enrollment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QuizOutcome:
    score: int
    passing_score: int
    passed: bool
    attempt_id: UUID | None = None
    completion: CompletionOutcome | None = None


async def _load_item(
    repos: Repos, enrollment_id: UUID, content_item_id: UUID, user_id: UUID
) -> tuple[Enrollment, ContentItem]:
    """The enrollment and content item, checked to belong together."""
    enrollment = await get_owned_enrollment(repos, enrollment_id, user_id)
    assignment = await repos.assignments.get(enrollment.assignment_id)
    if assignment is None:
        raise AssignmentNotFoundError(enrollment.assignment_id)

    if assignment.type == AssignmentType.CONTENT_ITEM:
        belongs = assignment.content_item_id == content_item_id
    else:
        curriculum = (
            await repos.assignments.get_curriculum(assignment.curriculum_id)
            if assignment.curriculum_id
            else None
        )
        belongs = curriculum is not None and content_item_id in curriculum.content_item_ids()
    if not belongs:
        raise InvalidCompletionError(
            f"content item {content_item_id} is not part of this assignment"
        )

    item = await repos.assignments.get_content_item(content_item_id)
    if item is None:
        raise ContentItemNotFoundError(content_item_id)
    return enrollment, item


def _require_type(item: ContentItem, *allowed: ContentType) -> None:
    if item.type not in allowed:
        raise InvalidCompletionError(
            f"{item.type} content cannot be completed this way"
        )


async def submit_quiz_result(
    repos: Repos,
    enrollment_id: UUID,
    content_item_id: UUID,
    user_id: UUID,
    score: int,
    *,
    now: datetime | None = None,
) -> QuizOutcome:
    """Record the attempt, then complete the item if it passed.

    A failing attempt is stored and audited but leaves the item open.
    """
    if not 0 <= score <= 100:
        raise InvalidCompletionError("score must be between 0 and 100")
    enrollment, item = await _load_item(repos, enrollment_id, content_item_id, user_id)
    _require_type(item, ContentType.QUIZ)
    now = now or datetime.now(UTC)

    passing = (
        item.passing_score
        if item.passing_score is not None
        else SETTINGS.default_passing_score
    )
    attempt = QuizAttempt.new(
        org_id=enrollment.org_id,
        enrollment_id=enrollment_id,
        user_id=user_id,
        content_item_id=content_item_id,
        score=score,
        passing_score=passing,
        submitted_at=now,
    )
    await repos.evidence.add_quiz_attempt(attempt)
    await AuditLog(repos.events).emit(
        QuizSubmitted(
            org_id=enrollment.org_id,
            user_id=user_id,
            enrollment_id=enrollment_id,
            occurred_at=now,
            content_item_id=content_item_id,
            attempt_id=attempt.id,
            score=score,
            passed=attempt.passed,
        )
    )
    if not attempt.passed:
        logger.info(
            "Quiz %s failed for enrollment %s (score=%d passing=%d)",
            content_item_id,
            enrollment_id,
            score,
            passing,
        )
        return QuizOutcome(
            score=score, passing_score=passing, passed=False, attempt_id=attempt.id
        )

    completion = await complete_item(repos, enrollment_id, content_item_id, user_id, now=now)
    return QuizOutcome(
        score=score,
        passing_score=passing,
        passed=True,
        attempt_id=attempt.id,
        completion=completion,
    )


async def sign_attestation(
    repos: Repos,
    enrollment_id: UUID,
    content_item_id: UUID,
    user_id: UUID,
    typed_name: str,
    *,
    ip_address: str | None = None,
    now: datetime | None = None,
) -> CompletionOutcome:
    if not typed_name or not typed_name.strip():
        raise InvalidCompletionError("typed name is required to sign an attestation")
    enrollment, item = await _load_item(repos, enrollment_id, content_item_id, user_id)
    _require_type(item, ContentType.ATTESTATION)
    now = now or datetime.now(UTC)

    record = AttestationRecord.new(
        org_id=enrollment.org_id,
        enrollment_id=enrollment_id,
        user_id=user_id,
        content_item_id=content_item_id,
        typed_name=typed_name,
        signed_at=now,
        ip_address=ip_address,
    )
    await repos.evidence.add_attestation(record)
    await AuditLog(repos.events).emit(
        AttestationSigned(
            org_id=enrollment.org_id,
            user_id=user_id,
            enrollment_id=enrollment_id,
            occurred_at=now,
            content_item_id=content_item_id,
            record_id=record.id,
        )
    )
    return await complete_item(repos, enrollment_id, content_item_id, user_id, now=now)


async def submit_form(
    repos: Repos,
    enrollment_id: UUID,
    content_item_id: UUID,
    user_id: UUID,
    answers: Mapping[str, object],
    *,
    now: datetime | None = None,
) -> CompletionOutcome:
    if not answers:
        raise InvalidCompletionError("form submission has no answers")
    enrollment, item = await _load_item(repos, enrollment_id, content_item_id, user_id)
    _require_type(item, ContentType.FORM)
    now = now or datetime.now(UTC)

    submission = FormSubmission.new(
        org_id=enrollment.org_id,
        enrollment_id=enrollment_id,
        user_id=user_id,
        content_item_id=content_item_id,
        answers=answers,
        submitted_at=now,
    )
    await repos.evidence.add_form_submission(submission)
    await AuditLog(repos.events).emit(
        FormSubmitted(
            org_id=enrollment.org_id,
            user_id=user_id,
            enrollment_id=enrollment_id,
            occurred_at=now,
            content_item_id=content_item_id,
            submission_id=submission.id,
        )
    )
    return await complete_item(repos, enrollment_id, content_item_id, user_id, now=now)


async def mark_complete(
    repos: Repos,
    enrollment_id: UUID,
    content_item_id: UUID,
    user_id: UUID,
    *,
    now: datetime | None = None,
) -> CompletionOutcome:
    _, item = await _load_item(repos, enrollment_id, content_item_id, user_id)
    _require_type(item, *PASSIVE_CONTENT_TYPES)
    return await complete_item(repos, enrollment_id, content_item_id, user_id, now=now)
