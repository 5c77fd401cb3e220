"""What a learner submitted to complete a quiz, attestation or form.

These rows are kept whether or not the submission completed the item:
a failed quiz attempt is still an attempt.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    id: UUID
    org_id: UUID
    enrollment_id: UUID
    user_id: UUID
    content_item_id: UUID
    score: int
    passing_score: int
    passed: bool
    submitted_at: datetime

    @staticmethod
    def new(
        *,
        org_id: UUID,
        enrollment_id: UUID,
        user_id: UUID,
        content_item_id: UUID,
        score: int,
        passing_score: int,
        submitted_at: datetime,
    ) -> QuizAttempt:
        return QuizAttempt(
            id=uuid4(),
            org_id=org_id,
            enrollment_id=enrollment_id,
            user_id=user_id,
            content_item_id=content_item_id,
            score=score,
            passing_score=passing_score,
            passed=score >= passing_score,
            submitted_at=submitted_at,
        )


@dataclass(frozen=True, slots=True)
class AttestationRecord:
    """A typed-name signature.  ``ip_address`` is what the API saw, if anything."""

    id: UUID
    org_id: UUID
    enrollment_id: UUID
    user_id: UUID
    content_item_id: UUID
    typed_name: str
    signed_at: datetime
    ip_address: str | None = None

    @staticmethod
    def new(
        *,
        org_id: UUID,
        enrollment_id: UUID,
        user_id: UUID,
        content_item_id: UUID,
        typed_name: str,
        signed_at: datetime,
        ip_address: str | None = None,
    ) -> AttestationRecord:
        return AttestationRecord(
            id=uuid4(),
            org_id=org_id,
            enrollment_id=enrollment_id,
            user_id=user_id,
            content_item_id=content_item_id,
            typed_name=typed_name.strip(),
            signed_at=signed_at,
            ip_address=ip_address,
        )


@dataclass(frozen=True, slots=True)
class FormSubmission:
    id: UUID
    org_id: UUID
    enrollment_id: UUID
    user_id: UUID
    content_item_id: UUID
    submitted_at: datetime
    answers: Mapping[str, object] = field(default_factory=dict)

    @staticmethod
    def new(
        *,
        org_id: UUID,
        enrollment_id: UUID,
        user_id: UUID,
        content_item_id: UUID,
        answers: Mapping[str, object],
        submitted_at: datetime,
    ) -> FormSubmission:
        return FormSubmission(
            id=uuid4(),
            org_id=org_id,
            enrollment_id=enrollment_id,
            user_id=user_id,
            content_item_id=content_item_id,
            submitted_at=submitted_at,
            answers=dict(answers),
        )
