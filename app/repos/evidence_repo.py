from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.evidence import AttestationRecord, FormSubmission, QuizAttempt


class EvidenceRepo(Protocol):
    async def add_quiz_attempt(self, attempt: QuizAttempt) -> None: ...
    async def list_quiz_attempts(self, enrollment_id: UUID) -> list[QuizAttempt]: ...
    async def add_attestation(self, record: AttestationRecord) -> None: ...
    async def list_attestations(self, enrollment_id: UUID) -> list[AttestationRecord]: ...
    async def add_form_submission(self, submission: FormSubmission) -> None: ...
    async def list_form_submissions(self, enrollment_id: UUID) -> list[FormSubmission]: ...
    async def delete_for_enrollment(self, enrollment_id: UUID) -> int: ...


class InMemoryEvidenceRepo:
    """Append-only lists, oldest first."""

    def __init__(self) -> None:
        self._attempts: list[QuizAttempt] = []
        self._attestations: list[AttestationRecord] = []
        self._forms: list[FormSubmission] = []

    async def add_quiz_attempt(self, attempt: QuizAttempt) -> None:
        self._attempts.append(attempt)

    async def list_quiz_attempts(self, enrollment_id: UUID) -> list[QuizAttempt]:
        return [a for a in self._attempts if a.enrollment_id == enrollment_id]

    async def add_attestation(self, record: AttestationRecord) -> None:
        self._attestations.append(record)

    async def list_attestations(self, enrollment_id: UUID) -> list[AttestationRecord]:
        return [r for r in self._attestations if r.enrollment_id == enrollment_id]

    async def add_form_submission(self, submission: FormSubmission) -> None:
        self._forms.append(submission)

    async def list_form_submissions(self, enrollment_id: UUID) -> list[FormSubmission]:
        return [s for s in self._forms if s.enrollment_id == enrollment_id]

    async def delete_for_enrollment(self, enrollment_id: UUID) -> int:
        before = len(self._attempts) + len(self._attestations) + len(self._forms)
        self._attempts = [a for a in self._attempts if a.enrollment_id != enrollment_id]
        self._attestations = [
            r for r in self._attestations if r.enrollment_id != enrollment_id
        ]
        self._forms = [s for s in self._forms if s.enrollment_id != enrollment_id]
        return before - (len(self._attempts) + len(self._attestations) + len(self._forms))
