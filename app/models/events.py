"""Lifecycle events sent to the audit log.

Each event kind is its own frozen dataclass with a fixed ``kind``
discriminant, so consumers match on the type instead of parsing an
opaque metadata string.  ``LifecycleEvent`` is the union of all kinds.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import ClassVar, Literal
from uuid import UUID

EventKind = Literal[
    "ITEM_COMPLETED",
    "ENROLLMENT_STARTED",
    "ENROLLMENT_COMPLETED",
    "CERTIFICATE_ISSUED",
    "VAULT_RECORDED",
    "COMPLETION_DEFERRED",
    "QUIZ_SUBMITTED",
    "ATTESTATION_SIGNED",
    "FORM_SUBMITTED",
]


@dataclass(frozen=True, slots=True, kw_only=True)
class _EventBase:
    kind: ClassVar[EventKind]

    org_id: UUID
    user_id: UUID
    enrollment_id: UUID
    occurred_at: datetime

    def payload(self) -> dict[str, object]:
        """Kind-specific fields (everything except the common envelope)."""
        data = asdict(self)
        for key in ("org_id", "user_id", "enrollment_id", "occurred_at"):
            data.pop(key)
        return data


@dataclass(frozen=True, slots=True, kw_only=True)
class ItemCompleted(_EventBase):
    kind: ClassVar[EventKind] = "ITEM_COMPLETED"

    content_item_id: UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class EnrollmentStarted(_EventBase):
    kind: ClassVar[EventKind] = "ENROLLMENT_STARTED"


@dataclass(frozen=True, slots=True, kw_only=True)
class EnrollmentCompleted(_EventBase):
    kind: ClassVar[EventKind] = "ENROLLMENT_COMPLETED"

    completed_at: datetime
    total_required: int


@dataclass(frozen=True, slots=True, kw_only=True)
class CertificateIssuedEvent(_EventBase):
    kind: ClassVar[EventKind] = "CERTIFICATE_ISSUED"

    certificate_id: UUID
    certificate_number: str


@dataclass(frozen=True, slots=True, kw_only=True)
class VaultRecorded(_EventBase):
    kind: ClassVar[EventKind] = "VAULT_RECORDED"

    record_id: UUID
    verification_hash: str


@dataclass(frozen=True, slots=True, kw_only=True)
class CompletionDeferred(_EventBase):
    kind: ClassVar[EventKind] = "COMPLETION_DEFERRED"

    reason: str
    task_id: str | None = field(default=None)


@dataclass(frozen=True, slots=True, kw_only=True)
class QuizSubmitted(_EventBase):
    """Every graded attempt, passed or not."""

    kind: ClassVar[EventKind] = "QUIZ_SUBMITTED"

    content_item_id: UUID
    attempt_id: UUID
    score: int
    passed: bool


@dataclass(frozen=True, slots=True, kw_only=True)
class AttestationSigned(_EventBase):
    kind: ClassVar[EventKind] = "ATTESTATION_SIGNED"

    content_item_id: UUID
    record_id: UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class FormSubmitted(_EventBase):
    kind: ClassVar[EventKind] = "FORM_SUBMITTED"

    content_item_id: UUID
    submission_id: UUID


LifecycleEvent = (
    ItemCompleted
    | EnrollmentStarted
    | EnrollmentCompleted
    | CertificateIssuedEvent
    | VaultRecorded
    | CompletionDeferred
    | QuizSubmitted
    | AttestationSigned
    | FormSubmitted
)
