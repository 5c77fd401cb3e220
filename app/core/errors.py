"""Typed errors raised by the completion pipeline.

Every error carries an ``ErrorKind`` so callers (the HTTP layer, the
worker, admin scripts) branch on the kind instead of matching message
text.  Repository conflict errors are separate: services catch them and
treat the write as already done.
"""

from __future__ import annotations

import enum
from uuid import UUID


class ErrorKind(enum.StrEnum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


class CompletionError(Exception):
    kind: ErrorKind = ErrorKind.INVALID

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# --- Precondition errors ---


class EnrollmentNotFoundError(CompletionError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, enrollment_id: UUID) -> None:
        super().__init__(f"enrollment {enrollment_id} not found")
        self.enrollment_id = enrollment_id


class AssignmentNotFoundError(CompletionError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, assignment_id: UUID) -> None:
        super().__init__(f"assignment {assignment_id} not found")
        self.assignment_id = assignment_id


class ContentItemNotFoundError(CompletionError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, content_item_id: UUID) -> None:
        super().__init__(f"content item {content_item_id} not found")
        self.content_item_id = content_item_id


class CertificateNotFoundError(CompletionError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, certificate_id: UUID) -> None:
        super().__init__(f"certificate {certificate_id} not found")
        self.certificate_id = certificate_id


class EnrollmentOwnershipError(CompletionError):
    kind = ErrorKind.FORBIDDEN

    def __init__(self, enrollment_id: UUID) -> None:
        super().__init__(f"enrollment {enrollment_id} belongs to another user")
        self.enrollment_id = enrollment_id


class AlreadyEnrolledError(CompletionError):
    kind = ErrorKind.CONFLICT


class InvalidCompletionError(CompletionError):
    """A completion trigger rejected its input (bad score, blank signature...)."""

    kind = ErrorKind.INVALID


# --- Issuance / hashing ---


class CertificateNumberExhaustedError(CompletionError):
    kind = ErrorKind.UNAVAILABLE

    def __init__(self, attempts: int) -> None:
        super().__init__(
            f"could not generate a unique certificate number after {attempts} attempts"
        )
        self.attempts = attempts


class UnsupportedHashVersionError(CompletionError):
    kind = ErrorKind.INVALID

    def __init__(self, version: int) -> None:
        super().__init__(f"unsupported verification hash version {version}")
        self.version = version


# --- Repository conflicts (recovered locally, never surfaced) ---


class DuplicateCertificateError(Exception):
    """Insert hit a unique constraint on certificates_issued.

    ``field`` is ``"enrollment_id"`` when another certificate already
    exists for the enrollment, ``"certificate_number"`` on a number
    collision.
    """

    def __init__(self, field: str) -> None:
        super().__init__(f"duplicate certificate ({field})")
        self.field = field


class DuplicateVaultRecordError(Exception):
    def __init__(self, enrollment_id: UUID) -> None:
        super().__init__(f"vault record already exists for enrollment {enrollment_id}")
        self.enrollment_id = enrollment_id
