"""Verification hash for completion vault records.

The payload is seven fields joined by ``|`` in a fixed order, with
missing values rendered as empty strings.  ``completed_at`` is written
as ISO-8601 UTC with millisecond precision and a ``Z`` suffix
(``2025-01-02T03:04:05.678Z``).  The digest is SHA-256 of the UTF-8
payload, lowercase hex.

External auditors recompute this hash from the stored fields, so any
change to the payload layout needs a new ``HASH_VERSION``.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from app.core.errors import UnsupportedHashVersionError

HASH_VERSION = 1
FIELD_SEPARATOR = "|"

SUPPORTED_HASH_VERSIONS = frozenset({HASH_VERSION})


@dataclass(frozen=True, slots=True)
class CompletionFields:
    enrollment_id: UUID | str
    user_id: UUID | str
    org_id: UUID | str
    certificate_id: UUID | str | None
    certificate_number: str | None
    assignment_title: str
    completed_at: datetime


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC, milliseconds, ``Z`` suffix.  Naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    else:
        value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _text(value: object) -> str:
    return "" if value is None else str(value)


def build_payload(fields: CompletionFields) -> str:
    parts = [
        _text(fields.enrollment_id),
        _text(fields.user_id),
        _text(fields.org_id),
        _text(fields.certificate_id),
        _text(fields.certificate_number),
        _text(fields.assignment_title),
        format_timestamp(fields.completed_at),
    ]
    return FIELD_SEPARATOR.join(parts)


def compute_hash(payload: str) -> str:
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def verification_hash(fields: CompletionFields, version: int = HASH_VERSION) -> str:
    if version not in SUPPORTED_HASH_VERSIONS:
        raise UnsupportedHashVersionError(version)
    return compute_hash(build_payload(fields))
