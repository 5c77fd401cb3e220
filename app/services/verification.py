"""Auditor-side checks: recompute a vault hash and compare."""

from __future__ import annotations

import hmac
from dataclasses import dataclass

from app.models.vault import CompletionVaultRecord
from app.services.hashing import CompletionFields, verification_hash


@dataclass(frozen=True, slots=True)
class VerificationResult:
    valid: bool
    expected_hash: str
    stored_hash: str


def fields_of(record: CompletionVaultRecord) -> CompletionFields:
    return CompletionFields(
        enrollment_id=record.enrollment_id,
        user_id=record.user_id,
        org_id=record.org_id,
        certificate_id=record.certificate_id,
        certificate_number=record.certificate_number,
        assignment_title=record.assignment_title,
        completed_at=record.completed_at,
    )


def verify_fields(fields: CompletionFields, expected_hash: str, version: int = 1) -> bool:
    computed = verification_hash(fields, version)
    return hmac.compare_digest(computed, expected_hash.strip().lower())


def verify_record(record: CompletionVaultRecord) -> VerificationResult:
    expected = verification_hash(fields_of(record), record.hash_version)
    return VerificationResult(
        valid=hmac.compare_digest(expected, record.verification_hash),
        expected_hash=expected,
        stored_hash=record.verification_hash,
    )
