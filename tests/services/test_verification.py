from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from app.core.errors import UnsupportedHashVersionError
from app.models.vault import CompletionVaultRecord
from app.services.hashing import verification_hash
from app.services.verification import fields_of, verify_fields, verify_record

NOW = datetime(2025, 2, 3, 4, 5, 6, tzinfo=UTC)


def _record(**overrides) -> CompletionVaultRecord:
    record = CompletionVaultRecord(
        id=uuid4(),
        enrollment_id=uuid4(),
        user_id=uuid4(),
        org_id=uuid4(),
        certificate_id=uuid4(),
        certificate_number="CERT-20250203-HJKMNP",
        assignment_title="Data Handling",
        completed_at=NOW,
        verification_hash="",
        created_at=NOW,
        updated_at=NOW,
    )
    record = replace(record, verification_hash=verification_hash(fields_of(record)))
    return replace(record, **overrides)


def test_untouched_record_verifies() -> None:
    result = verify_record(_record())
    assert result.valid is True
    assert result.expected_hash == result.stored_hash


@pytest.mark.parametrize(
    "changes",
    [
        {"assignment_title": "Data Handling (edited)"},
        {"certificate_number": "CERT-20250203-XXXXXX"},
        {"user_id": uuid4()},
    ],
)
def test_edited_record_is_detected(changes: dict) -> None:
    assert verify_record(_record(**changes)).valid is False


def test_unknown_version_on_record() -> None:
    with pytest.raises(UnsupportedHashVersionError):
        verify_record(_record(hash_version=2))


def test_verify_fields_is_case_and_whitespace_tolerant() -> None:
    record = _record()
    supplied = f"  {record.verification_hash.upper()} "
    assert verify_fields(fields_of(record), supplied) is True


def test_verify_fields_rejects_wrong_hash() -> None:
    record = _record()
    assert verify_fields(fields_of(record), "0" * 64) is False
