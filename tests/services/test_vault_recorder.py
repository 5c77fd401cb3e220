from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from app.core.errors import EnrollmentNotFoundError
from app.models.assignment import ContentType
from app.repos.bundle import Repos
from app.services.hashing import HASH_VERSION
from app.services.vault_recorder import record_completion
from app.services.verification import verify_record
from tests.conftest import (
    seed_curriculum_assignment,
    seed_enrollment,
    seed_item_assignment,
)

COMPLETED = datetime(2025, 3, 1, 12, 0, 0, 123000, tzinfo=UTC)


def _enrollment(repos: Repos, org_id: UUID, user_id: UUID, *, curriculum: bool = False):
    async def go():
        if curriculum:
            assignment, _ = await seed_curriculum_assignment(
                repos, org_id, [(ContentType.ARTICLE, True)], title="Security Awareness"
            )
        else:
            assignment, _ = await seed_item_assignment(repos, org_id, title="Phishing 101")
        return await seed_enrollment(repos, org_id, user_id, assignment)

    return asyncio.run(go())


def test_creates_hash_stamped_record(repos: Repos, org_id: UUID, user_id: UUID) -> None:
    enrollment = _enrollment(repos, org_id, user_id)
    cert_id = uuid4()

    record_id = asyncio.run(
        record_completion(
            repos, enrollment.id, org_id, user_id, COMPLETED, cert_id, "CERT-20250301-ABCDEF"
        )
    )

    record = asyncio.run(repos.vault.get(record_id))
    assert record.enrollment_id == enrollment.id
    assert record.certificate_id == cert_id
    assert record.certificate_number == "CERT-20250301-ABCDEF"
    assert record.hash_version == HASH_VERSION
    assert len(record.verification_hash) == 64
    assert verify_record(record).valid is True


def test_title_snapshot_uses_content_item_title(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    enrollment = _enrollment(repos, org_id, user_id)
    record_id = asyncio.run(record_completion(repos, enrollment.id, org_id, user_id, COMPLETED))
    assert asyncio.run(repos.vault.get(record_id)).assignment_title == "Phishing 101"


def test_title_snapshot_uses_curriculum_title(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    enrollment = _enrollment(repos, org_id, user_id, curriculum=True)
    record_id = asyncio.run(record_completion(repos, enrollment.id, org_id, user_id, COMPLETED))
    assert asyncio.run(repos.vault.get(record_id)).assignment_title == "Security Awareness"


def test_record_without_certificate(repos: Repos, org_id: UUID, user_id: UUID) -> None:
    enrollment = _enrollment(repos, org_id, user_id)
    record_id = asyncio.run(record_completion(repos, enrollment.id, org_id, user_id, COMPLETED))

    record = asyncio.run(repos.vault.get(record_id))
    assert record.certificate_id is None
    assert record.certificate_number is None
    assert verify_record(record).valid is True


def test_second_write_updates_in_place(repos: Repos, org_id: UUID, user_id: UUID) -> None:
    enrollment = _enrollment(repos, org_id, user_id)
    first_id = asyncio.run(record_completion(repos, enrollment.id, org_id, user_id, COMPLETED))
    first = asyncio.run(repos.vault.get(first_id))

    cert_id = uuid4()
    second_id = asyncio.run(
        record_completion(
            repos,
            enrollment.id,
            org_id,
            user_id,
            COMPLETED,
            cert_id,
            "CERT-20250301-ABCDEF",
            now=datetime.now(UTC) + timedelta(minutes=1),
        )
    )
    second = asyncio.run(repos.vault.get(second_id))

    assert second_id == first_id
    assert second.certificate_id == cert_id
    assert second.verification_hash != first.verification_hash
    assert second.created_at == first.created_at
    assert second.updated_at > first.updated_at
    assert asyncio.run(repos.vault.list_by_org(org_id)) == [second]


def test_tampered_record_fails_verification(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    enrollment = _enrollment(repos, org_id, user_id)
    record_id = asyncio.run(record_completion(repos, enrollment.id, org_id, user_id, COMPLETED))
    record = asyncio.run(repos.vault.get(record_id))

    tampered = replace(record, completed_at=COMPLETED - timedelta(days=30))
    result = verify_record(tampered)

    assert result.valid is False
    assert result.stored_hash == record.verification_hash


def test_unknown_enrollment_raises(repos: Repos, org_id: UUID, user_id: UUID) -> None:
    with pytest.raises(EnrollmentNotFoundError):
        asyncio.run(record_completion(repos, uuid4(), org_id, user_id, COMPLETED))
