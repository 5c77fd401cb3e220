from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from app.core.errors import EnrollmentNotFoundError
from app.models.assignment import ContentType
from app.models.enrollment import EnrollmentStatus, ProgressStatus
from app.repos.bundle import Repos
from app.services.progress_tracker import mark_item_complete
from tests.conftest import seed_curriculum_assignment, seed_enrollment

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


def _setup(repos: Repos, org_id: UUID, user_id: UUID):
    async def go():
        assignment, items = await seed_curriculum_assignment(
            repos, org_id, [(ContentType.ARTICLE, True), (ContentType.VIDEO, True)]
        )
        enrollment = await seed_enrollment(repos, org_id, user_id, assignment)
        return enrollment, items

    return asyncio.run(go())


def test_first_item_starts_enrollment(repos: Repos, org_id: UUID, user_id: UUID) -> None:
    enrollment, items = _setup(repos, org_id, user_id)

    started = asyncio.run(mark_item_complete(repos, enrollment.id, items[0].id, now=T0))

    assert started is True
    current = asyncio.run(repos.enrollments.get(enrollment.id))
    assert current.status == EnrollmentStatus.IN_PROGRESS
    assert current.started_at == T0
    progress = asyncio.run(repos.progress.get(enrollment.id, items[0].id))
    assert progress.completed is True
    assert progress.status == ProgressStatus.COMPLETED
    assert progress.completed_at == T0


def test_started_at_is_set_once(repos: Repos, org_id: UUID, user_id: UUID) -> None:
    enrollment, items = _setup(repos, org_id, user_id)

    asyncio.run(mark_item_complete(repos, enrollment.id, items[0].id, now=T0))
    later = T0 + timedelta(hours=1)
    started = asyncio.run(mark_item_complete(repos, enrollment.id, items[1].id, now=later))

    assert started is False
    current = asyncio.run(repos.enrollments.get(enrollment.id))
    assert current.started_at == T0


def test_repeat_refreshes_completed_at_only(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    enrollment, items = _setup(repos, org_id, user_id)
    later = T0 + timedelta(minutes=5)

    asyncio.run(mark_item_complete(repos, enrollment.id, items[0].id, now=T0))
    asyncio.run(mark_item_complete(repos, enrollment.id, items[0].id, now=later))

    rows = asyncio.run(repos.progress.list_for_enrollment(enrollment.id))
    assert len(rows) == 1
    assert rows[0].completed_at == later


def test_unknown_enrollment_raises(repos: Repos) -> None:
    with pytest.raises(EnrollmentNotFoundError):
        asyncio.run(mark_item_complete(repos, uuid4(), uuid4()))
