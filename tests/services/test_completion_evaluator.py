from __future__ import annotations

import asyncio
from uuid import UUID, uuid4

import pytest

from app.core.errors import EnrollmentNotFoundError
from app.models.assignment import (
    Assignment,
    ContentType,
    Curriculum,
    CurriculumItem,
    CurriculumSection,
)
from app.repos.bundle import Repos
from app.services.completion_evaluator import check_completion
from app.services.progress_tracker import mark_item_complete
from tests.conftest import (
    seed_curriculum_assignment,
    seed_enrollment,
    seed_item_assignment,
)


def test_content_item_assignment(repos: Repos, org_id: UUID, user_id: UUID) -> None:
    async def go():
        assignment, item = await seed_item_assignment(repos, org_id)
        enrollment = await seed_enrollment(repos, org_id, user_id, assignment)
        before = await check_completion(repos, enrollment.id)
        await mark_item_complete(repos, enrollment.id, item.id)
        after = await check_completion(repos, enrollment.id)
        return item, before, after

    item, before, after = asyncio.run(go())

    assert before.is_complete is False
    assert before.total_required == 1
    assert before.missing_required == (item.id,)
    assert after.is_complete is True
    assert after.completed_required == 1
    assert after.missing_required == ()


def test_optional_items_are_not_required(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    async def go():
        assignment, items = await seed_curriculum_assignment(
            repos,
            org_id,
            [(ContentType.ARTICLE, True), (ContentType.VIDEO, False), (ContentType.QUIZ, True)],
            sections=2,
        )
        enrollment = await seed_enrollment(repos, org_id, user_id, assignment)
        await mark_item_complete(repos, enrollment.id, items[0].id)
        partial = await check_completion(repos, enrollment.id)
        await mark_item_complete(repos, enrollment.id, items[2].id)
        return items, partial, await check_completion(repos, enrollment.id)

    items, partial, done = asyncio.run(go())

    assert partial.total_required == 2
    assert partial.missing_required == (items[2].id,)
    assert done.is_complete is True


def test_optional_item_alone_never_completes(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    async def go():
        assignment, items = await seed_curriculum_assignment(
            repos,
            org_id,
            [
                (ContentType.ARTICLE, True),
                (ContentType.QUIZ, True),
                (ContentType.ATTESTATION, True),
                (ContentType.VIDEO, False),
            ],
            sections=2,
        )
        enrollment = await seed_enrollment(repos, org_id, user_id, assignment)
        await mark_item_complete(repos, enrollment.id, items[3].id)
        return items, await check_completion(repos, enrollment.id)

    items, check = asyncio.run(go())

    assert check.is_complete is False
    assert check.total_required == 3
    assert check.completed_required == 0
    assert set(check.missing_required) == {items[0].id, items[1].id, items[2].id}


def test_item_in_two_sections_counts_once(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    async def go():
        _, shared = await seed_item_assignment(repos, org_id)
        curriculum = Curriculum(
            id=uuid4(),
            org_id=org_id,
            title="Repeats",
            sections=(
                CurriculumSection(
                    id=uuid4(), title="A", position=0,
                    items=(CurriculumItem(content_item_id=shared.id, position=0),),
                ),
                CurriculumSection(
                    id=uuid4(), title="B", position=1,
                    items=(CurriculumItem(content_item_id=shared.id, position=0),),
                ),
            ),
        )
        await repos.assignments.add_curriculum(curriculum)
        target = Assignment.for_curriculum(
            org_id=org_id, title="Repeats", curriculum_id=curriculum.id
        )
        await repos.assignments.add(target)
        enrollment = await seed_enrollment(repos, org_id, user_id, target)
        await mark_item_complete(repos, enrollment.id, shared.id)
        return await check_completion(repos, enrollment.id)

    check = asyncio.run(go())

    assert check.total_required == 1
    assert check.is_complete is True


def test_no_required_items_is_never_complete(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    async def go():
        assignment, items = await seed_curriculum_assignment(
            repos, org_id, [(ContentType.ARTICLE, False)]
        )
        enrollment = await seed_enrollment(repos, org_id, user_id, assignment)
        await mark_item_complete(repos, enrollment.id, items[0].id)
        return await check_completion(repos, enrollment.id)

    check = asyncio.run(go())

    assert check.is_complete is False
    assert check.total_required == 0


def test_progress_on_unrelated_item_is_ignored(
    repos: Repos, org_id: UUID, user_id: UUID
) -> None:
    async def go():
        assignment, _ = await seed_item_assignment(repos, org_id)
        enrollment = await seed_enrollment(repos, org_id, user_id, assignment)
        await mark_item_complete(repos, enrollment.id, uuid4())
        return await check_completion(repos, enrollment.id)

    assert asyncio.run(go()).is_complete is False


def test_unknown_enrollment_raises(repos: Repos) -> None:
    with pytest.raises(EnrollmentNotFoundError):
        asyncio.run(check_completion(repos, uuid4()))
