from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.assignment import (
    Assignment,
    ContentItem,
    ContentType,
    Curriculum,
    CurriculumItem,
    CurriculumSection,
)
from app.models.certificate import CertificateTemplate
from app.models.enrollment import Enrollment
from app.repos import bundle
from app.repos.bundle import Repos
from app.services import task_queue as task_queue_module
from app.services import token_service
from app.services.task_queue import InMemoryTaskQueue

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_TEMPLATE = (
    "<h1>Certificate of Completion</h1>"
    "<p>{{userName}}</p><p>{{courseName}}</p>"
    "<p>{{certificateNumber}} {{issuedDate}}</p><p>{{verificationHash}}</p>"
)


@pytest.fixture(autouse=True)
def reset_repos() -> Repos:
    """Fresh in-memory repositories for every test."""
    bundle.memory_repos = bundle.in_memory_repos()
    return bundle.memory_repos


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    task_queue_module.task_queue = InMemoryTaskQueue()


@pytest.fixture
def repos(reset_repos: Repos) -> Repos:
    return reset_repos


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def org_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


def mint_token(
    user_id: UUID | str,
    org_id: UUID | str,
    org_role: str = "learner",
    name: str | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(
        sub=str(user_id), org_id=str(org_id), org_role=org_role, name=name
    )


def auth_header(
    user_id: UUID | str,
    org_id: UUID | str,
    org_role: str = "learner",
    name: str | None = None,
) -> dict:
    return {"Authorization": f"Bearer {mint_token(user_id, org_id, org_role, name)}"}


# ---------------------------------------------------------------------------
# Seed helpers (async; call through asyncio.run)
# ---------------------------------------------------------------------------


async def seed_item_assignment(
    repos: Repos,
    org_id: UUID,
    *,
    type: ContentType = ContentType.ARTICLE,
    title: str = "Phishing 101",
    passing_score: int | None = None,
) -> tuple[Assignment, ContentItem]:
    item = ContentItem.new(org_id=org_id, type=type, title=title, passing_score=passing_score)
    await repos.assignments.add_content_item(item)
    assignment = Assignment.for_content_item(
        org_id=org_id, title=f"Assignment: {title}", content_item_id=item.id
    )
    await repos.assignments.add(assignment)
    return assignment, item


async def seed_curriculum_assignment(
    repos: Repos,
    org_id: UUID,
    items: list[tuple[ContentType, bool]],
    *,
    title: str = "Security Awareness",
    sections: int = 1,
) -> tuple[Assignment, list[ContentItem]]:
    """Curriculum whose items (type, required) are spread round-robin
    over ``sections`` sections."""
    content: list[ContentItem] = []
    per_section: list[list[CurriculumItem]] = [[] for _ in range(sections)]
    for index, (item_type, required) in enumerate(items):
        item = ContentItem.new(
            org_id=org_id,
            type=item_type,
            title=f"Item {index}",
            passing_score=80 if item_type == ContentType.QUIZ else None,
        )
        await repos.assignments.add_content_item(item)
        content.append(item)
        per_section[index % sections].append(
            CurriculumItem(content_item_id=item.id, position=index, required=required)
        )

    curriculum = Curriculum(
        id=uuid4(),
        org_id=org_id,
        title=title,
        sections=tuple(
            CurriculumSection(id=uuid4(), title=f"Section {n}", position=n, items=tuple(s))
            for n, s in enumerate(per_section)
        ),
    )
    await repos.assignments.add_curriculum(curriculum)
    assignment = Assignment.for_curriculum(
        org_id=org_id, title="Annual Training", curriculum_id=curriculum.id
    )
    await repos.assignments.add(assignment)
    return assignment, content


async def seed_template(
    repos: Repos,
    org_id: UUID,
    *,
    assignment_id: UUID | None = None,
    name: str = "Default",
    html_template: str = DEFAULT_TEMPLATE,
) -> CertificateTemplate:
    template = CertificateTemplate.new(
        org_id=org_id, name=name, html_template=html_template, assignment_id=assignment_id
    )
    await repos.certificates.add_template(template)
    return template


async def seed_enrollment(
    repos: Repos, org_id: UUID, user_id: UUID, assignment: Assignment
) -> Enrollment:
    enrollment = Enrollment.new(
        org_id=org_id, user_id=user_id, assignment_id=assignment.id, due_at=assignment.due_at
    )
    await repos.enrollments.add(enrollment)
    return enrollment


class RecordingSession:
    """Stand-in for the savepoint side of an AsyncSession.

    ``begin_nested()`` records whether each savepoint was released or
    rolled back; ``flush`` raises ``flush_error`` when one is set.
    """

    def __init__(self, flush_error: Exception | None = None) -> None:
        self.savepoints: list[str] = []
        self.added: list[object] = []
        self._flush_error = flush_error

    @asynccontextmanager
    async def begin_nested(self) -> AsyncIterator[None]:
        try:
            yield
        except Exception:
            self.savepoints.append("rolled back")
            raise
        self.savepoints.append("released")

    def add(self, row: object) -> None:
        self.added.append(row)

    async def flush(self) -> None:
        if self._flush_error is not None:
            raise self._flush_error
