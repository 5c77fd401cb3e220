from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.assignment import Assignment, ContentItem, Curriculum


class AssignmentRepo(Protocol):
    """Read access to assignments and the content they point at.

    Authoring (creating curricula, editing content) belongs to the
    content library; the ``add_*`` methods exist for seeding and tests.
    """

    async def get(self, assignment_id: UUID) -> Assignment | None: ...
    async def get_curriculum(self, curriculum_id: UUID) -> Curriculum | None: ...
    async def get_content_item(self, content_item_id: UUID) -> ContentItem | None: ...
    async def add(self, assignment: Assignment) -> None: ...
    async def add_curriculum(self, curriculum: Curriculum) -> None: ...
    async def add_content_item(self, item: ContentItem) -> None: ...


class InMemoryAssignmentRepo:
    def __init__(self) -> None:
        self._assignments: dict[UUID, Assignment] = {}
        self._curricula: dict[UUID, Curriculum] = {}
        self._content_items: dict[UUID, ContentItem] = {}

    async def get(self, assignment_id: UUID) -> Assignment | None:
        return self._assignments.get(assignment_id)

    async def get_curriculum(self, curriculum_id: UUID) -> Curriculum | None:
        return self._curricula.get(curriculum_id)

    async def get_content_item(self, content_item_id: UUID) -> ContentItem | None:
        return self._content_items.get(content_item_id)

    async def add(self, assignment: Assignment) -> None:
        self._assignments[assignment.id] = assignment

    async def add_curriculum(self, curriculum: Curriculum) -> None:
        self._curricula[curriculum.id] = curriculum

    async def add_content_item(self, item: ContentItem) -> None:
        self._content_items[item.id] = item
