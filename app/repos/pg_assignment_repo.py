"""PostgreSQL implementation of AssignmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import (
    AssignmentRow,
    ContentItemRow,
    CurriculumItemRow,
    CurriculumRow,
    CurriculumSectionRow,
)
from app.models.assignment import (
    Assignment,
    AssignmentType,
    ContentItem,
    ContentType,
    Curriculum,
    CurriculumItem,
    CurriculumSection,
)


class PgAssignmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, assignment_id: UUID) -> Assignment | None:
        stmt = select(AssignmentRow).where(AssignmentRow.id == assignment_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return Assignment(
            id=row.id,
            org_id=row.org_id,
            title=row.title,
            type=AssignmentType(row.type),
            content_item_id=row.content_item_id,
            curriculum_id=row.curriculum_id,
            due_at=row.due_at,
        )

    async def get_curriculum(self, curriculum_id: UUID) -> Curriculum | None:
        stmt = select(CurriculumRow).where(CurriculumRow.id == curriculum_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None

        section_rows = (
            (
                await self._session.execute(
                    select(CurriculumSectionRow)
                    .where(CurriculumSectionRow.curriculum_id == curriculum_id)
                    .order_by(CurriculumSectionRow.position)
                )
            )
            .scalars()
            .all()
        )
        item_rows = (
            (
                await self._session.execute(
                    select(CurriculumItemRow)
                    .where(
                        CurriculumItemRow.section_id.in_([s.id for s in section_rows])
                    )
                    .order_by(CurriculumItemRow.position)
                )
            )
            .scalars()
            .all()
        )

        items_by_section: dict[UUID, list[CurriculumItem]] = {}
        for item in item_rows:
            items_by_section.setdefault(item.section_id, []).append(
                CurriculumItem(
                    content_item_id=item.content_item_id,
                    position=item.position,
                    required=item.required,
                )
            )

        return Curriculum(
            id=row.id,
            org_id=row.org_id,
            title=row.title,
            sections=tuple(
                CurriculumSection(
                    id=s.id,
                    title=s.title,
                    position=s.position,
                    items=tuple(items_by_section.get(s.id, [])),
                )
                for s in section_rows
            ),
        )

    async def get_content_item(self, content_item_id: UUID) -> ContentItem | None:
        stmt = select(ContentItemRow).where(ContentItemRow.id == content_item_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return ContentItem(
            id=row.id,
            org_id=row.org_id,
            type=ContentType(row.type),
            title=row.title,
            passing_score=row.passing_score,
        )

    async def add(self, assignment: Assignment) -> None:
        self._session.add(
            AssignmentRow(
                id=assignment.id,
                org_id=assignment.org_id,
                title=assignment.title,
                type=assignment.type.value,
                content_item_id=assignment.content_item_id,
                curriculum_id=assignment.curriculum_id,
                due_at=assignment.due_at,
            )
        )
        await self._session.flush()

    async def add_curriculum(self, curriculum: Curriculum) -> None:
        self._session.add(
            CurriculumRow(id=curriculum.id, org_id=curriculum.org_id, title=curriculum.title)
        )
        await self._session.flush()
        for section in curriculum.sections:
            self._session.add(
                CurriculumSectionRow(
                    id=section.id,
                    curriculum_id=curriculum.id,
                    title=section.title,
                    position=section.position,
                )
            )
            await self._session.flush()
            for item in section.items:
                self._session.add(
                    CurriculumItemRow(
                        section_id=section.id,
                        content_item_id=item.content_item_id,
                        position=item.position,
                        required=item.required,
                    )
                )
        await self._session.flush()

    async def add_content_item(self, item: ContentItem) -> None:
        self._session.add(
            ContentItemRow(
                id=item.id,
                org_id=item.org_id,
                type=item.type.value,
                title=item.title,
                passing_score=item.passing_score,
            )
        )
        await self._session.flush()
