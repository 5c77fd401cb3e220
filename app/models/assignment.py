from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4


class ContentType(enum.StrEnum):
    ARTICLE = "ARTICLE"
    SLIDE_DECK = "SLIDE_DECK"
    QUIZ = "QUIZ"
    VIDEO = "VIDEO"
    FORM = "FORM"
    ATTESTATION = "ATTESTATION"


# Content that can only be completed by an explicit "mark complete".
PASSIVE_CONTENT_TYPES = frozenset(
    {ContentType.ARTICLE, ContentType.SLIDE_DECK, ContentType.VIDEO}
)


class AssignmentType(enum.StrEnum):
    CONTENT_ITEM = "CONTENT_ITEM"
    CURRICULUM = "CURRICULUM"


@dataclass(frozen=True, slots=True)
class ContentItem:
    id: UUID
    org_id: UUID
    type: ContentType
    title: str
    passing_score: int | None = None  # QUIZ only, 0..100

    @staticmethod
    def new(
        *,
        org_id: UUID,
        type: ContentType,
        title: str,
        passing_score: int | None = None,
    ) -> ContentItem:
        return ContentItem(
            id=uuid4(),
            org_id=org_id,
            type=type,
            title=title,
            passing_score=passing_score,
        )


@dataclass(frozen=True, slots=True)
class CurriculumItem:
    content_item_id: UUID
    position: int
    required: bool = True


@dataclass(frozen=True, slots=True)
class CurriculumSection:
    id: UUID
    title: str
    position: int
    items: tuple[CurriculumItem, ...] = ()


@dataclass(frozen=True, slots=True)
class Curriculum:
    """Ordered sections of ordered content items."""

    id: UUID
    org_id: UUID
    title: str
    sections: tuple[CurriculumSection, ...] = ()

    def ordered_items(self) -> list[CurriculumItem]:
        """All items, flattened in section then item order."""
        items: list[CurriculumItem] = []
        for section in sorted(self.sections, key=lambda s: s.position):
            items.extend(sorted(section.items, key=lambda i: i.position))
        return items

    def required_content_item_ids(self) -> list[UUID]:
        """Required content items in curriculum order, deduplicated."""
        seen: set[UUID] = set()
        required: list[UUID] = []
        for item in self.ordered_items():
            if item.required and item.content_item_id not in seen:
                seen.add(item.content_item_id)
                required.append(item.content_item_id)
        return required

    def content_item_ids(self) -> set[UUID]:
        return {item.content_item_id for item in self.ordered_items()}


@dataclass(frozen=True, slots=True)
class Assignment:
    """What a user is trained on: one content item or one curriculum."""

    id: UUID
    org_id: UUID
    title: str
    type: AssignmentType
    content_item_id: UUID | None = None
    curriculum_id: UUID | None = None
    due_at: datetime | None = None

    @staticmethod
    def for_content_item(
        *,
        org_id: UUID,
        title: str,
        content_item_id: UUID,
        due_at: datetime | None = None,
    ) -> Assignment:
        return Assignment(
            id=uuid4(),
            org_id=org_id,
            title=title,
            type=AssignmentType.CONTENT_ITEM,
            content_item_id=content_item_id,
            due_at=due_at,
        )

    @staticmethod
    def for_curriculum(
        *,
        org_id: UUID,
        title: str,
        curriculum_id: UUID,
        due_at: datetime | None = None,
    ) -> Assignment:
        return Assignment(
            id=uuid4(),
            org_id=org_id,
            title=title,
            type=AssignmentType.CURRICULUM,
            curriculum_id=curriculum_id,
            due_at=due_at,
        )
