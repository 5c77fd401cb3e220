from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4


class EnrollmentStatus(enum.StrEnum):
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    # Display-only; derived from due_at, never stored by the pipeline.
    OVERDUE = "OVERDUE"


class ProgressStatus(enum.StrEnum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A user's tracked attempt at an assignment."""

    id: UUID
    org_id: UUID
    user_id: UUID
    assignment_id: UUID
    status: EnrollmentStatus = EnrollmentStatus.ASSIGNED
    started_at: datetime | None = None
    completed_at: datetime | None = None
    due_at: datetime | None = None

    @staticmethod
    def new(
        *,
        org_id: UUID,
        user_id: UUID,
        assignment_id: UUID,
        due_at: datetime | None = None,
    ) -> Enrollment:
        return Enrollment(
            id=uuid4(),
            org_id=org_id,
            user_id=user_id,
            assignment_id=assignment_id,
            due_at=due_at,
        )

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatus.COMPLETED

    def display_status(self, now: datetime) -> EnrollmentStatus:
        """Status as shown to users: OVERDUE layered over unfinished work."""
        if (
            not self.is_completed
            and self.due_at is not None
            and self.due_at < now
        ):
            return EnrollmentStatus.OVERDUE
        return self.status


@dataclass(frozen=True, slots=True)
class EnrollmentItemProgress:
    """Per-content-item completion marker; unique per (enrollment, item)."""

    enrollment_id: UUID
    content_item_id: UUID
    status: ProgressStatus
    completed: bool
    completed_at: datetime | None = None
