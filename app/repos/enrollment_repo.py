from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from app.core.errors import AlreadyEnrolledError
from app.models.enrollment import Enrollment, EnrollmentStatus


class EnrollmentRepo(Protocol):
    async def get(self, enrollment_id: UUID) -> Enrollment | None: ...
    async def get_for_user(
        self, user_id: UUID, assignment_id: UUID
    ) -> Enrollment | None: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def mark_started(self, enrollment_id: UUID, started_at: datetime) -> bool: ...
    async def mark_completed(
        self, enrollment_id: UUID, completed_at: datetime
    ) -> bool: ...
    async def delete(self, enrollment_id: UUID) -> bool: ...


class InMemoryEnrollmentRepo:
    """Dict-backed enrollments.

    ``mark_started`` and ``mark_completed`` are compare-and-swap: they
    return False when the enrollment is not in the expected state, the
    same contract as the conditional UPDATE in PgEnrollmentRepo.
    """

    def __init__(self) -> None:
        self._by_id: dict[UUID, Enrollment] = {}

    async def get(self, enrollment_id: UUID) -> Enrollment | None:
        return self._by_id.get(enrollment_id)

    async def get_for_user(
        self, user_id: UUID, assignment_id: UUID
    ) -> Enrollment | None:
        for enrollment in self._by_id.values():
            if (
                enrollment.user_id == user_id
                and enrollment.assignment_id == assignment_id
            ):
                return enrollment
        return None

    async def add(self, enrollment: Enrollment) -> None:
        if enrollment.id in self._by_id:
            raise ValueError("enrollment id already exists")
        if await self.get_for_user(enrollment.user_id, enrollment.assignment_id):
            raise AlreadyEnrolledError("user is already enrolled in this assignment")
        self._by_id[enrollment.id] = enrollment

    async def mark_started(self, enrollment_id: UUID, started_at: datetime) -> bool:
        current = self._by_id.get(enrollment_id)
        if current is None or current.status != EnrollmentStatus.ASSIGNED:
            return False
        self._by_id[enrollment_id] = replace(
            current,
            status=EnrollmentStatus.IN_PROGRESS,
            started_at=current.started_at or started_at,
        )
        return True

    async def mark_completed(
        self, enrollment_id: UUID, completed_at: datetime
    ) -> bool:
        current = self._by_id.get(enrollment_id)
        if current is None or current.status == EnrollmentStatus.COMPLETED:
            return False
        self._by_id[enrollment_id] = replace(
            current,
            status=EnrollmentStatus.COMPLETED,
            started_at=current.started_at or completed_at,
            completed_at=completed_at,
        )
        return True

    async def delete(self, enrollment_id: UUID) -> bool:
        return self._by_id.pop(enrollment_id, None) is not None
