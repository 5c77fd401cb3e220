from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel

from app.api.dependencies import OrgAdmin, OrgMember, RepoBundle
from app.services import enrollment_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/orgs/{org_id}", tags=["enrollments"])


class EnrollIn(BaseModel):
    # Admins may enroll someone else; omitted means self-enrollment.
    user_id: UUID | None = None


class EnrollmentOut(BaseModel):
    id: UUID
    org_id: UUID
    user_id: UUID
    assignment_id: UUID
    status: str
    due_at: datetime | None


@router.post(
    "/assignments/{assignment_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll(
    org_id: UUID,
    assignment_id: UUID,
    principal: OrgMember,
    repos: RepoBundle,
    body: EnrollIn | None = None,
) -> EnrollmentOut:
    user_id = body.user_id if body and body.user_id else principal.user_id
    if user_id != principal.user_id and not principal.is_org_admin():
        logger.warning(
            "Access denied: user=%s tried to enroll user=%s", principal.user_id, user_id
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only org admins can enroll other users",
        )

    enrollment = await enrollment_admin.enroll(repos, org_id, user_id, assignment_id)
    return EnrollmentOut(
        id=enrollment.id,
        org_id=enrollment.org_id,
        user_id=enrollment.user_id,
        assignment_id=enrollment.assignment_id,
        status=enrollment.status.value,
        due_at=enrollment.due_at,
    )


@router.delete(
    "/enrollments/{enrollment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def reset_enrollment(
    org_id: UUID,
    enrollment_id: UUID,
    principal: OrgAdmin,
    repos: RepoBundle,
) -> Response:
    """Admin reset: removes the enrollment and everything recorded for it."""
    await enrollment_admin.reset_enrollment(repos, enrollment_id, org_id=org_id)
    logger.warning("Enrollment %s reset by admin=%s", enrollment_id, principal.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
