"""Learner-facing completion endpoints.

Every POST here feeds one completion trigger.  The response reports
the enrollment's status after the call and, when this call completed
the enrollment, the certificate and vault record it produced.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.api.dependencies import OrgMember, RepoBundle
from app.core.errors import EnrollmentNotFoundError
from app.repos.bundle import Repos
from app.services import completion_triggers
from app.services.completion_evaluator import check_completion
from app.services.enrollment_lifecycle import CompletionOutcome, get_owned_enrollment

router = APIRouter(prefix="/v1/orgs/{org_id}/training", tags=["training"])


class ItemIn(BaseModel):
    content_item_id: UUID


class QuizResultIn(ItemIn):
    score: int = Field(ge=0, le=100)


class AttestationIn(ItemIn):
    typed_name: str = Field(min_length=1, max_length=200)


class FormIn(ItemIn):
    answers: dict[str, Any]


class CompletionOut(BaseModel):
    enrollment_id: UUID
    status: str
    completed_now: bool
    total_required: int | None = None
    completed_required: int | None = None
    missing_required: list[UUID] = []
    certificate_id: UUID | None = None
    certificate_number: str | None = None
    vault_record_id: UUID | None = None
    certificate_pending: bool = False


class QuizResultOut(BaseModel):
    score: int
    passing_score: int
    passed: bool
    attempt_id: UUID | None = None
    completion: CompletionOut | None = None


class CompletionStatusOut(BaseModel):
    enrollment_id: UUID
    status: str
    display_status: str
    started_at: datetime | None
    completed_at: datetime | None
    is_complete: bool
    total_required: int
    completed_required: int
    missing_required: list[UUID]


def _to_out(outcome: CompletionOutcome) -> CompletionOut:
    check = outcome.check
    return CompletionOut(
        enrollment_id=outcome.enrollment_id,
        status=outcome.status.value,
        completed_now=outcome.completed_now,
        total_required=check.total_required if check else None,
        completed_required=check.completed_required if check else None,
        missing_required=list(check.missing_required) if check else [],
        certificate_id=outcome.certificate_id,
        certificate_number=outcome.certificate_number,
        vault_record_id=outcome.vault_record_id,
        certificate_pending=outcome.certificate_pending,
    )


async def _check_org(repos: Repos, enrollment_id: UUID, org_id: UUID) -> None:
    enrollment = await repos.enrollments.get(enrollment_id)
    if enrollment is None or enrollment.org_id != org_id:
        raise EnrollmentNotFoundError(enrollment_id)


@router.post("/{enrollment_id}/complete", response_model=CompletionOut)
async def mark_complete(
    org_id: UUID,
    enrollment_id: UUID,
    body: ItemIn,
    principal: OrgMember,
    repos: RepoBundle,
) -> CompletionOut:
    await _check_org(repos, enrollment_id, org_id)
    outcome = await completion_triggers.mark_complete(
        repos, enrollment_id, body.content_item_id, principal.user_id
    )
    return _to_out(outcome)


@router.post("/{enrollment_id}/quiz-result", response_model=QuizResultOut)
async def submit_quiz_result(
    org_id: UUID,
    enrollment_id: UUID,
    body: QuizResultIn,
    principal: OrgMember,
    repos: RepoBundle,
) -> QuizResultOut:
    await _check_org(repos, enrollment_id, org_id)
    result = await completion_triggers.submit_quiz_result(
        repos, enrollment_id, body.content_item_id, principal.user_id, body.score
    )
    return QuizResultOut(
        score=result.score,
        passing_score=result.passing_score,
        passed=result.passed,
        attempt_id=result.attempt_id,
        completion=_to_out(result.completion) if result.completion else None,
    )


@router.post("/{enrollment_id}/attestation", response_model=CompletionOut)
async def sign_attestation(
    org_id: UUID,
    enrollment_id: UUID,
    body: AttestationIn,
    request: Request,
    principal: OrgMember,
    repos: RepoBundle,
) -> CompletionOut:
    await _check_org(repos, enrollment_id, org_id)
    outcome = await completion_triggers.sign_attestation(
        repos,
        enrollment_id,
        body.content_item_id,
        principal.user_id,
        body.typed_name,
        ip_address=request.client.host if request.client else None,
    )
    return _to_out(outcome)


@router.post("/{enrollment_id}/form", response_model=CompletionOut)
async def submit_form(
    org_id: UUID,
    enrollment_id: UUID,
    body: FormIn,
    principal: OrgMember,
    repos: RepoBundle,
) -> CompletionOut:
    await _check_org(repos, enrollment_id, org_id)
    outcome = await completion_triggers.submit_form(
        repos, enrollment_id, body.content_item_id, principal.user_id, body.answers
    )
    return _to_out(outcome)


@router.get("/{enrollment_id}/completion", response_model=CompletionStatusOut)
async def get_completion(
    org_id: UUID,
    enrollment_id: UUID,
    principal: OrgMember,
    repos: RepoBundle,
) -> CompletionStatusOut:
    await _check_org(repos, enrollment_id, org_id)
    enrollment = await get_owned_enrollment(repos, enrollment_id, principal.user_id)
    check = await check_completion(repos, enrollment_id)
    return CompletionStatusOut(
        enrollment_id=enrollment.id,
        status=enrollment.status.value,
        display_status=enrollment.display_status(datetime.now(UTC)).value,
        started_at=enrollment.started_at,
        completed_at=enrollment.completed_at,
        is_complete=check.is_complete,
        total_required=check.total_required,
        completed_required=check.completed_required,
        missing_required=list(check.missing_required),
    )
