"""Completion vault: admin listing and auditor verification.

``POST /v1/vault/verify`` is public.  It takes the seven hashed fields
and a hash and says whether they match, without touching stored data.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.api.dependencies import OrgAdmin, RepoBundle
from app.core.errors import EnrollmentNotFoundError
from app.models.vault import CompletionVaultRecord
from app.services.hashing import HASH_VERSION, CompletionFields, verification_hash
from app.services.verification import verify_fields, verify_record

router = APIRouter(tags=["vault"])


class VaultRecordOut(BaseModel):
    id: UUID
    enrollment_id: UUID
    user_id: UUID
    certificate_id: UUID | None
    certificate_number: str | None
    assignment_title: str
    completed_at: datetime
    verification_hash: str
    hash_version: int


class VerifyRecordOut(BaseModel):
    enrollment_id: UUID
    valid: bool
    expected_hash: str
    stored_hash: str


class VerifyFieldsIn(BaseModel):
    enrollment_id: str
    user_id: str
    org_id: str
    certificate_id: str | None = None
    certificate_number: str | None = None
    assignment_title: str
    completed_at: datetime
    verification_hash: str = Field(min_length=64, max_length=64)
    hash_version: int = HASH_VERSION


class VerifyFieldsOut(BaseModel):
    valid: bool
    computed_hash: str


def _record_out(record: CompletionVaultRecord) -> VaultRecordOut:
    return VaultRecordOut(
        id=record.id,
        enrollment_id=record.enrollment_id,
        user_id=record.user_id,
        certificate_id=record.certificate_id,
        certificate_number=record.certificate_number,
        assignment_title=record.assignment_title,
        completed_at=record.completed_at,
        verification_hash=record.verification_hash,
        hash_version=record.hash_version,
    )


@router.get("/v1/orgs/{org_id}/vault", response_model=list[VaultRecordOut])
async def list_vault_records(
    org_id: UUID,
    principal: OrgAdmin,
    repos: RepoBundle,
) -> list[VaultRecordOut]:
    return [_record_out(r) for r in await repos.vault.list_by_org(org_id)]


@router.get(
    "/v1/orgs/{org_id}/vault/{enrollment_id}/verify",
    response_model=VerifyRecordOut,
)
async def verify_stored_record(
    org_id: UUID,
    enrollment_id: UUID,
    principal: OrgAdmin,
    repos: RepoBundle,
) -> VerifyRecordOut:
    record = await repos.vault.get_by_enrollment(enrollment_id)
    if record is None or record.org_id != org_id:
        raise EnrollmentNotFoundError(enrollment_id)
    result = verify_record(record)
    return VerifyRecordOut(
        enrollment_id=enrollment_id,
        valid=result.valid,
        expected_hash=result.expected_hash,
        stored_hash=result.stored_hash,
    )


@router.post("/v1/vault/verify", response_model=VerifyFieldsOut)
async def verify_supplied_fields(body: VerifyFieldsIn) -> VerifyFieldsOut:
    fields = CompletionFields(
        enrollment_id=body.enrollment_id,
        user_id=body.user_id,
        org_id=body.org_id,
        certificate_id=body.certificate_id,
        certificate_number=body.certificate_number,
        assignment_title=body.assignment_title,
        completed_at=body.completed_at,
    )
    return VerifyFieldsOut(
        valid=verify_fields(fields, body.verification_hash, body.hash_version),
        computed_hash=verification_hash(fields, body.hash_version),
    )
