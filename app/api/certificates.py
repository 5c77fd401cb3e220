"""Certificate download inputs: filled HTML template and metadata JSON.

The holder's name comes from the bearer token's ``name`` claim; user
profiles live in the identity service.  An org admin downloading someone
else's certificate has no token for the holder and may pass ``?name=``.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, JSONResponse

from app.api.dependencies import OrgMember, RepoBundle
from app.core.errors import CertificateNotFoundError
from app.models.certificate import CertificateIssued
from app.models.principal import Principal
from app.repos.bundle import Repos
from app.services.certificate_documents import (
    CertificateData,
    build_download_metadata,
    certificate_file_name,
    metadata_file_name,
    render_certificate_html,
)
from app.services.vault_recorder import snapshot_title

router = APIRouter(prefix="/v1/orgs/{org_id}/certificates", tags=["certificates"])


async def _visible_certificate(
    repos: Repos, certificate_id: UUID, org_id: UUID, principal: Principal
) -> CertificateIssued:
    """Owners see their own certificates, org admins see all in the org.

    Anything else is reported as not found.
    """
    certificate = await repos.certificates.get(certificate_id)
    if (
        certificate is None
        or certificate.org_id != org_id
        or (certificate.user_id != principal.user_id and not principal.is_org_admin())
    ):
        raise CertificateNotFoundError(certificate_id)
    return certificate


def _holder_name(certificate: CertificateIssued, principal: Principal, name: str) -> str:
    if certificate.user_id == principal.user_id:
        return principal.name
    # Only admins reach another user's certificate.
    return name


async def _course_name(repos: Repos, certificate: CertificateIssued) -> str:
    vault = await repos.vault.get_by_enrollment(certificate.enrollment_id)
    if vault is not None:
        return vault.assignment_title
    enrollment = await repos.enrollments.get(certificate.enrollment_id)
    if enrollment is not None:
        assignment = await repos.assignments.get(enrollment.assignment_id)
        if assignment is not None:
            return await snapshot_title(repos, assignment)
    return ""


@router.get("/{certificate_id}/metadata")
async def certificate_metadata(
    org_id: UUID,
    certificate_id: UUID,
    principal: OrgMember,
    repos: RepoBundle,
    name: str = "",
) -> JSONResponse:
    certificate = await _visible_certificate(repos, certificate_id, org_id, principal)
    holder = _holder_name(certificate, principal, name)
    vault = await repos.vault.get_by_certificate(certificate.id)
    file_name = certificate_file_name(holder, certificate.issued_at)
    meta = build_download_metadata(
        name=holder,
        completion_date=certificate.issued_at,
        certificate_number=certificate.certificate_number,
        file_name=file_name,
        course_name=await _course_name(repos, certificate),
        verification_hash=vault.verification_hash if vault else None,
        role="Admin" if principal.is_org_admin() else "User",
    )
    return JSONResponse(
        meta,
        headers={
            "Content-Disposition": f'attachment; filename="{metadata_file_name(file_name)}"'
        },
    )


@router.get("/{certificate_id}/html", response_class=HTMLResponse)
async def certificate_html(
    org_id: UUID,
    certificate_id: UUID,
    principal: OrgMember,
    repos: RepoBundle,
    name: str = "",
) -> HTMLResponse:
    certificate = await _visible_certificate(repos, certificate_id, org_id, principal)
    template = await repos.certificates.get_template(certificate.template_id)
    if template is None:
        raise CertificateNotFoundError(certificate_id)
    vault = await repos.vault.get_by_certificate(certificate.id)
    body = render_certificate_html(
        template.html_template,
        CertificateData(
            user_name=_holder_name(certificate, principal, name),
            certificate_number=certificate.certificate_number,
            issued_at=certificate.issued_at,
            course_name=await _course_name(repos, certificate),
            verification_hash=vault.verification_hash if vault else None,
        ),
    )
    return HTMLResponse(body, headers={"Cache-Control": "no-store"})
