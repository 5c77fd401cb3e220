"""The set of repositories one unit of work operates on.

Services take a ``Repos`` instead of separate repository arguments.  In
memory mode the same singleton bundle is shared by every request; with
a database each request (or worker task) gets a bundle bound to its own
session.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.repos.assignment_repo import AssignmentRepo, InMemoryAssignmentRepo
from app.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from app.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from app.repos.event_log_repo import EventLogRepo, InMemoryEventLogRepo
from app.repos.evidence_repo import EvidenceRepo, InMemoryEvidenceRepo
from app.repos.pg_assignment_repo import PgAssignmentRepo
from app.repos.pg_certificate_repo import PgCertificateRepo
from app.repos.pg_enrollment_repo import PgEnrollmentRepo, PgProgressRepo
from app.repos.pg_evidence_repo import PgEvidenceRepo
from app.repos.pg_vault_repo import PgEventLogRepo, PgVaultRepo
from app.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from app.repos.vault_repo import InMemoryVaultRepo, VaultRepo


@dataclass(slots=True)
class Repos:
    enrollments: EnrollmentRepo
    progress: ProgressRepo
    assignments: AssignmentRepo
    certificates: CertificateRepo
    vault: VaultRepo
    events: EventLogRepo
    evidence: EvidenceRepo
    session: AsyncSession | None = None

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """Scope a step whose failure must not discard earlier writes.

        With a session this is a SAVEPOINT: an exception inside rolls back
        only the step and leaves the request transaction usable.  In
        memory there is nothing to roll back.
        """
        if self.session is None:
            yield
            return
        async with self.session.begin_nested():
            yield


def in_memory_repos() -> Repos:
    return Repos(
        enrollments=InMemoryEnrollmentRepo(),
        progress=InMemoryProgressRepo(),
        assignments=InMemoryAssignmentRepo(),
        certificates=InMemoryCertificateRepo(),
        vault=InMemoryVaultRepo(),
        events=InMemoryEventLogRepo(),
        evidence=InMemoryEvidenceRepo(),
    )


def pg_repos(session: AsyncSession) -> Repos:
    return Repos(
        enrollments=PgEnrollmentRepo(session),
        progress=PgProgressRepo(session),
        assignments=PgAssignmentRepo(session),
        certificates=PgCertificateRepo(session),
        vault=PgVaultRepo(session),
        events=PgEventLogRepo(session),
        evidence=PgEvidenceRepo(session),
        session=session,
    )


# Process-wide store used when DATABASE_URL is unset.
memory_repos = in_memory_repos()
