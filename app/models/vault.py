from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class CompletionVaultRecord:
    """Hash-stamped proof of completion, one per enrollment.

    ``assignment_title`` is a snapshot taken at recording time, not a
    reference, so the record stays meaningful after the source content
    is renamed or deleted.  ``verification_hash`` must always be
    reproducible from the seven hashed fields (see app.services.hashing).
    """

    id: UUID
    enrollment_id: UUID
    user_id: UUID
    org_id: UUID
    certificate_id: UUID | None
    certificate_number: str | None
    assignment_title: str
    completed_at: datetime
    verification_hash: str
    created_at: datetime
    updated_at: datetime
    hash_version: int = 1
