from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

ORG_ADMIN_ROLES = frozenset({"owner", "admin"})


@dataclass(frozen=True, slots=True)
class Principal:
    """Acting identity, built from a validated bearer token.

    The identity service that mints tokens resolves org membership, so
    the org context arrives as claims:
        user_id:  ``sub``
        org_id:   ``org_id`` (active organization for the session)
        org_role: ``org_role`` (owner|admin|trainer|learner)
        name:     ``name`` (display name; printed on certificates)
    """

    user_id: UUID
    org_id: UUID
    org_role: str = "learner"
    name: str = ""

    def has_any_org_role(self, roles: frozenset[str] | set[str]) -> bool:
        return self.org_role in roles

    def is_org_admin(self) -> bool:
        return self.has_any_org_role(ORG_ADMIN_ROLES)
