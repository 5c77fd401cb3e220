from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.db import engine
from app.models.principal import Principal
from app.repos import bundle
from app.repos.bundle import Repos, pg_repos
from app.services import token_service

logger = logging.getLogger(__name__)

# Tokens are issued by the identity service; tokenUrl only feeds the docs UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")


async def get_repos() -> AsyncGenerator[Repos, None]:
    """One repository bundle per request.

    With a database this is a session-bound bundle committed when the
    handler returns and rolled back when it raises.
    """
    if engine.async_session_factory is None:
        yield bundle.memory_repos
        return
    async with engine.session_scope() as session:
        yield pg_repos(session)


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Validate the bearer token and build the acting Principal."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    try:
        principal = Principal(
            user_id=UUID(claims["sub"]),
            org_id=UUID(claims["org_id"]),
            org_role=claims.get("org_role", "learner"),
            name=str(claims.get("name") or ""),
        )
    except (TypeError, ValueError):
        logger.warning("Token with malformed sub/org_id rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    logger.debug(
        "Token validated for user=%s org=%s role=%s",
        principal.user_id,
        principal.org_id,
        principal.org_role,
    )
    return principal


# ---------------------------------------------------------------------------
# Org-scoped access guards
# ---------------------------------------------------------------------------


def require_org_member(
    org_id: UUID,
    principal: Annotated[Principal, Depends(require_user)],
) -> Principal:
    """The token's org must be the org in the URL path."""
    if principal.org_id != org_id:
        logger.warning(
            "Access denied: user=%s token org=%s path org=%s",
            principal.user_id,
            principal.org_id,
            org_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of this organization",
        )
    return principal


def require_org_admin(
    principal: Annotated[Principal, Depends(require_org_member)],
) -> Principal:
    if not principal.is_org_admin():
        logger.warning(
            "Access denied: user=%s org_role=%s org=%s requires admin",
            principal.user_id,
            principal.org_role,
            principal.org_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient org permissions",
        )
    return principal


RepoBundle = Annotated[Repos, Depends(get_repos)]
OrgMember = Annotated[Principal, Depends(require_org_member)]
OrgAdmin = Annotated[Principal, Depends(require_org_admin)]
