"""Bearer token validation (ES256).

Tokens are minted by the identity service and carry the caller's org
context: ``sub`` (user id), ``org_id``, ``org_role`` and optionally the
user's display ``name``.  This service only verifies them.
``create_access_token`` exists for local development and tests.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

# Dev/test: ephemeral key pair generated on import.
# TODO: load the identity service's public key from JWT_PUBLIC_KEY_PEM for prod.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "auth-service"
AUDIENCE = "completion-vault"
ACCESS_TOKEN_TTL_MIN = 15

REQUIRED_CLAIMS = ["sub", "org_id", "exp", "iat", "jti"]


def create_access_token(
    *,
    sub: str,
    org_id: str,
    org_role: str = "learner",
    name: str | None = None,
    ttl: timedelta = timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + ttl,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "org_id": org_id,
        "org_role": org_role,
    }
    if name is not None:
        payload["name"] = name
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, issuer, audience and expiry; return the claims.

    The algorithm is pinned to ES256.  Raises jwt.ExpiredSignatureError
    or jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": REQUIRED_CLAIMS},
    )
