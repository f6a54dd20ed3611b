"""Bearer token signing and verification (ES256).

The web front end signs users in with Google and exchanges the session
for one of these tokens.  Claims carry what the workflows need without a
user lookup: ``sub`` (user id), ``email``, ``name`` and ``roles``.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

ALGORITHM = "ES256"
ISSUER = "meetly"
AUDIENCE = "meetly-api"
ACCESS_TOKEN_TTL_MIN = 60

# Ephemeral key per process unless SIGNING_KEY_PEM is configured.
_private_key: ec.EllipticCurvePrivateKey = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()


def load_signing_key(pem: bytes) -> None:
    """Replace the signing key with a PEM-encoded EC P-256 private key."""
    global _private_key, _public_key
    key = serialization.load_pem_private_key(pem, password=None)
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ValueError("signing key must be an EC private key")
    _private_key = key
    _public_key = key.public_key()


def create_access_token(
    *,
    sub: str,
    email: str,
    name: str = "",
    roles: list[str] | None = None,
) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "email": email,
        "name": name,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles or ["user"],
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256.  Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "email", "exp", "iat", "jti"]},
    )
