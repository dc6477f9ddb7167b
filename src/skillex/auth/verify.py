"""JWT verification against the auth provider's JWKS."""

from __future__ import annotations

from typing import Any

import jwt

from skillex.auth.jwks import JWKSCache
from skillex.auth.schemas import AuthUser


async def verify_token(
    token: str,
    jwks: JWKSCache,
    *,
    algorithms: list[str],
    audience: str | None = None,
    issuer: str | None = None,
) -> AuthUser:
    """
    Verify a bearer token and return the principal it identifies.

    The unverified header supplies the key id used to look up the signing key;
    signature, expiry and (when configured) audience and issuer are then
    checked. A non-empty ``sub`` claim is required.

    Raises:
        jwt.PyJWTError: If the token is malformed, forged, expired or lacks a subject.
        JWKSError: If the signing key cannot be resolved.
    """
    header = jwt.get_unverified_header(token)
    kid = header.get("kid")
    if not kid:
        msg = "JWT header missing kid (key ID)"
        raise jwt.InvalidTokenError(msg)

    signing_key = await jwks.get_signing_key(kid)
    if header.get("alg") != signing_key.algorithm_name:
        msg = "JWT algorithm does not match signing key"
        raise jwt.InvalidTokenError(msg)

    options: dict[str, Any] = {"require": ["sub"]}
    if audience is None:
        options["verify_aud"] = False

    payload: dict[str, Any] = jwt.decode(
        token,
        signing_key.key,
        algorithms=algorithms,
        audience=audience,
        issuer=issuer,
        options=options,
    )

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        msg = "JWT missing required claims"
        raise jwt.InvalidTokenError(msg)

    email = payload.get("email")
    role = payload.get("role")
    return AuthUser(
        id=sub,
        email=email if isinstance(email, str) else None,
        role=role if isinstance(role, str) else None,
    )
