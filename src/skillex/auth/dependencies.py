"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.jwks import JWKSCache, JWKSError
from skillex.auth.schemas import AuthUser
from skillex.auth.verify import verify_token
from skillex.config import get_settings
from skillex.database import get_session
from skillex.db.models import User
from skillex.errors import ApiError, unauthorized
from skillex.users.service import get_user_by_id

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)


def get_jwks_cache(request: Request) -> JWKSCache:
    """The process-wide key cache, created in ``create_app``."""
    return request.app.state.jwks_cache


async def _authenticate(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    jwks: JWKSCache,
) -> AuthUser:
    if credentials is None or not credentials.credentials:
        logger.warning("auth_failed", reason="Missing or malformed Authorization header",
                       path=request.url.path, method=request.method)
        raise unauthorized()

    settings = get_settings()
    try:
        user = await verify_token(
            credentials.credentials,
            jwks,
            algorithms=settings.jwt_algorithms,
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except (jwt.PyJWTError, JWKSError) as e:
        logger.warning("auth_failed", reason=str(e), path=request.url.path, method=request.method)
        raise unauthorized() from e

    request.state.user = user
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    jwks: JWKSCache = Depends(get_jwks_cache),
) -> AuthUser:
    """
    Verify the bearer token and return the authenticated principal.

    Every failure yields the same 401 response; the reason is only logged.
    """
    return await _authenticate(request, credentials, jwks)


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    jwks: JWKSCache = Depends(get_jwks_cache),
) -> AuthUser | None:
    """Anonymous when no Authorization header is sent; a bad token is still a 401."""
    if "authorization" not in request.headers:
        return None
    return await _authenticate(request, credentials, jwks)


async def get_current_profile(
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> User:
    """The caller's stored profile. 404 until the profile has been created."""
    user = await get_user_by_id(db, auth.id)
    if user is None:
        raise ApiError(404, "User not found")
    return user
