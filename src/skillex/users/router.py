"""User profile router — /v1/me and /v1/users/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_profile, get_current_user
from skillex.auth.schemas import AuthUser
from skillex.database import get_session
from skillex.db.models import User
from skillex.errors import ApiError
from skillex.users.schemas import UserCreateRequest, UserResponse, UserUpdateRequest
from skillex.users.service import create_user, get_user_by_handle, get_user_by_id, update_user

router = APIRouter(prefix="/v1", tags=["Users"])


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_profile(
    body: UserCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Create the caller's profile (onboarding)."""
    try:
        user = await create_user(db, auth.id, **body.model_dump())
    except ValueError as e:
        raise ApiError(409, str(e)) from e
    await db.commit()
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def get_my_profile(
    user: User = Depends(get_current_profile),
) -> UserResponse:
    """Get the caller's own profile."""
    return UserResponse.model_validate(user)


@router.get("/users/{handle}", response_model=UserResponse)
async def get_profile_by_handle(
    handle: str,
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Get a public profile by handle."""
    user = await get_user_by_handle(db, handle)
    if user is None:
        raise ApiError(404, "User not found")
    return UserResponse.model_validate(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: str,
    body: UserUpdateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update a profile (self only)."""
    if auth.id != user_id:
        raise ApiError(403, "You can only update your own profile")

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise ApiError(404, "User not found")

    user = await update_user(db, user, body.model_dump(exclude_unset=True))
    await db.commit()
    return UserResponse.model_validate(user)
