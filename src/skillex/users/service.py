"""User profile business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select

from skillex.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Fields a user may change on their own profile.
UPDATABLE_FIELDS = frozenset({
    "full_name",
    "bio",
    "avatar_url",
    "timezone",
    "languages",
    "location_city",
    "location_country",
})

_NOT_NULL_FIELDS = frozenset({"full_name", "timezone", "languages"})


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Get a user by id (the auth subject)."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_handle(db: AsyncSession, handle: str) -> User | None:
    """Get a user by public handle."""
    result = await db.execute(select(User).where(User.handle == handle))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, user_id: str, **fields: Any) -> User:
    """
    Create the profile for an authenticated subject.

    Raises:
        ValueError: If the profile already exists or the handle is taken.
    """
    if await get_user_by_id(db, user_id) is not None:
        msg = "Profile already exists"
        raise ValueError(msg)
    if await get_user_by_handle(db, fields["handle"]) is not None:
        msg = "Handle already taken"
        raise ValueError(msg)

    user = User(id=user_id, **fields)
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user_id, handle=user.handle)
    return user


async def update_user(db: AsyncSession, user: User, changes: dict[str, Any]) -> User:
    """Apply a partial profile update. Unknown fields are ignored."""
    for field, value in changes.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if value is None and field in _NOT_NULL_FIELDS:
            continue
        setattr(user, field, value)
    await db.flush()
    logger.info("user_updated", user_id=user.id, fields=sorted(changes))
    return user
