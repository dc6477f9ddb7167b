"""Availability persistence: fetch with default, wholesale upsert."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from skillex.availability.week_mask import empty_week_mask, validate_week_mask
from skillex.db.models import Availability

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_week_mask(db: AsyncSession, user_id: str) -> list[bool]:
    """The stored mask, or an all-busy week when the user has never set one."""
    result = await db.execute(select(Availability.week_mask).where(Availability.user_id == user_id))
    mask = result.scalar_one_or_none()
    if mask is None:
        return empty_week_mask()
    return list(mask)


async def upsert_week_mask(db: AsyncSession, user_id: str, week_mask: list[bool]) -> list[bool]:
    """
    Replace the user's mask in a single INSERT .. ON CONFLICT statement.

    Writing the same mask twice leaves the same stored state.

    Raises:
        ValueError: If the mask is not exactly 168 booleans.
    """
    mask = validate_week_mask(week_mask)
    insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert

    stmt = insert(Availability).values(
        user_id=user_id,
        week_mask=mask,
        updated_at=datetime.now(timezone.utc),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Availability.user_id],
        set_={
            "week_mask": stmt.excluded.week_mask,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await db.execute(stmt)

    logger.info("availability_updated", user_id=user_id, free_slots=sum(mask))
    return await get_week_mask(db, user_id)
