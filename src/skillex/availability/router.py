"""Availability router — the caller's weekly mask and public summaries."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.availability.schemas import (
    AvailabilityResponse,
    AvailabilityUpdateRequest,
    DayAvailabilityResponse,
    PublicAvailabilityResponse,
    TimeBlockResponse,
)
from skillex.availability.service import get_week_mask, upsert_week_mask
from skillex.availability.week_mask import daily_time_blocks
from skillex.database import get_session
from skillex.errors import ApiError
from skillex.users.service import get_user_by_handle, get_user_by_id

logger = structlog.get_logger()

router = APIRouter(prefix="/v1", tags=["Availability"])


@router.get("/availability", response_model=AvailabilityResponse)
async def get_my_availability(
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    """Get the caller's week mask (all false if never set)."""
    try:
        mask = await get_week_mask(db, auth.id)
    except SQLAlchemyError as e:
        logger.error("availability_fetch_failed", user_id=auth.id, error=str(e))
        raise ApiError(500, "An error occurred while fetching availability") from e
    return AvailabilityResponse(user_id=auth.id, week_mask=mask)


@router.put("/availability", response_model=AvailabilityResponse)
async def put_my_availability(
    body: AvailabilityUpdateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    """Replace the caller's week mask."""
    if await get_user_by_id(db, auth.id) is None:
        raise ApiError(404, "User not found")

    try:
        mask = await upsert_week_mask(db, auth.id, body.week_mask)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("availability_update_failed", user_id=auth.id, error=str(e))
        raise ApiError(500, "An error occurred while updating availability") from e
    return AvailabilityResponse(user_id=auth.id, week_mask=mask)


@router.get("/users/{handle}/availability", response_model=PublicAvailabilityResponse)
async def get_user_availability(
    handle: str,
    db: AsyncSession = Depends(get_session),
) -> PublicAvailabilityResponse:
    """Another user's week mask with a per-day summary of free blocks."""
    user = await get_user_by_handle(db, handle)
    if user is None:
        raise ApiError(404, "User not found")

    mask = await get_week_mask(db, user.id)
    days = [
        DayAvailabilityResponse(
            day=d.day,
            day_name=d.day_name,
            blocks=[TimeBlockResponse(start=b.start, end=b.end) for b in d.blocks],
            total_slots=d.total_slots,
        )
        for d in daily_time_blocks(mask)
    ]
    return PublicAvailabilityResponse(user_id=user.id, week_mask=mask, days=days)
