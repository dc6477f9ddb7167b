"""Cohort access checks shared by the cohort-scoped routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from skillex.cohorts.service import get_cohort, is_member
from skillex.errors import ApiError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from skillex.auth.schemas import AuthUser
    from skillex.db.models import Cohort


async def visible_cohort(
    db: AsyncSession,
    cohort_id: str,
    viewer: AuthUser | None,
    *,
    with_members: bool = False,
) -> Cohort:
    """The cohort if the viewer may see it. Private cohorts are 404 to outsiders."""
    cohort = await get_cohort(db, cohort_id, with_members=with_members)
    if cohort is None:
        raise ApiError(404, "Cohort not found")
    if cohort.visibility == "public":
        return cohort
    if viewer is None or not await is_member(db, cohort_id, viewer.id):
        raise ApiError(404, "Cohort not found")
    return cohort


async def member_cohort(db: AsyncSession, cohort_id: str, user_id: str) -> Cohort:
    """The cohort, provided ``user_id`` belongs to it."""
    cohort = await get_cohort(db, cohort_id)
    if cohort is None:
        raise ApiError(404, "Cohort not found")
    if not await is_member(db, cohort_id, user_id):
        raise ApiError(403, "You are not a member of this cohort")
    return cohort


async def owned_cohort(db: AsyncSession, cohort_id: str, user_id: str) -> Cohort:
    cohort = await get_cohort(db, cohort_id)
    if cohort is None:
        raise ApiError(404, "Cohort not found")
    if cohort.owner_id != user_id:
        raise ApiError(403, "Only the cohort owner can do this")
    return cohort
