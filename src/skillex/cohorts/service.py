"""Cohort, membership and session business logic."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from skillex.db.models import Cohort, CohortMember, CohortSession
from skillex.notifications.service import create_notification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset({"title", "size", "start_date", "weeks", "visibility", "city"})

_NOT_NULL_FIELDS = frozenset({"title", "size", "start_date", "weeks", "visibility"})


# ---------------------------------------------------------------------------
# Cohorts
# ---------------------------------------------------------------------------


async def get_cohort(db: AsyncSession, cohort_id: str, *, with_members: bool = False) -> Cohort | None:
    """Load a cohort, optionally with its members and their profiles."""
    query = select(Cohort).where(Cohort.id == cohort_id)
    if with_members:
        query = query.options(
            selectinload(Cohort.members).selectinload(CohortMember.user),
        ).execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def list_user_cohorts(db: AsyncSession, user_id: str) -> list[Cohort]:
    """Cohorts the user belongs to, newest first."""
    result = await db.execute(
        select(Cohort)
        .join(CohortMember, CohortMember.cohort_id == Cohort.id)
        .where(CohortMember.user_id == user_id)
        .order_by(Cohort.created_at.desc())
    )
    return list(result.scalars().all())


async def create_cohort(db: AsyncSession, owner_id: str, **fields: Any) -> Cohort:
    """Create a cohort; the owner joins as its facilitator."""
    cohort = Cohort(owner_id=owner_id, created_at=datetime.now(timezone.utc), **fields)
    db.add(cohort)
    await db.flush()

    db.add(CohortMember(cohort_id=cohort.id, user_id=owner_id, role="facilitator"))
    await db.flush()

    logger.info("cohort_created", cohort_id=cohort.id, owner_id=owner_id)
    return cohort


async def update_cohort(db: AsyncSession, cohort: Cohort, changes: dict[str, Any]) -> Cohort:
    """
    Apply a partial update to a cohort's settings.

    Raises:
        ValueError: If ``size`` would drop below the current member count, or
            ``weeks`` would no longer cover an already scheduled session.
    """
    new_size = changes.get("size")
    if new_size is not None:
        member_count = await count_members(db, cohort.id)
        if new_size < member_count:
            msg = f"Cohort size cannot be below its {member_count} current members"
            raise ValueError(msg)

    new_weeks = changes.get("weeks")
    if new_weeks is not None:
        result = await db.execute(
            select(func.max(CohortSession.week_index)).where(CohortSession.cohort_id == cohort.id)
        )
        last_week = result.scalar_one_or_none()
        if last_week is not None and new_weeks <= last_week:
            msg = f"Cohort weeks must be greater than {last_week}, the latest scheduled weekIndex"
            raise ValueError(msg)

    for field, value in changes.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if value is None and field in _NOT_NULL_FIELDS:
            continue
        setattr(cohort, field, value)
    await db.flush()
    logger.info("cohort_updated", cohort_id=cohort.id, fields=sorted(changes))
    return cohort


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


async def get_member(db: AsyncSession, cohort_id: str, user_id: str) -> CohortMember | None:
    result = await db.execute(
        select(CohortMember).where(
            CohortMember.cohort_id == cohort_id,
            CohortMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def is_member(db: AsyncSession, cohort_id: str, user_id: str) -> bool:
    return await get_member(db, cohort_id, user_id) is not None


async def count_members(db: AsyncSession, cohort_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(CohortMember).where(CohortMember.cohort_id == cohort_id)
    )
    return result.scalar_one()


async def get_member_ids(db: AsyncSession, cohort_id: str) -> set[str]:
    result = await db.execute(select(CohortMember.user_id).where(CohortMember.cohort_id == cohort_id))
    return set(result.scalars().all())


async def add_member(db: AsyncSession, cohort: Cohort, user_id: str, role: str) -> CohortMember:
    """
    Add a user to a cohort and send them an invitation notification.

    Raises:
        ValueError: If the cohort is already at capacity.
    """
    if await count_members(db, cohort.id) >= cohort.size:
        msg = "Cohort is full"
        raise ValueError(msg)

    member = CohortMember(
        cohort_id=cohort.id,
        user_id=user_id,
        role=role,
        joined_at=datetime.now(timezone.utc),
    )
    db.add(member)
    await db.flush()

    await create_notification(
        db,
        user_id,
        "cohort_invitation",
        {"cohortId": cohort.id, "cohortTitle": cohort.title, "role": role},
    )
    logger.info("cohort_member_added", cohort_id=cohort.id, user_id=user_id, role=role)
    return member


async def remove_member(db: AsyncSession, member: CohortMember) -> None:
    await db.delete(member)
    await db.flush()
    logger.info("cohort_member_removed", cohort_id=member.cohort_id, user_id=member.user_id)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


async def list_sessions(db: AsyncSession, cohort_id: str) -> list[CohortSession]:
    """Sessions in chronological order."""
    result = await db.execute(
        select(CohortSession)
        .where(CohortSession.cohort_id == cohort_id)
        .order_by(CohortSession.starts_at.asc())
    )
    return list(result.scalars().all())


async def create_session(db: AsyncSession, cohort: Cohort, **fields: Any) -> CohortSession:
    """
    Schedule a session for one of the cohort's weeks.

    Raises:
        ValueError: If ``week_index`` is outside the cohort's duration.
    """
    week_index = fields["week_index"]
    if week_index >= cohort.weeks:
        msg = f"weekIndex must be less than the cohort's {cohort.weeks} weeks"
        raise ValueError(msg)

    session = CohortSession(cohort_id=cohort.id, **fields)
    db.add(session)
    await db.flush()
    logger.info("session_created", cohort_id=cohort.id, session_id=session.id, week_index=week_index)
    return session
