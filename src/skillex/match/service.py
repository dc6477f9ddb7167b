"""Load match profiles from the database."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from skillex.availability.week_mask import empty_week_mask
from skillex.db.models import Skill, User
from skillex.match.scoring import MatchProfile, normalize_tags

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession


def _profile(user: User) -> MatchProfile:
    teach: list[str] = []
    learn: list[str] = []
    for skill in user.skills:
        (teach if skill.kind == "teach" else learn).extend(skill.tags)
    mask = list(user.availability.week_mask) if user.availability is not None else empty_week_mask()
    return MatchProfile(
        user_id=user.id,
        teach_tags=normalize_tags(teach),
        learn_tags=normalize_tags(learn),
        week_mask=mask,
    )


def _with_profile_data() -> Select[tuple[User]]:
    return (
        select(User)
        .options(selectinload(User.skills), selectinload(User.availability))
        .execution_options(populate_existing=True)
    )


async def load_match_profiles(
    db: AsyncSession,
    user_id: str,
) -> tuple[MatchProfile | None, list[MatchProfile], dict[str, User]]:
    """
    ``(caller, candidates, users_by_id)``; caller is None without a profile.

    Only users holding a skill of the complementary kind are loaded: teachers
    when the caller wants to learn something, learners when the caller teaches.
    """
    result = await db.execute(_with_profile_data().where(User.id == user_id))
    caller = result.scalar_one_or_none()
    if caller is None:
        return None, [], {}

    me = _profile(caller)
    kinds: list[str] = []
    if me.learn_tags:
        kinds.append("teach")
    if me.teach_tags:
        kinds.append("learn")
    if not kinds:
        return me, [], {caller.id: caller}

    complementary = select(Skill.user_id).where(Skill.kind.in_(kinds))
    result = await db.execute(_with_profile_data().where(User.id != user_id, User.id.in_(complementary)))
    users = list(result.scalars().all())
    by_id = {u.id: u for u in users}
    by_id[caller.id] = caller
    return me, [_profile(u) for u in users], by_id
