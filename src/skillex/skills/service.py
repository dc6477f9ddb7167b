"""Skill CRUD."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select

from skillex.db.models import Skill

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

UPDATABLE_FIELDS = frozenset({"kind", "tags", "level", "notes"})

_NOT_NULL_FIELDS = frozenset({"kind", "tags"})


async def list_user_skills(db: AsyncSession, user_id: str) -> list[Skill]:
    result = await db.execute(select(Skill).where(Skill.user_id == user_id).order_by(Skill.created_at.asc()))
    return list(result.scalars().all())


async def get_skill(db: AsyncSession, skill_id: str) -> Skill | None:
    result = await db.execute(select(Skill).where(Skill.id == skill_id))
    return result.scalar_one_or_none()


async def create_skill(db: AsyncSession, user_id: str, **fields: Any) -> Skill:
    skill = Skill(user_id=user_id, created_at=datetime.now(timezone.utc), **fields)
    db.add(skill)
    await db.flush()
    logger.info("skill_created", skill_id=skill.id, kind=skill.kind)
    return skill


async def update_skill(db: AsyncSession, skill: Skill, changes: dict[str, Any]) -> Skill:
    for field, value in changes.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if value is None and field in _NOT_NULL_FIELDS:
            continue
        setattr(skill, field, value)
    await db.flush()
    return skill


async def delete_skill(db: AsyncSession, skill: Skill) -> None:
    await db.delete(skill)
    await db.flush()
    logger.info("skill_deleted", skill_id=skill.id)
