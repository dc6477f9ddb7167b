"""Skill endpoints — what the caller teaches and wants to learn."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_profile, get_current_user
from skillex.auth.schemas import AuthUser
from skillex.database import get_session
from skillex.db.models import Skill, User
from skillex.errors import ApiError
from skillex.schemas import SuccessResponse
from skillex.skills.schemas import SkillCreateRequest, SkillListResponse, SkillResponse, SkillUpdateRequest
from skillex.skills.service import create_skill, delete_skill, get_skill, list_user_skills, update_skill

router = APIRouter(prefix="/v1/skills", tags=["Skills"])


async def _owned_skill(db: AsyncSession, skill_id: str, user_id: str) -> Skill:
    skill = await get_skill(db, skill_id)
    if skill is None:
        raise ApiError(404, "Skill not found")
    if skill.user_id != user_id:
        raise ApiError(403, "You can only modify your own skills")
    return skill


@router.get("/me", response_model=SkillListResponse)
async def list_my_skills(
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SkillListResponse:
    skills = await list_user_skills(db, auth.id)
    return SkillListResponse(skills=[SkillResponse.model_validate(s) for s in skills])


@router.post("", response_model=SkillResponse, status_code=201)
async def add_skill(
    body: SkillCreateRequest,
    user: User = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> SkillResponse:
    skill = await create_skill(db, user.id, **body.model_dump())
    await db.commit()
    return SkillResponse.model_validate(skill)


@router.patch("/{skill_id}", response_model=SkillResponse)
async def edit_skill(
    skill_id: str,
    body: SkillUpdateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SkillResponse:
    skill = await _owned_skill(db, skill_id, auth.id)
    skill = await update_skill(db, skill, body.model_dump(exclude_unset=True))
    await db.commit()
    return SkillResponse.model_validate(skill)


@router.delete("/{skill_id}", response_model=SuccessResponse)
async def remove_skill(
    skill_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    skill = await _owned_skill(db, skill_id, auth.id)
    await delete_skill(db, skill)
    await db.commit()
    return SuccessResponse()
