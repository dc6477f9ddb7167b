"""Skill endorsements: one user vouching for another's tag."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from pydantic import Field, field_validator
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.database import get_session
from skillex.db.models import Endorsement
from skillex.errors import ApiError
from skillex.notifications.service import create_notification
from skillex.schemas import ApiModel
from skillex.users.service import get_user_by_id

logger = structlog.get_logger()

router = APIRouter(prefix="/v1", tags=["Endorsements"])


class EndorsementCreateRequest(ApiModel):
    endorsee_id: str
    tag: str = Field(..., min_length=1, max_length=50)

    @field_validator("tag")
    @classmethod
    def normalize_tag(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "tag must not be blank"
            raise ValueError(msg)
        return v


class EndorsementResponse(ApiModel):
    id: str
    endorser_id: str
    endorsee_id: str
    tag: str
    created_at: datetime


class EndorsementListResponse(ApiModel):
    endorsements: list[EndorsementResponse]


@router.post("/endorsements", response_model=EndorsementResponse, status_code=201)
async def create_endorsement(
    body: EndorsementCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> EndorsementResponse:
    if body.endorsee_id == auth.id:
        raise ApiError(400, "You cannot endorse yourself")
    if await get_user_by_id(db, body.endorsee_id) is None:
        raise ApiError(404, "User not found")

    existing = await db.execute(
        select(Endorsement.id).where(
            Endorsement.endorser_id == auth.id,
            Endorsement.endorsee_id == body.endorsee_id,
            func.lower(Endorsement.tag) == body.tag.lower(),
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ApiError(409, "You have already endorsed this user for this skill")

    endorsement = Endorsement(
        endorser_id=auth.id,
        endorsee_id=body.endorsee_id,
        tag=body.tag,
        created_at=datetime.now(timezone.utc),
    )
    db.add(endorsement)
    await db.flush()
    await create_notification(
        db,
        body.endorsee_id,
        "endorsement_received",
        {"endorsementId": endorsement.id, "endorserId": auth.id, "tag": body.tag},
    )
    await db.commit()
    logger.info("endorsement_created", endorsement_id=endorsement.id, tag=body.tag)
    return EndorsementResponse.model_validate(endorsement)


@router.get("/users/{user_id}/endorsements", response_model=EndorsementListResponse)
async def list_user_endorsements(
    user_id: str,
    db: AsyncSession = Depends(get_session),
) -> EndorsementListResponse:
    """Endorsements a user has received, newest first."""
    if await get_user_by_id(db, user_id) is None:
        raise ApiError(404, "User not found")
    result = await db.execute(
        select(Endorsement).where(Endorsement.endorsee_id == user_id).order_by(Endorsement.created_at.desc())
    )
    return EndorsementListResponse(
        endorsements=[EndorsementResponse.model_validate(e) for e in result.scalars().all()],
    )
