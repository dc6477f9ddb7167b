"""Match preview endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.database import get_session
from skillex.errors import ApiError
from skillex.match.scoring import rank_candidates
from skillex.match.service import load_match_profiles
from skillex.schemas import ApiModel, UserSummary

router = APIRouter(prefix="/v1/match", tags=["Match"])


class MatchPreviewRequest(ApiModel):
    limit: int = Field(10, ge=1, le=50)


class MatchCandidateResponse(ApiModel):
    user: UserSummary
    skill_score: int
    overlap_hours: int
    can_teach_you: list[str]
    wants_to_learn: list[str]


class MatchPreviewResponse(ApiModel):
    matches: list[MatchCandidateResponse]


@router.post("/preview", response_model=MatchPreviewResponse)
async def match_preview(
    body: MatchPreviewRequest | None = None,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MatchPreviewResponse:
    """Rank other users by complementary skills, then shared free hours."""
    limit = body.limit if body is not None else MatchPreviewRequest().limit
    me, candidates, users = await load_match_profiles(db, auth.id)
    if me is None:
        raise ApiError(404, "User not found")

    ranked = rank_candidates(me, candidates, limit)
    return MatchPreviewResponse(
        matches=[
            MatchCandidateResponse(
                user=UserSummary.model_validate(users[s.user_id]),
                skill_score=s.skill_score,
                overlap_hours=s.overlap_hours,
                can_teach_you=list(s.can_teach_you),
                wants_to_learn=list(s.wants_to_learn),
            )
            for s in ranked
        ],
    )
