"""Peer feedback between members of a cohort."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.cohorts.access import member_cohort
from skillex.cohorts.service import is_member
from skillex.database import get_session
from skillex.db.models import Feedback
from skillex.errors import ApiError
from skillex.notifications.service import create_notification
from skillex.schemas import ApiModel

logger = structlog.get_logger()

router = APIRouter(prefix="/v1", tags=["Feedback"])


class FeedbackCreateRequest(ApiModel):
    cohort_id: str
    to_user_id: str
    rating: int = Field(..., ge=1, le=5)
    text: str | None = Field(None, max_length=1000)


class FeedbackResponse(ApiModel):
    id: str
    cohort_id: str
    from_user_id: str
    to_user_id: str
    rating: int
    text: str | None = None
    created_at: datetime


@router.post("/feedback", response_model=FeedbackResponse, status_code=201)
async def create_feedback(
    body: FeedbackCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> FeedbackResponse:
    """Rate a fellow member of a shared cohort."""
    if body.to_user_id == auth.id:
        raise ApiError(400, "You cannot leave feedback for yourself")
    await member_cohort(db, body.cohort_id, auth.id)
    if not await is_member(db, body.cohort_id, body.to_user_id):
        raise ApiError(403, "Feedback recipient is not a member of this cohort")

    feedback = Feedback(
        cohort_id=body.cohort_id,
        from_user_id=auth.id,
        to_user_id=body.to_user_id,
        rating=body.rating,
        text=body.text,
        created_at=datetime.now(timezone.utc),
    )
    db.add(feedback)
    await db.flush()
    await create_notification(
        db,
        body.to_user_id,
        "feedback_received",
        {"feedbackId": feedback.id, "cohortId": body.cohort_id, "rating": body.rating},
    )
    await db.commit()
    logger.info("feedback_created", feedback_id=feedback.id, cohort_id=body.cohort_id)
    return FeedbackResponse.model_validate(feedback)
