"""Cohort chat endpoints (members only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.cohorts.access import member_cohort
from skillex.database import get_session
from skillex.errors import ApiError
from skillex.messages.schemas import MessageCreateRequest, MessagePageResponse, MessageResponse
from skillex.messages.service import paginate_messages, post_message

router = APIRouter(prefix="/v1", tags=["Messages"])


@router.post("/cohorts/{cohort_id}/messages", response_model=MessageResponse, status_code=201)
async def post_message_endpoint(
    cohort_id: str,
    body: MessageCreateRequest,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await member_cohort(db, cohort_id, auth.id)
    message = await post_message(db, cohort_id, auth.id, body.body)
    await db.commit()
    return MessageResponse.model_validate(message)


@router.get("/cohorts/{cohort_id}/messages", response_model=MessagePageResponse)
async def list_messages_endpoint(
    cohort_id: str,
    limit: int = Query(50, ge=1, le=100),
    cursor: str | None = Query(None),
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MessagePageResponse:
    """Newest first; pass the returned cursor to fetch older messages."""
    await member_cohort(db, cohort_id, auth.id)
    try:
        messages, next_cursor = await paginate_messages(db, cohort_id, limit=limit, cursor=cursor)
    except ValueError as e:
        raise ApiError(400, str(e)) from e
    return MessagePageResponse(
        messages=[MessageResponse.model_validate(m) for m in messages],
        cursor=next_cursor,
        has_more=next_cursor is not None,
    )
