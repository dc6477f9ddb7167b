"""Notification inbox endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.dependencies import get_current_user
from skillex.auth.schemas import AuthUser
from skillex.database import get_session
from skillex.errors import ApiError
from skillex.notifications.schemas import NotificationListResponse, NotificationResponse
from skillex.notifications.service import get_notifications, mark_as_read
from skillex.schemas import SuccessResponse

router = APIRouter(prefix="/v1", tags=["Notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=100),
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    """List the caller's notifications, newest first."""
    notifications = await get_notifications(db, auth.id, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
    )


@router.post("/notifications/{notification_id}/read", response_model=SuccessResponse)
async def mark_notification_read(
    notification_id: str,
    auth: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    """Mark a notification as read."""
    found = await mark_as_read(db, auth.id, notification_id)
    if not found:
        raise ApiError(404, "Notification not found")
    await db.commit()
    return SuccessResponse()
