"""Notification creation and inbox queries.

Notifications are written in the same transaction as the action that caused
them; the caller commits.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.db.models import Notification

logger = logging.getLogger(__name__)

VALID_KINDS = {
    "connection_request",
    "connection_accepted",
    "cohort_invitation",
    "session_reminder",
    "new_message",
    "feedback_received",
    "endorsement_received",
    "referral_received",
    "referral_accepted",
    "system",
}


async def create_notification(
    db: AsyncSession,
    user_id: str,
    kind: str,
    payload: dict[str, Any] | None = None,
) -> Notification:
    """Queue a notification for ``user_id``."""
    if kind not in VALID_KINDS:
        raise ValueError(f"Invalid notification kind: {kind}")

    notification = Notification(
        user_id=user_id,
        kind=kind,
        payload=payload or {},
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    await db.flush()
    logger.debug("Notification %s queued for %s", kind, user_id)
    return notification


async def get_notifications(
    db: AsyncSession,
    user_id: str,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    """Most recent first."""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read_at.is_(None))
    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def mark_as_read(db: AsyncSession, user_id: str, notification_id: str) -> bool:
    """Mark a single notification as read. Returns True if found."""
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read_at=datetime.now(timezone.utc))
    )
    return result.rowcount > 0
