"""Cohort chat messages."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from skillex.db.models import Message
from skillex.messages.pagination import apply_cursor, encode_cursor

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MAX_PAGE_SIZE = 100


async def post_message(db: AsyncSession, cohort_id: str, user_id: str, body: str) -> Message:
    message = Message(
        cohort_id=cohort_id,
        user_id=user_id,
        body=body,
        created_at=datetime.now(timezone.utc),
    )
    db.add(message)
    await db.flush()
    logger.info("message_posted", cohort_id=cohort_id, message_id=message.id)
    return message


async def paginate_messages(
    db: AsyncSession,
    cohort_id: str,
    limit: int = 50,
    cursor: str | None = None,
) -> tuple[list[Message], str | None]:
    """Fetch a page of a cohort's messages, newest first.

    Args:
        db: Database session.
        cohort_id: Cohort whose chat to read.
        limit: Max items per page (capped at 100).
        cursor: Opaque cursor string from previous response.

    Returns:
        Tuple of (messages list, next_cursor or None).

    Raises:
        ValueError: If the cursor is malformed.
    """
    limit = min(limit, MAX_PAGE_SIZE)

    query = (
        select(Message)
        .where(Message.cohort_id == cohort_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
    )
    query = apply_cursor(query, cursor)

    # Fetch one extra to detect has_more
    result = await db.execute(query.limit(limit + 1))
    rows = list(result.scalars().all())

    items = rows[:limit]
    next_cursor = None
    if len(rows) > limit and items:
        last = items[-1]
        next_cursor = encode_cursor(last.created_at, last.id)

    return items, next_cursor
