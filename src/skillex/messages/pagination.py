"""Keyset pagination for cohort chat.

The cursor encodes ``(created_at, id)`` of the last row served as base64 JSON,
so pages stay stable while new messages arrive.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime

from sqlalchemy import Select, and_, or_

from skillex.db.models import Message


def encode_cursor(created_at: datetime, message_id: str) -> str:
    """Encode a cursor from message fields."""
    payload = {"t": created_at.isoformat(), "id": message_id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, str]:
    """Decode a cursor into ``(created_at, id)``.

    Raises:
        ValueError: If cursor is malformed.
    """
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()))
        return datetime.fromisoformat(data["t"]), str(data["id"])
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        msg = "Invalid cursor"
        raise ValueError(msg) from e


def apply_cursor(query: Select, cursor: str | None) -> Select:  # type: ignore[type-arg]
    """Apply keyset cursor to a message query.

    Assumes the query is already ordered by (created_at DESC, id DESC).
    """
    if cursor is None:
        return query

    cursor_time, cursor_id = decode_cursor(cursor)

    # Keyset condition: row < cursor position (DESC order)
    return query.where(
        or_(
            Message.created_at < cursor_time,
            and_(Message.created_at == cursor_time, Message.id < cursor_id),
        )
    )
